"""Admin schedule, analytics, project distribution, and export service layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from io import BytesIO
from uuid import UUID

import structlog
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.entities import Project, Staff, TaskLog
from app.repositories.task_log_repository import TaskLogRepository
from app.services import analytics_engine
from app.services.analytics_engine import LogRecord, ProjectRecord, hours
from app.services.assignment import is_staff_assigned, resolve_assignment
from app.services.report_filters import ReportFilter

logger = structlog.get_logger(__name__)

SCHEDULE_COLUMNS = (
    "workDate",
    "day",
    "engineerName",
    "projectNumber",
    "projectName",
    "architect",
    "stage",
    "task",
    "status",
    "description",
    "projectHours",
    "travelHours",
    "totalManHours",
    "leavesOffice",
    "transportMode",
    "mileage",
    "destination",
)


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


def _enum_value(value: object) -> str | None:
    if value is None:
        return None
    return getattr(value, "value", value)


def to_log_record(task_log: TaskLog, project: Project | None, engineer: Staff | None) -> LogRecord:
    return LogRecord(
        log_id=task_log.id,
        work_date=task_log.work_date,
        employee_id=task_log.employee_id,
        project_id=task_log.project_id,
        stage=_enum_value(task_log.stage),
        task_type=_enum_value(task_log.task_type),
        status=_enum_value(task_log.status),
        project_hours=task_log.project_hours,
        travel_hours=task_log.travel_hours,
        employee_name=engineer.name if engineer is not None else None,
        employee_email=engineer.email if engineer is not None else None,
        project_number=project.project_number if project is not None else None,
        project_name=project.project_name if project is not None else None,
        project_type=_enum_value(project.project_type) if project is not None else None,
        project_status=_enum_value(project.status) if project is not None else None,
        architect=project.architect if project is not None else None,
        description=task_log.description,
        leaves_office=task_log.leaves_office,
        transport_mode=_enum_value(task_log.transport_mode),
        mileage=task_log.mileage,
        destination=task_log.destination,
    )


def to_project_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        project_id=project.id,
        project_number=project.project_number,
        project_name=project.project_name,
        project_type=_enum_value(project.project_type),
        stage=_enum_value(project.stage),
        status=_enum_value(project.status),
    )


class AdminReportService:
    """Service implementing the admin reporting endpoints."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = TaskLogRepository(db)

    def _records(self, report_filter: ReportFilter) -> list[LogRecord]:
        return [
            to_log_record(task_log, project, engineer)
            for task_log, project, engineer in self.repo.list_report_rows(report_filter)
        ]

    # ---------- Serialization ----------
    @staticmethod
    def serialize_schedule_row(record: LogRecord) -> dict[str, object]:
        return {
            "id": str(record.log_id),
            "engineerId": str(record.employee_id),
            "engineerName": record.employee_name or analytics_engine.UNKNOWN,
            "workDate": record.work_date.isoformat(),
            "day": record.work_date.strftime("%A"),
            "projectId": str(record.project_id),
            "projectNumber": record.project_number or analytics_engine.UNKNOWN,
            "projectName": record.project_name or analytics_engine.UNKNOWN,
            "architect": record.architect or "",
            "stage": record.stage,
            "task": record.task_type,
            "status": record.status,
            "description": record.description or "",
            "projectHours": hours(record.project_hours),
            "travelHours": hours(record.travel_hours),
            "totalManHours": hours(record.man_hours),
            "leavesOffice": record.leaves_office,
            "transportMode": record.transport_mode,
            "mileage": hours(record.mileage),
            "destination": record.destination,
        }

    # ---------- Schedule ----------
    def master_schedule(self, report_filter: ReportFilter) -> list[dict[str, object]]:
        return [self.serialize_schedule_row(record) for record in self._records(report_filter)]

    def export_master_schedule(self, report_filter: ReportFilter, *, format_name: str) -> ExportFilePayload:
        normalized_format = format_name.strip().lower()
        if normalized_format not in {"csv", "xlsx"}:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"field": "format", "reason": "format must be one of: csv, xlsx."},
            )

        rows = self.master_schedule(report_filter)
        base_filename = "master-schedule"
        if normalized_format == "csv":
            import csv
            import io

            sio = io.StringIO()
            writer = csv.DictWriter(sio, fieldnames=list(SCHEDULE_COLUMNS), extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=sio.getvalue().encode("utf-8"),
            )

        from openpyxl import Workbook

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "schedule"
        sheet.append(list(SCHEDULE_COLUMNS))
        for row in rows:
            sheet.append([row.get(column) if row.get(column) is not None else "" for column in SCHEDULE_COLUMNS])

        output = BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )

    # ---------- Analytics ----------
    @staticmethod
    def _trend_year(report_filter: ReportFilter, year: int | None, today: date) -> int:
        if year is not None:
            return year
        if report_filter.end_date is not None:
            return report_filter.end_date.year
        if report_filter.start_date is not None:
            return report_filter.start_date.year
        return today.year

    def analytics(
        self,
        report_filter: ReportFilter,
        *,
        year: int | None = None,
        today: date | None = None,
    ) -> dict[str, object]:
        reference_day = today or date.today()
        records = self._records(report_filter)
        payload = analytics_engine.build_analytics(
            records,
            year=self._trend_year(report_filter, year, reference_day),
            today=reference_day,
        )
        logger.info(
            "analytics_computed",
            records=len(records),
            failed_sections=payload["failedSections"],
        )
        return payload

    # ---------- Project scope ----------
    def _assigned_project_ids(self, staff_id: UUID) -> set[UUID]:
        assignees = self.repo.assignee_ids_by_project()
        return {
            project.id
            for project in self.repo.list_projects()
            if is_staff_assigned(resolve_assignment(project, assignees.get(project.id, ())), staff_id)
        }

    def resolve_project_scope(
        self,
        report_filter: ReportFilter,
        *,
        include_assigned: bool = True,
    ) -> set[UUID] | None:
        """Project ids the project-level reports are restricted to.

        ``None`` means every project. Otherwise the scope is the projects
        touched by task logs matching the engineer and date filters. With
        ``include_assigned`` an engineer filter without dates also adds the
        projects the engineer is assigned to.
        """

        if not report_filter.has_project_scope:
            return None

        touched = self.repo.touched_project_ids(report_filter.engineer_and_dates())
        if not include_assigned or report_filter.has_date_range:
            return touched
        return touched | self._assigned_project_ids(report_filter.engineer_id)

    def _scoped_projects(self, report_filter: ReportFilter, *, include_assigned: bool = True) -> list[ProjectRecord]:
        scope = self.resolve_project_scope(report_filter, include_assigned=include_assigned)
        return [to_project_record(project) for project in self.repo.list_projects(scope)]

    def project_stage_distribution(self, report_filter: ReportFilter) -> dict[str, object]:
        return analytics_engine.project_stage_distribution(self._scoped_projects(report_filter))

    def project_status_distribution(self, report_filter: ReportFilter) -> dict[str, object]:
        return analytics_engine.project_status_distribution(self._scoped_projects(report_filter))

    def project_stats(self, report_filter: ReportFilter) -> dict[str, int]:
        # KPI counts cover only projects with matching task logs.
        projects = self._scoped_projects(report_filter, include_assigned=False)
        return analytics_engine.project_statistics(project.status for project in projects)

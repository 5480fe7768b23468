"""Admin reporting endpoints: schedule, analytics, project stats, compliance."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.core.auth import AppRole, RequestUserContext, require_roles
from app.db.dependencies import get_db_session
from app.services.admin_report_service import AdminReportService
from app.services.report_filters import build_report_filter, parse_year
from app.services.weekly_compliance import WeeklyComplianceService

router = APIRouter(prefix="/admin", tags=["admin"])

require_admin = require_roles(AppRole.ADMIN)


def _service(db: Session) -> AdminReportService:
    return AdminReportService(db)


@router.get("/master-schedule")
def get_master_schedule(
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    project_id: str | None = Query(default=None, alias="projectId"),
    task_stage: str | None = Query(default=None, alias="taskStage"),
    task_type: str | None = Query(default=None, alias="taskType"),
    status: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    report_filter = build_report_filter(
        {
            "engineerId": engineer_id,
            "projectId": project_id,
            "taskStage": task_stage,
            "taskType": task_type,
            "status": status,
            "startDate": start_date,
            "endDate": end_date,
        }
    )
    return _service(db).master_schedule(report_filter)


@router.get("/master-schedule/export")
def export_master_schedule(
    format: str = Query(default="xlsx"),
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    project_id: str | None = Query(default=None, alias="projectId"),
    task_stage: str | None = Query(default=None, alias="taskStage"),
    task_type: str | None = Query(default=None, alias="taskType"),
    status: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> Response:
    report_filter = build_report_filter(
        {
            "engineerId": engineer_id,
            "projectId": project_id,
            "taskStage": task_stage,
            "taskType": task_type,
            "status": status,
            "startDate": start_date,
            "endDate": end_date,
        }
    )
    exported = _service(db).export_master_schedule(report_filter, format_name=format)
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.get("/analytics")
def get_analytics(
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    project_id: str | None = Query(default=None, alias="projectId"),
    stage: str | None = Query(default=None),
    task: str | None = Query(default=None),
    status: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    year: str | None = Query(default=None),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    report_filter = build_report_filter(
        {
            "engineerId": engineer_id,
            "projectId": project_id,
            "stage": stage,
            "task": task,
            "status": status,
            "startDate": start_date,
            "endDate": end_date,
        }
    )
    return _service(db).analytics(report_filter, year=parse_year("year", year))


def _project_scope_filter(engineer_id: str | None, start_date: str | None, end_date: str | None):
    return build_report_filter({"engineerId": engineer_id, "startDate": start_date, "endDate": end_date})


@router.get("/project-stage-dist")
def get_project_stage_distribution(
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    report_filter = _project_scope_filter(engineer_id, start_date, end_date)
    return _service(db).project_stage_distribution(report_filter)


@router.get("/project-status-dist")
def get_project_status_distribution(
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    report_filter = _project_scope_filter(engineer_id, start_date, end_date)
    return _service(db).project_status_distribution(report_filter)


@router.get("/project-stats")
def get_project_stats(
    engineer_id: str | None = Query(default=None, alias="engineerId"),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, int]:
    report_filter = _project_scope_filter(engineer_id, start_date, end_date)
    return _service(db).project_stats(report_filter)


@router.get("/weekly-submission-report")
def get_weekly_submission_report(
    week_start: str | None = Query(default=None, alias="weekStart"),
    week_end: str | None = Query(default=None, alias="weekEnd"),
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    start, end = WeeklyComplianceService.resolve_week(week_start, week_end)
    return WeeklyComplianceService(db).weekly_report(week_start=start, week_end=end)


@router.get("/weekly-submission-report/weeks")
def get_weekly_submission_weeks(
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> list[dict[str, str]]:
    return WeeklyComplianceService(db).available_weeks()

"""Task-log submission with one-log-per-day upsert semantics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import structlog
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.auth import RequestUserContext
from app.models.entities import ProjectStatus, TaskLog, TaskType, TransportMode, WorkStage
from app.repositories.task_log_repository import TaskLogRepository
from app.services.report_filters import validation_error

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")


def _q2(value: Decimal) -> Decimal:
    return value.quantize(Q2)


@dataclass(slots=True)
class TaskLogSubmission:
    project_id: UUID
    work_date: date
    stage: WorkStage
    task_type: TaskType
    status: ProjectStatus
    project_hours: Decimal
    travel_hours: Decimal = ZERO
    description: str | None = None
    leaves_office: bool = False
    transport_mode: TransportMode | None = None
    mileage: Decimal = ZERO
    destination: str | None = None


@dataclass(slots=True)
class SubmissionResult:
    task_log: TaskLog
    created: bool


def normalize_submission(data: TaskLogSubmission) -> TaskLogSubmission:
    """Apply travel rules and reject inconsistent submissions."""

    if data.project_hours < ZERO:
        raise validation_error("projectHours", "projectHours must be greater or equal zero.")
    if data.travel_hours < ZERO:
        raise validation_error("travelHours", "travelHours must be greater or equal zero.")
    if data.mileage < ZERO:
        raise validation_error("mileage", "mileage must be greater or equal zero.")

    if not data.leaves_office:
        if data.transport_mode is not None:
            raise validation_error("transportMode", "transportMode is only allowed when leavesOffice is true.")
        return TaskLogSubmission(
            project_id=data.project_id,
            work_date=data.work_date,
            stage=data.stage,
            task_type=data.task_type,
            status=data.status,
            project_hours=_q2(data.project_hours),
            travel_hours=ZERO,
            description=data.description,
        )

    if data.transport_mode is None:
        raise validation_error("transportMode", "transportMode is required when leavesOffice is true.")
    if data.transport_mode is not TransportMode.ROAD and data.mileage > ZERO:
        raise validation_error("mileage", "mileage is only recorded for Road travel.")
    destination = (data.destination or "").strip() or None
    if data.transport_mode is not TransportMode.FLIGHT and destination is not None:
        raise validation_error("destination", "destination is only recorded for Flight travel.")

    return TaskLogSubmission(
        project_id=data.project_id,
        work_date=data.work_date,
        stage=data.stage,
        task_type=data.task_type,
        status=data.status,
        project_hours=_q2(data.project_hours),
        travel_hours=_q2(data.travel_hours),
        description=data.description,
        leaves_office=True,
        transport_mode=data.transport_mode,
        mileage=_q2(data.mileage),
        destination=destination,
    )


def apply_submission(task_log: TaskLog, data: TaskLogSubmission) -> TaskLog:
    """Copy submitted fields onto a row and recompute the stored total."""

    task_log.stage = data.stage
    task_log.task_type = data.task_type
    task_log.status = data.status
    task_log.description = data.description
    task_log.project_hours = data.project_hours
    task_log.travel_hours = data.travel_hours
    task_log.total_man_hours = data.project_hours + data.travel_hours
    task_log.leaves_office = data.leaves_office
    task_log.transport_mode = data.transport_mode
    task_log.mileage = data.mileage
    task_log.destination = data.destination
    task_log.updated_at = datetime.utcnow()
    return task_log


class TaskLogService:
    """Employee task-log submission and admin maintenance."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = TaskLogRepository(db)

    @staticmethod
    def serialize_task_log(task_log: TaskLog) -> dict[str, object]:
        return {
            "id": str(task_log.id),
            "projectId": str(task_log.project_id),
            "employeeId": str(task_log.employee_id),
            "workDate": task_log.work_date.isoformat(),
            "stage": task_log.stage.value,
            "taskType": task_log.task_type.value,
            "status": task_log.status.value,
            "description": task_log.description,
            "projectHours": float(task_log.project_hours),
            "travelHours": float(task_log.travel_hours),
            "totalManHours": float(task_log.total_man_hours),
            "leavesOffice": task_log.leaves_office,
            "transportMode": task_log.transport_mode.value if task_log.transport_mode else None,
            "mileage": float(task_log.mileage),
            "destination": task_log.destination,
        }

    def _update_existing(self, existing: TaskLog, data: TaskLogSubmission) -> SubmissionResult:
        apply_submission(existing, data)
        self.db.commit()
        self.db.refresh(existing)
        logger.info("task_log_updated", task_log_id=str(existing.id), work_date=existing.work_date.isoformat())
        return SubmissionResult(task_log=existing, created=False)

    def submit_task_log(self, *, context: RequestUserContext, data: TaskLogSubmission) -> SubmissionResult:
        """Create the log for (project, employee, day) or update the existing one.

        A concurrent insert of the same key surfaces as ``IntegrityError`` from
        the unique constraint; the losing writer updates the winner's row.
        """

        normalized = normalize_submission(data)
        if self.repo.get_project(normalized.project_id) is None:
            raise validation_error("projectId", "Project not found.")

        key = {
            "project_id": normalized.project_id,
            "employee_id": context.staff_id,
            "work_date": normalized.work_date,
        }
        existing = self.repo.get_task_log_by_key(**key)
        if existing is not None:
            return self._update_existing(existing, normalized)

        now = datetime.utcnow()
        task_log = apply_submission(TaskLog(**key, created_at=now), normalized)
        try:
            self.repo.add_task_log(task_log)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            existing = self.repo.get_task_log_by_key(**key)
            if existing is None:
                raise
            logger.warning("task_log_duplicate_race", project_id=str(key["project_id"]), work_date=key["work_date"].isoformat())
            return self._update_existing(existing, normalized)

        self.db.refresh(task_log)
        logger.info("task_log_created", task_log_id=str(task_log.id), work_date=task_log.work_date.isoformat())
        return SubmissionResult(task_log=task_log, created=True)

    @staticmethod
    def _key_conflict() -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "field": "workDate",
                "reason": "The employee already has a log for this project on this day.",
            },
        )

    def update_task_log(
        self,
        *,
        context: RequestUserContext,
        task_log_id: UUID,
        data: TaskLogSubmission,
    ) -> TaskLog:
        """Admin correction of an existing log; the owning employee is kept."""

        if not context.is_admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can edit task logs.")

        task_log = self.repo.get_task_log(task_log_id)
        if task_log is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task log not found.")

        normalized = normalize_submission(data)
        if normalized.project_id != task_log.project_id and self.repo.get_project(normalized.project_id) is None:
            raise validation_error("projectId", "Project not found.")

        existing = self.repo.get_task_log_by_key(
            project_id=normalized.project_id,
            employee_id=task_log.employee_id,
            work_date=normalized.work_date,
        )
        if existing is not None and existing.id != task_log.id:
            raise self._key_conflict()

        task_log.project_id = normalized.project_id
        task_log.work_date = normalized.work_date
        apply_submission(task_log, normalized)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("task_log_edit_conflict", task_log_id=str(task_log_id))
            raise self._key_conflict() from exc

        self.db.refresh(task_log)
        logger.info("task_log_edited", task_log_id=str(task_log_id), edited_by=str(context.staff_id))
        return task_log

    def list_my_task_logs(self, *, context: RequestUserContext, since: date | None = None) -> list[TaskLog]:
        return self.repo.list_task_logs_for_employee(context.staff_id, since=since)

    def delete_task_log(self, *, context: RequestUserContext, task_log_id: UUID) -> None:
        task_log = self.repo.get_task_log(task_log_id)
        if task_log is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task log not found.")
        if not context.is_admin and task_log.employee_id != context.staff_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to delete this task log.")

        self.repo.delete_task_log(task_log)
        self.db.commit()
        logger.info("task_log_deleted", task_log_id=str(task_log_id))

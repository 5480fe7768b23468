"""Employee task-log submission endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.core.auth import AppRole, RequestUserContext, get_current_user_context, require_roles
from app.db.dependencies import get_db_session
from app.models.entities import ProjectStatus, TaskType, TransportMode, WorkStage
from app.services.task_log_service import TaskLogService, TaskLogSubmission

router = APIRouter(prefix="/tasks", tags=["tasks"])

require_admin = require_roles(AppRole.ADMIN)


class TaskLogPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: UUID = Field(alias="projectId")
    work_date: date = Field(alias="workDate")
    stage: WorkStage
    task_type: TaskType = Field(alias="taskType")
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    description: str | None = Field(default=None, max_length=2000)
    project_hours: Decimal = Field(alias="projectHours", max_digits=6, decimal_places=2)
    travel_hours: Decimal = Field(default=Decimal("0.00"), alias="travelHours", max_digits=6, decimal_places=2)
    leaves_office: bool = Field(default=False, alias="leavesOffice")
    transport_mode: TransportMode | None = Field(default=None, alias="transportMode")
    mileage: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    destination: str | None = Field(default=None, max_length=255)

    def to_submission(self) -> TaskLogSubmission:
        return TaskLogSubmission(
            project_id=self.project_id,
            work_date=self.work_date,
            stage=self.stage,
            task_type=self.task_type,
            status=self.status,
            project_hours=self.project_hours,
            travel_hours=self.travel_hours,
            description=self.description,
            leaves_office=self.leaves_office,
            transport_mode=self.transport_mode,
            mileage=self.mileage,
            destination=self.destination,
        )


def _service(db: Session) -> TaskLogService:
    return TaskLogService(db)


@router.post("")
def submit_task_log(
    payload: TaskLogPayload,
    response: Response,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Log hours for one project on one day; resubmitting the same day updates it."""

    service = _service(db)
    result = service.submit_task_log(context=context, data=payload.to_submission())
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return {"created": result.created, "taskLog": service.serialize_task_log(result.task_log)}


@router.get("/my")
def list_my_task_logs(
    since: date | None = Query(default=None),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> list[dict[str, object]]:
    service = _service(db)
    return [service.serialize_task_log(row) for row in service.list_my_task_logs(context=context, since=since)]


@router.put("/{task_log_id}")
def update_task_log(
    task_log_id: UUID,
    payload: TaskLogPayload,
    context: RequestUserContext = Depends(require_admin),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Admin correction of a log; hours and travel rules are re-checked."""

    service = _service(db)
    task_log = service.update_task_log(context=context, task_log_id=task_log_id, data=payload.to_submission())
    return service.serialize_task_log(task_log)


@router.delete("/{task_log_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task_log(
    task_log_id: UUID,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _service(db).delete_task_log(context=context, task_log_id=task_log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Normalization of report query parameters into task-log predicates."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.sql.elements import ColumnElement

from app.models.entities import ProjectStatus, TaskLog, TaskType, WorkStage

# HTTP parameter name -> ReportFilter attribute. Endpoints grew different
# names for the same dimension; all of them resolve here.
PARAM_ALIASES: dict[str, str] = {
    "engineerId": "engineer_id",
    "projectId": "project_id",
    "stage": "stage",
    "taskStage": "stage",
    "task": "task_type",
    "taskType": "task_type",
    "status": "status",
    "startDate": "start_date",
    "endDate": "end_date",
}

END_OF_DAY = time(23, 59, 59)
MIN_YEAR = 1900
MAX_YEAR = 9999


def validation_error(field: str, reason: str) -> HTTPException:
    """Build the structured 400 raised for a rejected request parameter."""

    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"field": field, "reason": reason},
    )


@dataclass(frozen=True, slots=True)
class ReportFilter:
    """Immutable filter shared by schedule, analytics, and scope queries."""

    engineer_id: UUID | None = None
    project_id: UUID | None = None
    stage: WorkStage | None = None
    task_type: TaskType | None = None
    status: ProjectStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    @property
    def has_project_scope(self) -> bool:
        """Whether project-level reports must be narrowed to a subset."""

        return self.engineer_id is not None or self.has_date_range

    def task_log_conditions(self) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if self.engineer_id is not None:
            conditions.append(TaskLog.employee_id == self.engineer_id)
        if self.project_id is not None:
            conditions.append(TaskLog.project_id == self.project_id)
        if self.stage is not None:
            conditions.append(TaskLog.stage == self.stage)
        if self.task_type is not None:
            conditions.append(TaskLog.task_type == self.task_type)
        if self.status is not None:
            conditions.append(TaskLog.status == self.status)
        # work_date is a calendar date, so the normalized bounds compare by day.
        if self.start_date is not None:
            conditions.append(TaskLog.work_date >= self.start_date.date())
        if self.end_date is not None:
            conditions.append(TaskLog.work_date <= self.end_date.date())
        return conditions

    def engineer_and_dates(self) -> ReportFilter:
        """Project-scope filter: only the engineer and date dimensions."""

        return ReportFilter(
            engineer_id=self.engineer_id,
            start_date=self.start_date,
            end_date=self.end_date,
        )


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_reference(field: str, value: str | None) -> UUID | None:
    raw = _clean(value)
    if raw is None:
        return None
    try:
        return UUID(raw)
    except ValueError as exc:
        raise validation_error(field, "Malformed reference id.") from exc


def parse_choice(field: str, value: str | None, enum_cls: type[enum.Enum]):
    raw = _clean(value)
    if raw is None:
        return None
    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise validation_error(field, f"Unknown value. Expected one of: {allowed}.") from exc


def parse_calendar_day(field: str, value: str | None) -> date | None:
    raw = _clean(value)
    if raw is None:
        return None
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise validation_error(field, "Expected ISO date (YYYY-MM-DD).") from exc


def parse_year(field: str, value: str | None) -> int | None:
    raw = _clean(value)
    if raw is None:
        return None
    if not (raw.isascii() and raw.isdigit()) or not MIN_YEAR <= int(raw) <= MAX_YEAR:
        raise validation_error(field, f"Expected a year between {MIN_YEAR} and {MAX_YEAR}.")
    return int(raw)


def build_report_filter(params: Mapping[str, str | None]) -> ReportFilter:
    """Translate raw query parameters into a ``ReportFilter``.

    Unknown keys are ignored and blank values impose no constraint. The first
    offending parameter is reported by its HTTP name.
    """

    values: dict[str, object] = {}
    for param_name, raw in params.items():
        attribute = PARAM_ALIASES.get(param_name)
        if attribute is None or _clean(raw) is None:
            continue

        if attribute in {"engineer_id", "project_id"}:
            values[attribute] = parse_reference(param_name, raw)
        elif attribute == "stage":
            values[attribute] = parse_choice(param_name, raw, WorkStage)
        elif attribute == "task_type":
            values[attribute] = parse_choice(param_name, raw, TaskType)
        elif attribute == "status":
            values[attribute] = parse_choice(param_name, raw, ProjectStatus)
        elif attribute == "start_date":
            values[attribute] = datetime.combine(parse_calendar_day(param_name, raw), time.min)
        elif attribute == "end_date":
            values[attribute] = datetime.combine(parse_calendar_day(param_name, raw), END_OF_DAY)

    start = values.get("start_date")
    end = values.get("end_date")
    if start is not None and end is not None and start > end:
        raise validation_error("endDate", "endDate must not be earlier than startDate.")

    return ReportFilter(**values)

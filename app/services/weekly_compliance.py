"""Weekly task-log submission compliance."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog
from sqlalchemy.orm import Session

from app.models.entities import Staff
from app.repositories.task_log_repository import TaskLogRepository
from app.services.report_filters import parse_calendar_day, validation_error

logger = structlog.get_logger(__name__)

WEEK_END_TIME = time(23, 59, 59)
WEEK_SPAN_DAYS = 6


@dataclass(frozen=True, slots=True)
class StaffMember:
    staff_id: UUID
    name: str
    email: str
    engineer_type: str | None = None


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``.

    Sunday belongs to the week that started six days earlier.
    """

    # Sunday-based day number (Sunday=0 ... Saturday=6), shifted so Monday is 0.
    sunday_based = (day.weekday() + 1) % 7
    return day - timedelta(days=(sunday_based + 6) % 7)


def week_window(week_start: date, week_end: date | None = None) -> tuple[datetime, datetime]:
    """Monday 00:00:00 through Sunday 23:59:59 (or ``week_end`` 23:59:59)."""

    end_day = week_end if week_end is not None else week_start + timedelta(days=6)
    return datetime.combine(week_start, time.min), datetime.combine(end_day, WEEK_END_TIME)


def week_label(week_start: date, week_end: date) -> str:
    return f"{week_start.day} {week_start:%b %Y} - {week_end.day} {week_end:%b %Y}"


def submission_rate(submitted: int, total_staff: int) -> float:
    if total_staff == 0:
        return 0.0
    ratio = Decimal(submitted) * Decimal(100) / Decimal(total_staff)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _serialize_member(member: StaffMember, task_count: int) -> dict[str, object]:
    return {
        "id": str(member.staff_id),
        "name": member.name,
        "email": member.email,
        "engineerType": member.engineer_type,
        "taskCount": task_count,
    }


def compute_weekly_compliance(
    staff: Iterable[StaffMember],
    task_counts: Mapping[UUID, int],
    *,
    week_start: date,
    week_end: date,
) -> dict[str, object]:
    """Partition staff into submitted / not submitted for one week."""

    members = list(staff)
    submitted: list[dict[str, object]] = []
    not_submitted: list[dict[str, object]] = []
    everyone: list[dict[str, object]] = []
    for member in members:
        count = task_counts.get(member.staff_id, 0)
        row = _serialize_member(member, count)
        everyone.append(row)
        if count > 0:
            submitted.append(row)
        else:
            not_submitted.append(row)

    submitted.sort(key=lambda row: row["name"].lower())
    not_submitted.sort(key=lambda row: row["name"].lower())
    everyone.sort(key=lambda row: (-row["taskCount"], row["name"].lower()))

    return {
        "weekStart": week_start.isoformat(),
        "weekEnd": week_end.isoformat(),
        "summary": {
            "totalStaff": len(members),
            "submitted": len(submitted),
            "notSubmitted": len(not_submitted),
            "submissionRate": submission_rate(len(submitted), len(members)),
        },
        "submittedUsers": submitted,
        "notSubmittedUsers": not_submitted,
        "allEmployeesWithTaskCounts": everyone,
    }


def available_weeks(work_dates: Iterable[date]) -> list[dict[str, str]]:
    """Distinct Monday-Sunday buckets present in the log history, newest first."""

    starts = sorted({week_start_for(day) for day in work_dates}, reverse=True)
    weeks = []
    for start in starts:
        end = start + timedelta(days=6)
        weeks.append({"weekStart": start.isoformat(), "weekEnd": end.isoformat(), "label": week_label(start, end)})
    return weeks


class WeeklyComplianceService:
    """Reads staff and per-employee log counts for the compliance report."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = TaskLogRepository(db)

    @staticmethod
    def resolve_week(
        week_start_param: str | None,
        week_end_param: str | None,
        *,
        today: date | None = None,
    ) -> tuple[date, date]:
        requested_start = parse_calendar_day("weekStart", week_start_param)
        requested_end = parse_calendar_day("weekEnd", week_end_param)

        week_start = week_start_for(requested_start or today or date.today())
        week_end = requested_end or week_start + timedelta(days=WEEK_SPAN_DAYS)
        if week_end < week_start:
            raise validation_error("weekEnd", "weekEnd must not be earlier than weekStart.")
        if week_end > week_start + timedelta(days=WEEK_SPAN_DAYS):
            raise validation_error("weekEnd", "weekEnd must fall within the week starting at weekStart.")
        return week_start, week_end

    @staticmethod
    def _member(staff: Staff) -> StaffMember:
        engineer_type = staff.engineer_type.value if staff.engineer_type is not None else None
        return StaffMember(staff_id=staff.id, name=staff.name, email=staff.email, engineer_type=engineer_type)

    def weekly_report(self, *, week_start: date, week_end: date) -> dict[str, object]:
        window_start, window_end = week_window(week_start, week_end)
        members = [self._member(staff) for staff in self.repo.list_staff()]
        counts = self.repo.count_logs_by_employee(start=window_start.date(), end=window_end.date())
        report = compute_weekly_compliance(members, counts, week_start=week_start, week_end=week_end)
        logger.info(
            "weekly_compliance_computed",
            week_start=report["weekStart"],
            submitted=report["summary"]["submitted"],
            total_staff=report["summary"]["totalStaff"],
        )
        return report

    def available_weeks(self) -> list[dict[str, str]]:
        return available_weeks(self.repo.distinct_work_dates())

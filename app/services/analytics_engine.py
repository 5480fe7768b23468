"""Pure aggregation functions behind the admin analytics views.

Every function takes already-filtered ``LogRecord`` rows (or project rows)
and returns JSON-ready structures. Nothing here touches the database, so the
same inputs always produce the same report.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

import structlog

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")
Q2 = Decimal("0.01")
Q1 = Decimal("0.1")
UNKNOWN = "Unknown"
NOT_SET = "Not Set"

COMPLETED_STATUS = "Completed"
ACTIVE_STATUSES = frozenset({"Active", "In Progress"})
STALLED_STATUSES = frozenset({"Stalled", "On Hold"})

ROAD = "Road"
FLIGHT = "Flight"

LOW_WORKLOAD_MAX = 5
MEDIUM_WORKLOAD_MAX = 10


@dataclass(frozen=True, slots=True)
class LogRecord:
    """One task log flattened with its project and engineer fields."""

    log_id: UUID
    work_date: date
    employee_id: UUID
    project_id: UUID
    stage: str
    task_type: str
    status: str
    project_hours: Decimal
    travel_hours: Decimal
    employee_name: str | None = None
    employee_email: str | None = None
    project_number: str | None = None
    project_name: str | None = None
    project_type: str | None = None
    project_status: str | None = None
    architect: str | None = None
    description: str | None = None
    leaves_office: bool = False
    transport_mode: str | None = None
    mileage: Decimal = ZERO
    destination: str | None = None

    @property
    def man_hours(self) -> Decimal:
        # Recomputed on read; the stored total is only trusted at write time.
        return self.project_hours + self.travel_hours


@dataclass(frozen=True, slots=True)
class ProjectRecord:
    project_id: UUID
    project_number: str
    project_name: str
    project_type: str | None
    stage: str | None
    status: str | None


def hours(value: Decimal) -> float:
    return float(value.quantize(Q2))


def percentage(count: int, total: int) -> float:
    if total == 0:
        return 0.0
    ratio = Decimal(count) * Decimal(100) / Decimal(total)
    return float(ratio.quantize(Q1, rounding=ROUND_HALF_UP))


def workload_tier(open_tasks: int) -> str:
    if open_tasks <= LOW_WORKLOAD_MAX:
        return "Low"
    if open_tasks <= MEDIUM_WORKLOAD_MAX:
        return "Medium"
    return "High"


class _HourTotals:
    __slots__ = ("project_hours", "travel_hours", "count")

    def __init__(self) -> None:
        self.project_hours = ZERO
        self.travel_hours = ZERO
        self.count = 0

    def add(self, record: LogRecord) -> None:
        self.project_hours += record.project_hours
        self.travel_hours += record.travel_hours
        self.count += 1

    def as_dict(self) -> dict[str, object]:
        return {
            "totalProjectHours": hours(self.project_hours),
            "totalTravelHours": hours(self.travel_hours),
            "totalManHours": hours(self.project_hours + self.travel_hours),
            "taskCount": self.count,
        }


def _by_man_hours_desc(label_key: str) -> Callable[[dict[str, object]], tuple]:
    return lambda row: (-row["totalManHours"], str(row[label_key]))


# ---------- Hours ----------
def hours_by_project(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    totals: dict[UUID, _HourTotals] = {}
    labels: dict[UUID, tuple[str, str]] = {}
    for record in records:
        totals.setdefault(record.project_id, _HourTotals()).add(record)
        labels[record.project_id] = (record.project_number or UNKNOWN, record.project_name or UNKNOWN)

    rows = [
        {
            "projectId": str(project_id),
            "projectNumber": labels[project_id][0],
            "projectName": labels[project_id][1],
            **bucket.as_dict(),
        }
        for project_id, bucket in totals.items()
    ]
    rows.sort(key=_by_man_hours_desc("projectNumber"))
    return rows


def hours_by_stage(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    """Group by the stage recorded on each log, not the project's current stage."""

    totals: dict[str, _HourTotals] = {}
    for record in records:
        totals.setdefault(record.stage or UNKNOWN, _HourTotals()).add(record)

    rows = [{"stage": stage, **bucket.as_dict()} for stage, bucket in totals.items()]
    rows.sort(key=_by_man_hours_desc("stage"))
    return rows


def hours_by_project_type(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    totals: dict[str, _HourTotals] = {}
    for record in records:
        totals.setdefault(record.project_type or UNKNOWN, _HourTotals()).add(record)

    rows = [{"projectType": project_type, **bucket.as_dict()} for project_type, bucket in totals.items()]
    rows.sort(key=_by_man_hours_desc("projectType"))
    return rows


def total_hours(records: Iterable[LogRecord]) -> dict[str, object]:
    bucket = _HourTotals()
    for record in records:
        bucket.add(record)
    return bucket.as_dict()


# ---------- Engineers ----------
def utilization_by_engineer(records: Iterable[LogRecord], *, today: date) -> list[dict[str, object]]:
    """Per-engineer hours and workload.

    ``overdueTasks`` counts open logs dated before ``today``. Task logs carry
    no due date, so this is a staleness signal rather than a deadline check.
    """

    buckets: dict[UUID, dict[str, object]] = {}
    for record in records:
        bucket = buckets.setdefault(
            record.employee_id,
            {
                "name": record.employee_name or UNKNOWN,
                "email": record.employee_email or "",
                "man_hours": ZERO,
                "tasks": 0,
                "projects": set(),
                "open": 0,
                "overdue": 0,
            },
        )
        bucket["man_hours"] += record.man_hours
        bucket["tasks"] += 1
        bucket["projects"].add(record.project_id)
        if record.status != COMPLETED_STATUS:
            bucket["open"] += 1
            if record.work_date < today:
                bucket["overdue"] += 1

    rows = [
        {
            "engineerId": str(employee_id),
            "name": bucket["name"],
            "email": bucket["email"],
            "totalManHours": hours(bucket["man_hours"]),
            "taskCount": bucket["tasks"],
            "projectCount": len(bucket["projects"]),
            "openTasks": bucket["open"],
            "overdueTasks": bucket["overdue"],
            "overdueIsApproximate": True,
            "workloadTier": workload_tier(bucket["open"]),
        }
        for employee_id, bucket in buckets.items()
    ]
    rows.sort(key=_by_man_hours_desc("name"))
    return rows


def employee_project_progress(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    buckets: dict[tuple[UUID, UUID], dict[str, object]] = {}
    for record in records:
        key = (record.employee_id, record.project_id)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = {
                "engineerId": str(record.employee_id),
                "engineerName": record.employee_name or UNKNOWN,
                "projectId": str(record.project_id),
                "projectNumber": record.project_number or UNKNOWN,
                "projectName": record.project_name or UNKNOWN,
                "man_hours": ZERO,
                "taskCount": 0,
                "first": record.work_date,
                "last": record.work_date,
                "latestStage": record.stage,
                "latestStatus": record.status,
            }
            buckets[key] = bucket
        bucket["man_hours"] += record.man_hours
        bucket["taskCount"] += 1
        if record.work_date < bucket["first"]:
            bucket["first"] = record.work_date
        if record.work_date >= bucket["last"]:
            bucket["last"] = record.work_date
            bucket["latestStage"] = record.stage
            bucket["latestStatus"] = record.status

    rows: list[dict[str, object]] = []
    for bucket in buckets.values():
        man_hours = bucket.pop("man_hours")
        first = bucket.pop("first")
        last = bucket.pop("last")
        rows.append(
            {
                **bucket,
                "totalManHours": hours(man_hours),
                "firstWorkDate": first.isoformat(),
                "lastWorkDate": last.isoformat(),
            }
        )
    rows.sort(key=lambda row: (row["engineerName"], row["projectNumber"]))
    return rows


# ---------- Distributions ----------
def distribution(values: Iterable[str | None], *, key: str, missing_label: str = NOT_SET) -> dict[str, object]:
    """Count values and attach one-decimal percentages of the total."""

    counts: dict[str, int] = {}
    for value in values:
        label = value or missing_label
        counts[label] = counts.get(label, 0) + 1

    total = sum(counts.values())
    data = [
        {key: label, "count": count, "percentage": percentage(count, total)}
        for label, count in counts.items()
    ]
    data.sort(key=lambda row: (-row["count"], row[key]))
    return {"data": data, "total": total}


def project_status_distribution(projects: Iterable[ProjectRecord]) -> dict[str, object]:
    return distribution((project.status for project in projects), key="status")


def project_stage_distribution(projects: Iterable[ProjectRecord]) -> dict[str, object]:
    return distribution((project.stage for project in projects), key="stage")


def touched_project_statuses(records: Iterable[LogRecord]) -> dict[str, object]:
    """Status distribution over the distinct projects present in ``records``."""

    statuses: dict[UUID, str | None] = {}
    for record in records:
        statuses[record.project_id] = record.project_status
    return distribution(statuses.values(), key="status", missing_label=UNKNOWN)


def project_statistics(statuses: Iterable[str | None]) -> dict[str, int]:
    total = active = completed = stalled = 0
    for value in statuses:
        total += 1
        if value in ACTIVE_STATUSES:
            active += 1
        elif value == COMPLETED_STATUS:
            completed += 1
        elif value in STALLED_STATUSES:
            stalled += 1
    return {
        "totalProjects": total,
        "activeProjects": active,
        "completedProjects": completed,
        "stalledProjects": stalled,
    }


# ---------- Transport ----------
def _travel_records(records: Iterable[LogRecord]) -> list[LogRecord]:
    return [record for record in records if record.leaves_office]


def transport_by_project(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    buckets: dict[UUID, dict[str, object]] = {}
    for record in _travel_records(records):
        bucket = buckets.setdefault(
            record.project_id,
            {
                "projectId": str(record.project_id),
                "projectNumber": record.project_number or UNKNOWN,
                "projectName": record.project_name or UNKNOWN,
                "mileage": ZERO,
                "travel": ZERO,
                "roadTrips": 0,
                "flightTrips": 0,
                "tasks": 0,
            },
        )
        bucket["mileage"] += record.mileage
        bucket["travel"] += record.travel_hours
        bucket["tasks"] += 1
        if record.transport_mode == ROAD:
            bucket["roadTrips"] += 1
        elif record.transport_mode == FLIGHT:
            bucket["flightTrips"] += 1

    rows = []
    for bucket in buckets.values():
        mileage = bucket.pop("mileage")
        travel = bucket.pop("travel")
        rows.append({**bucket, "totalMileage": hours(mileage), "totalTravelHours": hours(travel)})
    rows.sort(key=lambda row: (-row["tasks"], row["projectNumber"]))
    return rows


def mileage_by_employee(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    buckets: dict[UUID, dict[str, object]] = {}
    for record in _travel_records(records):
        if record.transport_mode != ROAD:
            continue
        bucket = buckets.setdefault(
            record.employee_id,
            {"name": record.employee_name or UNKNOWN, "mileage": ZERO, "travel": ZERO, "trips": 0},
        )
        bucket["mileage"] += record.mileage
        bucket["travel"] += record.travel_hours
        bucket["trips"] += 1

    rows = [
        {
            "engineerId": str(employee_id),
            "name": bucket["name"],
            "totalMileage": hours(bucket["mileage"]),
            "totalTravelHours": hours(bucket["travel"]),
            "trips": bucket["trips"],
        }
        for employee_id, bucket in buckets.items()
    ]
    rows.sort(key=lambda row: (-row["totalMileage"], row["name"]))
    return rows


def flight_destinations(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    buckets: dict[str, dict[str, object]] = {}
    for record in _travel_records(records):
        if record.transport_mode != FLIGHT:
            continue
        destination = (record.destination or "").strip() or UNKNOWN
        bucket = buckets.setdefault(destination, {"trips": 0, "travel": ZERO})
        bucket["trips"] += 1
        bucket["travel"] += record.travel_hours

    rows = [
        {"destination": destination, "tripCount": bucket["trips"], "totalTravelHours": hours(bucket["travel"])}
        for destination, bucket in buckets.items()
    ]
    rows.sort(key=lambda row: (-row["tripCount"], row["destination"]))
    return rows


def transport_mode_distribution(records: Iterable[LogRecord]) -> list[dict[str, object]]:
    travel = _travel_records(records)
    buckets: dict[str, dict[str, object]] = {}
    for record in travel:
        bucket = buckets.setdefault(record.transport_mode or UNKNOWN, {"count": 0, "mileage": ZERO, "travel": ZERO})
        bucket["count"] += 1
        bucket["mileage"] += record.mileage
        bucket["travel"] += record.travel_hours

    rows = [
        {
            "mode": mode,
            "count": bucket["count"],
            "percentage": percentage(bucket["count"], len(travel)),
            "totalMileage": hours(bucket["mileage"]),
            "totalTravelHours": hours(bucket["travel"]),
        }
        for mode, bucket in buckets.items()
    ]
    rows.sort(key=lambda row: (-row["count"], row["mode"]))
    return rows


def transport_trend_by_month(records: Iterable[LogRecord], *, year: int) -> list[dict[str, object]]:
    """Road and flight trip counts for each month of ``year``.

    All twelve months are always present, zero-filled where nothing happened.
    """

    buckets = {month: {ROAD: 0, FLIGHT: 0} for month in range(1, 13)}
    for record in _travel_records(records):
        if record.work_date.year != year:
            continue
        if record.transport_mode in (ROAD, FLIGHT):
            buckets[record.work_date.month][record.transport_mode] += 1

    return [
        {
            "month": date(year, month, 1).strftime("%b %Y"),
            "year": year,
            "monthNumber": month,
            ROAD: counts[ROAD],
            FLIGHT: counts[FLIGHT],
        }
        for month, counts in buckets.items()
    ]


# ---------- Assembly ----------
def build_analytics(records: list[LogRecord], *, year: int, today: date) -> dict[str, object]:
    """Compute every analytics section over the same filtered records.

    A section that raises is logged and left out; its name is reported in
    ``failedSections`` so callers can tell it apart from an empty section.
    """

    sections: dict[str, Callable[[], object]] = {
        "hoursByProject": lambda: hours_by_project(records),
        "utilizationByEngineer": lambda: utilization_by_engineer(records, today=today),
        "projectStatusDist": lambda: touched_project_statuses(records)["data"],
        "hoursByStage": lambda: hours_by_stage(records),
        "hoursByProjectType": lambda: hours_by_project_type(records),
        "employeeProjectProgress": lambda: employee_project_progress(records),
        "transportByProject": lambda: transport_by_project(records),
        "mileageByEmployee": lambda: mileage_by_employee(records),
        "flightDestinations": lambda: flight_destinations(records),
        "transportModeDist": lambda: transport_mode_distribution(records),
        "transportTrendByMonth": lambda: transport_trend_by_month(records, year=year),
        "totalHours": lambda: total_hours(records),
    }

    payload: dict[str, object] = {}
    failed: list[str] = []
    for name, compute in sections.items():
        try:
            payload[name] = compute()
        except Exception:
            logger.exception("analytics_section_failed", section=name, records=len(records))
            failed.append(name)

    payload["failedSections"] = failed
    return payload

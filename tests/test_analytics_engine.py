from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

import pytest

from app.services import analytics_engine
from app.services.analytics_engine import (
    LogRecord,
    ProjectRecord,
    build_analytics,
    distribution,
    employee_project_progress,
    flight_destinations,
    hours_by_project,
    hours_by_project_type,
    hours_by_stage,
    mileage_by_employee,
    percentage,
    project_statistics,
    total_hours,
    touched_project_statuses,
    transport_mode_distribution,
    transport_trend_by_month,
    utilization_by_engineer,
    workload_tier,
)

TODAY = date(2026, 10, 18)
ALICE = uuid.uuid4()
BOB = uuid.uuid4()
PROJECT_A = uuid.uuid4()
PROJECT_B = uuid.uuid4()


def _record(
    *,
    project_id: uuid.UUID = PROJECT_A,
    employee_id: uuid.UUID = ALICE,
    work_date: date = date(2026, 10, 12),
    stage: str = "Design",
    status: str = "In Progress",
    project_hours: str = "1",
    travel_hours: str = "0",
    transport_mode: str | None = None,
    mileage: str = "0",
    destination: str | None = None,
    project_type: str | None = "Office Block",
    project_status: str | None = "Active",
) -> LogRecord:
    is_a = project_id == PROJECT_A
    return LogRecord(
        log_id=uuid.uuid4(),
        work_date=work_date,
        employee_id=employee_id,
        project_id=project_id,
        stage=stage,
        task_type="Design",
        status=status,
        project_hours=Decimal(project_hours),
        travel_hours=Decimal(travel_hours),
        employee_name="Alice" if employee_id == ALICE else "Bob",
        employee_email="alice@test.local" if employee_id == ALICE else "bob@test.local",
        project_number="PRJ-A" if is_a else "PRJ-B",
        project_name="Tower" if is_a else "Clinic",
        project_type=project_type,
        project_status=project_status,
        leaves_office=transport_mode is not None,
        transport_mode=transport_mode,
        mileage=Decimal(mileage),
        destination=destination,
    )


def _mixed_records() -> list[LogRecord]:
    return [
        _record(stage="Design", project_hours="5", travel_hours="1", transport_mode="Road", mileage="40"),
        _record(stage="Tendering", project_hours="3", work_date=date(2026, 10, 13)),
        _record(
            project_id=PROJECT_B,
            employee_id=BOB,
            stage="Design",
            project_hours="2.5",
            travel_hours="2",
            transport_mode="Flight",
            destination="Mombasa",
            project_type=None,
            project_status="Completed",
        ),
        _record(
            project_id=PROJECT_B,
            employee_id=BOB,
            stage="Handover",
            project_hours="0.25",
            status="Completed",
            project_type=None,
            project_status="Completed",
        ),
    ]


def test_hours_by_project_and_stage_for_single_project() -> None:
    records = [
        _record(stage="Design", project_hours="5", travel_hours="1"),
        _record(stage="Tendering", project_hours="3", work_date=date(2026, 10, 13)),
    ]

    by_project = hours_by_project(records)
    by_stage = hours_by_stage(records)

    assert by_project == [
        {
            "projectId": str(PROJECT_A),
            "projectNumber": "PRJ-A",
            "projectName": "Tower",
            "totalProjectHours": 8.0,
            "totalTravelHours": 1.0,
            "totalManHours": 9.0,
            "taskCount": 2,
        }
    ]
    assert [(row["stage"], row["totalManHours"]) for row in by_stage] == [("Design", 6.0), ("Tendering", 3.0)]


def test_grouped_totals_agree_with_overall_total() -> None:
    records = _mixed_records()
    overall = total_hours(records)

    for grouped in (hours_by_project(records), hours_by_stage(records), hours_by_project_type(records)):
        assert sum(row["totalManHours"] for row in grouped) == pytest.approx(overall["totalManHours"])
        assert sum(row["taskCount"] for row in grouped) == overall["taskCount"]

    assert overall["totalManHours"] == pytest.approx(overall["totalProjectHours"] + overall["totalTravelHours"])
    assert overall == {
        "totalProjectHours": 10.75,
        "totalTravelHours": 3.0,
        "totalManHours": 13.75,
        "taskCount": 4,
    }


def test_missing_project_type_is_labelled_unknown() -> None:
    rows = hours_by_project_type(_mixed_records())

    assert {row["projectType"] for row in rows} == {"Office Block", "Unknown"}


def test_empty_records_produce_empty_sections() -> None:
    assert hours_by_project([]) == []
    assert total_hours([]) == {
        "totalProjectHours": 0.0,
        "totalTravelHours": 0.0,
        "totalManHours": 0.0,
        "taskCount": 0,
    }
    assert distribution([], key="status") == {"data": [], "total": 0}


def test_utilization_counts_open_and_stale_tasks() -> None:
    records = [
        _record(work_date=date(2026, 10, 1)),
        _record(work_date=TODAY),
        _record(work_date=date(2026, 10, 2), status="Completed"),
        _record(project_id=PROJECT_B, work_date=date(2026, 10, 3)),
    ]

    (row,) = utilization_by_engineer(records, today=TODAY)

    assert row["engineerId"] == str(ALICE)
    assert row["taskCount"] == 4
    assert row["projectCount"] == 2
    assert row["openTasks"] == 3
    assert row["overdueTasks"] == 2
    assert row["overdueIsApproximate"] is True
    assert row["workloadTier"] == "Low"


@pytest.mark.parametrize(("open_tasks", "tier"), [(0, "Low"), (5, "Low"), (6, "Medium"), (10, "Medium"), (11, "High")])
def test_workload_tiers(open_tasks: int, tier: str) -> None:
    assert workload_tier(open_tasks) == tier


def test_employee_project_progress_tracks_latest_stage() -> None:
    records = [
        _record(stage="Design", work_date=date(2026, 10, 1)),
        _record(stage="Handover", work_date=date(2026, 10, 9), status="Completed"),
    ]

    (row,) = employee_project_progress(records)

    assert row["firstWorkDate"] == "2026-10-01"
    assert row["lastWorkDate"] == "2026-10-09"
    assert row["latestStage"] == "Handover"
    assert row["latestStatus"] == "Completed"
    assert row["taskCount"] == 2


def test_percentages_round_to_one_decimal_and_sum_near_hundred() -> None:
    result = distribution(["Active", "Active", "Completed", None, "Stalled", "Stalled"], key="status")

    assert result["total"] == 6
    assert [row["status"] for row in result["data"]] == ["Active", "Stalled", "Completed", "Not Set"]
    assert [row["percentage"] for row in result["data"]] == [33.3, 33.3, 16.7, 16.7]
    assert sum(row["percentage"] for row in result["data"]) == pytest.approx(100.0, abs=0.2)


def test_percentage_is_zero_when_total_is_zero() -> None:
    assert percentage(0, 0) == 0.0
    assert percentage(1, 8) == 12.5


def test_project_statistics_buckets_legacy_statuses() -> None:
    stats = project_statistics(["Active", "In Progress", "Completed", "On Hold", "Stalled", "Pending"])

    assert stats == {
        "totalProjects": 6,
        "activeProjects": 2,
        "completedProjects": 1,
        "stalledProjects": 2,
    }


def test_touched_project_statuses_counts_each_project_once() -> None:
    result = touched_project_statuses(_mixed_records())

    assert result["total"] == 2
    assert {row["status"]: row["count"] for row in result["data"]} == {"Active": 1, "Completed": 1}


def test_transport_sections() -> None:
    records = _mixed_records() + [
        _record(employee_id=BOB, transport_mode="Road", mileage="10", travel_hours="0.5"),
        _record(transport_mode="Flight", destination=" Mombasa ", travel_hours="3"),
    ]

    mileage = mileage_by_employee(records)
    flights = flight_destinations(records)
    modes = transport_mode_distribution(records)

    assert [(row["name"], row["totalMileage"], row["trips"]) for row in mileage] == [("Alice", 40.0, 1), ("Bob", 10.0, 1)]
    assert flights == [{"destination": "Mombasa", "tripCount": 2, "totalTravelHours": 5.0}]
    assert {row["mode"]: (row["count"], row["percentage"]) for row in modes} == {
        "Road": (2, 50.0),
        "Flight": (2, 50.0),
    }


def test_transport_trend_has_twelve_zero_filled_months() -> None:
    records = [
        _record(transport_mode="Road", work_date=date(2026, 3, 2)),
        _record(transport_mode="Road", work_date=date(2026, 3, 9)),
        _record(transport_mode="Flight", work_date=date(2026, 11, 4)),
        _record(transport_mode="Road", work_date=date(2025, 3, 2)),
    ]

    trend = transport_trend_by_month(records, year=2026)

    assert len(trend) == 12
    assert [row["monthNumber"] for row in trend] == list(range(1, 13))
    assert trend[0] == {"month": "Jan 2026", "year": 2026, "monthNumber": 1, "Road": 0, "Flight": 0}
    assert trend[2]["Road"] == 2
    assert trend[10]["Flight"] == 1
    assert sum(row["Road"] for row in trend) == 2


def test_build_analytics_returns_every_section() -> None:
    payload = build_analytics(_mixed_records(), year=2026, today=TODAY)

    assert payload["failedSections"] == []
    assert set(payload) == {
        "hoursByProject",
        "utilizationByEngineer",
        "projectStatusDist",
        "hoursByStage",
        "hoursByProjectType",
        "employeeProjectProgress",
        "transportByProject",
        "mileageByEmployee",
        "flightDestinations",
        "transportModeDist",
        "transportTrendByMonth",
        "totalHours",
        "failedSections",
    }


def test_failing_section_does_not_break_the_others(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(records):
        raise ZeroDivisionError("boom")

    monkeypatch.setattr(analytics_engine, "hours_by_stage", broken)

    payload = build_analytics(_mixed_records(), year=2026, today=TODAY)

    assert payload["failedSections"] == ["hoursByStage"]
    assert "hoursByStage" not in payload
    assert payload["totalHours"]["taskCount"] == 4
    assert len(payload["hoursByProject"]) == 2


def test_project_record_distributions() -> None:
    projects = [
        ProjectRecord(uuid.uuid4(), "P1", "One", None, "Design", "Active"),
        ProjectRecord(uuid.uuid4(), "P2", "Two", None, None, "Active"),
    ]

    stages = analytics_engine.project_stage_distribution(projects)

    assert stages["total"] == 2
    assert {row["stage"] for row in stages["data"]} == {"Design", "Not Set"}
    assert all(row["percentage"] == 50.0 for row in stages["data"])

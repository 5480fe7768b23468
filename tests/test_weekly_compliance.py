from __future__ import annotations

import uuid
from datetime import date, datetime

import pytest
from fastapi import HTTPException

from app.services.weekly_compliance import (
    StaffMember,
    WeeklyComplianceService,
    available_weeks,
    compute_weekly_compliance,
    submission_rate,
    week_label,
    week_start_for,
    week_window,
)

MONDAY = date(2026, 10, 12)
SUNDAY = date(2026, 10, 18)


def _members(count: int) -> list[StaffMember]:
    return [
        StaffMember(staff_id=uuid.uuid4(), name=f"Engineer {index:02d}", email=f"e{index}@test.local")
        for index in range(count)
    ]


def test_week_starts_on_monday_and_sunday_closes_the_week() -> None:
    assert week_start_for(MONDAY) == MONDAY
    assert week_start_for(date(2026, 10, 15)) == MONDAY
    assert week_start_for(SUNDAY) == MONDAY
    assert week_start_for(date(2026, 10, 19)) == date(2026, 10, 19)


def test_week_window_spans_whole_days() -> None:
    start, end = week_window(MONDAY)

    assert start == datetime(2026, 10, 12, 0, 0, 0)
    assert end == datetime(2026, 10, 18, 23, 59, 59)


def test_week_label() -> None:
    assert week_label(MONDAY, SUNDAY) == "12 Oct 2026 - 18 Oct 2026"


def test_ten_staff_four_submitted() -> None:
    members = _members(10)
    counts = {member.staff_id: index + 1 for index, member in enumerate(members[:4])}

    report = compute_weekly_compliance(members, counts, week_start=MONDAY, week_end=SUNDAY)

    assert report["weekStart"] == "2026-10-12"
    assert report["weekEnd"] == "2026-10-18"
    assert report["summary"] == {
        "totalStaff": 10,
        "submitted": 4,
        "notSubmitted": 6,
        "submissionRate": 40.0,
    }
    assert len(report["submittedUsers"]) == 4
    assert len(report["notSubmittedUsers"]) == 6
    assert [row["taskCount"] for row in report["allEmployeesWithTaskCounts"][:4]] == [4, 3, 2, 1]
    assert all(row["taskCount"] == 0 for row in report["notSubmittedUsers"])


def test_no_staff_gives_zero_rate() -> None:
    report = compute_weekly_compliance([], {}, week_start=MONDAY, week_end=SUNDAY)

    assert report["summary"]["totalStaff"] == 0
    assert report["summary"]["submissionRate"] == 0.0
    assert report["allEmployeesWithTaskCounts"] == []


def test_submission_rate_rounds_to_one_decimal() -> None:
    assert submission_rate(1, 3) == 33.3
    assert submission_rate(2, 3) == 66.7


def test_available_weeks_are_distinct_and_newest_first() -> None:
    weeks = available_weeks([date(2026, 10, 5), date(2026, 10, 18), date(2026, 10, 13), date(2026, 10, 11)])

    assert weeks == [
        {"weekStart": "2026-10-12", "weekEnd": "2026-10-18", "label": "12 Oct 2026 - 18 Oct 2026"},
        {"weekStart": "2026-10-05", "weekEnd": "2026-10-11", "label": "5 Oct 2026 - 11 Oct 2026"},
    ]


def test_resolve_week_defaults_to_current_week() -> None:
    assert WeeklyComplianceService.resolve_week(None, None, today=SUNDAY) == (MONDAY, SUNDAY)


def test_resolve_week_snaps_requested_start_to_monday() -> None:
    assert WeeklyComplianceService.resolve_week("2026-10-14", None) == (MONDAY, SUNDAY)


def test_resolve_week_rejects_end_before_start() -> None:
    with pytest.raises(HTTPException) as exc_info:
        WeeklyComplianceService.resolve_week("2026-10-12", "2026-10-01")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["field"] == "weekEnd"


def test_resolve_week_accepts_end_inside_the_week() -> None:
    assert WeeklyComplianceService.resolve_week("2026-10-12", "2026-10-16") == (MONDAY, date(2026, 10, 16))


def test_resolve_week_rejects_end_past_sunday() -> None:
    with pytest.raises(HTTPException) as exc_info:
        WeeklyComplianceService.resolve_week("2026-10-12", "2026-10-19")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["field"] == "weekEnd"

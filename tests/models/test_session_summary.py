"""Tests for SessionSummary and RecentSessionRecord."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from models.session_summary import RecentSessionRecord, SessionSummary


def test_empty_bucket_cannot_carry_averages() -> None:
    with pytest.raises(ValidationError):
        SessionSummary(period_date=date(2024, 3, 1), avg_wpm=50.0, tests_completed=0)


def test_empty_bucket_without_averages_is_valid() -> None:
    summary = SessionSummary(period_date=date(2024, 3, 1))
    assert summary.tests_completed == 0
    assert summary.avg_wpm is None


@pytest.mark.parametrize(
    "field,value",
    [("avg_wpm", -1.0), ("avg_accuracy", 100.5), ("avg_accuracy", -0.1), ("tests_completed", -1)],
)
def test_out_of_range_values_rejected(field: str, value: object) -> None:
    data = {"period_date": date(2024, 3, 1), "avg_wpm": 40.0, "avg_accuracy": 90.0, "tests_completed": 1}
    data[field] = value
    with pytest.raises(ValidationError):
        SessionSummary(**data)  # type: ignore[arg-type]


def test_unknown_fields_rejected() -> None:
    with pytest.raises(ValidationError):
        SessionSummary(period_date=date(2024, 3, 1), streak=3)  # type: ignore[call-arg]


def test_from_row_converts_numeric_columns() -> None:
    row = {
        "session_date": date(2024, 3, 1),
        "tests_completed": 3,
        "avg_wpm": Decimal("52.40"),
        "best_wpm": Decimal("61.00"),
        "avg_accuracy": Decimal("97.25"),
        "total_keystrokes": 900,
    }
    summary = SessionSummary.from_row(row)
    assert summary.period_date == date(2024, 3, 1)
    assert summary.avg_wpm == 52.4
    assert isinstance(summary.avg_wpm, float)
    assert summary.best_wpm == 61.0
    assert summary.avg_accuracy == 97.25
    assert summary.total_keystrokes == 900


def test_from_row_with_nulls() -> None:
    summary = SessionSummary.from_row({"session_date": date(2024, 3, 2), "tests_completed": None})
    assert summary.tests_completed == 0
    assert summary.avg_wpm is None
    assert summary.best_wpm is None


def test_summary_is_frozen() -> None:
    summary = SessionSummary(period_date=date(2024, 3, 1))
    with pytest.raises(ValidationError):
        summary.tests_completed = 2  # type: ignore[misc]


def test_recent_record_from_summary() -> None:
    summary = SessionSummary(period_date=date(2024, 3, 1), avg_wpm=40.0, avg_accuracy=92.0, tests_completed=2)
    record = RecentSessionRecord.from_summary(summary)
    assert record.session_date == date(2024, 3, 1)
    assert record.avg_wpm == 40.0
    assert record.avg_accuracy == 92.0
    assert record.tests_completed == 2


def test_recent_record_defaults() -> None:
    record = RecentSessionRecord()
    assert record.session_date is None
    assert record.tests_completed == 0

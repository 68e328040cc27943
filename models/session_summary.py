"""Per-day session summary models.

A `SessionSummary` aggregates every completed test a user finished on one
calendar day. The dashboard receives these in ascending date order.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class SessionSummary(BaseModel):
    """Pydantic model for one row of the session_summaries table."""

    period_date: date
    avg_wpm: Optional[float] = Field(default=None, ge=0)
    avg_accuracy: Optional[float] = Field(default=None, ge=0, le=100)
    tests_completed: int = Field(default=0, ge=0)
    best_wpm: Optional[float] = Field(default=None, ge=0)
    total_keystrokes: int = Field(default=0, ge=0)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def check_empty_bucket(self) -> "SessionSummary":
        """A bucket without completed tests cannot carry averages."""
        if self.tests_completed == 0 and (self.avg_wpm is not None or self.avg_accuracy is not None):
            raise ValueError("avg_wpm and avg_accuracy must be null when tests_completed is 0")
        return self

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SessionSummary":
        """Build a summary from a session_summaries row (NUMERIC columns arrive as Decimal)."""
        return cls(
            period_date=row["session_date"],
            avg_wpm=_optional_float(row.get("avg_wpm")),
            avg_accuracy=_optional_float(row.get("avg_accuracy")),
            tests_completed=int(row.get("tests_completed") or 0),
            best_wpm=_optional_float(row.get("best_wpm")),
            total_keystrokes=int(row.get("total_keystrokes") or 0),
        )


class RecentSessionRecord(BaseModel):
    """Display record for the recent-tests table.

    Every field except `tests_completed` may be missing.
    """

    session_date: Optional[date] = None
    avg_wpm: Optional[float] = None
    avg_accuracy: Optional[float] = None
    tests_completed: int = 0

    model_config = {"frozen": True}

    @classmethod
    def from_summary(cls, summary: SessionSummary) -> "RecentSessionRecord":
        return cls(
            session_date=summary.period_date,
            avg_wpm=summary.avg_wpm,
            avg_accuracy=summary.avg_accuracy,
            tests_completed=summary.tests_completed,
        )


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)

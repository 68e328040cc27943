"""Lifetime statistics for one user, as shown on the dashboard cards."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class UserStats(BaseModel):
    """Pydantic model for a user_stats row plus the derived average WPM."""

    user_id: str
    total_tests: int = Field(default=0, ge=0)
    total_time_seconds: int = Field(default=0, ge=0)
    current_streak_days: int = Field(default=0, ge=0)
    longest_streak_days: int = Field(default=0, ge=0)
    best_wpm: Optional[float] = None
    avg_wpm: Optional[float] = None
    xp: int = 0
    level: int = 1
    current_tier: str = "Bronze"
    last_test_date: Optional[date] = None

    model_config = {"frozen": True}

    @property
    def total_time_minutes(self) -> int:
        """Whole minutes practiced."""
        return self.total_time_seconds // 60

    @classmethod
    def from_row(cls, row: Dict[str, Any], avg_wpm: Optional[float] = None) -> "UserStats":
        best = row.get("best_wpm")
        return cls(
            user_id=str(row["user_id"]),
            total_tests=int(row.get("total_tests") or 0),
            total_time_seconds=int(row.get("total_time_seconds") or 0),
            current_streak_days=int(row.get("current_streak_days") or 0),
            longest_streak_days=int(row.get("longest_streak_days") or 0),
            best_wpm=None if best is None else float(best),
            avg_wpm=avg_wpm,
            xp=int(row.get("xp") or 0),
            level=int(row.get("level") or 1),
            current_tier=str(row.get("current_tier") or "Bronze"),
            last_test_date=row.get("last_test_date"),
        )

"""SummaryManager for per-day session summaries and lifetime user stats.

Completed sessions are folded into the day's `session_summaries` row as running
averages and into the user's `user_stats` row, including the practice streak.
The dashboard reads both back through the query helpers below.
"""

import datetime
import logging
import uuid
from typing import List, Optional

from db.exceptions import DatabaseError
from db.interfaces import DBExecutor
from helpers.debug_util import DebugUtil
from models.session_summary import RecentSessionRecord, SessionSummary
from models.typing_session import SessionResult
from models.user_stats import UserStats

logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = "session_date, tests_completed, avg_wpm, best_wpm, avg_accuracy, total_keystrokes"


def _running_average(previous: Optional[float], count: int, new_value: float) -> float:
    """Average of `count` earlier values (mean `previous`) plus one new value."""
    return ((previous or 0.0) * count + new_value) / (count + 1)


def fold_into_summary(
    existing: Optional[SessionSummary], session_date: datetime.date, result: SessionResult
) -> SessionSummary:
    """Return the day's summary after adding one completed test."""
    if existing is None or existing.tests_completed == 0:
        return SessionSummary(
            period_date=session_date,
            tests_completed=1,
            avg_wpm=result.wpm,
            best_wpm=result.wpm,
            avg_accuracy=result.accuracy,
            total_keystrokes=result.keystrokes_estimate,
        )
    count = existing.tests_completed
    return SessionSummary(
        period_date=session_date,
        tests_completed=count + 1,
        avg_wpm=_running_average(existing.avg_wpm, count, result.wpm),
        best_wpm=max(existing.best_wpm or 0.0, result.wpm),
        avg_accuracy=_running_average(existing.avg_accuracy, count, result.accuracy),
        total_keystrokes=existing.total_keystrokes + result.keystrokes_estimate,
    )


def advance_streak(
    current_streak: int, last_test_date: Optional[datetime.date], today: datetime.date
) -> int:
    """Streak length after a test taken on `today`.

    A test the day after the last one extends the streak, a second test on the
    same day keeps it, anything else starts over at 1. A date earlier than
    the last test leaves the streak unchanged.
    """
    if last_test_date is not None and today < last_test_date:
        return current_streak
    if last_test_date == today:
        return max(current_streak, 1)
    if last_test_date == today - datetime.timedelta(days=1):
        return current_streak + 1
    return 1


class SummaryManager:
    """Aggregation queries and updates for session summaries and user stats.

    With no database manager (mock DB mode) reads return empty results and
    writes are skipped.
    """

    def __init__(self, db_manager: Optional[DBExecutor], debug_util: Optional[DebugUtil] = None) -> None:
        self.db_manager = db_manager
        self.debug_util = debug_util or DebugUtil()

    def record_completed_session(
        self,
        user_id: str,
        result: SessionResult,
        today: Optional[datetime.date] = None,
    ) -> Optional[SessionSummary]:
        """Fold a completed test into the day's summary and the user's stats.

        Returns the updated summary, or None in mock DB mode.

        Raises:
            DatabaseError: If the store rejects a read or write.
        """
        session_date = today or datetime.date.today()
        if self.db_manager is None:
            self.debug_util.debugMessage(f"Mock DB mode: skipping aggregates for user {user_id}")
            return None
        try:
            summary = self._upsert_session_summary(user_id, session_date, result)
            self._update_user_stats(user_id, session_date, result)
        except DatabaseError as e:
            logger.error("Error updating session aggregates: %s", e)
            self.debug_util.debugMessage(f"Error updating session aggregates: {e}")
            raise
        return summary

    def _get_summary(self, user_id: str, session_date: datetime.date) -> Optional[SessionSummary]:
        assert self.db_manager is not None
        row = self.db_manager.fetchone(
            f"SELECT {_SUMMARY_COLUMNS} FROM session_summaries WHERE user_id = ? AND session_date = ?",
            (user_id, session_date),
        )
        return SessionSummary.from_row(row) if row else None

    def _upsert_session_summary(
        self, user_id: str, session_date: datetime.date, result: SessionResult
    ) -> SessionSummary:
        assert self.db_manager is not None
        existing = self._get_summary(user_id, session_date)
        summary = fold_into_summary(existing, session_date, result)
        values = (
            summary.tests_completed,
            summary.avg_wpm,
            summary.best_wpm,
            summary.avg_accuracy,
            summary.total_keystrokes,
        )
        if existing is None:
            self.db_manager.execute(
                """
                INSERT INTO session_summaries (
                    id, user_id, session_date,
                    tests_completed, avg_wpm, best_wpm, avg_accuracy, total_keystrokes
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (str(uuid.uuid4()), user_id, session_date) + values,
            )
        else:
            self.db_manager.execute(
                """
                UPDATE session_summaries SET
                    tests_completed = ?,
                    avg_wpm = ?,
                    best_wpm = ?,
                    avg_accuracy = ?,
                    total_keystrokes = ?
                WHERE user_id = ? AND session_date = ?
                """,
                values + (user_id, session_date),
            )
        return summary

    def _update_user_stats(self, user_id: str, today: datetime.date, result: SessionResult) -> None:
        assert self.db_manager is not None
        row = self.db_manager.fetchone(
            """
            SELECT user_id, total_tests, total_time_seconds, current_streak_days,
                   longest_streak_days, best_wpm, xp, level, current_tier, last_test_date
            FROM user_stats WHERE user_id = ?
            """,
            (user_id,),
        )
        if not row:
            self.db_manager.execute(
                """
                INSERT INTO user_stats (
                    user_id, total_tests, total_time_seconds, current_streak_days,
                    longest_streak_days, last_test_date, best_wpm
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (user_id, 1, result.duration, 1, 1, today, result.wpm),
            )
            return

        stats = UserStats.from_row(row)
        streak = advance_streak(stats.current_streak_days, stats.last_test_date, today)
        self.db_manager.execute(
            """
            UPDATE user_stats SET
                total_tests = ?,
                total_time_seconds = ?,
                current_streak_days = ?,
                longest_streak_days = ?,
                last_test_date = ?,
                best_wpm = ?
            WHERE user_id = ?
            """,
            (
                stats.total_tests + 1,
                stats.total_time_seconds + result.duration,
                streak,
                max(stats.longest_streak_days, streak),
                max(stats.last_test_date or today, today),
                max(stats.best_wpm or 0.0, result.wpm),
                user_id,
            ),
        )

    def get_user_stats(self, user_id: str) -> Optional[UserStats]:
        """Return lifetime stats, or None if the user has not finished a test.

        `avg_wpm` is the test-weighted average over all daily summaries.
        """
        if self.db_manager is None:
            return None
        row = self.db_manager.fetchone(
            """
            SELECT s.user_id, s.total_tests, s.total_time_seconds, s.current_streak_days,
                   s.longest_streak_days, s.best_wpm, s.xp, s.level, s.current_tier,
                   s.last_test_date,
                   (SELECT SUM(ss.avg_wpm * ss.tests_completed) / NULLIF(SUM(ss.tests_completed), 0)
                      FROM session_summaries ss
                     WHERE ss.user_id = s.user_id AND ss.avg_wpm IS NOT NULL) AS avg_wpm
            FROM user_stats s
            WHERE s.user_id = ?
            """,
            (user_id,),
        )
        if not row:
            return None
        avg = row.get("avg_wpm")
        return UserStats.from_row(row, avg_wpm=None if avg is None else float(avg))  # type: ignore[arg-type]

    def get_daily_averages(
        self, user_id: str, days: int = 30, today: Optional[datetime.date] = None
    ) -> List[SessionSummary]:
        """Summaries for the last `days` days, oldest first."""
        if self.db_manager is None:
            return []
        since = (today or datetime.date.today()) - datetime.timedelta(days=days)
        rows = self.db_manager.fetchall(
            f"""
            SELECT {_SUMMARY_COLUMNS}
            FROM session_summaries
            WHERE user_id = ? AND session_date >= ?
            ORDER BY session_date ASC
            """,
            (user_id, since),
        )
        return [SessionSummary.from_row(r) for r in rows]

    def get_recent_sessions(self, user_id: str, limit: int = 20) -> List[RecentSessionRecord]:
        """The most recent daily summaries as table records, newest first."""
        if self.db_manager is None:
            return []
        rows = self.db_manager.fetchall(
            f"""
            SELECT {_SUMMARY_COLUMNS}
            FROM session_summaries
            WHERE user_id = ?
            ORDER BY session_date DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        return [RecentSessionRecord.from_summary(SessionSummary.from_row(r)) for r in rows]

"""View models for the results dashboard.

Each renderer is a plain function from data to a frozen view description; the
Jinja templates and the JSON endpoint both consume these. Display fallbacks
treat 0 like a missing value ("N/A" in the table, no delta line on a card).
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import List, Literal, Optional, Sequence, Union

from pydantic import BaseModel

from models.session_summary import RecentSessionRecord, SessionSummary
from models.user import User
from models.user_stats import UserStats
from services.trend_normalizer import DEFAULT_WINDOW_SIZE, TrendChart, normalize

CHART_PLACEHOLDER = "No data available yet. Complete some tests to see your progress!"
TABLE_PLACEHOLDER = "No test data yet. Complete your first test to see it here!"
NOT_AVAILABLE = "N/A"

CardValue = Union[str, int, float]


class Bar(BaseModel):
    label: str
    height_pct: float
    tooltip_value: str
    tooltip_tests: str

    model_config = {"frozen": True}


class BarChartView(BaseModel):
    """Bars plus y-axis labels (top to bottom), or a placeholder when empty."""

    placeholder: Optional[str] = None
    y_axis_labels: List[int] = []
    bars: List[Bar] = []

    model_config = {"frozen": True}


class RecentTestRow(BaseModel):
    session_date: str
    wpm: str
    accuracy: str
    tests: str
    striped: bool

    model_config = {"frozen": True}


class RecentTestsView(BaseModel):
    placeholder: Optional[str] = None
    columns: List[str] = ["Date", "WPM", "Accuracy", "Tests"]
    rows: List[RecentTestRow] = []

    model_config = {"frozen": True}


class StatsCardView(BaseModel):
    title: str
    value: str
    icon: str
    delta: Optional[str] = None
    trend: Optional[Literal["up", "down"]] = None

    model_config = {"frozen": True}


class DashboardView(BaseModel):
    greeting: str
    card_rows: List[List[StatsCardView]]
    chart: BarChartView
    recent_tests: RecentTestsView

    model_config = {"frozen": True}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, as the chart axis expects."""
    return math.floor(value + 0.5)


def format_number(value: CardValue) -> str:
    """Render numbers without a trailing '.0' for whole floats."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def pluralize_tests(count: int) -> str:
    return f"{count} test" if count == 1 else f"{count} tests"


def render_bar_chart(chart: Optional[TrendChart]) -> BarChartView:
    """Map a normalized chart to drawable bars.

    Points without a value get no bar. Tooltips show the exact value, bar
    heights are clamped to 0-100%.
    """
    if chart is None:
        return BarChartView(placeholder=CHART_PLACEHOLDER)

    bars = []
    for point in chart.points:
        if point.value is None or point.height_fraction is None:
            continue
        height_pct = min(100.0, max(0.0, point.height_fraction * 100.0))
        bars.append(
            Bar(
                label=point.label,
                height_pct=height_pct,
                tooltip_value=f"{point.value:.1f} WPM",
                tooltip_tests=pluralize_tests(point.count),
            )
        )

    y_axis_labels = [
        math.ceil(chart.max_scale),
        round_half_up((chart.max_scale + chart.min_scale) / 2),
        math.floor(chart.min_scale),
    ]
    return BarChartView(y_axis_labels=y_axis_labels, bars=bars)


def _display_date(day: Optional[date]) -> str:
    return f"{day.month}/{day.day}/{day.year}" if day else NOT_AVAILABLE


def render_recent_tests(records: Sequence[RecentSessionRecord]) -> RecentTestsView:
    """Tabulate recent records, newest first as supplied."""
    if not records:
        return RecentTestsView(placeholder=TABLE_PLACEHOLDER)
    rows = [
        RecentTestRow(
            session_date=_display_date(record.session_date),
            wpm=f"{record.avg_wpm:.1f}" if record.avg_wpm else NOT_AVAILABLE,
            accuracy=f"{record.avg_accuracy:.1f}%" if record.avg_accuracy else NOT_AVAILABLE,
            tests=str(record.tests_completed),
            striped=index % 2 == 0,
        )
        for index, record in enumerate(records)
    ]
    return RecentTestsView(rows=rows)


def render_stats_card(
    title: str, value: CardValue, icon: str, change: Optional[float] = None
) -> StatsCardView:
    """Build a KPI card; a truthy `change` adds the week-over-week line."""
    if not change:
        return StatsCardView(title=title, value=format_number(value), icon=icon)
    arrow, trend = ("↑", "up") if change >= 0 else ("↓", "down")
    return StatsCardView(
        title=title,
        value=format_number(value),
        icon=icon,
        delta=f"{arrow} {format_number(abs(change))}% from last week",
        trend=trend,
    )


def _weighted_wpm(summaries: Sequence[SessionSummary]) -> Optional[float]:
    tests = sum(s.tests_completed for s in summaries if s.avg_wpm is not None)
    if tests == 0:
        return None
    return sum((s.avg_wpm or 0.0) * s.tests_completed for s in summaries if s.avg_wpm is not None) / tests


def weekly_wpm_change(summaries: Sequence[SessionSummary], today: date) -> Optional[float]:
    """Percent change of average WPM over the last 7 days versus the 7 before.

    Returns None when either week has no completed tests or the earlier week
    averaged 0 WPM.
    """
    this_week_start = today - timedelta(days=6)
    last_week_start = today - timedelta(days=13)
    this_week = [s for s in summaries if this_week_start <= s.period_date <= today]
    last_week = [s for s in summaries if last_week_start <= s.period_date < this_week_start]
    current = _weighted_wpm(this_week)
    previous = _weighted_wpm(last_week)
    if current is None or not previous:
        return None
    return round((current - previous) / previous * 100, 1)


def build_dashboard(
    user: User,
    stats: Optional[UserStats],
    daily_averages: Sequence[SessionSummary],
    recent_sessions: Sequence[RecentSessionRecord],
    chart_window: int = DEFAULT_WINDOW_SIZE,
    today: Optional[date] = None,
) -> DashboardView:
    """Assemble the whole dashboard for one user."""
    stats = stats or UserStats(user_id=user.id)
    avg_wpm = stats.avg_wpm or 0.0
    change = weekly_wpm_change(daily_averages, today or date.today())

    card_rows = [
        [
            render_stats_card("Total Tests", stats.total_tests, "📊"),
            render_stats_card("Current Streak", f"{stats.current_streak_days} days", "🔥"),
            render_stats_card("Avg WPM", f"{avg_wpm:.1f}", "⚡", change=change),
            render_stats_card("Time Practiced", f"{stats.total_time_minutes} min", "⏱️"),
        ],
        [
            render_stats_card("Longest Streak", f"{stats.longest_streak_days} days", "🏆"),
            render_stats_card("Level", stats.level or 1, "🎖️"),
            render_stats_card("XP", stats.xp or 0, "⭐"),
            render_stats_card("Tier", stats.current_tier or "Bronze", "👑"),
        ],
    ]
    return DashboardView(
        greeting=f"Welcome back, {user.greeting_name}!",
        card_rows=card_rows,
        chart=render_bar_chart(normalize(daily_averages, window_size=chart_window)),
        recent_tests=render_recent_tests(recent_sessions),
    )

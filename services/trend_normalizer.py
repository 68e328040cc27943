"""Trend normalization for the WPM progress chart.

Turns an ascending sequence of daily `SessionSummary` rows into scale bounds
and a recent window of points with bar heights in [0, 1].

- Scale bounds come from the whole history, not just the window:
  ``min_scale = min(values + [0])`` and ``max_scale = max(values + [100])``,
  so the chart always spans at least 0-100 WPM.
- A zero range is replaced by 100.
- The window is the chronological tail of ``window_size`` entries. Input order
  is trusted; nothing is re-sorted.
- Days without a WPM value stay in the window with ``height_fraction=None``.

An empty history, or one where no day has a WPM value, yields ``None`` so the
caller can show its "no data" placeholder instead of a chart.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from pydantic import BaseModel

from models.session_summary import SessionSummary

DEFAULT_WINDOW_SIZE = 30
SCALE_FLOOR = 0.0
SCALE_CEILING = 100.0
FALLBACK_RANGE = 100.0


class NormalizedPoint(BaseModel):
    """One day in the chart window."""

    label: str
    value: Optional[float]
    count: int
    height_fraction: Optional[float] = None

    model_config = {"frozen": True}


class TrendChart(BaseModel):
    """Scale bounds plus the windowed points."""

    min_scale: float
    max_scale: float
    range: float
    points: List[NormalizedPoint]

    model_config = {"frozen": True}


def short_date_label(day: date) -> str:
    """Format a day as e.g. 'Oct 19'."""
    return f"{day.strftime('%b')} {day.day}"


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize(
    summaries: Sequence[SessionSummary], window_size: int = DEFAULT_WINDOW_SIZE
) -> Optional[TrendChart]:
    """Compute chart bounds and the recent window for a summary history.

    Args:
        summaries: Daily summaries, oldest first.
        window_size: Number of most recent entries to chart.

    Returns:
        The normalized chart, or None when there is nothing to plot.

    Raises:
        ValueError: If ``window_size`` is less than 1.
    """
    if window_size < 1:
        raise ValueError("window_size must be at least 1")

    values = [s.avg_wpm for s in summaries if s.avg_wpm is not None]
    if not values:
        return None

    min_scale = min(values + [SCALE_FLOOR])
    max_scale = max(values + [SCALE_CEILING])
    scale_range = (max_scale - min_scale) or FALLBACK_RANGE

    points = []
    for summary in summaries[-window_size:]:
        height = None
        if summary.avg_wpm is not None:
            height = _clamp((summary.avg_wpm - min_scale) / scale_range, 0.0, 1.0)
        points.append(
            NormalizedPoint(
                label=short_date_label(summary.period_date),
                value=summary.avg_wpm,
                count=summary.tests_completed,
                height_fraction=height,
            )
        )

    return TrendChart(min_scale=min_scale, max_scale=max_scale, range=scale_range, points=points)

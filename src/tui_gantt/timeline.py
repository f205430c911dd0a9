"""Visible date window and date/column mapping for the timeline."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Sequence

from tui_gantt.dates import add_days, today_utc, week_start
from tui_gantt.models import Task, TimelineRange

EMPTY_WINDOW_DAYS = 30
LEAD_IN_DAYS = 7
TRAILING_DAYS = 14


def timeline_range(tasks: Sequence[Task], today: date | None = None) -> TimelineRange:
    """Compute the chart window covering every task.

    Empty list: today through today + 30 days. Otherwise the window starts on
    the Monday of the week before the earliest start, and ends 14 days after
    the latest end.
    """
    if today is None:
        today = today_utc()
    if not tasks:
        return TimelineRange(today, add_days(today, EMPTY_WINDOW_DAYS))

    earliest = min(t.start for t in tasks)
    latest = max(t.end for t in tasks)
    start = week_start(earliest) - timedelta(days=LEAD_IN_DAYS)
    return TimelineRange(start, add_days(latest, TRAILING_DAYS))


def _check_zoom(zoom: float) -> None:
    if zoom <= 0:
        raise ValueError(f"zoom must be positive, got {zoom!r}")


def date_to_col(d: date, rng: TimelineRange, zoom: float) -> int:
    """Left column of *d* when each day is *zoom* columns wide."""
    _check_zoom(zoom)
    return int((d - rng.start).days * zoom)


def col_to_date(col: float, rng: TimelineRange, zoom: float) -> date:
    _check_zoom(zoom)
    return add_days(rng.start, math.floor(col / zoom))


def bar_span(task: Task, rng: TimelineRange, zoom: float) -> tuple[int, int]:
    """Return ``(first_col, width)`` of the task's bar, whole calendar days."""
    first = date_to_col(task.start, rng, zoom)
    width = max(1, int(task.calendar_days * zoom))
    return first, width


def chart_width(rng: TimelineRange, zoom: float) -> int:
    _check_zoom(zoom)
    return int(rng.days * zoom)


def today_offset(rng: TimelineRange, zoom: float, now: datetime | None = None) -> float:
    """Fractional column of the current instant, for the "now" marker."""
    _check_zoom(zoom)
    if now is None:
        now = datetime.now(timezone.utc)
    origin = datetime(rng.start.year, rng.start.month, rng.start.day, tzinfo=timezone.utc)
    elapsed = (now - origin).total_seconds() / 86400
    return elapsed * zoom

"""Calendar arithmetic for the scheduling core.

Every function here works on naive ``datetime.date`` values that are read as
UTC calendar days. Nothing converts through local time, so DST shifts can
never move a date by one.

Two counting modes are supported:

* calendar mode answers "how many days of wall-clock time" and is used for
  free date shifts such as a drag-move;
* business-day mode answers "how many working days does this span" and keeps
  ``end``/``duration`` consistent. A duration of 1 is a same-day task.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterable

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
DEFAULT_WORKING_DAYS = frozenset({0, 1, 2, 3, 4})  # date.weekday(): Mon=0

DATE_FORMAT_PRESETS: dict[str, str] = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "DD.MM.YYYY": "%d.%m.%Y",
    "YYYY/MM/DD": "%Y/%m/%d",
    "MMM DD, YYYY": "%b %d, %Y",
    "MM-DD": "%m-%d",
}
DEFAULT_DATE_FORMAT = "YYYY-MM-DD"


@dataclass(frozen=True)
class WorkCalendar:
    """Which days count as business days."""

    working_days: frozenset[int] = DEFAULT_WORKING_DAYS
    holidays: frozenset[date] = frozenset()

    def __post_init__(self) -> None:
        if not self.working_days:
            raise ValueError("a work calendar needs at least one working weekday")
        if not set(self.working_days) <= set(range(7)):
            raise ValueError(f"invalid weekday numbers: {sorted(self.working_days)}")

    @classmethod
    def from_settings(
        cls, working_days: Iterable[int] | None = None, holidays: Iterable[date] = ()
    ) -> WorkCalendar:
        days = frozenset(working_days) if working_days else DEFAULT_WORKING_DAYS
        return cls(working_days=days, holidays=frozenset(holidays))

    def is_business_day(self, d: date) -> bool:
        return d.weekday() in self.working_days and d not in self.holidays


DEFAULT_CALENDAR = WorkCalendar()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def today_utc() -> date:
    """Return the current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string. Raises ValueError on malformed input."""
    return date.fromisoformat(value.strip())


def to_iso(d: date) -> str:
    return d.isoformat()


def format_date(d: date | None, date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date for display. Returns empty string for None."""
    if d is None:
        return ""
    fmt = DATE_FORMAT_PRESETS.get(date_format)
    if fmt is None:
        return d.isoformat()
    return d.strftime(fmt)


def is_business_day(d: date, calendar: WorkCalendar = DEFAULT_CALENDAR) -> bool:
    return calendar.is_business_day(d)


def next_business_day(d: date, calendar: WorkCalendar = DEFAULT_CALENDAR) -> date:
    """Return *d* itself if it is a business day, else the first one after it."""
    while not calendar.is_business_day(d):
        d += timedelta(days=1)
    return d


def add_days(
    d: date,
    n: float,
    business_only: bool = False,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> date:
    """Shift *d* by *n* days.

    Calendar mode shifts by ``floor(n)`` days and accepts negative values.

    Business-day mode treats *n* as a duration: it is clamped to at least 1,
    a duration of 1 returns *d* unchanged, and otherwise ``n - 1`` business
    days are stepped over, skipping non-business days. The result is the last
    business day landed on.
    """
    if not business_only:
        return d + timedelta(days=math.floor(n))

    remaining = max(1, math.floor(n))
    if remaining == 1:
        return d
    remaining -= 1
    current = d
    while remaining > 0:
        current += timedelta(days=1)
        if calendar.is_business_day(current):
            remaining -= 1
    return current


def diff_days(
    start: date,
    end: date,
    business_only: bool = False,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> int:
    """Count days from *start* to *end*; never negative.

    Calendar mode returns ``end - start`` in days. Business-day mode counts the
    business days in the inclusive range ``[start, end]``.
    """
    if end < start:
        return 0
    if not business_only:
        return (end - start).days

    count = 0
    current = start
    while current <= end:
        if calendar.is_business_day(current):
            count += 1
        current += timedelta(days=1)
    return count


def week_start(d: date) -> date:
    """Return the Monday of the week containing *d*."""
    return d - timedelta(days=d.weekday())


def parse_weekday(value: object) -> int | None:
    """Map ``"mon"``/``"Monday"`` or ISO numbers 1-7 to ``date.weekday()`` values."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value - 1 if 1 <= value <= 7 else None
    text = str(value).strip().lower()[:3]
    if text in WEEKDAY_NAMES:
        return WEEKDAY_NAMES.index(text)
    return None

"""Tests for the timeline window and column mapping."""

from datetime import date, datetime, timezone

import pytest

from tui_gantt.models import Task, TimelineRange
from tui_gantt.timeline import (
    bar_span,
    chart_width,
    col_to_date,
    date_to_col,
    timeline_range,
    today_offset,
)

TODAY = date(2024, 3, 13)


def make(start, end):
    return Task(name="t", start=start, end=end)


class TestTimelineRange:
    def test_empty_is_thirty_days_from_today(self):
        rng = timeline_range([], TODAY)
        assert rng == TimelineRange(TODAY, date(2024, 4, 12))

    def test_padding_around_tasks(self):
        # earliest start Wed 2024-01-10 -> Monday 2024-01-08 minus 7 days
        tasks = [make(date(2024, 1, 10), date(2024, 1, 12)), make(date(2024, 2, 1), date(2024, 2, 20))]
        rng = timeline_range(tasks, TODAY)
        assert rng.start == date(2024, 1, 1)
        assert rng.end == date(2024, 3, 5)

    def test_days_inclusive(self):
        assert TimelineRange(date(2024, 1, 1), date(2024, 1, 1)).days == 1
        assert TimelineRange(date(2024, 1, 1), date(2024, 1, 31)).days == 31


class TestColumns:
    rng = TimelineRange(date(2024, 1, 1), date(2024, 1, 31))

    def test_date_to_col(self):
        assert date_to_col(date(2024, 1, 1), self.rng, 3) == 0
        assert date_to_col(date(2024, 1, 4), self.rng, 3) == 9

    def test_col_to_date(self):
        assert col_to_date(0, self.rng, 3) == date(2024, 1, 1)
        assert col_to_date(11, self.rng, 3) == date(2024, 1, 4)

    def test_bar_span_covers_whole_days(self):
        task = make(date(2024, 1, 2), date(2024, 1, 4))
        assert bar_span(task, self.rng, 2) == (2, 6)

    def test_one_day_bar(self):
        task = make(date(2024, 1, 2), date(2024, 1, 2))
        assert bar_span(task, self.rng, 1) == (1, 1)

    def test_chart_width(self):
        assert chart_width(self.rng, 3) == 93

    def test_today_offset_fraction(self):
        now = datetime(2024, 1, 3, 12, 0, tzinfo=timezone.utc)
        assert today_offset(self.rng, 2, now) == pytest.approx(5.0)

    @pytest.mark.parametrize("zoom", [0, -1])
    def test_bad_zoom(self, zoom):
        with pytest.raises(ValueError):
            date_to_col(date(2024, 1, 1), self.rng, zoom)
        with pytest.raises(ValueError):
            chart_width(self.rng, zoom)

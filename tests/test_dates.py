"""Tests for calendar arithmetic."""

from datetime import date, timedelta

import pytest

from tui_gantt.dates import (
    DEFAULT_CALENDAR,
    WorkCalendar,
    add_days,
    diff_days,
    format_date,
    is_business_day,
    next_business_day,
    parse_date,
    parse_weekday,
    round_half_up,
    week_start,
)

MONDAY = date(2024, 1, 1)
FRIDAY = date(2024, 1, 5)
SATURDAY = date(2024, 1, 6)
SUNDAY = date(2024, 1, 7)


class TestBusinessDay:
    def test_weekdays_are_business_days(self):
        for offset in range(5):
            assert is_business_day(MONDAY + timedelta(days=offset))

    def test_weekend_is_not(self):
        assert not is_business_day(SATURDAY)
        assert not is_business_day(SUNDAY)

    def test_matches_mon_fri_rule_for_a_year(self):
        d = date(2024, 1, 1)
        while d.year == 2024:
            assert is_business_day(d) == (d.weekday() < 5)
            d += timedelta(days=1)

    def test_holiday_is_not_business_day(self):
        cal = WorkCalendar.from_settings(holidays=[date(2024, 1, 3)])
        assert not is_business_day(date(2024, 1, 3), cal)
        assert is_business_day(date(2024, 1, 4), cal)

    def test_custom_working_days(self):
        cal = WorkCalendar(working_days=frozenset({6}))  # Sunday only
        assert is_business_day(SUNDAY, cal)
        assert not is_business_day(MONDAY, cal)

    def test_empty_working_days_rejected(self):
        with pytest.raises(ValueError):
            WorkCalendar(working_days=frozenset())

    def test_next_business_day(self):
        assert next_business_day(SATURDAY) == date(2024, 1, 8)
        assert next_business_day(MONDAY) == MONDAY


class TestAddDays:
    def test_calendar_mode(self):
        assert add_days(MONDAY, 10) == date(2024, 1, 11)
        assert add_days(MONDAY, -1) == date(2023, 12, 31)
        assert add_days(MONDAY, 0) == MONDAY

    def test_calendar_mode_floors_fractions(self):
        assert add_days(MONDAY, 2.7) == date(2024, 1, 3)
        assert add_days(MONDAY, -0.5) == date(2023, 12, 31)

    def test_business_one_is_same_day(self):
        for offset in range(14):
            d = MONDAY + timedelta(days=offset)
            assert add_days(d, 1, True) == d

    def test_business_clamps_to_one(self):
        assert add_days(FRIDAY, 0, True) == FRIDAY
        assert add_days(FRIDAY, -3, True) == FRIDAY

    def test_business_skips_weekend(self):
        # Friday + 2 business days of duration ends Monday
        assert add_days(FRIDAY, 2, True) == date(2024, 1, 8)
        assert add_days(MONDAY, 5, True) == FRIDAY
        assert add_days(MONDAY, 6, True) == date(2024, 1, 8)

    def test_business_skips_holidays(self):
        cal = WorkCalendar.from_settings(holidays=[date(2024, 1, 2)])
        assert add_days(MONDAY, 2, True, cal) == date(2024, 1, 3)


class TestDiffDays:
    def test_calendar_mode(self):
        assert diff_days(MONDAY, date(2024, 1, 11)) == 10
        assert diff_days(MONDAY, MONDAY) == 0

    def test_negative_span_is_zero(self):
        assert diff_days(FRIDAY, MONDAY) == 0
        assert diff_days(FRIDAY, MONDAY, True) == 0

    @pytest.mark.parametrize("n", [0, 1, 7, 30, 365])
    def test_calendar_add_then_diff(self, n):
        assert diff_days(MONDAY, add_days(MONDAY, n)) == n

    def test_business_mode_counts_inclusive(self):
        assert diff_days(MONDAY, MONDAY, True) == 1
        assert diff_days(MONDAY, FRIDAY, True) == 5
        assert diff_days(MONDAY, date(2024, 1, 10), True) == 8

    def test_business_mode_weekend_only(self):
        assert diff_days(SATURDAY, SUNDAY, True) == 0

    @pytest.mark.parametrize("n", [1, 2, 5, 9, 23])
    def test_business_duration_roundtrip_from_business_day(self, n):
        assert diff_days(MONDAY, add_days(MONDAY, n, True), True) == n


class TestHelpers:
    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2
        assert round_half_up(-2.5) == -2
        assert round_half_up(66.666) == 67

    def test_week_start(self):
        assert week_start(date(2024, 1, 4)) == MONDAY
        assert week_start(MONDAY) == MONDAY
        assert week_start(SUNDAY) == MONDAY

    def test_parse_date(self):
        assert parse_date(" 2024-01-05 ") == FRIDAY
        with pytest.raises(ValueError):
            parse_date("01/05/2024")

    def test_format_date(self):
        assert format_date(FRIDAY) == "2024-01-05"
        assert format_date(FRIDAY, "DD.MM.YYYY") == "05.01.2024"
        assert format_date(FRIDAY, "unknown") == "2024-01-05"
        assert format_date(None) == ""

    def test_parse_weekday(self):
        assert parse_weekday("mon") == 0
        assert parse_weekday("Sunday") == 6
        assert parse_weekday(1) == 0
        assert parse_weekday(7) == 6
        assert parse_weekday(0) is None
        assert parse_weekday("funday") is None
        assert parse_weekday(True) is None

    def test_default_calendar(self):
        assert DEFAULT_CALENDAR.working_days == frozenset({0, 1, 2, 3, 4})
        assert DEFAULT_CALENDAR.holidays == frozenset()

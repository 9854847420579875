"""Tests for calendar-aware date arithmetic."""

import pytest
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from finance_engine.dates import (
    CalendarContext,
    DateUnit,
    add_period,
    days_between,
    end_of_month,
    is_weekend,
    iter_months,
    local_date,
    months_between,
    start_of_day,
    start_of_month,
    to_datetime,
)


class TestCalendarContext:
    """Tests for CalendarContext."""

    def test_default_is_utc(self):
        """Test the default calendar."""
        assert CalendarContext().tzinfo is timezone.utc

    def test_unknown_timezone_rejected(self):
        """Test that an unknown zone name fails validation."""
        with pytest.raises(ValueError):
            CalendarContext(timezone="Not/AZone")


class TestAddPeriod:
    """Tests for add_period."""

    def test_day_and_week(self):
        """Test fixed-length steps."""
        assert add_period(date(2024, 2, 28), DateUnit.DAY, 1) == date(2024, 2, 29)
        assert add_period(date(2024, 12, 30), DateUnit.WEEK, 1) == date(2025, 1, 6)

    def test_month_clamps_to_month_end(self):
        """Test that Jan 31 + 1 month lands on the last day of February."""
        assert add_period(date(2024, 1, 31), DateUnit.MONTH, 1) == date(2024, 2, 29)
        assert add_period(date(2023, 1, 31), DateUnit.MONTH, 1) == date(2023, 2, 28)
        assert add_period(date(2024, 1, 31), DateUnit.MONTH, 3) == date(2024, 4, 30)

    def test_year_from_leap_day(self):
        """Test that Feb 29 + 1 year is Feb 28."""
        assert add_period(date(2024, 2, 29), DateUnit.YEAR, 1) == date(2025, 2, 28)
        assert add_period(date(2024, 2, 29), DateUnit.YEAR, 4) == date(2028, 2, 29)

    def test_negative_months(self):
        """Test stepping backwards across a year boundary."""
        assert add_period(date(2024, 3, 31), DateUnit.MONTH, -4) == date(2023, 11, 30)

    def test_accepts_unit_string(self):
        """Test that a plain unit name works."""
        assert add_period(date(2024, 1, 1), "month", 2) == date(2024, 3, 1)

    def test_naive_datetime_stays_naive(self):
        """Test that naive datetimes are stepped as wall time."""
        result = add_period(datetime(2024, 1, 31, 18, 45), DateUnit.MONTH, 1)
        assert result == datetime(2024, 2, 29, 18, 45)
        assert result.tzinfo is None

    def test_wall_time_kept_across_dst(self):
        """Test that adding a day over a DST change keeps the local time."""
        new_york = CalendarContext(timezone="America/New_York")
        before = datetime(2024, 3, 9, 9, 0, tzinfo=ZoneInfo("America/New_York"))

        after = add_period(before, DateUnit.DAY, 1, new_york)

        assert after.date() == date(2024, 3, 10)
        assert after.hour == 9
        assert after.utcoffset() != before.utcoffset()


class TestConversions:
    """Tests for local_date / to_datetime."""

    def test_to_datetime_from_date(self):
        """Test that dates become midnight in the calendar zone."""
        assert to_datetime(date(2024, 1, 1)) == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_local_date_uses_calendar_zone(self):
        """Test that the calendar decides which day an instant falls on."""
        instant = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)
        new_york = CalendarContext(timezone="America/New_York")

        assert local_date(instant) == date(2024, 1, 1)
        assert local_date(instant, new_york) == date(2023, 12, 31)

    def test_date_and_datetime_compare_after_normalizing(self):
        """Test that mixed values order correctly once normalized."""
        assert to_datetime(date(2024, 1, 1)) < to_datetime(datetime(2024, 1, 1, 0, 1))


class TestMonthBoundaries:
    """Tests for start/end of day and month."""

    def test_start_of_month(self):
        assert start_of_month(date(2024, 5, 19)) == date(2024, 5, 1)
        assert start_of_month(datetime(2024, 5, 19, 14, 5)) == datetime(2024, 5, 1)

    def test_end_of_month(self):
        assert end_of_month(date(2024, 2, 10)) == date(2024, 2, 29)
        assert end_of_month(datetime(2024, 2, 10, 12)) == datetime(
            2024, 2, 29, 23, 59, 59, 999999
        )

    def test_start_of_day(self):
        assert start_of_day(datetime(2024, 5, 19, 14, 5)) == datetime(2024, 5, 19)
        assert start_of_day(date(2024, 5, 19)) == date(2024, 5, 19)


class TestDifferences:
    """Tests for days_between / months_between."""

    def test_days_between(self):
        assert days_between(date(2024, 1, 1), date(2024, 3, 1)) == 60
        assert days_between(date(2024, 3, 1), date(2024, 1, 1)) == -60

    def test_months_between_whole_months(self):
        """Test that partial months are not counted."""
        assert months_between(date(2024, 1, 1), date(2025, 1, 1)) == 12
        assert months_between(date(2024, 1, 15), date(2024, 2, 14)) == 0
        assert months_between(date(2024, 1, 15), date(2024, 2, 15)) == 1

    def test_months_between_month_end(self):
        """Test that Jan 31 to Feb 29 is a whole month."""
        assert months_between(date(2024, 1, 31), date(2024, 2, 29)) == 1

    def test_months_between_negative(self):
        assert months_between(date(2024, 3, 1), date(2024, 1, 1)) == -2


class TestHelpers:
    """Tests for iter_months / is_weekend."""

    def test_iter_months_steps_from_start(self):
        """Test that each month is computed from the start, not the previous value."""
        assert list(iter_months(date(2024, 1, 31), 4)) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_iter_months_empty(self):
        assert list(iter_months(date(2024, 1, 1), 0)) == []

    def test_is_weekend(self):
        assert is_weekend(date(2024, 1, 6))      # Saturday
        assert is_weekend(date(2024, 1, 7))      # Sunday
        assert not is_weekend(date(2024, 1, 8))  # Monday

"""
Calendar-Aware Date Arithmetic

Date-stepping primitives used by the recurrence and planning code.

DESIGN DECISION: Nothing here reads the system timezone. Datetimes are
interpreted as wall-clock time in an explicit CalendarContext (UTC unless
the caller passes another one), so results are the same on every machine.
Plain `date` values carry no time and are stepped as calendar days.
"""

import calendar as _calendar
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from functools import lru_cache
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Either a calendar date or a point in time.
DateLike = Union[datetime, date]


class DateUnit(str, Enum):
    """Calendar units accepted by add_period."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


@lru_cache(maxsize=None)
def _zone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class CalendarContext(BaseModel):
    """
    The calendar/timezone every date operation runs in.

    Passed explicitly to each call instead of relying on process-wide
    locale or timezone state.
    """
    model_config = ConfigDict(frozen=True)

    timezone: str = Field(
        default="UTC",
        description="IANA timezone name"
    )

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            _zone(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def tzinfo(self) -> tzinfo:
        return _zone(self.timezone)

    @classmethod
    def from_settings(cls) -> "CalendarContext":
        """Calendar using the configured default timezone."""
        from finance_engine.config import get_settings

        return cls(timezone=get_settings().timezone)


UTC_CALENDAR = CalendarContext()


def _resolve(calendar: Optional[CalendarContext]) -> CalendarContext:
    return calendar or UTC_CALENDAR


def _wall(value: datetime, calendar: CalendarContext) -> datetime:
    """Naive wall-clock time of value in the calendar's timezone."""
    if value.tzinfo is None:
        return value
    return value.astimezone(calendar.tzinfo).replace(tzinfo=None)


def _attach(wall: datetime, original: datetime, calendar: CalendarContext) -> datetime:
    """Give a wall-clock result the same awareness as the input it came from."""
    if original.tzinfo is None:
        return wall
    return wall.replace(tzinfo=calendar.tzinfo)


def days_in_month(year: int, month: int) -> int:
    return _calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    """Add n months to d, clamping the day to the target month's length."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, days_in_month(year, month))
    return d.replace(year=year, month=month, day=day)


def _shift(value: date, unit: DateUnit, count: int) -> date:
    if unit == DateUnit.DAY:
        return value + timedelta(days=count)
    if unit == DateUnit.WEEK:
        return value + timedelta(weeks=count)
    if unit == DateUnit.MONTH:
        return add_months(value, count)
    return add_months(value, 12 * count)


def add_period(
    value: DateLike,
    unit: DateUnit,
    count: int,
    calendar: Optional[CalendarContext] = None,
) -> DateLike:
    """
    Move value by count units.

    Month and year steps clamp to the end of shorter months, so
    2024-01-31 + 1 month is 2024-02-29. Datetimes keep their wall-clock
    time across DST changes.
    """
    unit = DateUnit(unit)
    if isinstance(value, datetime):
        cal = _resolve(calendar)
        return _attach(_shift(_wall(value, cal), unit, count), value, cal)
    return _shift(value, unit, count)


def local_date(value: DateLike, calendar: Optional[CalendarContext] = None) -> date:
    """The calendar day value falls on."""
    if isinstance(value, datetime):
        return _wall(value, _resolve(calendar)).date()
    return value


def to_datetime(value: DateLike, calendar: Optional[CalendarContext] = None) -> datetime:
    """
    Normalize a date or datetime to an aware datetime in the calendar's zone.

    Dates become midnight; naive datetimes are read as local wall time.
    """
    cal = _resolve(calendar)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=cal.tzinfo)
        return value.astimezone(cal.tzinfo)
    return datetime.combine(value, time.min, tzinfo=cal.tzinfo)


def start_of_day(value: DateLike, calendar: Optional[CalendarContext] = None) -> DateLike:
    if isinstance(value, datetime):
        cal = _resolve(calendar)
        wall = datetime.combine(_wall(value, cal).date(), time.min)
        return _attach(wall, value, cal)
    return value


def start_of_month(value: DateLike, calendar: Optional[CalendarContext] = None) -> DateLike:
    if isinstance(value, datetime):
        cal = _resolve(calendar)
        wall = datetime.combine(_wall(value, cal).date().replace(day=1), time.min)
        return _attach(wall, value, cal)
    return value.replace(day=1)


def end_of_month(value: DateLike, calendar: Optional[CalendarContext] = None) -> DateLike:
    """Last day of the month (23:59:59.999999 for datetimes)."""
    if isinstance(value, datetime):
        cal = _resolve(calendar)
        day = _wall(value, cal).date()
        last = day.replace(day=days_in_month(day.year, day.month))
        return _attach(datetime.combine(last, time.max), value, cal)
    return value.replace(day=days_in_month(value.year, value.month))


def days_between(a: DateLike, b: DateLike, calendar: Optional[CalendarContext] = None) -> int:
    """Calendar days from a to b (negative when b is earlier)."""
    return (local_date(b, calendar) - local_date(a, calendar)).days


def months_between(a: DateLike, b: DateLike, calendar: Optional[CalendarContext] = None) -> int:
    """Whole calendar months from a to b (negative when b is earlier)."""
    cal = _resolve(calendar)
    start = _wall(to_datetime(a, cal), cal)
    end = _wall(to_datetime(b, cal), cal)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if months > 0 and add_months(start, months) > end:
        months -= 1
    elif months < 0 and add_months(start, months) < end:
        months += 1
    return months


def iter_months(
    start: DateLike,
    count: int,
    calendar: Optional[CalendarContext] = None,
) -> Iterator[DateLike]:
    """start, start + 1 month, ... (count values), each stepped from start."""
    for k in range(max(count, 0)):
        yield add_period(start, DateUnit.MONTH, k, calendar)


def is_weekend(value: DateLike, calendar: Optional[CalendarContext] = None) -> bool:
    return local_date(value, calendar).weekday() >= 5

"""Day and month boundary helpers used by the date-windowed aggregations."""

import calendar
from datetime import date, datetime, time
from typing import Union

DateLike = Union[date, datetime, str]


def as_date(value: DateLike) -> date:
    """Normalize a date, datetime or ISO string (YYYY-MM-DD...) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def end_of_day(value: DateLike) -> datetime:
    """Last representable instant of the given day."""
    return datetime.combine(as_date(value), time.max)


def start_of_month(value: DateLike) -> date:
    d = as_date(value)
    return d.replace(day=1)


def end_of_month(value: DateLike) -> date:
    """Last calendar day of the month containing `value`."""
    d = as_date(value)
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def same_month(a: DateLike, b: DateLike) -> bool:
    a, b = as_date(a), as_date(b)
    return (a.year, a.month) == (b.year, b.month)


def month_diff(later: DateLike, earlier: DateLike) -> int:
    """
    Calendar-month difference, ignoring the day of month.

    month_diff(2025-03-31, 2025-01-01) == 2
    """
    later, earlier = as_date(later), as_date(earlier)
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def add_months(value: DateLike, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    d = as_date(value)
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def day_in_month(value: DateLike, day: int) -> date:
    """The given day-of-month inside `value`'s month, clamped to its length."""
    d = as_date(value)
    last = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=max(1, min(day, last)))


def month_key(value: DateLike) -> str:
    """YYYY-MM key for grouping."""
    d = as_date(value)
    return f"{d.year:04d}-{d.month:02d}"

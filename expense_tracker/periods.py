"""Calendar period arithmetic for the dashboard time filter.

Weeks start on Monday (ISO 8601). Every function is pure and works on naive
local datetimes; a plain ``date`` is read as midnight of that day.
"""
import calendar
from datetime import date, datetime, time, timedelta
from typing import Union

from expense_tracker.domain import DAY, MONTH, WEEK, DateRange

DateLike = Union[date, datetime]

START_OF_DAY = time(0, 0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999000)


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def _shift_month(value: datetime, months: int) -> datetime:
    # day-of-month is clamped: 31 Jan + 1 month -> 28/29 Feb
    index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def start_of_day(value: DateLike) -> datetime:
    return datetime.combine(_as_datetime(value).date(), START_OF_DAY)


def end_of_day(value: DateLike) -> datetime:
    return datetime.combine(_as_datetime(value).date(), END_OF_DAY)


def start_of_week(value: DateLike) -> datetime:
    """Monday 00:00 of the week containing ``value``.

    Sunday belongs to the week that started six days earlier.
    """
    d = start_of_day(value)
    return d - timedelta(days=d.weekday())


def end_of_week(value: DateLike) -> datetime:
    return end_of_day(start_of_week(value) + timedelta(days=6))


def start_of_month(value: DateLike) -> datetime:
    return start_of_day(_as_datetime(value).replace(day=1))


def end_of_month(value: DateLike) -> datetime:
    d = _as_datetime(value)
    last_day = calendar.monthrange(d.year, d.month)[1]
    return end_of_day(d.replace(day=last_day))


def date_range(value: DateLike, granularity: str) -> DateRange:
    """Inclusive boundaries of the day, week or month containing ``value``.

    >>> date_range(datetime(2025, 12, 18), "month").end_date
    datetime.datetime(2025, 12, 31, 23, 59, 59, 999000)
    """
    if granularity == DAY:
        return DateRange(start_of_day(value), end_of_day(value), DAY)
    if granularity == WEEK:
        return DateRange(start_of_week(value), end_of_week(value), WEEK)
    if granularity == MONTH:
        return DateRange(start_of_month(value), end_of_month(value), MONTH)
    raise ValueError(f"Unknown granularity: {granularity!r}")


def _step(value: DateLike, granularity: str, direction: int) -> datetime:
    d = _as_datetime(value)
    if granularity == DAY:
        return d + timedelta(days=direction)
    if granularity == WEEK:
        return d + timedelta(days=7 * direction)
    if granularity == MONTH:
        return _shift_month(d, direction)
    raise ValueError(f"Unknown granularity: {granularity!r}")


def previous_period(value: DateLike, granularity: str) -> datetime:
    return _step(value, granularity, -1)


def next_period(value: DateLike, granularity: str) -> datetime:
    return _step(value, granularity, 1)


def week_number(value: DateLike) -> int:
    """ISO week number (1..53).

    The week is moved to its Thursday, and weeks are counted from January 1st
    of the Thursday's year.
    """
    thursday = _week_thursday(value)
    year_start = datetime(thursday.year, 1, 1)
    return (thursday - year_start).days // 7 + 1


def _week_thursday(value: DateLike) -> datetime:
    d = start_of_day(value)
    return d + timedelta(days=3 - d.weekday())


def format_period_label(start_date: DateLike, end_date: DateLike, granularity: str) -> str:
    start = _as_datetime(start_date)
    if granularity == DAY:
        return f"Ngày {start.day} tháng {start.month} năm {start.year}"
    if granularity == WEEK:
        return f"Tuần {week_number(start)}, {_week_thursday(start).year}"
    if granularity == MONTH:
        return f"Tháng {start.month} năm {start.year}"
    raise ValueError(f"Unknown granularity: {granularity!r}")


def is_current_period(value: DateLike, granularity: str, today: DateLike) -> bool:
    return date_range(value, granularity).start_date == date_range(today, granularity).start_date

"""Vietnamese display formats for money and dates."""
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CURRENCY_SYMBOL = "₫"
NBSP = "\u00a0"

Number = Union[int, float, Decimal]
DateInput = Union[date, datetime, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def round_half_up(value: Number, places: str = "1") -> Decimal:
    """Round away from zero on ties: 0.125 -> 0.13, -2.5 -> -3."""
    return to_decimal(value).quantize(Decimal(places), rounding=ROUND_HALF_UP)


def group_thousands(amount: Number) -> str:
    """Whole-number amount with '.' as the thousands separator.

    >>> group_thousands(1234.56)
    '1.235'
    """
    rounded = int(round_half_up(amount))
    return f"{rounded:,}".replace(",", ".")


def format_currency(amount: Number) -> str:
    return f"{group_thousands(amount)}{NBSP}{CURRENCY_SYMBOL}"


def to_datetime(value: DateInput) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00")).replace(tzinfo=None)
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def format_display_date(value: DateInput) -> str:
    d = to_datetime(value)
    return f"{d.day:02d}/{d.month:02d}/{d.year}"


def format_datetime(value: DateInput) -> str:
    d = to_datetime(value)
    return f"{format_display_date(d)} {d.hour:02d}:{d.minute:02d}"


def format_iso_date(value: DateInput) -> str:
    return to_datetime(value).strftime("%Y-%m-%d")


def parse_display_date(text: str) -> datetime:
    """Inverse of :func:`format_display_date`; midnight local time."""
    day, month, year = (int(part) for part in text.strip().split("/"))
    return datetime(year, month, day)

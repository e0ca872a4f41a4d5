"""
Calendar period helpers.

Derives month and quarter bucket keys and boundaries from transaction dates.
"""

import calendar
from datetime import date, datetime
from typing import Union

from trade_insight.models import BucketGranularity


DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """
    Coerce a date, datetime or ISO-8601 string to a date.

    Args:
        value: Value to convert

    Returns:
        The calendar date

    Raises:
        TypeError: If the value is not a supported type
        ValueError: If a string is not ISO formatted
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def quarter_of(value: DateLike) -> int:
    """Calendar quarter (1-4) of a date."""
    return (to_date(value).month - 1) // 3 + 1


def month_key(value: DateLike) -> str:
    d = to_date(value)
    return f"{d.year}-{d.month:02d}"


def quarter_key(value: DateLike) -> str:
    d = to_date(value)
    return f"{d.year}-Q{quarter_of(d)}"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def quarter_bounds(year: int, quarter: int) -> tuple[date, date]:
    """First and last day of a calendar quarter."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"Quarter must be 1-4, got {quarter}")
    start_month = (quarter - 1) * 3 + 1
    start, _ = month_bounds(year, start_month)
    _, end = month_bounds(year, start_month + 2)
    return start, end


def period_of(
    value: DateLike,
    granularity: BucketGranularity,
) -> tuple[str, int, int, date, date]:
    """
    Resolve the bucket a date falls into.

    Args:
        value: Transaction date
        granularity: MONTH or QUARTER

    Returns:
        Tuple of (key, year, period_index, start_date, end_date)
    """
    d = to_date(value)
    if granularity == BucketGranularity.QUARTER:
        quarter = quarter_of(d)
        start, end = quarter_bounds(d.year, quarter)
        return quarter_key(d), d.year, quarter, start, end

    start, end = month_bounds(d.year, d.month)
    return month_key(d), d.year, d.month, start, end

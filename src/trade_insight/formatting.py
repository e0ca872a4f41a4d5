"""
Numeric formatting and guarded arithmetic.

Provides currency, percentage and compact-number formatting for display,
plus the division guards used wherever a denominator can be zero.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Optional, Union

from trade_insight.models import ZERO
from trade_insight.periods import to_date


Number = Union[Decimal, int, float]

NOT_AVAILABLE = "n/a"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "CA$",
    "AUD": "A$",
}


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a number: {value!r}")


def safe_divide(
    numerator: Number,
    denominator: Number,
    default: Decimal = ZERO,
) -> Decimal:
    """
    Divide, returning ``default`` when the denominator is zero.

    Args:
        numerator: Dividend
        denominator: Divisor
        default: Value returned for a zero denominator

    Returns:
        The quotient, or ``default``
    """
    denominator = to_decimal(denominator)
    if denominator == ZERO:
        return default
    return to_decimal(numerator) / denominator


def percent_of(part: Number, whole: Number, default: Decimal = ZERO) -> Decimal:
    """``part / whole * 100`` with the zero-denominator guard."""
    if to_decimal(whole) == ZERO:
        return default
    return safe_divide(part, whole) * 100


def _round(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _format_fixed(value: Decimal, min_digits: int, max_digits: int) -> str:
    """Group thousands and trim trailing zeros down to ``min_digits``."""
    text = f"{_round(value, max_digits):,.{max_digits}f}"
    if "." not in text:
        return text
    whole, fraction = text.split(".")
    fraction = fraction.rstrip("0").ljust(min_digits, "0")
    return f"{whole}.{fraction}" if fraction else whole


def format_currency(
    value: Number,
    currency: str = "USD",
    min_fraction_digits: int = 0,
    max_fraction_digits: int = 2,
) -> str:
    """
    Format an amount as currency, e.g. ``$1,234.5`` or ``-$12``.

    Args:
        value: Amount to format
        currency: ISO currency code
        min_fraction_digits: Minimum decimals shown
        max_fraction_digits: Maximum decimals shown

    Returns:
        Formatted currency string
    """
    amount = to_decimal(value)
    rounded = _round(amount, max_fraction_digits)
    text = _format_fixed(abs(rounded), min_fraction_digits, max_fraction_digits)

    code = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    body = f"{symbol}{text}" if symbol else f"{code} {text}"

    if rounded < ZERO:
        return f"-{body}"
    return body


def format_percentage(value: Number, decimals: int = 1) -> str:
    """Signed percentage, e.g. ``+12.3%`` or ``-4.0%``."""
    rounded = _round(to_decimal(value), decimals)
    if rounded == ZERO:
        rounded = abs(rounded)
    sign = "+" if rounded >= ZERO else ""
    return f"{sign}{rounded:.{decimals}f}%"


def format_number(value: Number, max_fraction_digits: int = 3) -> str:
    """Grouped number with up to ``max_fraction_digits`` decimals."""
    amount = to_decimal(value)
    text = _format_fixed(abs(amount), 0, max_fraction_digits)
    return f"-{text}" if _round(amount, max_fraction_digits) < ZERO else text


def format_compact_number(value: Number) -> str:
    """
    Short-scale compact notation, e.g. ``1.2K``, ``35M``, ``1.5B``.

    Values with a single integer digit after scaling keep one decimal;
    larger ones are rounded to a whole number.
    """
    amount = to_decimal(value)
    magnitude = abs(amount)
    suffix = ""
    for threshold, label in ((Decimal("1e12"), "T"), (Decimal("1e9"), "B"),
                             (Decimal("1e6"), "M"), (Decimal("1e3"), "K")):
        if magnitude >= threshold:
            magnitude = magnitude / threshold
            suffix = label
            break

    places = 1 if magnitude < 10 else 0
    text = _format_fixed(magnitude, 0, places)
    sign = "-" if amount < ZERO else ""
    return f"{sign}{text}{suffix}"


def format_quantity(quantity: Number) -> str:
    """Share counts for chart badges: ``1.5M``, ``2.3K``, ``42``."""
    qty = to_decimal(quantity)
    if qty >= Decimal("1000000"):
        return f"{_round(qty / Decimal('1000000'), 1):.1f}M"
    if qty >= Decimal("1000"):
        return f"{_round(qty / Decimal('1000'), 1):.1f}K"
    return f"{_round(qty, 0):.0f}"


def format_date(value: Any) -> str:
    """Format as ``Jan 15, 2024``."""
    d = to_date(value)
    return f"{d:%b} {d.day}, {d.year}"


def format_relative_time(value: datetime, now: datetime) -> str:
    """
    Describe how long ago ``value`` was relative to ``now``.

    Args:
        value: Past timestamp
        now: Reference time

    Returns:
        "just now", "5m ago", "3h ago", "2d ago", or a formatted date
        for anything a week or older
    """
    seconds = int((now - value).total_seconds())

    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 604800:
        return f"{seconds // 86400}d ago"

    return format_date(value)


def format_optional(
    value: Optional[Any],
    formatter: Optional[Callable[[Any], str]] = None,
) -> str:
    """Render ``None`` as ``n/a``; otherwise apply ``formatter`` (or str)."""
    if value is None:
        return NOT_AVAILABLE
    if formatter is None:
        if isinstance(value, (date, datetime)):
            return to_date(value).isoformat()
        return str(value)
    return formatter(value)

"""
Lookback window resolution.

Turns a selectable range (1M, 6M, YTD, ...) plus an explicit reference time
into the first calendar day included in a chart.
"""

from datetime import date
from typing import Optional

import pandas as pd

from trade_insight.models import LookbackWindow
from trade_insight.periods import DateLike, to_date


class WindowError(ValueError):
    """Raised for an unknown window or a missing reference time."""
    pass


# Calendar offsets, so month lengths and leap years do not cause drift
WINDOW_OFFSETS = {
    LookbackWindow.ONE_MONTH: pd.DateOffset(months=1),
    LookbackWindow.SIX_MONTHS: pd.DateOffset(months=6),
    LookbackWindow.ONE_YEAR: pd.DateOffset(years=1),
    LookbackWindow.TWO_YEARS: pd.DateOffset(years=2),
    LookbackWindow.THREE_YEARS: pd.DateOffset(years=3),
    LookbackWindow.FIVE_YEARS: pd.DateOffset(years=5),
}


def parse_window(value: LookbackWindow | str) -> LookbackWindow:
    """
    Parse a window identifier such as ``"6M"`` or ``"ytd"``.

    Raises:
        WindowError: If the identifier is not a known window
    """
    if isinstance(value, LookbackWindow):
        return value
    if isinstance(value, str):
        try:
            return LookbackWindow(value.strip().upper())
        except ValueError:
            pass
    valid = ", ".join(w.value for w in LookbackWindow)
    raise WindowError(f"Unknown lookback window {value!r}. Expected one of: {valid}")


def resolve_window_start(
    window: LookbackWindow | str,
    reference_time: Optional[DateLike],
) -> Optional[date]:
    """
    Resolve the first included day of a lookback window.

    Args:
        window: Lookback window
        reference_time: The "now" the window is measured back from

    Returns:
        First included date, or None for ALL (no lower bound)

    Raises:
        WindowError: If the window is unknown or reference_time is missing
    """
    if reference_time is None:
        raise WindowError("reference_time is required to resolve a lookback window")

    window = parse_window(window)
    reference = to_date(reference_time)

    if window == LookbackWindow.ALL:
        return None
    if window == LookbackWindow.YEAR_TO_DATE:
        return date(reference.year, 1, 1)

    start = pd.Timestamp(reference) - WINDOW_OFFSETS[window]
    return start.date()


def is_within_window(value: DateLike, window_start: Optional[date]) -> bool:
    """True unless ``value`` falls strictly before the window start."""
    return window_start is None or to_date(value) >= window_start

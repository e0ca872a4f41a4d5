"""
Chart-activity correlation.

Maps calendar buckets onto index ranges of a daily price series so activity
overlays can be positioned proportionally along the chart axis.
"""

from bisect import bisect_left, bisect_right
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from trade_insight.formatting import percent_of
from trade_insight.models import ZERO, ActivitySpan, CalendarBucket, PricePoint
from trade_insight.periods import to_date


def _series_dates(series: list[PricePoint]) -> list[date]:
    dates = [to_date(point.date) for point in series]
    for earlier, later in zip(dates, dates[1:]):
        if later < earlier:
            raise ValueError(
                f"Price series must be in ascending date order ({earlier} before {later})"
            )
    return dates


def locate_bucket(dates: list[date], bucket: CalendarBucket) -> ActivitySpan:
    """
    Find the index range of one bucket within an ordered list of dates.

    When no price point falls inside the bucket the span is returned with
    ``visible=False`` and zero indices; callers must not draw it.

    Args:
        dates: Ascending trading dates of the price series
        bucket: Bucket to locate

    Returns:
        ActivitySpan with indices and percentage position/width
    """
    total = len(dates)
    first_inside = bisect_left(dates, bucket.start_date)
    first_after = bisect_right(dates, bucket.end_date)

    if total == 0 or first_inside >= first_after:
        return ActivitySpan(bucket=bucket, start_index=0, end_index=0, visible=False)

    start_index = min(first_inside, total - 1)
    end_index = max(0, min(first_after - 1, total - 1))
    covered = end_index - start_index + 1

    return ActivitySpan(
        bucket=bucket,
        start_index=start_index,
        end_index=end_index,
        visible=True,
        left_percent=percent_of(start_index, total),
        width_percent=percent_of(covered, total),
    )


def correlate_activity(
    series: list[PricePoint],
    buckets: list[CalendarBucket],
) -> list[ActivitySpan]:
    """
    Position each activity bucket on a price series.

    Args:
        series: Price points in ascending date order, one per trading day
        buckets: Buckets from the trade activity aggregation

    Returns:
        One ActivitySpan per bucket, in bucket order

    Raises:
        ValueError: If the series is not in ascending date order
    """
    dates = _series_dates(series)
    return [locate_bucket(dates, bucket) for bucket in buckets]


def visible_spans(spans: list[ActivitySpan]) -> list[ActivitySpan]:
    """Spans that have at least one price point to anchor on."""
    return [span for span in spans if span.visible]


def price_series_stats(series: list[PricePoint]) -> Optional[dict[str, Any]]:
    """
    Summary statistics for a price chart header.

    Args:
        series: Price points in ascending date order

    Returns:
        None for fewer than two points, otherwise a dictionary with
        first_close, last_close, change, change_percent, high, low and
        is_positive
    """
    if len(series) < 2:
        return None

    first_close = series[0].close
    last_close = series[-1].close
    change = last_close - first_close

    highs = [p.high if p.high is not None else p.close for p in series]
    lows = [p.low if p.low is not None else p.close for p in series]

    return {
        "first_close": first_close,
        "last_close": last_close,
        "change": change,
        "change_percent": percent_of(change, first_close),
        "high": max(highs),
        "low": min(lows),
        "is_positive": change >= ZERO,
    }


def span_summary(spans: list[ActivitySpan]) -> dict[str, Decimal | int]:
    """Counts of drawn and suppressed spans, for logging."""
    shown = visible_spans(spans)
    return {
        "span_count": len(spans),
        "visible_count": len(shown),
        "suppressed_count": len(spans) - len(shown),
        "covered_percent": sum((s.width_percent for s in shown), ZERO),
    }

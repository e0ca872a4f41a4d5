"""
Analytics module for the Trade Insight engine.

Provides lookback windows, calendar bucketing, chart-activity correlation
and list summaries.
"""

from trade_insight.analytics.windows import (
    WindowError,
    parse_window,
    resolve_window_start,
)
from trade_insight.analytics.buckets import (
    aggregate_buckets,
    aggregate_cash_flows,
    aggregate_dividends,
    aggregate_trade_activity,
    bucket_totals,
    cash_flow_stats,
)
from trade_insight.analytics.correlator import (
    correlate_activity,
    price_series_stats,
    visible_spans,
)
from trade_insight.analytics.summaries import (
    summarize_dividends,
    summarize_option_trades,
    summarize_trades,
    summarize_transfers,
)

__all__ = [
    "WindowError",
    "parse_window",
    "resolve_window_start",
    "aggregate_buckets",
    "aggregate_cash_flows",
    "aggregate_dividends",
    "aggregate_trade_activity",
    "bucket_totals",
    "cash_flow_stats",
    "correlate_activity",
    "price_series_stats",
    "visible_spans",
    "summarize_dividends",
    "summarize_option_trades",
    "summarize_trades",
    "summarize_transfers",
]

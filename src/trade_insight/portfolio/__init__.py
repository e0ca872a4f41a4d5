"""
Holding metrics for the Trade Insight engine.

Provides per-symbol holding breakdowns and portfolio-level rollups computed
from raw transaction records.
"""

from trade_insight.portfolio.holdings import (
    HoldingNotFoundError,
    calculate_holding,
    calculate_holdings,
    group_by_symbol,
)
from trade_insight.portfolio.rollup import (
    summarize_portfolio,
    top_performers,
)

__all__ = [
    "HoldingNotFoundError",
    "calculate_holding",
    "calculate_holdings",
    "group_by_symbol",
    "summarize_portfolio",
    "top_performers",
]

"""
Trade Insight (trade-insight)

Portfolio performance aggregation for brokerage statement analytics. The
engine turns broker transaction exports (trades, dividends, tax lots,
commissions, option trades and cash transfers) into per-holding metrics,
portfolio rollups, calendar-bucketed activity for charts, and sortable,
filterable, paginated tables with CSV export.

All computation is pure and synchronous; the only clock is the explicit
reference time passed in by the caller.
"""

__version__ = "0.1.0"
__author__ = "Trade Insight Team"

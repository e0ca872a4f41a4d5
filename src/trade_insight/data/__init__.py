"""
Data ingestion module for the Trade Insight engine.

Provides functionality for loading broker transaction exports, price
history and current prices from CSV/Parquet files.
"""

from trade_insight.data.loaders import (
    DataLoadError,
    load_trades,
    load_dividends,
    load_lots,
    load_commissions,
    load_option_trades,
    load_transfers,
    load_price_series,
    load_current_prices,
    load_company_names,
    load_portfolio_transactions,
)
from trade_insight.data.schemas import (
    TRADES_SCHEMA,
    DIVIDENDS_SCHEMA,
    LOTS_SCHEMA,
    TRANSFERS_SCHEMA,
    PRICE_SERIES_SCHEMA,
)

__all__ = [
    "DataLoadError",
    "load_trades",
    "load_dividends",
    "load_lots",
    "load_commissions",
    "load_option_trades",
    "load_transfers",
    "load_price_series",
    "load_current_prices",
    "load_company_names",
    "load_portfolio_transactions",
    "TRADES_SCHEMA",
    "DIVIDENDS_SCHEMA",
    "LOTS_SCHEMA",
    "TRANSFERS_SCHEMA",
    "PRICE_SERIES_SCHEMA",
]

"""
Command-line interface for the Trade Insight engine.

Provides commands for:
- holdings: Per-holding metrics and the portfolio rollup
- cash-flow: Monthly or quarterly deposits and withdrawals
- activity: Trade activity positioned on a symbol's price chart
- export: CSV export of a filtered, sorted table
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
import pandas as pd

from trade_insight import __version__
from trade_insight.config import (
    ConfigurationError,
    create_default_config,
    load_engine_config,
)
from trade_insight.data import (
    DataLoadError,
    load_company_names,
    load_current_prices,
    load_portfolio_transactions,
    load_price_series,
)
from trade_insight.data.loaders import CURRENT_PRICES_FILE, PRICE_HISTORY_FILE
from trade_insight.analytics import (
    WindowError,
    aggregate_cash_flows,
    aggregate_trade_activity,
    cash_flow_stats,
    correlate_activity,
    price_series_stats,
    resolve_window_start,
)
from trade_insight.analytics.windows import is_within_window
from trade_insight.formatting import (
    NOT_AVAILABLE,
    format_currency,
    format_number,
    format_percentage,
    format_quantity,
)
from trade_insight.logging import DecisionLogger, get_logger
from trade_insight.models import (
    BucketGranularity,
    EngineConfig,
    PortfolioTransactions,
    SortDirection,
)
from trade_insight.portfolio import calculate_holdings
from trade_insight.tables import (
    ALL_PAGES,
    COLUMN_SETS,
    ProjectionError,
    TableQuery,
    all_of,
    export_filename,
    export_table,
    field_equals,
    project,
    text_search,
    write_csv,
)


# Fields searched by --search, per exported table
SEARCH_FIELDS = {
    "holdings": ("symbol", "company_name"),
    "trades": ("symbol", "description"),
    "transfers": ("broker", "description"),
    "dividends": ("symbol", "description"),
    "lots": ("symbol",),
}

# Default sort field per exported table
DEFAULT_SORT = {
    "holdings": "market_value",
    "trades": "executed_at",
    "transfers": "executed_at",
    "dividends": "pay_date",
    "lots": "acquired_at",
}


@click.group()
@click.version_option(version=__version__, prog_name="trade-insight")
def main():
    """
    Trade Insight: portfolio performance aggregation.

    Derives holdings, cash flow charts, trade activity overlays and table
    exports from broker transaction files.
    """
    pass


def _parse_as_of(as_of: Optional[str]) -> datetime:
    """Reference time for windows; the wall clock is read only here."""
    if not as_of:
        return datetime.now()
    try:
        return pd.Timestamp(as_of).to_pydatetime()
    except ValueError:
        click.echo(f"Invalid date format: {as_of}. Use YYYY-MM-DD.", err=True)
        sys.exit(1)


def _load_config(
    config: Optional[str],
    portfolio_id: Optional[str],
    output_dir: Optional[str],
) -> tuple[EngineConfig, Path, DecisionLogger]:
    """Load configuration and open the decision log in the output directory."""
    if config:
        try:
            engine_config = load_engine_config(config)
        except ConfigurationError as e:
            click.echo(f"Error loading config: {e}", err=True)
            sys.exit(1)
    else:
        engine_config = create_default_config(portfolio_id or "default")

    if portfolio_id:
        engine_config.portfolio_id = portfolio_id

    out_dir = Path(output_dir or engine_config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    logger = get_logger(out_dir / "decision_log.jsonl")
    if config:
        logger.log_config_loaded(engine_config, config)

    return engine_config, out_dir, logger


def _load_transactions(data_dir: str, portfolio_id: str) -> PortfolioTransactions:
    click.echo(f"Loading transactions from {data_dir}...")
    try:
        return load_portfolio_transactions(data_dir, portfolio_id)
    except DataLoadError as e:
        click.echo(f"Error loading transactions: {e}", err=True)
        sys.exit(1)


def _load_prices(
    data_dir: str,
    prices: Optional[str],
) -> tuple[dict, dict]:
    prices_path = Path(prices) if prices else Path(data_dir) / CURRENT_PRICES_FILE
    if not prices_path.exists():
        # Open holdings without a price are reported as data warnings
        click.echo(f"No price file at {prices_path}; open holdings cannot be valued.", err=True)
        return {}, {}

    try:
        return load_current_prices(prices_path), load_company_names(prices_path)
    except DataLoadError as e:
        click.echo(f"Error loading prices: {e}", err=True)
        sys.exit(1)


def _common_options(func):
    """Options shared by every command."""
    func = click.option(
        "--output-dir", "-o",
        type=click.Path(),
        default=None,
        help="Output directory. Defaults to config output_dir.",
    )(func)
    func = click.option(
        "--portfolio-id", "-i",
        default=None,
        help="Portfolio ID. Overrides config portfolio_id.",
    )(func)
    func = click.option(
        "--config", "-c",
        type=click.Path(exists=True),
        default=None,
        help="Path to engine configuration YAML file",
    )(func)
    func = click.option(
        "--data-dir", "-d",
        required=True,
        type=click.Path(exists=True, file_okay=False),
        help="Directory with trades.csv, dividends.csv, lots.csv, ...",
    )(func)
    return func


@main.command()
@_common_options
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Current prices CSV (symbol, price[, name]). Defaults to DATA_DIR/prices.csv.",
)
@click.option(
    "--status", "-s",
    type=click.Choice(["all", "open", "closed", "short"]),
    default="all",
    help="Show only holdings with this status",
)
@click.option(
    "--sort",
    "sort_field",
    default="market_value",
    help="Holding field to sort by (default: market_value)",
)
@click.option(
    "--ascending", is_flag=True, default=False,
    help="Sort ascending instead of descending",
)
@click.option("--page", type=int, default=1, help="Page number")
@click.option(
    "--page-size",
    default=None,
    help="Rows per page or 'all'. Defaults to config default_page_size.",
)
def holdings(
    data_dir: str,
    config: Optional[str],
    portfolio_id: Optional[str],
    output_dir: Optional[str],
    prices: Optional[str],
    status: str,
    sort_field: str,
    ascending: bool,
    page: int,
    page_size: Optional[str],
):
    """
    Calculate per-holding metrics and the portfolio rollup.

    Closed holdings show n/a for price-dependent fields. Symbols with
    inconsistent data are listed as warnings and left out of the totals.
    """
    engine_config, out_dir, logger = _load_config(config, portfolio_id, output_dir)
    transactions = _load_transactions(data_dir, engine_config.portfolio_id)
    price_map, names = _load_prices(data_dir, prices)

    click.echo("Calculating holdings...")
    report = calculate_holdings(transactions, price_map, company_names=names)

    logger.log_holdings_calculated(engine_config.portfolio_id, report, datetime.now())
    if report.warnings:
        logger.log_integrity_warnings(engine_config.portfolio_id, report.warnings)

    query = TableQuery(
        sort_field=sort_field,
        direction=SortDirection.ASC if ascending else SortDirection.DESC,
        filter_predicate=field_equals("status", status),
        page=page,
        page_size=page_size or engine_config.default_page_size,
    )
    try:
        result = project(report.holdings, query)
    except ProjectionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    currency = engine_config.currency

    def money(value):
        return NOT_AVAILABLE if value is None else format_currency(value, currency)

    click.echo()
    click.echo(
        f"{'Symbol':<8} {'Status':<7} {'Qty':>8} {'Avg Cost':>12} "
        f"{'Value':>14} {'Unrealized':>12} {'Realized':>12} {'Weight':>8}"
    )
    for h in result.page_items:
        weight = (
            NOT_AVAILABLE if h.percent_of_portfolio is None
            else f"{format_number(h.percent_of_portfolio, 2)}%"
        )
        click.echo(
            f"{h.symbol:<8} {h.status.value:<7} {format_quantity(h.quantity):>8} "
            f"{money(h.avg_cost_basis):>12} {money(h.market_value):>14} "
            f"{money(h.unrealized_pnl):>12} {money(h.realized_pnl):>12} {weight:>8}"
        )
    click.echo(
        f"Page {result.page} of {result.total_pages} "
        f"({result.total_filtered} holdings)"
    )

    rollup = report.rollup
    click.echo()
    click.echo("Portfolio Summary:")
    click.echo(f"  Total Value:     {format_currency(rollup.total_value, currency)}")
    click.echo(f"  Cost Basis:      {format_currency(rollup.total_cost_basis, currency)}")
    click.echo(f"  Realized P&L:    {format_currency(rollup.total_realized_pnl, currency)}")
    click.echo(f"  Unrealized P&L:  {format_currency(rollup.total_unrealized_pnl, currency)}")
    click.echo(
        f"  Total Return:    {format_currency(rollup.total_return, currency)} "
        f"({format_percentage(rollup.total_return_percent)})"
    )
    click.echo(f"  Dividends:       {format_currency(rollup.total_dividends, currency)}")
    click.echo(f"  Commissions:     {format_currency(rollup.total_commissions, currency)}")
    click.echo(f"  Open Positions:  {rollup.open_positions}")

    if report.warnings:
        click.echo()
        click.echo(f"Data warnings ({len(report.warnings)} symbols excluded):")
        for warning in report.warnings:
            click.echo(f"  {warning.symbol}: {warning.message}")


@main.command("cash-flow")
@_common_options
@click.option(
    "--window", "-w",
    default=None,
    help="Lookback window: 1M, 6M, YTD, 1Y, 2Y, 3Y, 5Y or ALL",
)
@click.option(
    "--granularity", "-g",
    type=click.Choice([g.value for g in BucketGranularity]),
    default=None,
    help="Bucket size. Defaults to config cash_flow_granularity.",
)
@click.option(
    "--as-of",
    default=None,
    help="Reference date for the window (YYYY-MM-DD). Defaults to today.",
)
def cash_flow(
    data_dir: str,
    config: Optional[str],
    portfolio_id: Optional[str],
    output_dir: Optional[str],
    window: Optional[str],
    granularity: Optional[str],
    as_of: Optional[str],
):
    """
    Bucket deposits and withdrawals over a lookback window.

    Only periods with activity are listed.
    """
    engine_config, out_dir, logger = _load_config(config, portfolio_id, output_dir)
    reference_time = _parse_as_of(as_of)
    transactions = _load_transactions(data_dir, engine_config.portfolio_id)

    window = window or engine_config.default_window.value
    bucket_size = (
        BucketGranularity(granularity) if granularity
        else engine_config.cash_flow_granularity
    )

    try:
        buckets = aggregate_cash_flows(
            transactions.transfers,
            window=window,
            reference_time=reference_time,
            granularity=bucket_size,
        )
    except WindowError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logger.log_buckets_aggregated(engine_config.portfolio_id, "cash_flow", window, buckets)

    stats = cash_flow_stats(buckets)
    if stats is None:
        click.echo(f"No deposits or withdrawals in window {window.upper()}.")
        return

    currency = engine_config.currency
    click.echo()
    click.echo(f"{'Period':<10} {'Deposits':>14} {'Withdrawals':>14} {'Net':>14}")
    for bucket in buckets:
        click.echo(
            f"{bucket.key:<10} "
            f"{format_currency(bucket.sums['deposits'], currency):>14} "
            f"{format_currency(bucket.sums['withdrawals'], currency):>14} "
            f"{format_currency(bucket.sums['net'], currency):>14}"
        )

    click.echo()
    click.echo(f"Cash Flow ({window.upper()}):")
    click.echo(f"  Deposits:    {format_currency(stats['total_deposits'], currency)}")
    click.echo(f"  Withdrawals: {format_currency(stats['total_withdrawals'], currency)}")
    click.echo(f"  Net Flow:    {format_currency(stats['net_flow'], currency)}")


@main.command()
@_common_options
@click.option("--symbol", required=True, help="Symbol to chart")
@click.option(
    "--price-history",
    type=click.Path(exists=True),
    default=None,
    help="Daily price CSV (date, close[, symbol]). Defaults to DATA_DIR/price_history.csv.",
)
@click.option(
    "--window", "-w",
    default=None,
    help="Lookback window: 1M, 6M, YTD, 1Y, 2Y, 3Y, 5Y or ALL",
)
@click.option(
    "--granularity", "-g",
    type=click.Choice([g.value for g in BucketGranularity]),
    default=None,
    help="Bucket size. Defaults to config trade_granularity.",
)
@click.option(
    "--as-of",
    default=None,
    help="Reference date for the window (YYYY-MM-DD). Defaults to today.",
)
def activity(
    data_dir: str,
    config: Optional[str],
    portfolio_id: Optional[str],
    output_dir: Optional[str],
    symbol: str,
    price_history: Optional[str],
    window: Optional[str],
    granularity: Optional[str],
    as_of: Optional[str],
):
    """
    Position buy and sell activity on a symbol's price chart.

    Buckets with no price data in range are reported as hidden rather than
    drawn at the start of the chart.
    """
    engine_config, out_dir, logger = _load_config(config, portfolio_id, output_dir)
    reference_time = _parse_as_of(as_of)
    transactions = _load_transactions(data_dir, engine_config.portfolio_id)
    symbol = symbol.upper().strip()

    history_path = (
        Path(price_history) if price_history else Path(data_dir) / PRICE_HISTORY_FILE
    )
    try:
        series = load_price_series(history_path, symbol=symbol)
    except DataLoadError as e:
        click.echo(f"Error loading price history: {e}", err=True)
        sys.exit(1)

    window = window or engine_config.default_window.value
    bucket_size = (
        BucketGranularity(granularity) if granularity
        else engine_config.trade_granularity
    )

    try:
        window_start = resolve_window_start(window, reference_time)
        buckets = aggregate_trade_activity(
            transactions.trades,
            window=window,
            reference_time=reference_time,
            granularity=bucket_size,
            symbol=symbol,
        )
    except WindowError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    series = [p for p in series if is_within_window(p.date, window_start)]
    spans = correlate_activity(series, buckets)

    logger.log_buckets_aggregated(engine_config.portfolio_id, "trades", window, buckets)
    logger.log_activity_correlated(engine_config.portfolio_id, symbol, spans, len(series))

    currency = engine_config.currency
    stats = price_series_stats(series)
    click.echo()
    if stats is None:
        click.echo(f"{symbol}: not enough price data in window {window.upper()}")
    else:
        click.echo(
            f"{symbol} ({window.upper()}): {format_currency(stats['last_close'], currency)} "
            f"{format_currency(stats['change'], currency)} "
            f"({format_percentage(stats['change_percent'])})"
        )
        click.echo(
            f"  Range: {format_currency(stats['low'], currency)} - "
            f"{format_currency(stats['high'], currency)}"
        )

    if not spans:
        click.echo(f"No {symbol} trades in window {window.upper()}.")
        return

    click.echo()
    click.echo(f"{'Period':<10} {'Bought':>10} {'Sold':>10} {'Avg Buy':>12} {'Avg Sell':>12}  Chart")
    for span in spans:
        bucket = span.bucket
        position = (
            f"{format_number(span.left_percent, 1)}% +{format_number(span.width_percent, 1)}%"
            if span.visible else "hidden (no price data)"
        )
        click.echo(
            f"{bucket.key:<10} "
            f"{format_quantity(bucket.sums['buy_quantity']):>10} "
            f"{format_quantity(bucket.sums['sell_quantity']):>10} "
            f"{format_currency(bucket.averages['avg_buy_price'], currency):>12} "
            f"{format_currency(bucket.averages['avg_sell_price'], currency):>12}  "
            f"{position}"
        )


@main.command()
@_common_options
@click.argument("entity", type=click.Choice(sorted(COLUMN_SETS)))
@click.option(
    "--prices", "-p",
    type=click.Path(exists=True),
    default=None,
    help="Current prices CSV, used when exporting holdings",
)
@click.option("--search", default=None, help="Case-insensitive text filter")
@click.option(
    "--status", "-s",
    type=click.Choice(["all", "open", "closed", "short"]),
    default="all",
    help="Holdings status filter",
)
@click.option("--sort", "sort_field", default=None, help="Field to sort by")
@click.option(
    "--ascending", is_flag=True, default=False,
    help="Sort ascending instead of descending",
)
@click.option(
    "--as-of",
    default=None,
    help="Date used in the export file name (YYYY-MM-DD). Defaults to today.",
)
def export(
    data_dir: str,
    config: Optional[str],
    portfolio_id: Optional[str],
    output_dir: Optional[str],
    entity: str,
    prices: Optional[str],
    search: Optional[str],
    status: str,
    sort_field: Optional[str],
    ascending: bool,
    as_of: Optional[str],
):
    """
    Export a table as CSV.

    The export holds every row that matches the filter, in sorted order,
    regardless of paging.
    """
    engine_config, out_dir, logger = _load_config(config, portfolio_id, output_dir)
    reference_time = _parse_as_of(as_of)
    transactions = _load_transactions(data_dir, engine_config.portfolio_id)

    if entity == "holdings":
        price_map, names = _load_prices(data_dir, prices)
        report = calculate_holdings(transactions, price_map, company_names=names)
        if report.warnings:
            logger.log_integrity_warnings(engine_config.portfolio_id, report.warnings)
        items = report.holdings
        predicate = all_of(
            text_search(search, *SEARCH_FIELDS[entity]),
            field_equals("status", status),
        )
    else:
        items = getattr(transactions, entity)
        predicate = text_search(search, *SEARCH_FIELDS[entity])

    query = TableQuery(
        sort_field=sort_field or DEFAULT_SORT[entity],
        direction=SortDirection.ASC if ascending else SortDirection.DESC,
        filter_predicate=predicate,
        page_size=ALL_PAGES,
    )

    try:
        result = project(items, query)
    except ProjectionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    # Cells are not escaped; the row count comes from the projection
    text = export_table(result.page_items, COLUMN_SETS[entity])
    output_path = write_csv(text, out_dir / export_filename(entity, reference_time))
    row_count = result.total_filtered

    logger.log_table_exported(
        engine_config.portfolio_id, entity, row_count, str(output_path)
    )

    click.echo(f"Exported {row_count} {entity} rows: {output_path}")


if __name__ == "__main__":
    main()

"""
Export column sets for each table.

A column pairs a CSV header with a function that pulls the cell value out
of one row. Price-dependent holding fields export "n/a" when the holding is
closed.
"""

from dataclasses import dataclass
from typing import Any, Callable

from trade_insight.formatting import NOT_AVAILABLE


@dataclass(frozen=True)
class ExportColumn:
    """One CSV column."""
    header: str
    extract: Callable[[Any], Any]


def _attr(name: str) -> Callable[[Any], Any]:
    return lambda row: getattr(row, name)


def _or_na(name: str) -> Callable[[Any], Any]:
    def extract(row: Any) -> Any:
        value = getattr(row, name)
        return NOT_AVAILABLE if value is None else value
    return extract


def _enum(name: str) -> Callable[[Any], Any]:
    return lambda row: getattr(row, name).value


HOLDING_COLUMNS = [
    ExportColumn("Symbol", _attr("symbol")),
    ExportColumn("Company", _attr("company_name")),
    ExportColumn("Status", _enum("status")),
    ExportColumn("Quantity", _attr("quantity")),
    ExportColumn("Avg Cost", _attr("avg_cost_basis")),
    ExportColumn("Current Price", _or_na("current_price")),
    ExportColumn("Cost Basis", _attr("total_cost_basis")),
    ExportColumn("Market Value", _or_na("market_value")),
    ExportColumn("Realized P&L", _attr("realized_pnl")),
    ExportColumn("Unrealized P&L", _or_na("unrealized_pnl")),
    ExportColumn("Dividends", _attr("total_dividends")),
    ExportColumn("Commissions", _attr("total_commissions")),
    ExportColumn("Total P&L", _attr("total_pnl")),
    ExportColumn("% of Portfolio", _or_na("percent_of_portfolio")),
]

TRADE_COLUMNS = [
    ExportColumn("Date", _attr("executed_at")),
    ExportColumn("Symbol", _attr("symbol")),
    ExportColumn("Type", _enum("type")),
    ExportColumn("Quantity", _attr("quantity")),
    ExportColumn("Price", _attr("price")),
    ExportColumn("Amount", _attr("amount")),
    ExportColumn("Commission", _attr("commission")),
    ExportColumn("Description", _attr("description")),
]

TRANSFER_COLUMNS = [
    ExportColumn("Date", _attr("executed_at")),
    ExportColumn("Type", _enum("type")),
    ExportColumn("Amount", _attr("signed_amount")),
    ExportColumn("Broker", _attr("broker")),
    ExportColumn("Currency", _attr("currency")),
    ExportColumn("Description", _attr("description")),
]

DIVIDEND_COLUMNS = [
    ExportColumn("Pay Date", _attr("pay_date")),
    ExportColumn("Ex Date", _attr("ex_date")),
    ExportColumn("Symbol", _attr("symbol")),
    ExportColumn("Gross", _attr("gross_amount")),
    ExportColumn("Tax Withheld", _attr("tax_withheld")),
    ExportColumn("Net", _attr("net")),
    ExportColumn("Currency", _attr("currency")),
]

LOT_COLUMNS = [
    ExportColumn("Symbol", _attr("symbol")),
    ExportColumn("Acquired", _attr("acquired_at")),
    ExportColumn("Type", _enum("lot_type")),
    ExportColumn("Quantity", _attr("quantity")),
    ExportColumn("Remaining", _attr("remaining_quantity")),
    ExportColumn("Cost Basis", _attr("cost_basis")),
    ExportColumn("Total Cost", _attr("total_cost")),
    ExportColumn("Realized P&L", _attr("realized_pnl")),
    ExportColumn("Holding Days", _attr("holding_period_days")),
    ExportColumn("Term", lambda lot: "long" if lot.is_long_term else "short"),
]

COLUMN_SETS = {
    "holdings": HOLDING_COLUMNS,
    "trades": TRADE_COLUMNS,
    "transfers": TRANSFER_COLUMNS,
    "dividends": DIVIDEND_COLUMNS,
    "lots": LOT_COLUMNS,
}

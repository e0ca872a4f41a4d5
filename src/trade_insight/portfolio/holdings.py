"""
Holding metrics for the Trade Insight engine.

Reduces a portfolio's raw transaction records into one HoldingBreakdown per
symbol. Cost basis comes from open tax lots; realized P&L from the lots'
realized figures; dividends and commissions are accumulated per symbol.

Bad data for one symbol never aborts the batch: the symbol is dropped from
the result and reported as a DataIntegrityWarning.
"""

from collections import defaultdict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from trade_insight.formatting import percent_of, safe_divide
from trade_insight.models import (
    ZERO,
    Commission,
    DataIntegrityWarning,
    Dividend,
    HoldingBreakdown,
    HoldingsReport,
    HoldingStatus,
    LotType,
    OptionTrade,
    PortfolioTransactions,
    TaxLot,
    Trade,
    TradeType,
)
from trade_insight.periods import to_date
from trade_insight.portfolio.rollup import summarize_portfolio


class HoldingNotFoundError(Exception):
    """Raised when a symbol has neither lots nor trades to build a holding from."""
    pass


@dataclass
class SymbolRecords:
    """All transaction records for one symbol."""
    trades: list[Trade] = field(default_factory=list)
    dividends: list[Dividend] = field(default_factory=list)
    lots: list[TaxLot] = field(default_factory=list)
    commissions: list[Commission] = field(default_factory=list)
    option_trades: list[OptionTrade] = field(default_factory=list)

    @property
    def has_position_history(self) -> bool:
        return bool(self.lots or self.trades)


def normalize_symbol(symbol: Optional[str]) -> str:
    return (symbol or "").upper().strip()


def group_by_symbol(
    transactions: PortfolioTransactions,
) -> dict[str, SymbolRecords]:
    """
    Group a portfolio's transactions by symbol.

    Option trades are grouped under their underlying. Commissions without a
    symbol are account-level fees and are not attributed to any holding.

    Args:
        transactions: Portfolio transaction bundle

    Returns:
        Dictionary mapping symbol to its records, in first-seen order
    """
    grouped: dict[str, SymbolRecords] = defaultdict(SymbolRecords)

    for lot in transactions.lots:
        grouped[normalize_symbol(lot.symbol)].lots.append(lot)
    for trade in transactions.trades:
        grouped[normalize_symbol(trade.symbol)].trades.append(trade)
    for dividend in transactions.dividends:
        grouped[normalize_symbol(dividend.symbol)].dividends.append(dividend)
    for commission in transactions.commissions:
        if normalize_symbol(commission.symbol):
            grouped[normalize_symbol(commission.symbol)].commissions.append(commission)
    for option in transactions.option_trades:
        underlying = normalize_symbol(option.underlying or option.symbol)
        grouped[underlying].option_trades.append(option)

    grouped.pop("", None)
    return dict(grouped)


def find_integrity_problems(records: SymbolRecords) -> list[str]:
    """
    Check a symbol's records for values that cannot be valid.

    Args:
        records: Records for one symbol

    Returns:
        List of human-readable problems (empty when the data is sound)
    """
    problems = []

    for lot in records.lots:
        if lot.quantity < ZERO:
            problems.append(f"lot {lot.id} has negative quantity {lot.quantity}")
        if lot.remaining_quantity < ZERO:
            problems.append(
                f"lot {lot.id} has negative remaining quantity {lot.remaining_quantity}"
            )
        if lot.remaining_quantity > lot.quantity:
            problems.append(
                f"lot {lot.id} remaining quantity {lot.remaining_quantity} "
                f"exceeds quantity {lot.quantity}"
            )
        if lot.cost_basis < ZERO:
            problems.append(f"lot {lot.id} has negative cost basis {lot.cost_basis}")
        if lot.lot_type == LotType.COVER and lot.remaining_quantity > ZERO:
            problems.append(
                f"cover lot {lot.id} has open remaining quantity {lot.remaining_quantity}"
            )

    for trade in records.trades:
        if trade.quantity <= ZERO:
            problems.append(f"trade {trade.id} has non-positive quantity {trade.quantity}")
        if trade.price < ZERO:
            problems.append(f"trade {trade.id} has negative price {trade.price}")
        if trade.commission is not None and trade.commission < ZERO:
            problems.append(f"trade {trade.id} has negative commission {trade.commission}")

    for dividend in records.dividends:
        if dividend.tax_withheld is not None and dividend.tax_withheld < ZERO:
            problems.append(
                f"dividend {dividend.id} has negative tax withheld {dividend.tax_withheld}"
            )

    return problems


def _position_from_lots(lots: list[TaxLot]) -> tuple[HoldingStatus, Decimal, Decimal]:
    """
    Derive status, signed quantity and signed open cost from tax lots.

    Raises:
        ValueError: If long and short lots are open at the same time
    """
    long_quantity = sum(
        (lot.remaining_quantity for lot in lots if lot.lot_type == LotType.LONG), ZERO
    )
    long_cost = sum(
        (lot.open_cost for lot in lots if lot.lot_type == LotType.LONG), ZERO
    )
    short_quantity = sum(
        (lot.remaining_quantity for lot in lots if lot.lot_type == LotType.SHORT), ZERO
    )
    short_cost = sum(
        (lot.open_cost for lot in lots if lot.lot_type == LotType.SHORT), ZERO
    )

    if long_quantity > ZERO and short_quantity > ZERO:
        raise ValueError("long and short lots are open at the same time")
    if long_quantity > ZERO:
        return HoldingStatus.OPEN, long_quantity, long_cost
    if short_quantity > ZERO:
        return HoldingStatus.SHORT, -short_quantity, -short_cost
    return HoldingStatus.CLOSED, ZERO, ZERO


def _position_from_trades(trades: list[Trade]) -> tuple[HoldingStatus, Decimal, Decimal, Decimal]:
    """
    Average-cost walk over trades for symbols without lot data.

    Returns:
        Tuple of (status, quantity, open cost, realized P&L)

    Raises:
        ValueError: If sells exceed the quantity held at that point
    """
    quantity = ZERO
    cost = ZERO
    realized = ZERO

    for trade in sorted(trades, key=lambda t: (t.executed_at, t.id)):
        if trade.type == TradeType.BUY:
            quantity += trade.quantity
            cost += abs(trade.amount)
            continue

        if trade.quantity > quantity:
            raise ValueError(
                f"sell {trade.id} of {trade.quantity} exceeds held quantity {quantity}"
            )
        average = safe_divide(cost, quantity)
        realized += (trade.price - average) * trade.quantity
        cost -= average * trade.quantity
        quantity -= trade.quantity

    if quantity == ZERO:
        return HoldingStatus.CLOSED, ZERO, ZERO, realized
    return HoldingStatus.OPEN, quantity, cost, realized


def build_holding(
    symbol: str,
    records: SymbolRecords,
    current_price: Optional[Decimal],
    company_name: Optional[str] = None,
) -> HoldingBreakdown:
    """
    Compute the breakdown for a single symbol.

    The percent of portfolio is left unset; it depends on the other
    holdings and is filled in by assign_portfolio_weights.

    Args:
        symbol: Ticker symbol
        records: The symbol's transaction records
        current_price: Latest market price (None if unknown)
        company_name: Optional display name

    Returns:
        HoldingBreakdown for the symbol

    Raises:
        ValueError: If the records are inconsistent or a price is required
            but missing
    """
    problems = find_integrity_problems(records)
    if problems:
        raise ValueError("; ".join(problems))

    if records.lots:
        status, quantity, total_cost = _position_from_lots(records.lots)
        realized = sum((lot.realized_pnl for lot in records.lots), ZERO)
    else:
        status, quantity, total_cost, realized = _position_from_trades(records.trades)

    total_dividends = sum((d.net for d in records.dividends), ZERO)
    total_commissions = (
        sum((c.cost for c in records.commissions), ZERO)
        + sum((t.commission for t in records.trades if t.commission is not None), ZERO)
    )

    if status == HoldingStatus.CLOSED:
        avg_cost = ZERO
        current_price = None
        market_value = None
        unrealized = None
        total_pnl = realized
    else:
        if current_price is None:
            raise ValueError("missing current price for an open position")
        if current_price < ZERO:
            raise ValueError(f"negative current price {current_price}")
        avg_cost = safe_divide(abs(total_cost), abs(quantity))
        market_value = quantity * current_price
        unrealized = market_value - total_cost
        total_pnl = realized + unrealized

    buys = [t for t in records.trades if t.type == TradeType.BUY]
    sells = [t for t in records.trades if t.type == TradeType.SELL]

    return HoldingBreakdown(
        symbol=symbol,
        company_name=company_name,
        status=status,
        quantity=quantity,
        avg_cost_basis=avg_cost,
        current_price=current_price,
        total_cost_basis=total_cost,
        market_value=market_value,
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        total_dividends=total_dividends,
        total_commissions=total_commissions,
        total_pnl=total_pnl,
        total_quantity_bought=sum((t.quantity for t in buys), ZERO),
        total_quantity_sold=sum((t.quantity for t in sells), ZERO),
        first_buy_date=min((to_date(t.executed_at) for t in buys), default=None),
        last_sell_date=max((to_date(t.executed_at) for t in sells), default=None),
        open_lot_count=sum(1 for lot in records.lots if lot.is_open),
        long_term_lot_count=sum(1 for lot in records.lots if lot.is_long_term),
        option_trade_count=len(records.option_trades),
    )


def assign_portfolio_weights(
    holdings: list[HoldingBreakdown],
) -> list[HoldingBreakdown]:
    """
    Fill in percent_of_portfolio against the total open market value.

    Closed holdings get None. When the open total is zero every weight is 0.

    Args:
        holdings: Holdings to weight

    Returns:
        New list of holdings with weights set
    """
    open_total = sum(
        (h.market_value for h in holdings if h.status == HoldingStatus.OPEN), ZERO
    )

    weighted = []
    for holding in holdings:
        if holding.is_closed:
            weight = None
        else:
            weight = percent_of(holding.market_value, open_total)
        weighted.append(replace(holding, percent_of_portfolio=weight))
    return weighted


def calculate_holding(
    symbol: str,
    transactions: PortfolioTransactions,
    prices: dict[str, Decimal],
    company_names: Optional[dict[str, str]] = None,
    allow_empty: bool = False,
) -> HoldingBreakdown:
    """
    Compute the breakdown for one symbol of a portfolio.

    Args:
        symbol: Ticker symbol to look up
        transactions: Portfolio transaction bundle
        prices: Current market price by symbol
        company_names: Optional display names by symbol
        allow_empty: Return a closed, all-zero holding instead of raising
            when the symbol has no lots and no trades

    Returns:
        HoldingBreakdown with percent_of_portfolio computed against the
        whole portfolio

    Raises:
        HoldingNotFoundError: If the symbol has no position history and
            allow_empty is False
        ValueError: If the symbol's data fails integrity checks
    """
    key = normalize_symbol(symbol)
    records = group_by_symbol(transactions).get(key, SymbolRecords())

    if not records.has_position_history and not allow_empty:
        raise HoldingNotFoundError(f"No lots or trades found for symbol {key}")

    report = calculate_holdings(transactions, prices, company_names)
    for holding in report.holdings:
        if holding.symbol == key:
            return holding

    for warning in report.warnings:
        if warning.symbol == key:
            raise ValueError(warning.message)

    # Only reachable for allow_empty with no position history
    return build_holding(key, records, prices.get(key), (company_names or {}).get(key))


def calculate_holdings(
    transactions: PortfolioTransactions,
    prices: dict[str, Decimal],
    company_names: Optional[dict[str, str]] = None,
    top_n: int = 5,
) -> HoldingsReport:
    """
    Compute holdings and the portfolio rollup for a portfolio.

    Symbols with neither lots nor trades (for example dividends only) are
    skipped. Symbols whose data fails integrity checks are excluded from
    holdings and totals and reported in the warnings list.

    Args:
        transactions: Portfolio transaction bundle
        prices: Current market price by symbol
        company_names: Optional display names by symbol
        top_n: Number of top gainers and losers in the rollup

    Returns:
        HoldingsReport with holdings sorted by symbol, rollup and warnings
    """
    names = {normalize_symbol(k): v for k, v in (company_names or {}).items()}
    quotes = {normalize_symbol(k): v for k, v in prices.items()}

    holdings = []
    warnings = []
    for symbol, records in sorted(group_by_symbol(transactions).items()):
        if not records.has_position_history:
            continue
        try:
            holding = build_holding(symbol, records, quotes.get(symbol), names.get(symbol))
        except ValueError as e:
            warnings.append(DataIntegrityWarning(symbol=symbol, message=str(e)))
            continue
        holdings.append(holding)

    holdings = assign_portfolio_weights(holdings)

    return HoldingsReport(
        holdings=holdings,
        rollup=summarize_portfolio(holdings, top_n=top_n),
        warnings=warnings,
    )

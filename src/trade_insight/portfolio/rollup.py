"""
Portfolio-level rollups over computed holdings.

Sums holding metrics into the totals shown on the dashboard and ranks
holdings into top gainers and losers.
"""

from decimal import Decimal

from trade_insight.formatting import percent_of
from trade_insight.models import (
    ZERO,
    HoldingBreakdown,
    HoldingStatus,
    PortfolioRollup,
    TopPerformer,
)


def summarize_portfolio(
    holdings: list[HoldingBreakdown],
    top_n: int = 5,
) -> PortfolioRollup:
    """
    Roll holdings up into portfolio totals.

    Total value covers open (long) holdings only; shorts are reported
    separately. The return percentage is guarded against a zero cost basis.

    Args:
        holdings: Computed holdings
        top_n: Number of top gainers and losers to include

    Returns:
        PortfolioRollup with totals and performers
    """
    total_value = ZERO
    short_value = ZERO
    total_cost = ZERO
    total_realized = ZERO
    total_unrealized = ZERO
    total_dividends = ZERO
    total_commissions = ZERO
    open_positions = 0

    for holding in holdings:
        if holding.status == HoldingStatus.OPEN:
            total_value += holding.market_value
            open_positions += 1
        elif holding.status == HoldingStatus.SHORT:
            short_value += holding.market_value

        total_cost += abs(holding.total_cost_basis)
        total_realized += holding.realized_pnl
        total_unrealized += holding.unrealized_pnl or ZERO
        total_dividends += holding.total_dividends
        total_commissions += holding.total_commissions

    total_return = total_realized + total_unrealized
    gainers, losers = top_performers(holdings, n=top_n)

    return PortfolioRollup(
        total_value=total_value,
        total_cost_basis=total_cost,
        total_realized_pnl=total_realized,
        total_unrealized_pnl=total_unrealized,
        total_dividends=total_dividends,
        total_commissions=total_commissions,
        total_return=total_return,
        total_return_percent=percent_of(total_return, total_cost),
        open_positions=open_positions,
        short_market_value=short_value,
        top_gainers=gainers,
        top_losers=losers,
    )


def _performer(holding: HoldingBreakdown) -> TopPerformer:
    return TopPerformer(
        symbol=holding.symbol,
        pnl=holding.total_pnl,
        percent=percent_of(holding.total_pnl, abs(holding.total_cost_basis)),
    )


def top_performers(
    holdings: list[HoldingBreakdown],
    n: int = 5,
) -> tuple[list[TopPerformer], list[TopPerformer]]:
    """
    Get top gainers and losers by total P&L.

    Args:
        holdings: Computed holdings
        n: Number of holdings in each list

    Returns:
        Tuple of (gainers, losers); gainers best first, losers worst first.
        Holdings with zero P&L appear in neither list.
    """
    winners = [h for h in holdings if h.total_pnl > ZERO]
    losers = [h for h in holdings if h.total_pnl < ZERO]

    winners.sort(key=lambda h: h.total_pnl, reverse=True)
    losers.sort(key=lambda h: h.total_pnl)

    return [_performer(h) for h in winners[:n]], [_performer(h) for h in losers[:n]]


def total_weight(holdings: list[HoldingBreakdown]) -> Decimal:
    """Sum of percent_of_portfolio over open holdings (100 or 0)."""
    return sum(
        (h.percent_of_portfolio for h in holdings
         if h.status == HoldingStatus.OPEN and h.percent_of_portfolio is not None),
        ZERO,
    )

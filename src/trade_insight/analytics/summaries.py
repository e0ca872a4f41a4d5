"""
Activity summaries for list views.

Headline totals for the trades, dividends, transfers and option trades
screens.
"""

from decimal import Decimal

from trade_insight.formatting import percent_of
from trade_insight.models import (
    ZERO,
    Dividend,
    OptionAction,
    OptionTrade,
    OptionType,
    Trade,
    TradeType,
    Transfer,
    TransferType,
)


def summarize_trades(trades: list[Trade]) -> dict[str, Decimal | int]:
    """
    Calculate trade list totals.

    Args:
        trades: Trade records

    Returns:
        Dictionary with:
        - total_trades: Number of trades
        - buy_count / sell_count: Trades per side
        - total_bought / total_sold: Gross amounts per side
        - total_commissions: Trade-embedded commissions
    """
    buys = [t for t in trades if t.type == TradeType.BUY]
    sells = [t for t in trades if t.type == TradeType.SELL]

    return {
        "total_trades": len(trades),
        "buy_count": len(buys),
        "sell_count": len(sells),
        "total_bought": sum((abs(t.amount) for t in buys), ZERO),
        "total_sold": sum((abs(t.amount) for t in sells), ZERO),
        "total_commissions": sum(
            (t.commission for t in trades if t.commission is not None), ZERO
        ),
    }


def summarize_dividends(dividends: list[Dividend]) -> dict[str, Decimal | int]:
    """
    Calculate dividend list totals.

    Args:
        dividends: Dividend records

    Returns:
        Dictionary with total_gross, total_tax, total_net, count and
        withholding_rate (tax as a percent of gross, 0 with no gross)
    """
    total_gross = sum((d.gross_amount for d in dividends), ZERO)
    total_tax = sum((d.tax_withheld or ZERO for d in dividends), ZERO)
    total_net = sum((d.net for d in dividends), ZERO)

    return {
        "total_gross": total_gross,
        "total_tax": total_tax,
        "total_net": total_net,
        "count": len(dividends),
        "withholding_rate": percent_of(total_tax, total_gross),
    }


def summarize_transfers(transfers: list[Transfer]) -> dict[str, Decimal | int]:
    """
    Calculate transfer KPI totals.

    Deposits and withdrawals are classified by type and summed as absolute
    amounts.

    Args:
        transfers: Transfer records

    Returns:
        Dictionary with total_deposits, total_withdrawals, net_transfers
        and count
    """
    deposits = sum(
        (abs(t.amount) for t in transfers if t.type == TransferType.DEPOSIT), ZERO
    )
    withdrawals = sum(
        (abs(t.amount) for t in transfers if t.type == TransferType.WITHDRAWAL), ZERO
    )

    return {
        "total_deposits": deposits,
        "total_withdrawals": withdrawals,
        "net_transfers": deposits - withdrawals,
        "count": len(transfers),
    }


def summarize_option_trades(option_trades: list[OptionTrade]) -> dict[str, Decimal | int]:
    """
    Calculate option trade totals.

    Premium on sells is received, premium on buys is paid. Exercise,
    assignment and expiry carry no premium of their own.

    Args:
        option_trades: Option trade records

    Returns:
        Dictionary with total_trades, premium_received, premium_paid,
        net_premium, total_commissions, call_count and put_count
    """
    received = sum(
        (abs(o.premium) for o in option_trades if o.action == OptionAction.SELL), ZERO
    )
    paid = sum(
        (abs(o.premium) for o in option_trades if o.action == OptionAction.BUY), ZERO
    )

    return {
        "total_trades": len(option_trades),
        "premium_received": received,
        "premium_paid": paid,
        "net_premium": received - paid,
        "total_commissions": sum(
            (o.commission for o in option_trades if o.commission is not None), ZERO
        ),
        "call_count": sum(1 for o in option_trades if o.option_type == OptionType.CALL),
        "put_count": sum(1 for o in option_trades if o.option_type == OptionType.PUT),
    }

"""
Calendar bucketing of transaction streams.

Groups transfers, trades and dividends into sparse, ascending month or
quarter buckets with per-bucket sums and derived averages. Only periods that
contain at least one qualifying transaction are emitted; consumers must
handle gaps between buckets.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from trade_insight.analytics.windows import is_within_window, resolve_window_start
from trade_insight.formatting import safe_divide
from trade_insight.models import (
    ZERO,
    BucketGranularity,
    CalendarBucket,
    Dividend,
    LookbackWindow,
    Trade,
    TradeType,
    Transfer,
    TransferType,
)
from trade_insight.periods import DateLike, period_of


Accumulator = Callable[[dict[str, Decimal], Any], None]
Finalizer = Callable[[dict[str, Decimal]], dict[str, Decimal]]

CASH_FLOW_MEASURES = ("deposits", "withdrawals", "transfers", "net")
TRADE_MEASURES = ("buy_quantity", "sell_quantity", "buy_amount", "sell_amount")
DIVIDEND_MEASURES = ("gross", "tax_withheld", "net")

INFLOW_TYPES = (TransferType.DEPOSIT, TransferType.TRANSFER_IN)
OUTFLOW_TYPES = (TransferType.WITHDRAWAL, TransferType.TRANSFER_OUT)


def _executed_at(item: Any) -> DateLike:
    return item.executed_at


def aggregate_buckets(
    items: Iterable[Any],
    granularity: BucketGranularity,
    window_start: Optional[date],
    accumulate: Accumulator,
    measures: tuple[str, ...],
    date_of: Callable[[Any], DateLike] = _executed_at,
    finalize: Optional[Finalizer] = None,
) -> list[CalendarBucket]:
    """
    Group items into calendar buckets.

    Args:
        items: Transactions that already passed the type filter
        granularity: MONTH or QUARTER
        window_start: First included date (None for no lower bound)
        accumulate: Adds one item into a bucket's sums
        measures: Sum keys, initialized to zero in every bucket
        date_of: Extracts the date used for bucketing
        finalize: Computes averages from a bucket's final sums

    Returns:
        Buckets ordered ascending by (year, period)
    """
    buckets: dict[str, CalendarBucket] = {}

    for item in items:
        when = date_of(item)
        if not is_within_window(when, window_start):
            continue

        key, year, period_index, start, end = period_of(when, granularity)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = CalendarBucket(
                key=key,
                granularity=granularity,
                year=year,
                period_index=period_index,
                start_date=start,
                end_date=end,
                sums={measure: ZERO for measure in measures},
            )
            buckets[key] = bucket

        accumulate(bucket.sums, item)
        bucket.transaction_count += 1

    ordered = sorted(buckets.values(), key=lambda b: b.sort_key)
    if finalize is not None:
        for bucket in ordered:
            bucket.averages = finalize(bucket.sums)
    return ordered


def _accumulate_transfer(sums: dict[str, Decimal], transfer: Transfer) -> None:
    # Direction comes from the type; the reported sign is ignored
    amount = abs(transfer.amount)
    if transfer.type in INFLOW_TYPES:
        sums["deposits"] += amount
    elif transfer.type in OUTFLOW_TYPES:
        sums["withdrawals"] += amount
    else:
        sums["transfers"] += amount
    sums["net"] = sums["deposits"] - sums["withdrawals"]


def aggregate_cash_flows(
    transfers: Iterable[Transfer],
    window: LookbackWindow | str,
    reference_time: Optional[DateLike],
    granularity: BucketGranularity = BucketGranularity.MONTH,
    types: Iterable[TransferType | str] = (TransferType.DEPOSIT, TransferType.WITHDRAWAL),
) -> list[CalendarBucket]:
    """
    Bucket deposits and withdrawals for the cash flow chart.

    Args:
        transfers: Transfer records
        window: Lookback window
        reference_time: The "now" the window is measured from
        granularity: Bucket size (monthly by default)
        types: Transfer types to include

    Returns:
        Buckets with sums: deposits, withdrawals, transfers, net
    """
    selected_types = {TransferType(t) for t in types}
    window_start = resolve_window_start(window, reference_time)

    return aggregate_buckets(
        (t for t in transfers if t.type in selected_types),
        granularity=granularity,
        window_start=window_start,
        accumulate=_accumulate_transfer,
        measures=CASH_FLOW_MEASURES,
    )


def _accumulate_trade(sums: dict[str, Decimal], trade: Trade) -> None:
    if trade.type == TradeType.BUY:
        sums["buy_quantity"] += trade.quantity
        sums["buy_amount"] += abs(trade.amount)
    else:
        sums["sell_quantity"] += trade.quantity
        sums["sell_amount"] += abs(trade.amount)


def _trade_averages(sums: dict[str, Decimal]) -> dict[str, Decimal]:
    return {
        "avg_buy_price": safe_divide(sums["buy_amount"], sums["buy_quantity"]),
        "avg_sell_price": safe_divide(sums["sell_amount"], sums["sell_quantity"]),
    }


def aggregate_trade_activity(
    trades: Iterable[Trade],
    window: LookbackWindow | str,
    reference_time: Optional[DateLike],
    granularity: BucketGranularity = BucketGranularity.QUARTER,
    types: Iterable[TradeType | str] = (TradeType.BUY, TradeType.SELL),
    symbol: Optional[str] = None,
) -> list[CalendarBucket]:
    """
    Bucket buy and sell activity for the price chart overlay.

    Args:
        trades: Trade records
        window: Lookback window
        reference_time: The "now" the window is measured from
        granularity: Bucket size (quarterly by default)
        types: Trade types to include
        symbol: Restrict to one symbol

    Returns:
        Buckets with sums buy_quantity, sell_quantity, buy_amount,
        sell_amount and averages avg_buy_price, avg_sell_price
    """
    selected_types = {TradeType(t) for t in types}
    window_start = resolve_window_start(window, reference_time)
    wanted = symbol.upper().strip() if symbol else None

    return aggregate_buckets(
        (
            t for t in trades
            if t.type in selected_types
            and (wanted is None or t.symbol.upper().strip() == wanted)
        ),
        granularity=granularity,
        window_start=window_start,
        accumulate=_accumulate_trade,
        measures=TRADE_MEASURES,
        finalize=_trade_averages,
    )


def _accumulate_dividend(sums: dict[str, Decimal], dividend: Dividend) -> None:
    sums["gross"] += dividend.gross_amount
    sums["tax_withheld"] += dividend.tax_withheld or ZERO
    sums["net"] += dividend.net


def aggregate_dividends(
    dividends: Iterable[Dividend],
    window: LookbackWindow | str,
    reference_time: Optional[DateLike],
    granularity: BucketGranularity = BucketGranularity.MONTH,
) -> list[CalendarBucket]:
    """
    Bucket dividend income by pay date.

    Returns:
        Buckets with sums gross, tax_withheld, net
    """
    window_start = resolve_window_start(window, reference_time)

    return aggregate_buckets(
        dividends,
        granularity=granularity,
        window_start=window_start,
        accumulate=_accumulate_dividend,
        measures=DIVIDEND_MEASURES,
        date_of=lambda d: d.pay_date,
    )


def bucket_totals(buckets: list[CalendarBucket]) -> dict[str, Decimal]:
    """
    Sum every measure across buckets (the chart's period totals).

    Args:
        buckets: Buckets from one aggregation

    Returns:
        Dictionary of measure -> total; empty for no buckets
    """
    totals: dict[str, Decimal] = {}
    for bucket in buckets:
        for measure, value in bucket.sums.items():
            totals[measure] = totals.get(measure, ZERO) + value
    return totals


def cash_flow_stats(buckets: list[CalendarBucket]) -> Optional[dict[str, Any]]:
    """
    Headline figures for the cash flow chart.

    Args:
        buckets: Buckets from aggregate_cash_flows

    Returns:
        None when there are no buckets (no data), otherwise a dictionary
        with total_deposits, total_withdrawals, net_flow and is_positive
    """
    if not buckets:
        return None

    totals = bucket_totals(buckets)
    deposits = totals.get("deposits", ZERO)
    withdrawals = totals.get("withdrawals", ZERO)
    net_flow = deposits - withdrawals

    return {
        "total_deposits": deposits,
        "total_withdrawals": withdrawals,
        "net_flow": net_flow,
        "is_positive": net_flow >= ZERO,
    }

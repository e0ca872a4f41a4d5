"""
Core data models for the Trade Insight engine.

This module defines the transaction records supplied by the ingestion layer
(trades, dividends, tax lots, commissions, option trades, transfers, prices)
and the derived structures the engine produces from them. All monetary and
share quantities use Decimal for precision.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


ZERO = Decimal("0")


class TradeType(Enum):
    """Trade direction indicator."""
    BUY = "buy"
    SELL = "sell"


class HoldingStatus(Enum):
    """Position status of a holding."""
    OPEN = "open"
    CLOSED = "closed"
    SHORT = "short"


class LotType(Enum):
    """Direction of a tax lot."""
    LONG = "long"
    SHORT = "short"
    COVER = "cover"


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class OptionAction(Enum):
    BUY = "buy"
    SELL = "sell"
    EXERCISE = "exercise"
    ASSIGN = "assign"
    EXPIRE = "expire"


class TransferType(Enum):
    """Cash transfer classification as reported by the broker."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class BucketGranularity(Enum):
    """Calendar period used to group transactions."""
    MONTH = "month"
    QUARTER = "quarter"


class LookbackWindow(Enum):
    """Selectable lookback range for charts."""
    ONE_MONTH = "1M"
    SIX_MONTHS = "6M"
    YEAR_TO_DATE = "YTD"
    ONE_YEAR = "1Y"
    TWO_YEARS = "2Y"
    THREE_YEARS = "3Y"
    FIVE_YEARS = "5Y"
    ALL = "ALL"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


class ActionType(Enum):
    """Types of logged actions for the decision log."""
    CONFIG_LOADED = "CONFIG_LOADED"
    HOLDINGS_CALCULATED = "HOLDINGS_CALCULATED"
    DATA_INTEGRITY_WARNING = "DATA_INTEGRITY_WARNING"
    BUCKETS_AGGREGATED = "BUCKETS_AGGREGATED"
    ACTIVITY_CORRELATED = "ACTIVITY_CORRELATED"
    TABLE_EXPORTED = "TABLE_EXPORTED"


@dataclass
class Trade:
    """
    A buy or sell execution for a symbol.

    The amount is stored unsigned; the sign is reapplied from ``type`` when
    displayed. When the broker export carries no amount it is derived as
    ``quantity * price``.

    Attributes:
        id: Unique identifier from the ingestion layer
        symbol: Ticker symbol
        type: BUY or SELL
        quantity: Shares traded (always positive)
        price: Execution price per share
        executed_at: Execution timestamp
        amount: Gross trade value
        commission: Commission charged on the trade, if reported
        currency: Portfolio currency code
        description: Free-form broker description
    """
    id: str
    symbol: str
    type: TradeType
    quantity: Decimal
    price: Decimal
    executed_at: datetime
    amount: Optional[Decimal] = None
    commission: Optional[Decimal] = None
    currency: str = "USD"
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.amount is None:
            self.amount = self.quantity * self.price


@dataclass
class Dividend:
    """
    A dividend payment.

    Attributes:
        id: Unique identifier
        symbol: Ticker symbol
        gross_amount: Amount before withholding
        pay_date: Payment date
        tax_withheld: Withholding tax, if any
        net_amount: Net amount as reported, if any
        ex_date: Ex-dividend date
        currency: Portfolio currency code
        description: Free-form broker description
    """
    id: str
    symbol: str
    gross_amount: Decimal
    pay_date: date
    tax_withheld: Optional[Decimal] = None
    net_amount: Optional[Decimal] = None
    ex_date: Optional[date] = None
    currency: str = "USD"
    description: Optional[str] = None

    @property
    def net(self) -> Decimal:
        """Net amount, derived from gross less withholding when not reported."""
        if self.net_amount is not None:
            return self.net_amount
        return self.gross_amount - (self.tax_withheld or ZERO)

    @property
    def executed_at(self) -> date:
        return self.pay_date


@dataclass
class TaxLot:
    """
    A single acquisition batch of shares.

    The long-term flag is classified upstream and carried through as-is.

    Attributes:
        id: Unique identifier
        symbol: Ticker symbol
        quantity: Shares originally acquired
        remaining_quantity: Shares still held (0..quantity)
        cost_basis: Per-share cost basis
        acquired_at: Acquisition date
        realized_pnl: P&L realized from sales out of this lot
        sold_quantity: Shares sold out of this lot
        sold_at: Date of the last sale, if any
        holding_period_days: Days held, if supplied
        is_long_term: Long-term holding period classification
        lot_type: LONG, SHORT or COVER
    """
    id: str
    symbol: str
    quantity: Decimal
    remaining_quantity: Decimal
    cost_basis: Decimal
    acquired_at: date
    realized_pnl: Decimal = ZERO
    sold_quantity: Decimal = ZERO
    sold_at: Optional[date] = None
    holding_period_days: Optional[int] = None
    is_long_term: bool = False
    lot_type: LotType = LotType.LONG

    @property
    def total_cost(self) -> Decimal:
        """Total cost basis for this lot (quantity * cost_basis)."""
        return self.quantity * self.cost_basis

    @property
    def open_cost(self) -> Decimal:
        """Cost basis of the shares still held."""
        return self.remaining_quantity * self.cost_basis

    @property
    def is_open(self) -> bool:
        return self.remaining_quantity > ZERO

    @property
    def executed_at(self) -> date:
        return self.acquired_at


@dataclass
class Commission:
    """Standalone fee record, separate from trade-embedded commissions."""
    id: str
    amount: Decimal
    executed_at: datetime
    symbol: Optional[str] = None
    type: str = "commission"
    currency: str = "USD"
    description: Optional[str] = None

    @property
    def cost(self) -> Decimal:
        # Brokers report fees with either sign
        return abs(self.amount)


@dataclass
class OptionTrade:
    """An option contract execution."""
    id: str
    symbol: str
    underlying: str
    option_type: OptionType
    strike: Decimal
    expiration_date: date
    action: OptionAction
    quantity: Decimal
    price: Decimal
    premium: Decimal
    executed_at: datetime
    commission: Optional[Decimal] = None
    currency: str = "USD"
    description: Optional[str] = None


@dataclass
class Transfer:
    """
    A cash movement into or out of the account.

    Direction is taken from ``type``; the sign of ``amount`` is whatever
    the broker reported and is not trusted.
    """
    id: str
    type: TransferType
    amount: Decimal
    executed_at: datetime
    broker: str
    currency: str = "USD"
    description: Optional[str] = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign reapplied from the transfer type."""
        if self.type in (TransferType.DEPOSIT, TransferType.TRANSFER_IN):
            return abs(self.amount)
        if self.type in (TransferType.WITHDRAWAL, TransferType.TRANSFER_OUT):
            return -abs(self.amount)
        return self.amount


@dataclass
class PricePoint:
    """
    One trading day of a price series.

    Attributes:
        date: Trading date
        close: Closing price
        open: Opening price
        high: Session high
        low: Session low
        volume: Shares traded
    """
    date: date
    close: Decimal
    open: Optional[Decimal] = None
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    volume: int = 0


@dataclass
class PortfolioTransactions:
    """All transaction records for a single portfolio."""
    portfolio_id: str
    trades: list[Trade] = field(default_factory=list)
    dividends: list[Dividend] = field(default_factory=list)
    lots: list[TaxLot] = field(default_factory=list)
    commissions: list[Commission] = field(default_factory=list)
    option_trades: list[OptionTrade] = field(default_factory=list)
    transfers: list[Transfer] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.trades or self.dividends or self.lots
            or self.commissions or self.option_trades or self.transfers
        )


@dataclass
class HoldingBreakdown:
    """
    Derived per-symbol metrics.

    For closed holdings the price-dependent fields (market value,
    unrealized P&L, percent of portfolio) are None, meaning "n/a".

    Attributes:
        symbol: Ticker symbol
        status: OPEN, CLOSED or SHORT
        quantity: Shares held (negative for shorts, 0 when closed)
        avg_cost_basis: Average cost per open share
        current_price: Latest market price, if known
        total_cost_basis: Cost basis of open shares
        market_value: quantity * current_price
        realized_pnl: Sum of realized lot P&L
        unrealized_pnl: market_value - total_cost_basis
        total_dividends: Net dividends received
        total_commissions: Trade plus standalone commissions
        total_pnl: realized_pnl + unrealized_pnl
        percent_of_portfolio: Share of the open portfolio value (0-100)
        company_name: Display name, if known
    """
    symbol: str
    status: HoldingStatus
    quantity: Decimal
    avg_cost_basis: Decimal
    current_price: Optional[Decimal]
    total_cost_basis: Decimal
    market_value: Optional[Decimal]
    realized_pnl: Decimal
    unrealized_pnl: Optional[Decimal]
    total_dividends: Decimal
    total_commissions: Decimal
    total_pnl: Decimal
    percent_of_portfolio: Optional[Decimal] = None
    company_name: Optional[str] = None
    total_quantity_bought: Decimal = ZERO
    total_quantity_sold: Decimal = ZERO
    first_buy_date: Optional[date] = None
    last_sell_date: Optional[date] = None
    open_lot_count: int = 0
    long_term_lot_count: int = 0
    option_trade_count: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status == HoldingStatus.CLOSED

    @property
    def net_profit(self) -> Decimal:
        """Total P&L plus dividends, less commissions."""
        return self.total_pnl + self.total_dividends - self.total_commissions

    @property
    def unrealized_pnl_percent(self) -> Optional[Decimal]:
        if self.unrealized_pnl is None:
            return None
        if self.total_cost_basis == ZERO:
            return ZERO
        return self.unrealized_pnl / abs(self.total_cost_basis) * 100

    @property
    def position_return_percent(self) -> Optional[Decimal]:
        """(current price - average cost) / average cost, as a percent."""
        if self.is_closed or self.current_price is None:
            return None
        if self.avg_cost_basis <= ZERO:
            return ZERO
        return (self.current_price - self.avg_cost_basis) / self.avg_cost_basis * 100


@dataclass
class DataIntegrityWarning:
    """A symbol excluded from the computation because of bad input data."""
    symbol: str
    message: str


@dataclass
class TopPerformer:
    symbol: str
    pnl: Decimal
    percent: Decimal


@dataclass
class PortfolioRollup:
    """
    Portfolio-level totals over the computed holdings.

    Attributes:
        total_value: Sum of open holdings' market value
        total_cost_basis: Sum of holdings' cost basis
        total_realized_pnl: Sum of realized P&L
        total_unrealized_pnl: Sum of unrealized P&L
        total_dividends: Sum of net dividends
        total_commissions: Sum of commissions
        total_return: Realized plus unrealized P&L
        total_return_percent: total_return / total_cost_basis (0-100)
        open_positions: Number of open holdings
        short_market_value: Sum of short holdings' market value
    """
    total_value: Decimal
    total_cost_basis: Decimal
    total_realized_pnl: Decimal
    total_unrealized_pnl: Decimal
    total_dividends: Decimal
    total_commissions: Decimal
    total_return: Decimal
    total_return_percent: Decimal
    open_positions: int
    short_market_value: Decimal = ZERO
    top_gainers: list[TopPerformer] = field(default_factory=list)
    top_losers: list[TopPerformer] = field(default_factory=list)

    @property
    def net_profit(self) -> Decimal:
        return self.total_return + self.total_dividends - self.total_commissions


@dataclass
class HoldingsReport:
    """Result of a holdings calculation over one portfolio."""
    holdings: list[HoldingBreakdown]
    rollup: PortfolioRollup
    warnings: list[DataIntegrityWarning] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.holdings


@dataclass
class CalendarBucket:
    """
    Aggregated activity for one calendar month or quarter.

    Attributes:
        key: "2024-Q1" or "2024-03"
        granularity: MONTH or QUARTER
        year: Calendar year
        period_index: Month (1-12) or quarter (1-4)
        start_date: First day of the period
        end_date: Last day of the period
        sums: Per-measure sums
        averages: Derived averages
        transaction_count: Number of transactions in the bucket
    """
    key: str
    granularity: BucketGranularity
    year: int
    period_index: int
    start_date: date
    end_date: date
    sums: dict[str, Decimal] = field(default_factory=dict)
    averages: dict[str, Decimal] = field(default_factory=dict)
    transaction_count: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.year, self.period_index)


@dataclass
class ActivitySpan:
    """
    Position of a calendar bucket on a price chart axis.

    Attributes:
        bucket: The bucket being positioned
        start_index: First price index inside the bucket
        end_index: Last price index inside the bucket
        visible: False when no price point falls in the bucket
        left_percent: start_index / total points (0-100)
        width_percent: covered points / total points (0-100)
    """
    bucket: CalendarBucket
    start_index: int
    end_index: int
    visible: bool
    left_percent: Decimal = ZERO
    width_percent: Decimal = ZERO


@dataclass
class DecisionLogEntry:
    """
    Entry for the append-only decision log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        portfolio_id: Portfolio involved (if applicable)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    portfolio_id: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        portfolio_id: Optional[str],
        details: dict,
        timestamp: Optional[datetime] = None,
    ) -> "DecisionLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=timestamp or datetime.now(),
            action_type=action_type,
            portfolio_id=portfolio_id,
            details=details,
        )


@dataclass
class EngineConfig:
    """
    Engine configuration loaded from YAML.

    Attributes:
        portfolio_id: Active portfolio identifier
        currency: Portfolio currency code
        default_window: Lookback window used when none is given
        default_page_size: Rows per page, or "all"
        cash_flow_granularity: Bucket size for transfer charts
        trade_granularity: Bucket size for trade activity charts
        output_dir: Directory for exports and the decision log
    """
    portfolio_id: str
    currency: str = "USD"
    default_window: LookbackWindow = LookbackWindow.ONE_YEAR
    default_page_size: int | str = 10
    cash_flow_granularity: BucketGranularity = BucketGranularity.MONTH
    trade_granularity: BucketGranularity = BucketGranularity.QUARTER
    output_dir: str = "output"

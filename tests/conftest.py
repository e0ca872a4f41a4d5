"""
Pytest fixtures for the Trade Insight engine tests.

Provides common test data and utilities used across test modules.
"""

import tempfile
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from trade_insight.models import (
    Commission,
    Dividend,
    EngineConfig,
    PortfolioTransactions,
    PricePoint,
    TaxLot,
    Trade,
    TradeType,
    Transfer,
    TransferType,
)


@pytest.fixture
def sample_engine_config() -> EngineConfig:
    """Create a sample engine configuration for testing."""
    return EngineConfig(portfolio_id="TEST001", output_dir="output")


@pytest.fixture
def sample_lots() -> list[TaxLot]:
    """
    Tax lots for three symbols.

    AAPL: one open lot. MSFT: partly sold lot plus a second open lot.
    TSLA: fully sold at a loss (closed).
    """
    return [
        TaxLot(
            id="lot-001",
            symbol="AAPL",
            quantity=Decimal("10"),
            remaining_quantity=Decimal("10"),
            cost_basis=Decimal("100"),
            acquired_at=date(2023, 1, 10),
            is_long_term=True,
        ),
        TaxLot(
            id="lot-002",
            symbol="MSFT",
            quantity=Decimal("20"),
            remaining_quantity=Decimal("5"),
            cost_basis=Decimal("200"),
            acquired_at=date(2023, 3, 1),
            realized_pnl=Decimal("300"),
            sold_quantity=Decimal("15"),
            sold_at=date(2024, 2, 15),
            is_long_term=True,
        ),
        TaxLot(
            id="lot-003",
            symbol="MSFT",
            quantity=Decimal("5"),
            remaining_quantity=Decimal("5"),
            cost_basis=Decimal("220"),
            acquired_at=date(2024, 4, 2),
        ),
        TaxLot(
            id="lot-004",
            symbol="TSLA",
            quantity=Decimal("8"),
            remaining_quantity=Decimal("0"),
            cost_basis=Decimal("250"),
            acquired_at=date(2023, 6, 1),
            realized_pnl=Decimal("-400"),
            sold_quantity=Decimal("8"),
            sold_at=date(2024, 5, 20),
        ),
    ]


@pytest.fixture
def sample_trades() -> list[Trade]:
    """Trades matching the sample lots."""
    return [
        Trade(
            id="t-1", symbol="AAPL", type=TradeType.BUY,
            quantity=Decimal("10"), price=Decimal("100"),
            executed_at=datetime(2023, 1, 10, 14, 30),
            commission=Decimal("1.00"),
        ),
        Trade(
            id="t-2", symbol="MSFT", type=TradeType.BUY,
            quantity=Decimal("20"), price=Decimal("200"),
            executed_at=datetime(2023, 3, 1, 15, 0),
        ),
        Trade(
            id="t-3", symbol="MSFT", type=TradeType.SELL,
            quantity=Decimal("15"), price=Decimal("220"),
            executed_at=datetime(2024, 2, 15, 10, 0),
            commission=Decimal("1.00"),
        ),
        Trade(
            id="t-4", symbol="MSFT", type=TradeType.BUY,
            quantity=Decimal("5"), price=Decimal("220"),
            executed_at=datetime(2024, 4, 2, 11, 0),
        ),
        Trade(
            id="t-5", symbol="TSLA", type=TradeType.BUY,
            quantity=Decimal("8"), price=Decimal("250"),
            executed_at=datetime(2023, 6, 1, 9, 45),
        ),
        Trade(
            id="t-6", symbol="TSLA", type=TradeType.SELL,
            quantity=Decimal("8"), price=Decimal("200"),
            executed_at=datetime(2024, 5, 20, 13, 15),
        ),
    ]


@pytest.fixture
def sample_dividends() -> list[Dividend]:
    """Dividends: AAPL with withholding, MSFT without."""
    return [
        Dividend(
            id="d-1",
            symbol="AAPL",
            gross_amount=Decimal("100"),
            tax_withheld=Decimal("15"),
            pay_date=date(2024, 2, 15),
        ),
        Dividend(
            id="d-2",
            symbol="MSFT",
            gross_amount=Decimal("50"),
            pay_date=date(2024, 3, 14),
        ),
    ]


@pytest.fixture
def sample_commissions() -> list[Commission]:
    """Standalone fees; the account-level fee has no symbol."""
    return [
        Commission(
            id="c-1",
            amount=Decimal("-1.50"),
            executed_at=datetime(2023, 1, 10, 14, 30),
            symbol="AAPL",
        ),
        Commission(
            id="c-2",
            amount=Decimal("25"),
            executed_at=datetime(2024, 1, 1),
            type="account_fee",
        ),
    ]


@pytest.fixture
def sample_transfers() -> list[Transfer]:
    """A deposit in January and a withdrawal (negative amount) in February."""
    return [
        Transfer(
            id="x-1",
            type=TransferType.DEPOSIT,
            amount=Decimal("1000"),
            executed_at=datetime(2024, 1, 15, 9, 0),
            broker="IBKR",
        ),
        Transfer(
            id="x-2",
            type=TransferType.WITHDRAWAL,
            amount=Decimal("-200"),
            executed_at=datetime(2024, 2, 10, 9, 0),
            broker="IBKR",
        ),
    ]


@pytest.fixture
def sample_prices() -> dict[str, Decimal]:
    """Current prices for the sample symbols."""
    return {
        "AAPL": Decimal("150"),
        "MSFT": Decimal("250"),
        "TSLA": Decimal("180"),
    }


@pytest.fixture
def sample_transactions(
    sample_lots: list[TaxLot],
    sample_trades: list[Trade],
    sample_dividends: list[Dividend],
    sample_commissions: list[Commission],
    sample_transfers: list[Transfer],
) -> PortfolioTransactions:
    """Full transaction bundle for the sample portfolio."""
    return PortfolioTransactions(
        portfolio_id="TEST001",
        trades=sample_trades,
        dividends=sample_dividends,
        lots=sample_lots,
        commissions=sample_commissions,
        transfers=sample_transfers,
    )


@pytest.fixture
def sample_price_series() -> list[PricePoint]:
    """
    Trading days in January, February and April 2024 (March missing).
    """
    days = [
        date(2024, 1, 2), date(2024, 1, 16), date(2024, 1, 31),
        date(2024, 2, 1), date(2024, 2, 15), date(2024, 2, 29),
        date(2024, 4, 1), date(2024, 4, 15),
    ]
    closes = ["100", "102", "101", "103", "105", "104", "110", "108"]
    return [
        PricePoint(date=d, close=Decimal(c))
        for d, c in zip(days, closes)
    ]


@pytest.fixture
def temp_output_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_csv_file(temp_output_dir: Path) -> Path:
    """Create a temporary CSV file path."""
    return temp_output_dir / "test_data.csv"

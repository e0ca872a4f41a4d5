"""
Data loading functions for CSV/Parquet transaction exports.

Handles ingestion of trades, dividends, tax lots, commissions, option
trades, transfers, price history and current prices.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import pandas as pd

from trade_insight.models import (
    Commission,
    Dividend,
    LotType,
    OptionAction,
    OptionTrade,
    OptionType,
    PortfolioTransactions,
    PricePoint,
    TaxLot,
    Trade,
    TradeType,
    Transfer,
    TransferType,
)
from trade_insight.data.schemas import (
    COMMISSIONS_SCHEMA,
    CURRENT_PRICES_SCHEMA,
    DIVIDENDS_SCHEMA,
    LOTS_SCHEMA,
    OPTION_TRADES_SCHEMA,
    PRICE_SERIES_SCHEMA,
    TRADES_SCHEMA,
    TRANSFERS_SCHEMA,
    FileSchema,
)


T = TypeVar("T")

# Standard file names inside a portfolio export directory
TRADES_FILE = "trades.csv"
DIVIDENDS_FILE = "dividends.csv"
LOTS_FILE = "lots.csv"
COMMISSIONS_FILE = "commissions.csv"
OPTION_TRADES_FILE = "option_trades.csv"
TRANSFERS_FILE = "transfers.csv"
CURRENT_PRICES_FILE = "prices.csv"
PRICE_HISTORY_FILE = "price_history.csv"

_TRUE_VALUES = {"true", "1", "yes", "y", "t"}


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def _value(row: pd.Series, column: str) -> Optional[Any]:
    """Cell value, or None for a missing column or an empty cell."""
    if column not in row.index:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    return value


def _text(row: pd.Series, column: str, default: Optional[str] = None) -> Optional[str]:
    value = _value(row, column)
    if value is None:
        return default
    return str(value).strip()


def _decimal(row: pd.Series, column: str) -> Decimal:
    value = _value(row, column)
    if value is None:
        raise ValueError(f"missing value for {column}")
    return Decimal(str(value).strip())


def _optional_decimal(row: pd.Series, column: str) -> Optional[Decimal]:
    if _value(row, column) is None:
        return None
    return _decimal(row, column)


def _datetime(row: pd.Series, column: str) -> datetime:
    value = _value(row, column)
    if value is None:
        raise ValueError(f"missing value for {column}")
    return pd.to_datetime(value).to_pydatetime()


def _date(row: pd.Series, column: str) -> date:
    return _datetime(row, column).date()


def _optional_date(row: pd.Series, column: str) -> Optional[date]:
    if _value(row, column) is None:
        return None
    return _date(row, column)


def _bool(row: pd.Series, column: str) -> bool:
    value = _value(row, column)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _symbol(row: pd.Series, column: str = "symbol") -> str:
    return (_text(row, column) or "").upper()


def _enum_value(row: pd.Series, column: str) -> str:
    return (_text(row, column) or "").lower().replace(" ", "_")


def _parse_rows(
    df: pd.DataFrame,
    file_path: Path,
    parse: Callable[[pd.Series], T],
) -> list[T]:
    """
    Convert every row with ``parse``.

    Raises:
        DataLoadError: Naming the file and line of the first bad row
    """
    records = []
    for index, row in df.iterrows():
        try:
            records.append(parse(row))
        except (ValueError, TypeError, InvalidOperation) as e:
            # +2: header line and 1-based numbering
            raise DataLoadError(f"{file_path} line {index + 2}: {e}")
    return records


def load_trades(file_path: str | Path) -> list[Trade]:
    """
    Load trades from CSV file.

    Args:
        file_path: Path to CSV file with columns: id, symbol, type, quantity,
                   price, executed_at (optional: amount, commission,
                   currency, description)

    Returns:
        List of Trade objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, TRADES_SCHEMA)

    def parse(row: pd.Series) -> Trade:
        trade_type = TradeType(_enum_value(row, "type"))
        quantity = _decimal(row, "quantity")
        # Brokers may report sells as negative quantities; any other
        # negative quantity is kept so the calculator flags the symbol
        if trade_type == TradeType.SELL and quantity < 0:
            quantity = -quantity
        return Trade(
            id=str(row["id"]),
            symbol=_symbol(row),
            type=trade_type,
            quantity=quantity,
            price=_decimal(row, "price"),
            executed_at=_datetime(row, "executed_at"),
            amount=_optional_decimal(row, "amount"),
            commission=_optional_decimal(row, "commission"),
            currency=_text(row, "currency", "USD"),
            description=_text(row, "description"),
        )

    return _parse_rows(df, file_path, parse)


def load_dividends(file_path: str | Path) -> list[Dividend]:
    """
    Load dividend payments from CSV file.

    Args:
        file_path: Path to CSV file with columns: id, symbol, gross_amount,
                   pay_date (optional: tax_withheld, net_amount, ex_date,
                   currency, description)

    Returns:
        List of Dividend objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, DIVIDENDS_SCHEMA)

    def parse(row: pd.Series) -> Dividend:
        return Dividend(
            id=str(row["id"]),
            symbol=_symbol(row),
            gross_amount=_decimal(row, "gross_amount"),
            pay_date=_date(row, "pay_date"),
            tax_withheld=_optional_decimal(row, "tax_withheld"),
            net_amount=_optional_decimal(row, "net_amount"),
            ex_date=_optional_date(row, "ex_date"),
            currency=_text(row, "currency", "USD"),
            description=_text(row, "description"),
        )

    return _parse_rows(df, file_path, parse)


def load_lots(file_path: str | Path) -> list[TaxLot]:
    """
    Load tax lots from CSV file.

    Args:
        file_path: Path to CSV file with lot-level records

    Returns:
        List of TaxLot objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, LOTS_SCHEMA)

    def parse(row: pd.Series) -> TaxLot:
        holding_days = _value(row, "holding_period_days")
        return TaxLot(
            id=str(row["id"]),
            symbol=_symbol(row),
            quantity=_decimal(row, "quantity"),
            remaining_quantity=_decimal(row, "remaining_quantity"),
            cost_basis=_decimal(row, "cost_basis"),
            acquired_at=_date(row, "acquired_at"),
            realized_pnl=_optional_decimal(row, "realized_pnl") or Decimal("0"),
            sold_quantity=_optional_decimal(row, "sold_quantity") or Decimal("0"),
            sold_at=_optional_date(row, "sold_at"),
            holding_period_days=int(float(holding_days)) if holding_days is not None else None,
            is_long_term=_bool(row, "is_long_term"),
            lot_type=LotType(_enum_value(row, "lot_type") or "long"),
        )

    return _parse_rows(df, file_path, parse)


def load_commissions(file_path: str | Path) -> list[Commission]:
    """Load standalone commission records from CSV file."""
    file_path = Path(file_path)
    df = _load_csv(file_path, COMMISSIONS_SCHEMA)

    def parse(row: pd.Series) -> Commission:
        return Commission(
            id=str(row["id"]),
            amount=_decimal(row, "amount"),
            executed_at=_datetime(row, "executed_at"),
            symbol=_symbol(row) or None,
            type=_text(row, "type", "commission"),
            currency=_text(row, "currency", "USD"),
            description=_text(row, "description"),
        )

    return _parse_rows(df, file_path, parse)


def load_option_trades(file_path: str | Path) -> list[OptionTrade]:
    """Load option trades from CSV file."""
    file_path = Path(file_path)
    df = _load_csv(file_path, OPTION_TRADES_SCHEMA)

    def parse(row: pd.Series) -> OptionTrade:
        return OptionTrade(
            id=str(row["id"]),
            symbol=_symbol(row),
            underlying=_symbol(row, "underlying"),
            option_type=OptionType(_enum_value(row, "option_type")),
            strike=_decimal(row, "strike"),
            expiration_date=_date(row, "expiration_date"),
            action=OptionAction(_enum_value(row, "action")),
            quantity=_decimal(row, "quantity"),
            price=_decimal(row, "price"),
            premium=_decimal(row, "premium"),
            executed_at=_datetime(row, "executed_at"),
            commission=_optional_decimal(row, "commission"),
            currency=_text(row, "currency", "USD"),
            description=_text(row, "description"),
        )

    return _parse_rows(df, file_path, parse)


def load_transfers(file_path: str | Path) -> list[Transfer]:
    """
    Load cash transfers from CSV file.

    Args:
        file_path: Path to CSV file with columns: id, type, amount,
                   executed_at, broker

    Returns:
        List of Transfer objects

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, TRANSFERS_SCHEMA)

    def parse(row: pd.Series) -> Transfer:
        return Transfer(
            id=str(row["id"]),
            type=TransferType(_enum_value(row, "type")),
            amount=_decimal(row, "amount"),
            executed_at=_datetime(row, "executed_at"),
            broker=_text(row, "broker", ""),
            currency=_text(row, "currency", "USD"),
            description=_text(row, "description"),
        )

    return _parse_rows(df, file_path, parse)


def load_price_series(
    file_path: str | Path,
    symbol: Optional[str] = None,
) -> list[PricePoint]:
    """
    Load a daily price history, sorted ascending by date.

    Args:
        file_path: Path to CSV file with columns: date, close
                   (optional: symbol, open, high, low, volume)
        symbol: If provided and the file has a symbol column, keep only
                rows for this symbol. Files without the column are taken to
                hold a single symbol.

    Returns:
        List of PricePoint objects in date order

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, PRICE_SERIES_SCHEMA)

    if symbol and "symbol" in df.columns:
        df = df[df["symbol"].astype(str).str.upper().str.strip() == symbol.upper().strip()]

    def parse(row: pd.Series) -> PricePoint:
        volume = _value(row, "volume")
        return PricePoint(
            date=_date(row, "date"),
            close=_decimal(row, "close"),
            open=_optional_decimal(row, "open"),
            high=_optional_decimal(row, "high"),
            low=_optional_decimal(row, "low"),
            volume=int(float(volume)) if volume is not None else 0,
        )

    points = _parse_rows(df, file_path, parse)
    return sorted(points, key=lambda p: p.date)


def load_current_prices(file_path: str | Path) -> dict[str, Decimal]:
    """
    Load latest prices from CSV file.

    Args:
        file_path: Path to CSV file with columns: symbol, price (optional: name)

    Returns:
        Dictionary mapping symbol -> price

    Raises:
        DataLoadError: If file cannot be loaded or is invalid
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, CURRENT_PRICES_SCHEMA)

    rows = _parse_rows(df, file_path, lambda row: (_symbol(row), _decimal(row, "price")))
    return dict(rows)


def load_company_names(file_path: str | Path) -> dict[str, str]:
    """Symbol -> company name from the optional name column of a prices file."""
    file_path = Path(file_path)
    df = _load_csv(file_path, CURRENT_PRICES_SCHEMA)

    names = {}
    for _, row in df.iterrows():
        name = _text(row, "name")
        if name:
            names[_symbol(row)] = name
    return names


def load_portfolio_transactions(
    directory: str | Path,
    portfolio_id: str,
) -> PortfolioTransactions:
    """
    Load every standard transaction file present in a directory.

    Missing files are treated as empty; at least one must exist.

    Args:
        directory: Directory holding trades.csv, dividends.csv, lots.csv,
                   commissions.csv, option_trades.csv and transfers.csv
        portfolio_id: Identifier attached to the result

    Returns:
        PortfolioTransactions

    Raises:
        DataLoadError: If the directory is missing or holds no known file
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DataLoadError(f"Directory not found: {directory}")

    loaders = {
        "trades": (TRADES_FILE, load_trades),
        "dividends": (DIVIDENDS_FILE, load_dividends),
        "lots": (LOTS_FILE, load_lots),
        "commissions": (COMMISSIONS_FILE, load_commissions),
        "option_trades": (OPTION_TRADES_FILE, load_option_trades),
        "transfers": (TRANSFERS_FILE, load_transfers),
    }

    if not any((directory / file_name).exists() for file_name, _ in loaders.values()):
        raise DataLoadError(f"No transaction files found in {directory}")

    loaded: dict[str, list] = {}
    for field_name, (file_name, loader) in loaders.items():
        path = directory / file_name
        loaded[field_name] = loader(path) if path.exists() else []

    return PortfolioTransactions(portfolio_id=portfolio_id, **loaded)


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file and validate against schema.

    Values are read as text so money columns convert to Decimal exactly.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    # Support both CSV and Parquet
    if file_path.suffix.lower() == ".parquet":
        try:
            df = pd.read_parquet(file_path)
        except Exception as e:
            raise DataLoadError(f"Failed to load parquet file {file_path}: {e}")
    else:
        try:
            df = pd.read_csv(file_path, dtype=str)
        except Exception as e:
            raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    # Validate columns
    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df

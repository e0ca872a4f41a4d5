"""
Data schemas for CSV/Parquet file validation.

Defines expected columns for every transaction export the engine reads.
"""

from dataclasses import dataclass


@dataclass
class ColumnSchema:
    """Schema definition for a single column."""
    name: str
    dtype: str  # pandas dtype string
    required: bool = True
    nullable: bool = False


@dataclass
class FileSchema:
    """Schema definition for a file."""
    name: str
    columns: list[ColumnSchema]
    description: str

    @property
    def required_columns(self) -> list[str]:
        """Get list of required column names."""
        return [c.name for c in self.columns if c.required]

    @property
    def all_columns(self) -> list[str]:
        """Get list of all column names."""
        return [c.name for c in self.columns]

    def validate_columns(self, df_columns: list[str]) -> tuple[bool, list[str]]:
        """
        Validate that a dataframe has the required columns.

        Args:
            df_columns: List of column names from the dataframe

        Returns:
            Tuple of (is_valid, list of missing columns)
        """
        missing = [col for col in self.required_columns if col not in df_columns]
        return len(missing) == 0, missing


def _optional(name: str, dtype: str) -> ColumnSchema:
    return ColumnSchema(name=name, dtype=dtype, required=False, nullable=True)


TRADES_SCHEMA = FileSchema(
    name="trades",
    description="Buy and sell executions",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="type", dtype="str"),
        ColumnSchema(name="quantity", dtype="float64"),
        ColumnSchema(name="price", dtype="float64"),
        ColumnSchema(name="executed_at", dtype="datetime64[ns]"),
        _optional("amount", "float64"),
        _optional("commission", "float64"),
        _optional("currency", "str"),
        _optional("description", "str"),
    ],
)

DIVIDENDS_SCHEMA = FileSchema(
    name="dividends",
    description="Dividend payments with withholding",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="gross_amount", dtype="float64"),
        ColumnSchema(name="pay_date", dtype="datetime64[ns]"),
        _optional("tax_withheld", "float64"),
        _optional("net_amount", "float64"),
        _optional("ex_date", "datetime64[ns]"),
        _optional("currency", "str"),
        _optional("description", "str"),
    ],
)

LOTS_SCHEMA = FileSchema(
    name="lots",
    description="Tax lots with remaining quantity and realized P&L",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="quantity", dtype="float64"),
        ColumnSchema(name="remaining_quantity", dtype="float64"),
        ColumnSchema(name="cost_basis", dtype="float64"),
        ColumnSchema(name="acquired_at", dtype="datetime64[ns]"),
        _optional("realized_pnl", "float64"),
        _optional("sold_quantity", "float64"),
        _optional("sold_at", "datetime64[ns]"),
        _optional("holding_period_days", "int64"),
        _optional("is_long_term", "bool"),
        _optional("lot_type", "str"),
    ],
)

COMMISSIONS_SCHEMA = FileSchema(
    name="commissions",
    description="Standalone fees",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="amount", dtype="float64"),
        ColumnSchema(name="executed_at", dtype="datetime64[ns]"),
        _optional("symbol", "str"),
        _optional("type", "str"),
        _optional("currency", "str"),
        _optional("description", "str"),
    ],
)

OPTION_TRADES_SCHEMA = FileSchema(
    name="option_trades",
    description="Option contract executions",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="underlying", dtype="str"),
        ColumnSchema(name="option_type", dtype="str"),
        ColumnSchema(name="strike", dtype="float64"),
        ColumnSchema(name="expiration_date", dtype="datetime64[ns]"),
        ColumnSchema(name="action", dtype="str"),
        ColumnSchema(name="quantity", dtype="float64"),
        ColumnSchema(name="price", dtype="float64"),
        ColumnSchema(name="premium", dtype="float64"),
        ColumnSchema(name="executed_at", dtype="datetime64[ns]"),
        _optional("commission", "float64"),
        _optional("currency", "str"),
        _optional("description", "str"),
    ],
)

TRANSFERS_SCHEMA = FileSchema(
    name="transfers",
    description="Cash deposits, withdrawals and transfers",
    columns=[
        ColumnSchema(name="id", dtype="str"),
        ColumnSchema(name="type", dtype="str"),
        ColumnSchema(name="amount", dtype="float64"),
        ColumnSchema(name="executed_at", dtype="datetime64[ns]"),
        ColumnSchema(name="broker", dtype="str"),
        _optional("currency", "str"),
        _optional("description", "str"),
    ],
)

PRICE_SERIES_SCHEMA = FileSchema(
    name="price_series",
    description="Daily price history for one or more symbols",
    columns=[
        ColumnSchema(name="date", dtype="datetime64[ns]"),
        ColumnSchema(name="close", dtype="float64"),
        _optional("symbol", "str"),
        _optional("open", "float64"),
        _optional("high", "float64"),
        _optional("low", "float64"),
        _optional("volume", "int64"),
    ],
)

CURRENT_PRICES_SCHEMA = FileSchema(
    name="current_prices",
    description="Latest market price by symbol",
    columns=[
        ColumnSchema(name="symbol", dtype="str"),
        ColumnSchema(name="price", dtype="float64"),
        _optional("name", "str"),
    ],
)

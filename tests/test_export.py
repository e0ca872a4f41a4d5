"""
Tests for CSV export.
"""

from datetime import date

from trade_insight.models import SortDirection
from trade_insight.portfolio.holdings import calculate_holdings
from trade_insight.tables.columns import (
    COLUMN_SETS,
    HOLDING_COLUMNS,
    TRADE_COLUMNS,
    TRANSFER_COLUMNS,
)
from trade_insight.tables.export import (
    export_filename,
    export_table,
    to_csv,
    write_csv,
)
from trade_insight.tables.projection import TableQuery, field_equals


class TestToCsv:
    """Tests for to_csv."""

    def test_headers_and_rows(self):
        text = to_csv(["A", "B"], [["1", None], [2, "x"]])

        assert text == "A,B\n1,\n2,x"

    def test_no_rows(self):
        assert to_csv(["A", "B"], []) == "A,B"

    def test_values_are_not_quoted(self):
        text = to_csv(["Description"], [["buy, then hold"]])

        assert text.split("\n")[1] == "buy, then hold"


class TestExportTable:
    """Tests for export_table."""

    def test_exports_all_filtered_rows_not_one_page(self, sample_trades):
        query = TableQuery(page=2, page_size=2)

        text = export_table(sample_trades, TRADE_COLUMNS, query)

        assert len(text.split("\n")) == len(sample_trades) + 1

    def test_filter_and_sort_applied(self, sample_trades):
        query = TableQuery(
            sort_field="executed_at",
            direction=SortDirection.ASC,
            filter_predicate=field_equals("symbol", "MSFT"),
        )

        lines = export_table(sample_trades, TRADE_COLUMNS, query).split("\n")

        assert lines[0] == "Date,Symbol,Type,Quantity,Price,Amount,Commission,Description"
        assert len(lines) == 4
        assert lines[1].startswith("2023-03-01T15:00:00,MSFT,buy,20,200,4000,,")
        assert lines[2].startswith("2024-02-15T10:00:00,MSFT,sell,15,220,3300,1.00,")

    def test_closed_holdings_export_not_available(self, sample_transactions, sample_prices):
        report = calculate_holdings(sample_transactions, sample_prices)

        text = export_table(
            report.holdings,
            HOLDING_COLUMNS,
            TableQuery(filter_predicate=field_equals("status", "closed")),
        )

        header, row = text.split("\n")
        cells = dict(zip(header.split(","), row.split(",")))
        assert cells["Symbol"] == "TSLA"
        assert cells["Current Price"] == "n/a"
        assert cells["Market Value"] == "n/a"
        assert cells["Unrealized P&L"] == "n/a"
        assert cells["% of Portfolio"] == "n/a"

    def test_transfers_use_signed_amounts(self, sample_transfers):
        lines = export_table(sample_transfers, TRANSFER_COLUMNS).split("\n")

        amounts = sorted(line.split(",")[2] for line in lines[1:])
        assert amounts == ["-200", "1000"]

    def test_every_column_set_exports_empty_input(self):
        for name, columns in COLUMN_SETS.items():
            text = export_table([], columns)
            assert text == ",".join(c.header for c in columns), name


class TestFiles:
    """Tests for export_filename and write_csv."""

    def test_filename(self):
        assert export_filename("holdings", date(2024, 6, 1)) == "holdings-2024-06-01.csv"

    def test_write_csv(self, temp_output_dir):
        path = write_csv("A,B\n1,2", temp_output_dir / "nested" / "out.csv")

        assert path.exists()
        assert path.read_text() == "A,B\n1,2\n"

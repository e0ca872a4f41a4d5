"""
Tests for the command-line interface.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from trade_insight.cli import main


TRADES_CSV = """\
id,symbol,type,quantity,price,executed_at,commission
t-1,AAPL,buy,10,100,2023-01-10 14:30:00,1.00
t-2,MSFT,buy,20,200,2023-03-01 15:00:00,
t-3,MSFT,sell,15,220,2024-02-15 10:00:00,1.00
t-4,MSFT,buy,5,220,2024-04-02 11:00:00,
t-5,TSLA,buy,8,250,2023-06-01 09:45:00,
t-6,TSLA,sell,8,200,2024-05-20 13:15:00,
"""

LOTS_CSV = """\
id,symbol,quantity,remaining_quantity,cost_basis,acquired_at,realized_pnl,is_long_term
l-1,AAPL,10,10,100,2023-01-10,,true
l-2,MSFT,20,5,200,2023-03-01,300,true
l-3,MSFT,5,5,220,2024-04-02,,false
l-4,TSLA,8,0,250,2023-06-01,-400,false
"""

TRANSFERS_CSV = """\
id,type,amount,executed_at,broker,description
x-1,deposit,1000,2024-01-15,IBKR,payroll
x-2,withdrawal,-200,2024-02-10,IBKR,rent
"""

PRICES_CSV = """\
symbol,price,name
AAPL,150,Apple Inc.
MSFT,250,Microsoft Corp.
TSLA,180,Tesla Inc.
"""

PRICE_HISTORY_CSV = """\
symbol,date,close
MSFT,2024-01-02,370
MSFT,2024-02-15,405
MSFT,2024-04-01,420
MSFT,2024-05-01,395
AAPL,2024-01-02,185
"""


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "trades.csv").write_text(TRADES_CSV)
    (directory / "lots.csv").write_text(LOTS_CSV)
    (directory / "transfers.csv").write_text(TRANSFERS_CSV)
    (directory / "prices.csv").write_text(PRICES_CSV)
    (directory / "price_history.csv").write_text(PRICE_HISTORY_CSV)
    return directory


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


def _invoke(*args: str):
    return CliRunner().invoke(main, list(args))


def _log_actions(out_dir: Path) -> list[str]:
    lines = (out_dir / "decision_log.jsonl").read_text().splitlines()
    return [json.loads(line)["action_type"] for line in lines]


class TestHoldingsCommand:
    """Tests for the holdings command."""

    def test_lists_holdings_and_summary(self, data_dir, out_dir):
        result = _invoke("holdings", "-d", str(data_dir), "-o", str(out_dir))

        assert result.exit_code == 0, result.output
        assert "AAPL" in result.output
        assert "n/a" in result.output
        assert "Portfolio Summary:" in result.output
        assert "Open Positions:  2" in result.output
        assert "HOLDINGS_CALCULATED" in _log_actions(out_dir)

    def test_status_filter(self, data_dir, out_dir):
        result = _invoke(
            "holdings", "-d", str(data_dir), "-o", str(out_dir), "--status", "closed"
        )

        assert result.exit_code == 0, result.output
        assert "(1 holdings)" in result.output

    def test_missing_prices_become_warnings(self, data_dir, out_dir):
        (data_dir / "prices.csv").unlink()

        result = _invoke("holdings", "-d", str(data_dir), "-o", str(out_dir))

        assert result.exit_code == 0, result.output
        assert "Data warnings (2 symbols excluded):" in result.output
        assert _log_actions(out_dir).count("DATA_INTEGRITY_WARNING") == 2

    def test_invalid_page_size(self, data_dir, out_dir):
        result = _invoke(
            "holdings", "-d", str(data_dir), "-o", str(out_dir), "--page-size", "0"
        )

        assert result.exit_code == 1

    def test_config_file(self, data_dir, out_dir, tmp_path):
        config_path = tmp_path / "engine.yaml"
        config_path.write_text("portfolio_id: IBKR-1\ncurrency: USD\n")

        result = _invoke(
            "holdings", "-d", str(data_dir), "-o", str(out_dir), "-c", str(config_path)
        )

        assert result.exit_code == 0, result.output
        assert _log_actions(out_dir)[0] == "CONFIG_LOADED"

    def test_invalid_config_exits(self, data_dir, out_dir, tmp_path):
        config_path = tmp_path / "engine.yaml"
        config_path.write_text("currency: USD\n")

        result = _invoke(
            "holdings", "-d", str(data_dir), "-o", str(out_dir), "-c", str(config_path)
        )

        assert result.exit_code == 1


class TestCashFlowCommand:
    """Tests for the cash-flow command."""

    def test_monthly_buckets(self, data_dir, out_dir):
        result = _invoke(
            "cash-flow", "-d", str(data_dir), "-o", str(out_dir),
            "--window", "YTD", "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        assert "2024-01" in result.output
        assert "2024-02" in result.output
        assert "Net Flow:" in result.output

    def test_no_data_state(self, data_dir, out_dir):
        result = _invoke(
            "cash-flow", "-d", str(data_dir), "-o", str(out_dir),
            "--window", "1M", "--as-of", "2025-06-01",
        )

        assert result.exit_code == 0, result.output
        assert "No deposits or withdrawals in window 1M." in result.output

    def test_unknown_window(self, data_dir, out_dir):
        result = _invoke(
            "cash-flow", "-d", str(data_dir), "-o", str(out_dir),
            "--window", "10Y", "--as-of", "2024-06-01",
        )

        assert result.exit_code == 1

    def test_bad_as_of(self, data_dir, out_dir):
        result = _invoke(
            "cash-flow", "-d", str(data_dir), "-o", str(out_dir), "--as-of", "someday",
        )

        assert result.exit_code == 1


class TestActivityCommand:
    """Tests for the activity command."""

    def test_hidden_bucket_without_prices(self, data_dir, out_dir):
        result = _invoke(
            "activity", "-d", str(data_dir), "-o", str(out_dir),
            "--symbol", "msft", "--window", "ALL", "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        assert "2023-Q1" in result.output
        assert "hidden (no price data)" in result.output
        assert "2024-Q2" in result.output
        assert "ACTIVITY_CORRELATED" in _log_actions(out_dir)

    def test_missing_price_history(self, data_dir, out_dir):
        (data_dir / "price_history.csv").unlink()

        result = _invoke(
            "activity", "-d", str(data_dir), "-o", str(out_dir), "--symbol", "MSFT",
        )

        assert result.exit_code == 1


class TestExportCommand:
    """Tests for the export command."""

    def test_export_holdings(self, data_dir, out_dir):
        result = _invoke(
            "export", "holdings", "-d", str(data_dir), "-o", str(out_dir),
            "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        path = out_dir / "holdings-2024-06-01.csv"
        lines = path.read_text().splitlines()
        assert len(lines) == 4
        assert lines[0].startswith("Symbol,Company,Status")
        assert "Exported 3 holdings rows" in result.output
        assert "TABLE_EXPORTED" in _log_actions(out_dir)

    def test_export_with_search(self, data_dir, out_dir):
        result = _invoke(
            "export", "transfers", "-d", str(data_dir), "-o", str(out_dir),
            "--search", "rent", "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        lines = (out_dir / "transfers-2024-06-01.csv").read_text().splitlines()
        assert len(lines) == 2
        assert ",withdrawal,-200," in lines[1]

    def test_row_count_ignores_newlines_in_cells(self, data_dir, out_dir):
        (data_dir / "transfers.csv").write_text(
            "id,type,amount,executed_at,broker,description\n"
            'x-1,deposit,1000,2024-01-15,IBKR,"payroll\nJanuary"\n'
            "x-2,withdrawal,-200,2024-02-10,IBKR,rent\n"
        )

        result = _invoke(
            "export", "transfers", "-d", str(data_dir), "-o", str(out_dir),
            "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        assert "Exported 2 transfers rows" in result.output

    def test_export_trades_sorted_ascending(self, data_dir, out_dir):
        result = _invoke(
            "export", "trades", "-d", str(data_dir), "-o", str(out_dir),
            "--ascending", "--as-of", "2024-06-01",
        )

        assert result.exit_code == 0, result.output
        lines = (out_dir / "trades-2024-06-01.csv").read_text().splitlines()
        assert [line.split(",")[0][:10] for line in lines[1:3]] == ["2023-01-10", "2023-03-01"]

    def test_unknown_entity(self, data_dir, out_dir):
        result = _invoke("export", "orders", "-d", str(data_dir), "-o", str(out_dir))

        assert result.exit_code != 0

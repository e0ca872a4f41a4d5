"""
Tests for the JSONL decision log.
"""

import json
from datetime import date, datetime
from decimal import Decimal

import pytest

from trade_insight.logging import decision_log
from trade_insight.logging.decision_log import DecisionLogger, get_logger, log_action
from trade_insight.models import ActionType, DataIntegrityWarning
from trade_insight.portfolio.holdings import calculate_holdings


@pytest.fixture
def logger(temp_output_dir) -> DecisionLogger:
    return DecisionLogger(temp_output_dir / "logs" / "decision_log.jsonl")


@pytest.fixture
def reset_global_logger(monkeypatch):
    monkeypatch.setattr(decision_log, "_global_logger", None)


class TestDecisionLogger:
    """Tests for DecisionLogger."""

    def test_creates_parent_directory(self, logger):
        assert logger.log_path.parent.is_dir()

    def test_config_loaded(self, logger, sample_engine_config):
        logger.log_config_loaded(sample_engine_config, "config/engine.yaml")

        (entry,) = logger.read_log()
        assert entry.action_type == ActionType.CONFIG_LOADED
        assert entry.portfolio_id == "TEST001"
        assert entry.details["default_window"] == "1Y"

    def test_holdings_calculated_writes_decimals_as_text(
        self, logger, sample_transactions, sample_prices
    ):
        report = calculate_holdings(sample_transactions, sample_prices)

        logger.log_holdings_calculated("TEST001", report, datetime(2024, 6, 1))

        record = json.loads(logger.log_path.read_text().splitlines()[0])
        assert record["action_type"] == "HOLDINGS_CALCULATED"
        assert record["details"]["num_holdings"] == 3
        assert isinstance(record["details"]["total_value"], str)
        assert record["details"]["as_of"] == "2024-06-01T00:00:00"

    def test_one_entry_per_warning(self, logger):
        warnings = [
            DataIntegrityWarning(symbol="AAA", message="missing price"),
            DataIntegrityWarning(symbol="BBB", message="negative quantity"),
        ]

        logger.log_integrity_warnings("P1", warnings)

        entries = logger.filter_by_action_type(ActionType.DATA_INTEGRITY_WARNING)
        assert [e.details["symbol"] for e in entries] == ["AAA", "BBB"]

    def test_buckets_aggregated_empty(self, logger):
        logger.log_buckets_aggregated("P1", "cash_flow", "YTD", [])

        (entry,) = logger.read_log()
        assert entry.details["bucket_count"] == 0
        assert entry.details["first_bucket"] is None

    def test_table_exported(self, logger):
        logger.log_table_exported("P1", "holdings", 3, "output/holdings-2024-06-01.csv")

        (entry,) = logger.read_log()
        assert entry.details["row_count"] == 3

    def test_append_only_and_filter_by_portfolio(self, logger):
        logger.log_table_exported("P1", "trades", 1, "a.csv")
        logger.log_table_exported("P2", "trades", 2, "b.csv")
        logger.log_table_exported("P1", "lots", 3, "c.csv")

        assert len(logger.read_log()) == 3
        assert [e.details["entity"] for e in logger.filter_by_portfolio("P1")] == ["trades", "lots"]

    def test_read_missing_log(self, temp_output_dir):
        assert DecisionLogger(temp_output_dir / "empty.jsonl").read_log() == []


class TestGlobalLogger:
    """Tests for get_logger and log_action."""

    def test_log_action_serializes_decimals_and_dates(self, temp_output_dir, reset_global_logger):
        path = temp_output_dir / "global.jsonl"

        log_action(
            ActionType.TABLE_EXPORTED,
            "P1",
            {"amount": Decimal("12.50"), "on": date(2024, 6, 1)},
            log_path=path,
        )

        record = json.loads(path.read_text())
        assert record["details"] == {"amount": "12.50", "on": "2024-06-01"}

    def test_get_logger_reuses_instance(self, temp_output_dir, reset_global_logger):
        first = get_logger(temp_output_dir / "a.jsonl")

        assert get_logger() is first
        assert get_logger(temp_output_dir / "b.jsonl").log_path.name == "b.jsonl"

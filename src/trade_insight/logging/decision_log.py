"""
Append-only decision logging for the Trade Insight engine.

Every calculation the CLI runs is logged with a timestamp and its key
figures to support auditability and reproducibility. The engine itself
stays pure; callers decide what to log.
"""

import json
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from trade_insight.models import (
    ActionType,
    ActivitySpan,
    CalendarBucket,
    DataIntegrityWarning,
    DecisionLogEntry,
    EngineConfig,
    HoldingsReport,
)


class DecisionLogger:
    """
    Append-only decision logger.

    Writes all decisions to a JSONL file for audit purposes.
    Each line is a complete JSON object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the decision logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: DecisionLogEntry) -> None:
        """
        Write a decision log entry.

        Args:
            entry: DecisionLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "portfolio_id": entry.portfolio_id,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def log_config_loaded(
        self,
        config: EngineConfig,
        config_path: str,
    ) -> None:
        """
        Log configuration loading.

        Args:
            config: Loaded configuration
            config_path: Path to configuration file
        """
        details = {
            "config_path": config_path,
            "currency": config.currency,
            "default_window": config.default_window.value,
            "default_page_size": config.default_page_size,
            "output_dir": config.output_dir,
        }

        entry = DecisionLogEntry.create(
            action_type=ActionType.CONFIG_LOADED,
            portfolio_id=config.portfolio_id,
            details=details,
        )
        self.log(entry)

    def log_holdings_calculated(
        self,
        portfolio_id: str,
        report: HoldingsReport,
        as_of: datetime,
    ) -> None:
        """
        Log a holdings calculation.

        Args:
            portfolio_id: Portfolio identifier
            report: Calculation result
            as_of: Reference time of the calculation
        """
        rollup = report.rollup
        details = {
            "as_of": as_of.isoformat(),
            "num_holdings": len(report.holdings),
            "open_positions": rollup.open_positions,
            "total_value": str(rollup.total_value),
            "total_cost_basis": str(rollup.total_cost_basis),
            "total_realized_pnl": str(rollup.total_realized_pnl),
            "total_unrealized_pnl": str(rollup.total_unrealized_pnl),
            "total_dividends": str(rollup.total_dividends),
            "warning_count": len(report.warnings),
        }

        entry = DecisionLogEntry.create(
            action_type=ActionType.HOLDINGS_CALCULATED,
            portfolio_id=portfolio_id,
            details=details,
        )
        self.log(entry)

    def log_integrity_warnings(
        self,
        portfolio_id: str,
        warnings: list[DataIntegrityWarning],
    ) -> None:
        """
        Log one entry per symbol excluded for bad data.

        Args:
            portfolio_id: Portfolio identifier
            warnings: Warnings from the holdings calculation
        """
        for warning in warnings:
            entry = DecisionLogEntry.create(
                action_type=ActionType.DATA_INTEGRITY_WARNING,
                portfolio_id=portfolio_id,
                details={"symbol": warning.symbol, "message": warning.message},
            )
            self.log(entry)

    def log_buckets_aggregated(
        self,
        portfolio_id: str,
        series: str,
        window: str,
        buckets: list[CalendarBucket],
    ) -> None:
        """
        Log a bucket aggregation.

        Args:
            portfolio_id: Portfolio identifier
            series: What was bucketed ("cash_flow", "trades", "dividends")
            window: Lookback window identifier
            buckets: Resulting buckets
        """
        details = {
            "series": series,
            "window": window,
            "bucket_count": len(buckets),
            "first_bucket": buckets[0].key if buckets else None,
            "last_bucket": buckets[-1].key if buckets else None,
            "transaction_count": sum(b.transaction_count for b in buckets),
        }

        entry = DecisionLogEntry.create(
            action_type=ActionType.BUCKETS_AGGREGATED,
            portfolio_id=portfolio_id,
            details=details,
        )
        self.log(entry)

    def log_activity_correlated(
        self,
        portfolio_id: str,
        symbol: str,
        spans: list[ActivitySpan],
        series_length: int,
    ) -> None:
        """
        Log chart-activity correlation.

        Args:
            portfolio_id: Portfolio identifier
            symbol: Charted symbol
            spans: Positioned spans
            series_length: Number of price points in the chart
        """
        suppressed = [s.bucket.key for s in spans if not s.visible]

        details = {
            "symbol": symbol,
            "series_length": series_length,
            "span_count": len(spans),
            "suppressed_buckets": suppressed[:10],  # First 10
        }

        entry = DecisionLogEntry.create(
            action_type=ActionType.ACTIVITY_CORRELATED,
            portfolio_id=portfolio_id,
            details=details,
        )
        self.log(entry)

    def log_table_exported(
        self,
        portfolio_id: str,
        entity: str,
        row_count: int,
        output_path: str,
    ) -> None:
        """
        Log a CSV export.

        Args:
            portfolio_id: Portfolio identifier
            entity: Exported table name
            row_count: Data rows written (excluding header)
            output_path: Destination file
        """
        entry = DecisionLogEntry.create(
            action_type=ActionType.TABLE_EXPORTED,
            portfolio_id=portfolio_id,
            details={
                "entity": entity,
                "row_count": row_count,
                "output_path": output_path,
            },
        )
        self.log(entry)

    def read_log(self) -> list[DecisionLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of DecisionLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    DecisionLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        portfolio_id=record.get("portfolio_id"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_portfolio(
        self,
        portfolio_id: str,
    ) -> list[DecisionLogEntry]:
        """
        Get log entries for a specific portfolio.

        Args:
            portfolio_id: Portfolio to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.portfolio_id == portfolio_id]

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[DecisionLogEntry]:
        """
        Get log entries of a specific action type.

        Args:
            action_type: Action type to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and date types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


# Global logger instance (initialized on first use)
_global_logger: Optional[DecisionLogger] = None


def get_logger(log_path: Optional[str | Path] = None) -> DecisionLogger:
    """
    Get or create the global decision logger.

    Args:
        log_path: Optional path to initialize logger (required on first call)

    Returns:
        DecisionLogger instance
    """
    global _global_logger

    if _global_logger is None:
        if log_path is None:
            log_path = "output/decision_log.jsonl"
        _global_logger = DecisionLogger(log_path)
    elif log_path is not None:
        # Allow reinitializing with new path
        _global_logger = DecisionLogger(log_path)

    return _global_logger


def log_action(
    action_type: ActionType,
    portfolio_id: Optional[str],
    details: dict,
    log_path: Optional[str | Path] = None,
) -> None:
    """
    Convenience function to log an action.

    Args:
        action_type: Type of action
        portfolio_id: Portfolio identifier (optional)
        details: Action details dictionary
        log_path: Optional path to log file
    """
    logger = get_logger(log_path)
    entry = DecisionLogEntry.create(
        action_type=action_type,
        portfolio_id=portfolio_id,
        details=details,
    )
    logger.log(entry)

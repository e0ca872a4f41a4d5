"""
Decision logging module for the Trade Insight engine.

Provides append-only decision logging for audit and reproducibility.
"""

from trade_insight.logging.decision_log import (
    DecisionLogger,
    log_action,
    get_logger,
)

__all__ = [
    "DecisionLogger",
    "log_action",
    "get_logger",
]

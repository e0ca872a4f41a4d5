"""
Configuration loading and management for the Trade Insight engine.

This module handles loading the engine configuration from YAML files,
environment overrides, and validation of configuration parameters.
"""

import os
from pathlib import Path
from typing import Any

import yaml

from trade_insight.models import BucketGranularity, EngineConfig, LookbackWindow


# Environment variable overriding output_dir
OUTPUT_DIR_ENV_VAR = "TRADE_INSIGHT_OUTPUT_DIR"

DEFAULT_CONFIG_FILE = Path("config") / "engine.yaml"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_engine_config(config_path: str | Path) -> EngineConfig:
    """
    Load engine configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        EngineConfig object with validated settings

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping: {config_path}"
        )

    return _parse_engine_config(raw_config)


def _parse_engine_config(raw: dict[str, Any]) -> EngineConfig:
    """
    Parse and validate raw configuration dictionary into EngineConfig.

    Args:
        raw: Dictionary loaded from YAML

    Returns:
        Validated EngineConfig

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    if "portfolio_id" not in raw:
        raise ConfigurationError("Missing required configuration field: portfolio_id")

    portfolio_id = str(raw["portfolio_id"]).strip()
    if not portfolio_id:
        raise ConfigurationError("portfolio_id cannot be empty")

    currency = str(raw.get("currency", "USD")).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ConfigurationError(f"Invalid currency code: {currency}")

    default_window = _parse_window(raw.get("default_window", "1Y"), "default_window")
    default_page_size = _parse_page_size(raw.get("default_page_size", 10))

    cash_flow_granularity = _parse_granularity(
        raw.get("cash_flow_granularity", "month"), "cash_flow_granularity"
    )
    trade_granularity = _parse_granularity(
        raw.get("trade_granularity", "quarter"), "trade_granularity"
    )

    output_dir = os.environ.get(OUTPUT_DIR_ENV_VAR) or str(raw.get("output_dir", "output"))

    return EngineConfig(
        portfolio_id=portfolio_id,
        currency=currency,
        default_window=default_window,
        default_page_size=default_page_size,
        cash_flow_granularity=cash_flow_granularity,
        trade_granularity=trade_granularity,
        output_dir=output_dir,
    )


def _parse_window(value: Any, field_name: str) -> LookbackWindow:
    """
    Parse a lookback window identifier (1M, 6M, YTD, 1Y, 2Y, 3Y, 5Y, ALL).

    Raises:
        ConfigurationError: If the value is not a known window
    """
    try:
        return LookbackWindow(str(value).strip().upper())
    except ValueError:
        valid = ", ".join(w.value for w in LookbackWindow)
        raise ConfigurationError(
            f"Invalid {field_name}: {value}. Expected one of: {valid}"
        )


def _parse_granularity(value: Any, field_name: str) -> BucketGranularity:
    try:
        return BucketGranularity(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid {field_name}: {value}. Expected 'month' or 'quarter'"
        )


def _parse_page_size(value: Any) -> int | str:
    """
    Parse a page size: a positive integer or the string "all".

    Raises:
        ConfigurationError: If the value is invalid
    """
    if isinstance(value, str) and value.strip().lower() == "all":
        return "all"

    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid default_page_size: {value}")

    try:
        page_size = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid default_page_size: {value}")

    if page_size < 1:
        raise ConfigurationError(
            f"default_page_size must be >= 1, got {page_size}"
        )

    return page_size


def create_default_config(
    portfolio_id: str,
    output_path: str | Path | None = None,
) -> EngineConfig:
    """
    Create an engine config with default parameters.

    Useful for programmatic configuration without a YAML file.

    Args:
        portfolio_id: Portfolio identifier
        output_path: Optional path to write config YAML

    Returns:
        EngineConfig with default settings
    """
    config = EngineConfig(portfolio_id=portfolio_id)

    if output_path:
        write_config(config, output_path)

    return config


def write_config(config: EngineConfig, output_path: str | Path) -> None:
    """
    Write an EngineConfig to a YAML file.

    Args:
        config: The configuration to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "portfolio_id": config.portfolio_id,
        "currency": config.currency,
        "default_window": config.default_window.value,
        "default_page_size": config.default_page_size,
        "cash_flow_granularity": config.cash_flow_granularity.value,
        "trade_granularity": config.trade_granularity.value,
        "output_dir": config.output_dir,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

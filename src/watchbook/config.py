# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for WatchBook.

This module is responsible for:
- loading the application configuration from a TOML file,
- applying defaults for every optional section,
- exposing typed dataclasses used by the rest of the application.
"""

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .db import DatabaseConfig
from .exceptions import ConfigError
from .log_config import parse_level

DEFAULT_CONFIG_FILE = "watchbook_config.toml"

DEFAULT_COMPARISON_METRICS: tuple[str, ...] = (
    "total_revenue",
    "total_cogs",
    "total_fees",
    "gross_profit",
    "net_profit",
    "average_margin",
    "profit_per_day",
    "sold_count",
    "avg_days_on_market",
)

DEFAULT_COST_LIKE_METRICS: tuple[str, ...] = (
    "total_cogs",
    "total_fees",
    "total_import_fees",
    "total_expenses",
)

EXPENSE_SCOPES = ("period", "all")
DISPLAY_MODES = ("table", "csv", "both")


@dataclass(frozen=True)
class FeeSettings:
    """Fixed fees and platform commission rates."""

    watch_register_fee: int = 600
    platform_rates: Mapping[str, float] = field(
        default_factory=lambda: {"chrono24": 0.065}
    )


@dataclass(frozen=True)
class MetricsSettings:
    """
    Tunables of the metrics aggregator and the comparator.

    Attributes
    ----------
    top_n:
        Number of top / bottom performers to report.
    quick_mover_days, slow_mover_days:
        Hold-time bucket bounds. Quick is strictly below quick_mover_days,
        slow is strictly above slow_mover_days, average is in between
        (both bounds inclusive).
    expense_scope:
        "period" to subtract only the expenses dated inside the selected
        period, "all" to subtract every recorded expense.
    include_import_fee:
        Subtract import fees of sold items from portfolio net profit.
    comparison_metrics:
        Metric keys rendered by the period comparison.
    cost_like_metrics:
        Metric keys whose percent change is sign-inverted so that a drop
        reads as an improvement.
    """

    top_n: int = 3
    quick_mover_days: int = 15
    slow_mover_days: int = 45
    expense_scope: str = "period"
    include_import_fee: bool = True
    comparison_metrics: tuple[str, ...] = DEFAULT_COMPARISON_METRICS
    cost_like_metrics: tuple[str, ...] = DEFAULT_COST_LIKE_METRICS


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for WatchBook.

    This aggregates:
    - the display currency (a single currency, amounts are stored in cents),
    - the database configuration,
    - fee and metrics settings,
    - display options for tables and CSV exports,
    - the logging level.
    """

    currency: str
    database: DatabaseConfig
    fees: FeeSettings
    metrics: MetricsSettings
    display_mode: str
    decimals: int
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigError: if the TOML content cannot be parsed.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML config file: {path}") from exc

    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a sub-table, or an empty mapping when missing or malformed."""
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _int_option(section: Mapping[str, Any], key: str, default: int) -> int:
    raw = section.get(key, default)
    if isinstance(raw, bool):
        raise ConfigError(f"Invalid value for '{key}': expected an integer.")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for '{key}': expected an integer.") from exc


def _bool_option(section: Mapping[str, Any], key: str, default: bool) -> bool:
    raw = section.get(key, default)
    if not isinstance(raw, bool):
        raise ConfigError(f"Invalid value for '{key}': expected true or false.")
    return raw


def _str_list_option(
    section: Mapping[str, Any], key: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    raw = section.get(key)
    if raw is None:
        return default
    if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
        raise ConfigError(f"Invalid value for '{key}': expected a list of strings.")
    return tuple(raw)


def _parse_fees(raw: Mapping[str, Any]) -> FeeSettings:
    fees_section = _section(raw, "fees")

    register_fee = _int_option(fees_section, "watch_register_fee", 600)
    if register_fee < 0:
        raise ConfigError("fees.watch_register_fee cannot be negative.")

    rates_section = _section(fees_section, "platform_rates")
    platform_rates: dict[str, float] = {"chrono24": 0.065}
    for name, value in rates_section.items():
        try:
            rate = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"Invalid platform rate for {name!r}: expected a number."
            ) from exc
        if not 0.0 <= rate < 1.0:
            raise ConfigError(f"Platform rate for {name!r} must be in [0, 1).")
        platform_rates[str(name).lower()] = rate

    return FeeSettings(watch_register_fee=register_fee, platform_rates=platform_rates)


def _parse_metrics(raw: Mapping[str, Any]) -> MetricsSettings:
    section = _section(raw, "metrics")

    top_n = _int_option(section, "top_n", 3)
    quick = _int_option(section, "quick_mover_days", 15)
    slow = _int_option(section, "slow_mover_days", 45)

    if top_n < 0:
        raise ConfigError("metrics.top_n cannot be negative.")
    if quick > slow:
        raise ConfigError(
            "metrics.quick_mover_days cannot be greater than metrics.slow_mover_days."
        )

    expense_scope = str(section.get("expense_scope", "period"))
    if expense_scope not in EXPENSE_SCOPES:
        raise ConfigError(
            f"Invalid metrics.expense_scope {expense_scope!r}, "
            f"expected one of {', '.join(EXPENSE_SCOPES)}."
        )

    return MetricsSettings(
        top_n=top_n,
        quick_mover_days=quick,
        slow_mover_days=slow,
        expense_scope=expense_scope,
        include_import_fee=_bool_option(section, "include_import_fee", True),
        comparison_metrics=_str_list_option(
            section, "comparison_metrics", DEFAULT_COMPARISON_METRICS
        ),
        cost_like_metrics=_str_list_option(
            section, "cost_like_metrics", DEFAULT_COST_LIKE_METRICS
        ),
    )


def default_app_config(db_path: Path) -> AppConfig:
    """Build an AppConfig with every default, pointing at `db_path`."""
    return AppConfig(
        currency="EUR",
        database=DatabaseConfig(engine="sqlite", path=db_path),
        fees=FeeSettings(),
        metrics=MetricsSettings(),
        display_mode="table",
        decimals=2,
        log_level="WARNING",
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the WatchBook application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [business]
        Display currency (e.g. "EUR"). Amounts are always stored as integer
        cents; only one currency is supported.

    [database]
        Database engine ("sqlite") and file path.

    [fees]
        watch_register_fee (cents) and an optional [fees.platform_rates]
        table of commission rates used by the quick estimate.

    [metrics]
        top_n, quick_mover_days, slow_mover_days, expense_scope,
        include_import_fee, comparison_metrics, cost_like_metrics.

    [display]
        mode ("table" | "csv" | "both") and decimals.

    [logging]
        level ("DEBUG", "INFO", "WARNING", ...).

    Every section is optional. All file paths in the TOML are resolved
    relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        'watchbook_config.toml' in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Business section
    business_section = _section(raw, "business")
    currency = str(business_section.get("currency") or "EUR")

    # 2) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/watchbook.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()

    # 3) Fees and metrics
    fees = _parse_fees(raw)
    metrics = _parse_metrics(raw)

    # 4) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ConfigError(
            f"Invalid display.mode {display_mode!r}, "
            f"expected one of {', '.join(DISPLAY_MODES)}."
        )
    decimals = _int_option(display_section, "decimals", 2)
    if decimals < 0:
        raise ConfigError("display.decimals cannot be negative.")

    # 5) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).strip().upper()
    try:
        parse_level(log_level)
    except ValueError as exc:
        raise ConfigError(f"Invalid logging.level: {exc}") from exc

    return AppConfig(
        currency=currency,
        database=DatabaseConfig(engine=db_engine, path=db_path),
        fees=fees,
        metrics=metrics,
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
    )

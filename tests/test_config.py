import logging

import pytest

from watchbook.config import (
    DEFAULT_COMPARISON_METRICS,
    FeeSettings,
    MetricsSettings,
    default_app_config,
    load_app_config,
)
from watchbook.exceptions import ConfigError
from watchbook.log_config import _WatchBookHandler, parse_level, setup_logging


def write_config(tmp_path, content: str):
    path = tmp_path / "watchbook_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_full_config_is_parsed(tmp_path):
    path = write_config(
        tmp_path,
        """
[business]
currency = "CHF"

[database]
engine = "sqlite"
path = "db/shop.sqlite"

[fees]
watch_register_fee = 800

[fees.platform_rates]
Chrono24 = 0.07
watchfinder = 0.1

[metrics]
top_n = 5
quick_mover_days = 10
slow_mover_days = 60
expense_scope = "all"
include_import_fee = false
comparison_metrics = ["total_revenue", "net_profit"]

[display]
mode = "both"
decimals = 0

[logging]
level = "debug"
""",
    )

    config = load_app_config(str(path))

    assert config.currency == "CHF"
    # Relative paths are resolved against the config file directory.
    assert config.database.path == (tmp_path / "db" / "shop.sqlite").resolve()
    assert config.fees.watch_register_fee == 800
    assert config.fees.platform_rates == {"chrono24": 0.07, "watchfinder": 0.1}
    assert config.metrics.top_n == 5
    assert config.metrics.quick_mover_days == 10
    assert config.metrics.slow_mover_days == 60
    assert config.metrics.expense_scope == "all"
    assert config.metrics.include_import_fee is False
    assert config.metrics.comparison_metrics == ("total_revenue", "net_profit")
    assert config.display_mode == "both"
    assert config.decimals == 0
    assert config.log_level == "DEBUG"


def test_empty_config_uses_defaults(tmp_path):
    path = write_config(tmp_path, "")

    config = load_app_config(str(path))

    assert config.currency == "EUR"
    assert config.database.engine == "sqlite"
    assert config.database.path == (tmp_path / "data" / "db" / "watchbook.sqlite").resolve()
    assert config.fees == FeeSettings()
    assert config.metrics == MetricsSettings()
    assert config.metrics.comparison_metrics == DEFAULT_COMPARISON_METRICS
    assert config.display_mode == "table"
    assert config.log_level == "WARNING"


def test_default_app_config(tmp_path):
    config = default_app_config(tmp_path / "x.sqlite")
    assert config.database.path == tmp_path / "x.sqlite"
    assert config.fees.watch_register_fee == 600
    assert config.metrics.top_n == 3


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


@pytest.mark.parametrize(
    "content",
    [
        "this is = = not toml",
        "[fees]\nwatch_register_fee = -1",
        "[fees]\nwatch_register_fee = 'a lot'",
        "[fees.platform_rates]\nchrono24 = 1.5",
        "[metrics]\ntop_n = -2",
        "[metrics]\nquick_mover_days = 50\nslow_mover_days = 20",
        "[metrics]\nexpense_scope = 'month'",
        "[metrics]\ncomparison_metrics = 'net_profit'",
        "[display]\nmode = 'html'",
        "[display]\ndecimals = 'two'",
        "[display]\ndecimals = -1",
        "[metrics]\ninclude_import_fee = 'false'",
        "[metrics]\ninclude_import_fee = 0",
        "[logging]\nlevel = 'LOUD'",
    ],
)
def test_invalid_values_raise_config_error(tmp_path, content):
    path = write_config(tmp_path, content)
    with pytest.raises(ConfigError):
        load_app_config(str(path))


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def test_parse_level():
    assert parse_level("info") == logging.INFO
    assert parse_level(" WARNING ") == logging.WARNING
    assert parse_level(10) == 10
    with pytest.raises(ValueError):
        parse_level("chatty")


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    previous_level = root.level
    try:
        setup_logging("INFO")
        setup_logging("DEBUG")

        handlers = [h for h in root.handlers if isinstance(h, _WatchBookHandler)]
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
        assert root.level == logging.DEBUG
    finally:
        for handler in [h for h in root.handlers if isinstance(h, _WatchBookHandler)]:
            root.removeHandler(handler)
        root.setLevel(previous_level)

import logging

import pytest

from watchbook.cli import _parse_amount, main
from watchbook.config import load_app_config
from watchbook.log_config import _WatchBookHandler
from watchbook.services import load_inventory_item


@pytest.fixture(autouse=True)
def drop_console_handler():
    """main() installs a console handler on the root logger; remove it after each test."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, _WatchBookHandler)]:
        root.removeHandler(handler)


def write_config(tmp_path) -> str:
    path = tmp_path / "watchbook_config.toml"
    path.write_text(
        '[database]\npath = "watchbook.sqlite"\n\n[display]\nmode = "table"\n',
        encoding="utf-8",
    )
    return str(path)


def run(config_path: str, *args: str):
    main(["--config", config_path, *args])


def test_parse_amount_converts_units_to_cents():
    assert _parse_amount("9000") == 900000
    assert _parse_amount("9000.5") == 900050
    assert _parse_amount("12,34") == 1234
    assert _parse_amount(None) is None

    with pytest.raises(SystemExit):
        _parse_amount("lots")


def test_version(capsys):
    main(["--version"])
    assert "watchbook version" in capsys.readouterr().out


def test_seed_then_dashboard(tmp_path, capsys):
    config_path = write_config(tmp_path)

    run(config_path, "seed")
    assert "Demo data inserted" in capsys.readouterr().out

    run(config_path, "seed")
    assert "not empty" in capsys.readouterr().out

    run(config_path, "dashboard")
    out = capsys.readouterr().out
    assert "=== Dashboard ===" in out
    assert "Inventory value" in out
    assert "Turn rate (days)" in out


def test_metrics_for_a_year(tmp_path, capsys):
    config_path = write_config(tmp_path)
    run(config_path, "seed")
    capsys.readouterr()

    run(config_path, "metrics", "--year", "2024")
    out = capsys.readouterr().out

    assert "Applied period: 2024 (EUR)" in out
    assert "=== Brands ===" in out
    assert "Patek Philippe" in out
    assert "=== Hold time ===" in out


def test_compare_and_monthly(tmp_path, capsys):
    config_path = write_config(tmp_path)
    run(config_path, "seed")
    capsys.readouterr()

    run(
        config_path,
        "compare",
        "--month-a",
        "12",
        "--year-a",
        "2024",
        "--month-b",
        "1",
        "--year-b",
        "2025",
        "--metrics",
        "total_revenue",
        "sold_count",
    )
    out = capsys.readouterr().out
    assert "Comparing December 2024 with January 2025" in out
    assert "total_revenue" in out

    run(config_path, "monthly", "--year", "2024")
    out = capsys.readouterr().out
    assert "Monthly breakdown 2024" in out
    assert "Dec" in out


def test_estimate(tmp_path, capsys):
    config_path = write_config(tmp_path)

    run(
        config_path,
        "estimate",
        "--buy",
        "5000",
        "--sale",
        "6500",
        "--service",
        "200",
        "--shipping",
        "30",
        "--platform",
        "chrono24",
        "--watch-register",
    )
    out = capsys.readouterr().out
    assert "Quick estimate" in out
    # 6500 - (5000 + 200 + 422.50 + 30 + 6)
    assert "841.5" in out


def test_estimate_unknown_platform_is_reported(tmp_path):
    config_path = write_config(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        run(config_path, "estimate", "--buy", "10", "--sale", "20", "--platform", "ebay")
    assert "Error:" in str(excinfo.value)


def test_inventory_add_sell_and_list(tmp_path, capsys):
    config_path = write_config(tmp_path)

    run(
        config_path,
        "inventory",
        "add",
        "--brand",
        "Rolex",
        "--model",
        "Explorer",
        "--reference",
        "124270",
        "--condition",
        "Mint",
        "--purchase-price",
        "6000",
        "--target-price",
        "7500",
        "--purchase-date",
        "2025-01-10",
        "--box",
    )
    assert "Added inventory item #1" in capsys.readouterr().out

    run(config_path, "inventory", "sell", "1", "--price", "7400", "--date", "2025-02-01")
    assert "marked as sold" in capsys.readouterr().out

    item = load_inventory_item(load_app_config(config_path), 1)
    assert item.status == "sold"
    assert item.box is True
    assert item.sale_price == 740000
    assert item.purchase_price == 600000

    run(config_path, "inventory", "list", "--status", "sold")
    out = capsys.readouterr().out
    assert "Explorer" in out
    assert "Total watches: 1" in out


def test_unknown_item_exits_with_error(tmp_path):
    config_path = write_config(tmp_path)
    with pytest.raises(SystemExit) as excinfo:
        run(config_path, "inventory", "show", "99")
    assert "not found" in str(excinfo.value)


def test_expenses_add_and_list(tmp_path, capsys):
    config_path = write_config(tmp_path)

    run(
        config_path,
        "expenses",
        "add",
        "--description",
        "Instagram ads",
        "--amount",
        "100",
        "--date",
        "2025-02-03",
        "--category",
        "marketing",
    )
    assert "Added expense #1" in capsys.readouterr().out

    run(config_path, "expenses", "list", "--category", "marketing")
    out = capsys.readouterr().out
    assert "Instagram ads" in out
    assert "Total expenses: 1 | Total amount: 100.00 EUR" in out


def test_csv_export(tmp_path, capsys):
    config_path = write_config(tmp_path)
    output_dir = tmp_path / "exports"

    main(
        [
            "--config",
            config_path,
            "--display-mode",
            "csv",
            "--output",
            str(output_dir),
            "dashboard",
        ]
    )

    files = list(output_dir.glob("dashboard_*.csv"))
    assert len(files) == 1
    assert "Wrote" in capsys.readouterr().out


def test_invalid_log_level_is_reported(tmp_path):
    path = tmp_path / "watchbook_config.toml"
    path.write_text(
        '[database]\npath = "watchbook.sqlite"\n\n[logging]\nlevel = "LOUD"\n',
        encoding="utf-8",
    )

    with pytest.raises(SystemExit) as excinfo:
        run(str(path), "dashboard")
    assert str(excinfo.value).startswith("Error:")
    assert "LOUD" in str(excinfo.value)


def test_missing_config_file_is_reported(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        run(str(tmp_path / "nope.toml"), "dashboard")
    assert "Config file not found" in str(excinfo.value)

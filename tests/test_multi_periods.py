from datetime import datetime

import pytest

from watchbook.config import MetricsSettings
from watchbook.db import Expense, InventoryItem
from watchbook.engine import compute_period_metrics
from watchbook.multi_periods import compute_metrics_multi_period, monthly_profit_breakdown
from watchbook.periods import PeriodSelector

NOW = datetime(2025, 6, 1)


def make_item(item_id: int, **overrides) -> InventoryItem:
    values = dict(
        id=item_id,
        brand="Omega",
        model="Seamaster",
        reference_number="210.30.42.20.01.001",
        condition="Used",
        purchase_price=300000,
        target_sell_price=420000,
        status="in_stock",
    )
    values.update(overrides)
    return InventoryItem(**values)


def sample_records() -> tuple[list[InventoryItem], list[Expense]]:
    items = [
        make_item(
            1,
            status="sold",
            sale_price=400000,
            service_fee=15000,
            watch_register=True,
            sold_date=datetime(2025, 2, 14),
        ),
        make_item(
            2,
            status="sold",
            sold_price=380000,
            date_sold=datetime(2024, 2, 3),
        ),
        make_item(3, status="sold", sale_price=450000),  # no sold date: ignored
        make_item(4, purchase_date=datetime(2025, 2, 1)),  # active: ignored
    ]
    expenses = [
        Expense(id=1, description="Ads", amount=10000, date=datetime(2025, 2, 2)),
        Expense(id=2, description="Rent", amount=40000, date=datetime(2025, 5, 1)),
    ]
    return items, expenses


def test_monthly_breakdown_has_twelve_months():
    items, expenses = sample_records()
    df = monthly_profit_breakdown(items, expenses, 2025)

    assert list(df.columns) == [
        "month",
        "label",
        "revenue",
        "cogs",
        "fees",
        "import_fees",
        "expenses",
        "profit",
    ]
    assert list(df["month"]) == list(range(1, 13))
    assert df.loc[0, "label"] == "Jan"

    feb = df[df["month"] == 2].iloc[0]
    assert feb["revenue"] == 400000
    assert feb["cogs"] == 300000
    assert feb["fees"] == 15600
    assert feb["expenses"] == 10000
    assert feb["profit"] == 400000 - 300000 - 15600 - 10000

    may = df[df["month"] == 5].iloc[0]
    assert may["expenses"] == 40000
    assert may["profit"] == -40000

    assert df["revenue"].sum() == 400000


def test_monthly_breakdown_merges_years_when_not_restricted():
    items, expenses = sample_records()
    df = monthly_profit_breakdown(items, expenses)

    feb = df[df["month"] == 2].iloc[0]
    assert feb["revenue"] == 400000 + 380000
    assert feb["cogs"] == 600000


def test_monthly_breakdown_empty():
    df = monthly_profit_breakdown([], [])
    assert len(df) == 12
    assert int(df["profit"].abs().sum()) == 0


def test_multi_period_metrics_long_format():
    items, expenses = sample_records()
    selectors = [PeriodSelector(1, 2025), PeriodSelector(1, 2024)]

    df = compute_metrics_multi_period(
        items,
        expenses,
        selectors,
        metric_keys=["total_revenue", "sold_count"],
        now=NOW,
    )

    assert list(df.columns) == ["period_label", "metric_key", "label", "value", "unit"]
    assert len(df) == 4
    assert list(df["period_label"]) == [
        "February 2025",
        "February 2025",
        "February 2024",
        "February 2024",
    ]

    values = df.set_index(["period_label", "metric_key"])["value"]
    assert values[("February 2025", "total_revenue")] == 400000
    # Item 3 has no sold date: it passes every filter but is not a sale.
    assert values[("February 2025", "sold_count")] == 1
    assert values[("February 2024", "total_revenue")] == 380000


def test_multi_period_requires_a_period():
    with pytest.raises(ValueError):
        compute_metrics_multi_period([], [], [])


def test_monthly_profit_matches_engine_net_profit():
    items = [
        make_item(
            1,
            purchase_price=900000,
            status="sold",
            sale_price=1150000,
            import_fee=20000,
            sold_date=datetime(2025, 2, 10),
        ),
        make_item(
            2,
            status="sold",
            sale_price=350000,
            import_fee=5000,
            platform_fees=22750,
            watch_register=True,
            sold_date=datetime(2025, 7, 1),
        ),
    ]
    expenses = [Expense(id=1, description="Ads", amount=10000, date=datetime(2025, 2, 2))]

    for settings in (MetricsSettings(), MetricsSettings(include_import_fee=False)):
        df = monthly_profit_breakdown(items, expenses, 2025, settings=settings, now=NOW)
        for month in range(1, 13):
            snapshot = compute_period_metrics(
                items,
                expenses,
                PeriodSelector(month - 1, 2025),
                expense_scope="period",
                settings=settings,
                now=NOW,
            )
            row = df[df["month"] == month].iloc[0]
            assert row["profit"] == snapshot.net_profit
            assert row["import_fees"] == snapshot.total_import_fees

    feb = monthly_profit_breakdown(items, expenses, 2025, now=NOW).iloc[1]
    assert feb["import_fees"] == 20000
    assert feb["profit"] == 1150000 - 900000 - 20000 - 10000

    feb_without_import = monthly_profit_breakdown(
        items, expenses, 2025, settings=MetricsSettings(include_import_fee=False), now=NOW
    ).iloc[1]
    assert feb_without_import["profit"] == 1150000 - 900000 - 10000

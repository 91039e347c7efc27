import math
from dataclasses import fields
from datetime import date, datetime, timedelta

import pytest

from watchbook.config import MetricsSettings
from watchbook.db import Expense, InventoryItem
from watchbook.engine import (
    METRICS,
    compute_dashboard_stats,
    compute_item_performance,
    compute_metrics,
    compute_period_metrics,
)
from watchbook.periods import PeriodSelector

NOW = datetime(2025, 3, 1, 12, 0)


def make_item(item_id: int, **overrides) -> InventoryItem:
    values = dict(
        id=item_id,
        brand="Rolex",
        model="Submariner",
        reference_number="124060",
        condition="New",
        purchase_price=900000,
        target_sell_price=1150000,
        status="in_stock",
    )
    values.update(overrides)
    return InventoryItem(**values)


def sold_submariner(item_id: int = 1, **overrides) -> InventoryItem:
    """The reference sale: 9000.00 in, 11500.00 out, service and register fee."""
    values = dict(
        status="sold",
        sale_price=1150000,
        service_fee=10000,
        watch_register=True,
        purchase_date=datetime(2025, 1, 10),
        sold_date=datetime(2025, 2, 10),
    )
    values.update(overrides)
    return make_item(item_id, **values)


# ---------------------------------------------------------------------------
# Empty input
# ---------------------------------------------------------------------------


def test_empty_input_yields_zeros():
    snapshot = compute_metrics([], [], now=NOW)

    for key, value in snapshot.as_measures().items():
        assert not math.isnan(value), key
        if key != "days_in_period":
            assert value == 0, key

    assert snapshot.days_in_period == 365
    assert snapshot.profit_per_day == 0.0
    assert snapshot.sold_items == ()
    assert snapshot.active_items == ()
    assert snapshot.brands == ()
    assert snapshot.top_performers == ()
    assert snapshot.bottom_performers == ()
    assert snapshot.hold_time_buckets.quick == ()
    assert snapshot.most_popular_brand is None


def test_every_metric_key_is_a_snapshot_attribute():
    snapshot = compute_metrics([], [], now=NOW)
    names = {f.name for f in fields(snapshot)} | {"sold_count", "active_count"}
    assert set(METRICS) <= names


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------


def test_single_sold_item_scenario():
    perf = compute_item_performance(sold_submariner())

    assert perf.fees == 10600
    assert perf.profit == 239400
    assert perf.roi == pytest.approx(26.6, abs=0.01)
    assert perf.days_on_market == 31


def test_active_and_sold_items_scenario():
    items = [
        make_item(1, purchase_price=400000, status="servicing"),
        sold_submariner(2),
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert snapshot.capital_deployed == 400000
    assert snapshot.total_revenue == 1150000
    assert snapshot.total_cogs == 900000
    assert snapshot.total_fees == 10600
    assert snapshot.gross_profit == 250000
    assert snapshot.net_profit == 239400
    assert snapshot.sold_count == 1
    assert snapshot.active_count == 1


def test_brand_grouping_scenario():
    items = [
        make_item(
            1,
            brand="Omega",
            status="sold",
            purchase_price=400000,
            sale_price=450000,
            sold_date=datetime(2025, 2, 1),
        ),
        make_item(
            2,
            brand="Rolex",
            status="sold",
            purchase_price=900000,
            sale_price=1000000,
            sold_date=datetime(2025, 2, 2),
        ),
        make_item(
            3,
            brand="Rolex",
            status="sold",
            purchase_price=800000,
            sale_price=900000,
            sold_date=datetime(2025, 2, 3),
        ),
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert [b.brand for b in snapshot.brands] == ["Rolex", "Omega"]
    rolex, omega = snapshot.brands
    assert rolex.count == 2
    assert rolex.profit == 200000
    assert rolex.avg_per_watch == 100000
    assert omega.count == 1
    assert omega.avg_per_watch == omega.profit == 50000
    assert snapshot.most_popular_brand == "Rolex"


def test_brand_ties_keep_first_seen_order():
    items = [
        make_item(1, brand="Rolex", status="sold", sale_price=1000000, sold_date=NOW),
        make_item(2, brand="Omega", status="sold", sale_price=950000, sold_date=NOW),
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert [b.brand for b in snapshot.brands] == ["Rolex", "Omega"]
    assert snapshot.brands[0].avg_per_watch == 100000
    assert snapshot.brands[1].avg_per_watch == 50000


# ---------------------------------------------------------------------------
# Aggregation rules
# ---------------------------------------------------------------------------


def test_sold_item_without_sold_date_is_not_a_sale():
    item = make_item(1, status="sold", sale_price=1150000)
    snapshot = compute_metrics([item], [], now=NOW)

    assert snapshot.sold_items == ()
    assert snapshot.total_revenue == 0
    # Not active either: its status is sold.
    assert snapshot.active_items == ()
    assert snapshot.capital_deployed == 0


def test_legacy_sold_columns_are_used():
    item = make_item(
        1,
        status="sold",
        sale_price=0,
        sold_price=1100000,
        date_sold=datetime(2025, 2, 1),
    )
    snapshot = compute_metrics([item], [], now=NOW)

    assert snapshot.total_revenue == 1100000
    assert snapshot.gross_profit == 200000


def test_missing_sale_price_counts_as_zero():
    item = make_item(1, status="sold", sold_date=datetime(2025, 2, 1))
    snapshot = compute_metrics([item], [], now=NOW)

    assert snapshot.sold_count == 1
    assert snapshot.total_revenue == 0
    assert snapshot.total_cogs == 900000
    assert snapshot.gross_profit == -900000
    assert snapshot.average_margin == 0.0


def test_gross_profit_identity_and_margin():
    items = [
        sold_submariner(1),
        sold_submariner(2, sale_price=1000000, watch_register=False, service_fee=0),
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert snapshot.gross_profit == snapshot.total_revenue - snapshot.total_cogs
    assert snapshot.average_margin == pytest.approx(
        snapshot.net_profit / snapshot.total_revenue * 100
    )


def test_net_profit_subtracts_import_fees_and_expenses():
    items = [sold_submariner(1, import_fee=20000)]
    expenses = [
        Expense(id=1, description="Ads", amount=5000, date=datetime(2025, 2, 1)),
        Expense(id=2, description="Box", amount=1000, date=datetime(2025, 2, 5)),
    ]
    snapshot = compute_metrics(items, expenses, now=NOW)

    assert snapshot.total_import_fees == 20000
    assert snapshot.total_expenses == 6000
    assert snapshot.net_profit == 250000 - 10600 - 20000 - 6000

    no_import = compute_metrics(
        items, expenses, settings=MetricsSettings(include_import_fee=False), now=NOW
    )
    assert no_import.net_profit == 250000 - 10600 - 6000


def test_average_margin_is_zero_without_revenue():
    expenses = [Expense(id=1, description="Rent", amount=50000, date=NOW)]
    snapshot = compute_metrics([make_item(1)], expenses, now=NOW)

    assert snapshot.total_revenue == 0
    assert snapshot.net_profit == -50000
    assert snapshot.average_margin == 0.0


def test_roi_is_zero_when_purchase_price_is_zero():
    perf = compute_item_performance(
        make_item(1, purchase_price=0, status="sold", sale_price=1000, sold_date=NOW)
    )
    assert perf.profit == 1000
    assert perf.roi == 0.0


def test_days_on_market_is_floored_and_defaults_to_zero():
    backwards = make_item(
        1,
        status="sold",
        purchase_date=datetime(2025, 2, 10),
        sold_date=datetime(2025, 1, 10),
    )
    assert compute_item_performance(backwards).days_on_market == 0

    undated = make_item(2, status="sold", sold_date=datetime(2025, 1, 10))
    assert compute_item_performance(undated).days_on_market == 0


def test_avg_hold_time_covers_sold_and_active_items():
    items = [
        sold_submariner(1),  # 31 days
        make_item(2, purchase_date=datetime(2025, 2, 19)),  # 10 days until NOW
    ]
    snapshot = compute_metrics(items, [], now=NOW)
    assert snapshot.avg_hold_time == pytest.approx(20.5)


def test_top_and_bottom_performers():
    profits = [50000, 10000, 90000, 30000, 70000]
    items = [
        make_item(
            i + 1,
            status="sold",
            purchase_price=100000,
            sale_price=100000 + profit,
            sold_date=datetime(2025, 2, 1),
        )
        for i, profit in enumerate(profits)
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert [p.profit for p in snapshot.top_performers] == [90000, 70000, 50000]
    assert [p.profit for p in snapshot.bottom_performers] == [10000, 30000, 50000]

    top_two = compute_metrics(items, [], top_n=2, now=NOW)
    assert [p.item.id for p in top_two.top_performers] == [3, 5]


def test_hold_time_buckets():
    def sold_after(item_id: int, days: int) -> InventoryItem:
        return make_item(
            item_id,
            status="sold",
            sale_price=1000000,
            purchase_date=datetime(2025, 1, 1),
            sold_date=datetime(2025, 1, 1) + timedelta(days=days),
        )

    items = [sold_after(1, 14), sold_after(2, 15), sold_after(3, 45), sold_after(4, 46)]
    buckets = compute_metrics(items, [], now=NOW).hold_time_buckets

    assert [p.item.id for p in buckets.quick] == [1]
    assert [p.item.id for p in buckets.average] == [2, 3]
    assert [p.item.id for p in buckets.slow] == [4]


def test_supplementary_averages():
    items = [
        sold_submariner(1),
        sold_submariner(
            2,
            sale_price=1000000,
            service_fee=0,
            watch_register=False,
            sold_date=datetime(2025, 1, 20),
        ),
    ]
    snapshot = compute_metrics(items, [], now=NOW)

    assert snapshot.avg_profit_per_watch == pytest.approx((239400 + 100000) / 2)
    assert snapshot.avg_roi == pytest.approx((239400 / 900000 * 100 + 100000 / 900000 * 100) / 2)
    assert snapshot.avg_days_on_market == pytest.approx((31 + 10) / 2)


# ---------------------------------------------------------------------------
# Profit per day
# ---------------------------------------------------------------------------


def test_profit_per_day_for_a_month():
    snapshot = compute_metrics(
        [sold_submariner()], [], selector=PeriodSelector(1, 2025), now=NOW
    )
    assert snapshot.days_in_period == 28
    assert snapshot.profit_per_day == pytest.approx(239400 / 28)
    assert snapshot.period_label == "February 2025"


def test_profit_per_day_all_time_spans_from_first_sale():
    snapshot = compute_metrics([sold_submariner()], [], now=NOW, today=date(2025, 2, 19))
    assert snapshot.days_in_period == 10
    assert snapshot.profit_per_day == pytest.approx(23940)


def test_profit_per_day_without_sales_uses_365_days():
    expenses = [Expense(id=1, description="Rent", amount=36500, date=NOW)]
    snapshot = compute_metrics([make_item(1)], expenses, now=NOW)

    assert snapshot.days_in_period == 365
    assert snapshot.profit_per_day == pytest.approx(-100)


# ---------------------------------------------------------------------------
# Period metrics
# ---------------------------------------------------------------------------


def test_compute_period_metrics_filters_items_and_expenses():
    items = [
        sold_submariner(1),  # February 2025
        make_item(2, purchase_price=400000, purchase_date=datetime(2025, 1, 20)),
    ]
    expenses = [
        Expense(id=1, description="Ads", amount=5000, date=datetime(2025, 2, 3)),
        Expense(id=2, description="Rent", amount=20000, date=datetime(2025, 1, 3)),
    ]

    february = compute_period_metrics(items, expenses, PeriodSelector(1, 2025), now=NOW)
    assert february.sold_count == 1
    assert february.capital_deployed == 0
    assert february.total_expenses == 5000

    all_expenses = compute_period_metrics(
        items, expenses, PeriodSelector(1, 2025), expense_scope="all", now=NOW
    )
    assert all_expenses.total_expenses == 25000

    january = compute_period_metrics(items, expenses, PeriodSelector(0, 2025), now=NOW)
    assert january.sold_count == 0
    assert january.capital_deployed == 400000
    assert january.total_expenses == 20000


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_dashboard_stats():
    items = [
        make_item(1, purchase_price=400000, status="servicing"),
        make_item(2, purchase_price=900000, status="in_stock"),
        make_item(3, purchase_price=300000, status="incoming"),
        sold_submariner(4, import_fee=20000),
        sold_submariner(
            5,
            sale_price=1000000,
            service_fee=0,
            watch_register=False,
            sold_date=datetime(2025, 1, 20),
        ),
    ]
    stats = compute_dashboard_stats(items)

    assert stats.total_inventory_value == 1600000
    assert stats.total_profit == 239400 - 20000 + 100000
    assert stats.active_inventory_count == 2
    assert stats.sold_inventory_count == 2
    assert stats.turn_rate == round((31 + 10) / 2)

    no_import = compute_dashboard_stats(items, include_import_fee=False)
    assert no_import.total_profit == 239400 + 100000


def test_dashboard_stats_empty():
    stats = compute_dashboard_stats([])
    assert stats.total_inventory_value == 0
    assert stats.total_profit == 0
    assert stats.active_inventory_count == 0
    assert stats.sold_inventory_count == 0
    assert stats.turn_rate == 0

# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core metrics aggregation engine for WatchBook.

This module turns raw transactional records (inventory items and expenses)
into the business metrics shown by the dashboard, metrics, financials and
comparison views. Every view goes through this module, so that a metric
means the same thing everywhere.

The engine has three main responsibilities:

1. Snapshot aggregation
   --------------------
   `compute_metrics()` reduces an already period-filtered set of items and
   the expenses in scope into a `MetricsSnapshot`:

   - sold items (status "sold" with a resolved sold date) and active items
     (status other than "sold"),
   - revenue, cost of goods sold, fees, import fees, expenses,
   - gross profit, net profit, average margin,
   - per-item profit, ROI and days on market,
   - capital deployed and average hold time,
   - brand breakdown, top / bottom performers, hold-time buckets,
   - profit per day over the period.

   `compute_period_metrics()` applies the Period Filter first, then calls
   `compute_metrics()`.

2. Dashboard statistics
   --------------------
   `compute_dashboard_stats()` computes the whole-business snapshot shown on
   the dashboard (capital deployed, realized profit, counts, turn rate),
   using the same fee composition as the snapshot.

3. Metric metadata
   ---------------
   `METRICS` maps every scalar metric key to a `MeasureMeta` (label and
   unit). It is used by the comparison, the multi-period analysis and the
   DataFrame views.

Notes
-----
All functions are total over well-typed input: empty or partial records
degrade to zero-valued metrics, never to an exception or a NaN. Input
validation happens upstream, in services.py.

Money values are integer cents. Percentages and per-day values are floats.
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .config import MetricsSettings
from .db import Expense, InventoryItem
from .fees import WATCH_REGISTER_FEE, compose_item_fees, import_fee_of
from .periods import (
    ALL_TIME,
    PeriodSelector,
    _now,
    days_in_period,
    filter_expenses_by_period,
    filter_items_by_period,
)

# ---------------------------------------------------------------------------
# Metadata for scalar metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MeasureMeta:
    """
    Metadata associated with a scalar metric.

    Attributes
    ----------
    key :
        Unique identifier of the metric (e.g. 'net_profit').
    label :
        Human-readable label for display.
    unit :
        Unit hint: 'amount' (cents), 'percent', 'days' or 'count'.
    notes :
        Optional short definition.
    """

    key: str
    label: str
    unit: str
    notes: str = ""


def _meta(key: str, label: str, unit: str, notes: str = "") -> tuple[str, MeasureMeta]:
    return key, MeasureMeta(key=key, label=label, unit=unit, notes=notes)


METRICS: Mapping[str, MeasureMeta] = dict(
    [
        _meta("total_revenue", "Total revenue", "amount", "Sum of sale prices"),
        _meta("total_cogs", "Cost of goods sold", "amount", "Sum of purchase prices"),
        _meta("total_fees", "Total fees", "amount", "Per-item fees, import excluded"),
        _meta("total_import_fees", "Import fees", "amount"),
        _meta("total_expenses", "Business expenses", "amount"),
        _meta("gross_profit", "Gross profit", "amount", "Revenue - COGS"),
        _meta(
            "net_profit",
            "Net profit",
            "amount",
            "Gross profit - fees - import fees - expenses",
        ),
        _meta("average_margin", "Average margin", "percent", "Net profit / revenue"),
        _meta("capital_deployed", "Capital deployed", "amount", "Active purchase prices"),
        _meta("avg_hold_time", "Average hold time", "days"),
        _meta("days_in_period", "Days in period", "days"),
        _meta("profit_per_day", "Profit per day", "amount"),
        _meta("sold_count", "Watches sold", "count"),
        _meta("active_count", "Active watches", "count"),
        _meta("avg_profit_per_watch", "Average profit per watch", "amount"),
        _meta("avg_roi", "Average ROI", "percent"),
        _meta("avg_days_on_market", "Average days on market", "days"),
    ]
)

# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ItemPerformance:
    """Profit, ROI and days on market of one sold item."""

    item: InventoryItem
    revenue: int
    fees: int
    profit: int
    roi: float
    days_on_market: int


@dataclass(frozen=True)
class BrandStats:
    """Sales of one brand over the period."""

    brand: str
    count: int
    revenue: int
    profit: int

    @property
    def avg_per_watch(self) -> float:
        return self.profit / self.count if self.count else 0.0


@dataclass(frozen=True)
class HoldTimeBuckets:
    """Sold items partitioned by days on market."""

    quick: tuple[ItemPerformance, ...] = ()
    average: tuple[ItemPerformance, ...] = ()
    slow: tuple[ItemPerformance, ...] = ()


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Every metric computed for one period.

    Scalar metrics are listed in `METRICS` and returned by `as_measures()`.
    """

    period_label: str

    sold_items: tuple[InventoryItem, ...] = ()
    active_items: tuple[InventoryItem, ...] = ()

    total_revenue: int = 0
    total_cogs: int = 0
    total_fees: int = 0
    total_import_fees: int = 0
    total_expenses: int = 0
    gross_profit: int = 0
    net_profit: int = 0
    average_margin: float = 0.0

    performances: tuple[ItemPerformance, ...] = ()
    capital_deployed: int = 0
    avg_hold_time: float = 0.0

    brands: tuple[BrandStats, ...] = ()
    top_performers: tuple[ItemPerformance, ...] = ()
    bottom_performers: tuple[ItemPerformance, ...] = ()
    hold_time_buckets: HoldTimeBuckets = field(default_factory=HoldTimeBuckets)

    days_in_period: int = 0
    profit_per_day: float = 0.0

    avg_profit_per_watch: float = 0.0
    avg_roi: float = 0.0
    avg_days_on_market: float = 0.0
    most_popular_brand: Optional[str] = None

    @property
    def sold_count(self) -> int:
        return len(self.sold_items)

    @property
    def active_count(self) -> int:
        return len(self.active_items)

    def as_measures(self) -> dict[str, float]:
        """Return {metric key -> value} for every key in METRICS."""
        return {key: float(getattr(self, key)) for key in METRICS}


@dataclass(frozen=True)
class DashboardStats:
    """
    Whole-business snapshot shown on the dashboard.

    Attributes
    ----------
    total_inventory_value:
        Capital deployed: purchase prices of every item not yet sold.
    total_profit:
        Realized profit of sold items, after per-item fees and import fees,
        before business expenses.
    active_inventory_count:
        Items in stock or at service.
    sold_inventory_count:
        Items with status "sold".
    turn_rate:
        Average days held by sold items, rounded to a whole day.
    """

    total_inventory_value: int
    total_profit: int
    active_inventory_count: int
    sold_inventory_count: int
    turn_rate: int


# ---------------------------------------------------------------------------
# Per-item helpers
# ---------------------------------------------------------------------------


def _days_between(start: Optional[datetime], end: Optional[datetime]) -> int:
    """Whole days from start to end, floored at 0, 0 when a date is missing."""
    if start is None or end is None:
        return 0
    if start.tzinfo is not None:
        start = start.replace(tzinfo=None)
    if end.tzinfo is not None:
        end = end.replace(tzinfo=None)
    return max(0, (end - start).days)


def is_finalized_sale(item: InventoryItem) -> bool:
    """True for items with status "sold" and a resolved sold date."""
    return item.is_sold and item.resolved_sold_date is not None


def compute_item_performance(
    item: InventoryItem,
    watch_register_fee: int = WATCH_REGISTER_FEE,
) -> ItemPerformance:
    """
    Compute profit, ROI and days on market of one item.

    profit = sale price - purchase price - per-item fees
    roi    = profit / purchase price * 100 (0 when purchase price is 0)
    """
    revenue = item.resolved_sale_price
    fees = compose_item_fees(item, watch_register_fee)
    purchase = item.purchase_price or 0
    profit = revenue - purchase - fees
    roi = profit / purchase * 100 if purchase else 0.0

    return ItemPerformance(
        item=item,
        revenue=revenue,
        fees=fees,
        profit=profit,
        roi=roi,
        days_on_market=_days_between(item.purchase_date, item.resolved_sold_date),
    )


def _hold_days(item: InventoryItem, now: datetime) -> int:
    end = item.resolved_sold_date if item.is_sold else None
    return _days_between(item.purchase_date, end or now)


def _brand_breakdown(performances: Iterable[ItemPerformance]) -> tuple[BrandStats, ...]:
    """Group by brand, sorted by count descending (first-seen order on ties)."""
    totals: dict[str, list[int]] = {}
    for perf in performances:
        entry = totals.setdefault(perf.item.brand, [0, 0, 0])
        entry[0] += 1
        entry[1] += perf.revenue
        entry[2] += perf.profit

    brands = [
        BrandStats(brand=brand, count=count, revenue=revenue, profit=profit)
        for brand, (count, revenue, profit) in totals.items()
    ]
    brands.sort(key=lambda b: b.count, reverse=True)
    return tuple(brands)


def _hold_time_buckets(
    performances: Iterable[ItemPerformance],
    quick_days: int,
    slow_days: int,
) -> HoldTimeBuckets:
    quick: list[ItemPerformance] = []
    average: list[ItemPerformance] = []
    slow: list[ItemPerformance] = []
    for perf in performances:
        if perf.days_on_market < quick_days:
            quick.append(perf)
        elif perf.days_on_market > slow_days:
            slow.append(perf)
        else:
            average.append(perf)
    return HoldTimeBuckets(quick=tuple(quick), average=tuple(average), slow=tuple(slow))


# ---------------------------------------------------------------------------
# Snapshot aggregation
# ---------------------------------------------------------------------------


def compute_metrics(
    items: Sequence[InventoryItem],
    expenses: Sequence[Expense],
    *,
    selector: Optional[PeriodSelector] = None,
    settings: Optional[MetricsSettings] = None,
    top_n: Optional[int] = None,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> MetricsSnapshot:
    """
    Reduce a period-filtered record set into a MetricsSnapshot.

    Parameters
    ----------
    items:
        Inventory items already filtered to the period.
    expenses:
        Expenses in scope (period-filtered or all, per caller).
    selector:
        Period the items were filtered on. Only used for the label and the
        number of days in the period. Defaults to "all time".
    settings:
        Metrics settings (top N, hold-time thresholds, import fee toggle).
    top_n:
        Overrides settings.top_n when given.
    watch_register_fee:
        Fixed fee added to registered items.
    now, today:
        Reference datetime / date for hold time and days in period.
        Default to the current time.

    Returns
    -------
    MetricsSnapshot
        Zero-valued for empty input, never NaN.
    """
    if selector is None:
        selector = ALL_TIME
    if settings is None:
        settings = MetricsSettings()
    if top_n is None:
        top_n = settings.top_n
    if now is None:
        now = _now()
    if today is None:
        today = now.date()

    sold_items = tuple(item for item in items if is_finalized_sale(item))
    active_items = tuple(item for item in items if not item.is_sold)

    performances = tuple(
        compute_item_performance(item, watch_register_fee) for item in sold_items
    )

    total_revenue = sum(perf.revenue for perf in performances)
    total_cogs = sum(item.purchase_price or 0 for item in sold_items)
    total_fees = sum(perf.fees for perf in performances)
    total_import_fees = sum(import_fee_of(item) for item in sold_items)
    total_expenses = sum(expense.amount or 0 for expense in expenses)

    gross_profit = total_revenue - total_cogs
    net_profit = gross_profit - total_fees - total_expenses
    if settings.include_import_fee:
        net_profit -= total_import_fees

    average_margin = net_profit / total_revenue * 100 if total_revenue else 0.0

    capital_deployed = sum(item.purchase_price or 0 for item in active_items)
    avg_hold_time = (
        statistics.fmean(_hold_days(item, now) for item in items) if items else 0.0
    )

    by_profit = sorted(performances, key=lambda p: p.profit, reverse=True)
    worst_first = sorted(performances, key=lambda p: p.profit)
    top_performers = tuple(by_profit[:top_n])
    bottom_performers = tuple(worst_first[:top_n])

    brands = _brand_breakdown(performances)

    n_days = days_in_period(selector, sold_items, today)
    profit_per_day = net_profit / n_days if n_days else 0.0

    sold_count = len(sold_items)
    avg_profit_per_watch = (
        sum(perf.profit for perf in performances) / sold_count if sold_count else 0.0
    )
    roi_values = [
        perf.roi
        for perf in performances
        if (perf.item.purchase_price or 0) > 0 and perf.revenue > 0
    ]
    avg_roi = statistics.fmean(roi_values) if roi_values else 0.0

    dated = [p.days_on_market for p in performances if p.item.purchase_date is not None]
    avg_days_on_market = statistics.fmean(dated) if dated else 0.0

    return MetricsSnapshot(
        period_label=selector.label,
        sold_items=sold_items,
        active_items=active_items,
        total_revenue=total_revenue,
        total_cogs=total_cogs,
        total_fees=total_fees,
        total_import_fees=total_import_fees,
        total_expenses=total_expenses,
        gross_profit=gross_profit,
        net_profit=net_profit,
        average_margin=average_margin,
        performances=performances,
        capital_deployed=capital_deployed,
        avg_hold_time=avg_hold_time,
        brands=brands,
        top_performers=top_performers,
        bottom_performers=bottom_performers,
        hold_time_buckets=_hold_time_buckets(
            performances, settings.quick_mover_days, settings.slow_mover_days
        ),
        days_in_period=n_days,
        profit_per_day=profit_per_day,
        avg_profit_per_watch=avg_profit_per_watch,
        avg_roi=avg_roi,
        avg_days_on_market=avg_days_on_market,
        most_popular_brand=brands[0].brand if brands else None,
    )


def compute_period_metrics(
    items: Sequence[InventoryItem],
    expenses: Sequence[Expense],
    selector: PeriodSelector,
    *,
    expense_scope: Optional[str] = None,
    settings: Optional[MetricsSettings] = None,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> MetricsSnapshot:
    """
    Filter the full record set on `selector`, then compute its metrics.

    Parameters
    ----------
    expense_scope:
        "period" subtracts only the expenses dated in the period, "all"
        subtracts every expense. Defaults to settings.expense_scope.
    """
    if settings is None:
        settings = MetricsSettings()
    if expense_scope is None:
        expense_scope = settings.expense_scope

    period_items = filter_items_by_period(items, selector)
    if expense_scope == "all":
        period_expenses = list(expenses)
    else:
        period_expenses = filter_expenses_by_period(expenses, selector)

    return compute_metrics(
        period_items,
        period_expenses,
        selector=selector,
        settings=settings,
        watch_register_fee=watch_register_fee,
        now=now,
        today=today,
    )


# ---------------------------------------------------------------------------
# Dashboard statistics
# ---------------------------------------------------------------------------

ACTIVE_DASHBOARD_STATUSES = ("in_stock", "servicing")


def compute_dashboard_stats(
    items: Sequence[InventoryItem],
    *,
    include_import_fee: bool = True,
    watch_register_fee: int = WATCH_REGISTER_FEE,
) -> DashboardStats:
    """
    Compute the dashboard statistics over the whole inventory.

    Uses the same fee composition and sold-item definition as
    `compute_metrics()`, so the dashboard profit matches the all-time
    snapshot net profit before business expenses.
    """
    total_inventory_value = sum(
        item.purchase_price or 0 for item in items if not item.is_sold
    )

    total_profit = 0
    held_days: list[int] = []
    for item in items:
        if not is_finalized_sale(item):
            continue
        perf = compute_item_performance(item, watch_register_fee)
        total_profit += perf.profit
        if include_import_fee:
            total_profit -= import_fee_of(item)
        if item.purchase_date is not None:
            held_days.append(perf.days_on_market)

    turn_rate = round(statistics.fmean(held_days)) if held_days else 0

    return DashboardStats(
        total_inventory_value=total_inventory_value,
        total_profit=total_profit,
        active_inventory_count=sum(
            1 for item in items if item.status in ACTIVE_DASHBOARD_STATUSES
        ),
        sold_inventory_count=sum(1 for item in items if item.is_sold),
        turn_rate=turn_rate,
    )

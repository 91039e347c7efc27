# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period-over-period comparison.

`compare_metrics()` runs the metrics engine independently over two period
selections of the full record set and pairs the resulting values:

    diff           = value1 - value2
    percent_change = diff / |value2| * 100    if value2 != 0
                   = 100 if value1 > 0 else 0  otherwise

For cost-like metrics (fees, COGS, expenses...) the sign of the percent
change is inverted, so that a decrease in cost reads as an improvement.

Both periods are recomputed from scratch on every call.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .config import MetricsSettings
from .db import Expense, InventoryItem
from .engine import METRICS, MetricsSnapshot, compute_period_metrics
from .exceptions import ValidationError
from .fees import WATCH_REGISTER_FEE
from .periods import PeriodSelector


@dataclass(frozen=True)
class MetricComparison:
    """One metric evaluated over two periods."""

    key: str
    label: str
    unit: str
    value1: float
    value2: float
    diff: float
    percent_change: float
    cost_like: bool


@dataclass(frozen=True)
class ComparisonResult:
    """Both snapshots plus the per-metric comparison rows."""

    period_a: PeriodSelector
    period_b: PeriodSelector
    snapshot_a: MetricsSnapshot
    snapshot_b: MetricsSnapshot
    metrics: tuple[MetricComparison, ...]

    def get(self, key: str) -> MetricComparison:
        for row in self.metrics:
            if row.key == key:
                return row
        raise KeyError(key)


def percent_change(value1: float, value2: float, cost_like: bool = False) -> float:
    """
    Percentage change from value2 to value1.

    Never raises and never returns NaN. A zero result is always +0.0.
    """
    if value2 != 0:
        change = (value1 - value2) / abs(value2) * 100
    else:
        change = 100.0 if value1 > 0 else 0.0

    if cost_like:
        change = -change
    return change if change != 0 else 0.0


def compare_metrics(
    items: Sequence[InventoryItem],
    expenses: Sequence[Expense],
    period_a: PeriodSelector,
    period_b: PeriodSelector,
    *,
    metric_keys: Optional[Sequence[str]] = None,
    settings: Optional[MetricsSettings] = None,
    expense_scope: Optional[str] = None,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> ComparisonResult:
    """
    Compare the metrics of two periods over the full record set.

    Parameters
    ----------
    items, expenses:
        Full, unfiltered record set.
    period_a, period_b:
        Periods to compare. value1 comes from period_a, value2 from period_b.
    metric_keys:
        Metrics to compare. Defaults to settings.comparison_metrics.
    settings:
        Metrics settings, including which metrics are cost-like.

    Raises
    ------
    ValidationError
        If a metric key is unknown.
    """
    if settings is None:
        settings = MetricsSettings()
    if metric_keys is None:
        metric_keys = settings.comparison_metrics

    unknown = [key for key in metric_keys if key not in METRICS]
    if unknown:
        raise ValidationError(
            f"Unknown metric(s): {', '.join(unknown)}. "
            f"Known metrics: {', '.join(METRICS)}.",
            "metrics",
        )

    snapshots = [
        compute_period_metrics(
            items,
            expenses,
            selector,
            expense_scope=expense_scope,
            settings=settings,
            watch_register_fee=watch_register_fee,
            now=now,
            today=today,
        )
        for selector in (period_a, period_b)
    ]
    values_a = snapshots[0].as_measures()
    values_b = snapshots[1].as_measures()

    rows = []
    for key in metric_keys:
        meta = METRICS[key]
        cost_like = key in settings.cost_like_metrics
        value1 = values_a[key]
        value2 = values_b[key]
        rows.append(
            MetricComparison(
                key=key,
                label=meta.label,
                unit=meta.unit,
                value1=value1,
                value2=value2,
                diff=value1 - value2,
                percent_change=percent_change(value1, value2, cost_like),
                cost_like=cost_like,
            )
        )

    return ComparisonResult(
        period_a=period_a,
        period_b=period_b,
        snapshot_a=snapshots[0],
        snapshot_b=snapshots[1],
        metrics=tuple(rows),
    )

# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Multi-period analytics.

This module assembles engine results across several periods into pandas
DataFrames suitable for tables, charts and CSV exports.

Overview
--------
- ``monthly_profit_breakdown()`` buckets sold items (by resolved sold date)
  and expenses (by expense date) into the twelve calendar months and
  returns one row per month with revenue, COGS, fees, import fees,
  expenses and profit. Every month is a regular engine snapshot, so its
  profit matches the metrics view for the same month.
  This is the data behind the financials chart.

- ``compute_metrics_multi_period()`` runs the engine once per period
  selector over the same in-memory record set and returns the scalar
  metrics in long format, one row per (period, metric).

Separation of concerns
----------------------
- ``engine.py`` remains the single source of truth for how metrics are
  computed for one period.
- ``multi_periods.py`` only orchestrates and reshapes.
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional

import pandas as pd

from .config import MetricsSettings
from .db import Expense, InventoryItem
from .engine import METRICS, compute_period_metrics
from .fees import WATCH_REGISTER_FEE
from .periods import ALL, PeriodSelector

MONEY_COLUMNS = ["revenue", "cogs", "fees", "import_fees", "expenses", "profit"]
MONTHLY_COLUMNS = ["month", "label", *MONEY_COLUMNS]
LONG_COLUMNS = ["period_label", "metric_key", "label", "value", "unit"]


def monthly_profit_breakdown(
    items: Sequence[InventoryItem],
    expenses: Sequence[Expense],
    year: Optional[int] = None,
    *,
    settings: Optional[MetricsSettings] = None,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Revenue, costs and profit per calendar month.

    Each month is computed by the engine on its own period, so a month's
    profit is exactly the net profit the metrics view reports for it.

    Parameters
    ----------
    items:
        Full inventory. Only finalized sales are counted.
    expenses:
        Business expenses. Only the expenses dated in each month are
        subtracted from that month.
    year:
        Restrict to one year. When None, months of every year are merged
        (January 2024 and January 2025 land in the same bucket).
    settings:
        Metrics settings; `include_import_fee` decides whether import fees
        are subtracted from profit.

    Returns
    -------
    pandas.DataFrame
        Exactly 12 rows (month 1..12) with columns:
        month, label, revenue, cogs, fees, import_fees, expenses, profit.
        Amounts are cents.
    """
    year_axis = ALL if year is None else year

    rows = []
    for month in range(1, 13):
        snapshot = compute_period_metrics(
            items,
            expenses,
            PeriodSelector(month - 1, year_axis),
            expense_scope="period",
            settings=settings,
            watch_register_fee=watch_register_fee,
            now=now,
            today=today,
        )
        rows.append(
            {
                "month": month,
                "label": calendar.month_abbr[month],
                "revenue": snapshot.total_revenue,
                "cogs": snapshot.total_cogs,
                "fees": snapshot.total_fees,
                "import_fees": snapshot.total_import_fees,
                "expenses": snapshot.total_expenses,
                "profit": snapshot.net_profit,
            }
        )

    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS).astype(
        {column: "int64" for column in MONEY_COLUMNS}
    )


def compute_metrics_multi_period(
    items: Sequence[InventoryItem],
    expenses: Sequence[Expense],
    selectors: Sequence[PeriodSelector],
    *,
    settings: Optional[MetricsSettings] = None,
    metric_keys: Optional[Sequence[str]] = None,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Compute scalar metrics for several periods in one pass.

    Parameters
    ----------
    items, expenses:
        Full record set, loaded once by the caller.
    selectors:
        PeriodSelector objects, one per period.
    metric_keys:
        Metrics to keep. Defaults to every metric in METRICS.

    Returns
    -------
    pandas.DataFrame
        Long format with columns: period_label, metric_key, label, value,
        unit. One row per (period, metric), in selector order.

    Raises
    ------
    ValueError
        If no selectors are provided.
    """
    if not selectors:
        raise ValueError("compute_metrics_multi_period requires at least one period.")

    keys = list(metric_keys) if metric_keys is not None else list(METRICS)

    rows: list[dict] = []
    for selector in selectors:
        snapshot = compute_period_metrics(
            items,
            expenses,
            selector,
            settings=settings,
            watch_register_fee=watch_register_fee,
            now=now,
            today=today,
        )
        values = snapshot.as_measures()
        for key in keys:
            meta = METRICS[key]
            rows.append(
                {
                    "period_label": snapshot.period_label,
                    "metric_key": key,
                    "label": meta.label,
                    "value": values[key],
                    "unit": meta.unit,
                }
            )

    return pd.DataFrame(rows, columns=LONG_COLUMNS)

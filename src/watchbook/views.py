# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for WatchBook.

This module transforms engine results (snapshots, comparisons, dashboard
stats, estimates) and stored records into pandas DataFrames ready for
display or CSV export. It performs no financial logic of its own: every
number comes from ``engine``, ``comparison``, ``fees`` or ``db``.

Amounts are stored as integer cents; the views convert them to currency
units and round them to the configured number of decimals.
"""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .comparison import ComparisonResult
from .db import Client, Expense, InventoryItem, expenses_to_dataframe, inventory_to_dataframe
from .engine import METRICS, DashboardStats, ItemPerformance, MetricsSnapshot
from .fees import DealEstimate


def cents_to_units(value: float, decimals: int = 2) -> float:
    """Convert an amount in cents to currency units, rounded."""
    return round(value / 100, decimals)


def _display_value(value: float, unit: str, decimals: int) -> float:
    if unit == "amount":
        return cents_to_units(value, decimals)
    if unit == "count":
        return int(value)
    return round(value, decimals)


def snapshot_to_dataframe(snapshot: MetricsSnapshot, decimals: int = 2) -> pd.DataFrame:
    """
    Scalar metrics of one snapshot, one row per metric.

    Columns: key, label, value, unit.
    """
    rows = [
        {
            "key": key,
            "label": meta.label,
            "value": _display_value(value, meta.unit, decimals),
            "unit": meta.unit,
        }
        for key, value in snapshot.as_measures().items()
        for meta in (METRICS[key],)
    ]
    return pd.DataFrame(rows, columns=["key", "label", "value", "unit"])


def performances_to_dataframe(
    performances: Sequence[ItemPerformance], decimals: int = 2
) -> pd.DataFrame:
    """Per-item profit table (top / bottom performers, sold items)."""
    columns = [
        "id",
        "brand",
        "model",
        "reference_number",
        "revenue",
        "fees",
        "profit",
        "roi",
        "days_on_market",
    ]
    rows = [
        {
            "id": perf.item.id,
            "brand": perf.item.brand,
            "model": perf.item.model,
            "reference_number": perf.item.reference_number,
            "revenue": cents_to_units(perf.revenue, decimals),
            "fees": cents_to_units(perf.fees, decimals),
            "profit": cents_to_units(perf.profit, decimals),
            "roi": round(perf.roi, 1),
            "days_on_market": perf.days_on_market,
        }
        for perf in performances
    ]
    return pd.DataFrame(rows, columns=columns)


def brands_to_dataframe(snapshot: MetricsSnapshot, decimals: int = 2) -> pd.DataFrame:
    """Brand breakdown, in the engine order (count descending)."""
    columns = ["brand", "count", "revenue", "profit", "avg_per_watch"]
    rows = [
        {
            "brand": b.brand,
            "count": b.count,
            "revenue": cents_to_units(b.revenue, decimals),
            "profit": cents_to_units(b.profit, decimals),
            "avg_per_watch": cents_to_units(b.avg_per_watch, decimals),
        }
        for b in snapshot.brands
    ]
    return pd.DataFrame(rows, columns=columns)


def hold_time_to_dataframe(snapshot: MetricsSnapshot) -> pd.DataFrame:
    buckets = snapshot.hold_time_buckets
    return pd.DataFrame(
        [
            {"bucket": "quick", "count": len(buckets.quick)},
            {"bucket": "average", "count": len(buckets.average)},
            {"bucket": "slow", "count": len(buckets.slow)},
        ],
        columns=["bucket", "count"],
    )


def comparison_to_dataframe(result: ComparisonResult, decimals: int = 2) -> pd.DataFrame:
    """
    Side-by-side comparison table.

    Columns: key, label, unit, <label of period A>, <label of period B>,
    diff, percent_change. When both periods share a label, the second
    column is suffixed with " (B)".
    """
    label_a = result.snapshot_a.period_label
    label_b = result.snapshot_b.period_label
    if label_b == label_a:
        label_b = f"{label_b} (B)"

    rows = [
        {
            "key": row.key,
            "label": row.label,
            "unit": row.unit,
            label_a: _display_value(row.value1, row.unit, decimals),
            label_b: _display_value(row.value2, row.unit, decimals),
            "diff": _display_value(row.diff, row.unit, decimals),
            "percent_change": round(row.percent_change, 1),
        }
        for row in result.metrics
    ]
    return pd.DataFrame(
        rows,
        columns=["key", "label", "unit", label_a, label_b, "diff", "percent_change"],
    )


def dashboard_to_dataframe(stats: DashboardStats, decimals: int = 2) -> pd.DataFrame:
    rows = [
        (
            "total_inventory_value",
            "Inventory value",
            cents_to_units(stats.total_inventory_value, decimals),
        ),
        ("total_profit", "Total profit", cents_to_units(stats.total_profit, decimals)),
        ("active_inventory_count", "Active watches", stats.active_inventory_count),
        ("sold_inventory_count", "Sold watches", stats.sold_inventory_count),
        ("turn_rate", "Turn rate (days)", stats.turn_rate),
    ]
    return pd.DataFrame(rows, columns=["key", "label", "value"])


def estimate_to_dataframe(estimate: DealEstimate, decimals: int = 2) -> pd.DataFrame:
    rows = [
        ("total_cost", "Total cost", cents_to_units(estimate.total_cost, decimals)),
        ("platform_fee", "Platform fee", cents_to_units(estimate.platform_fee, decimals)),
        ("net_profit", "Net profit", cents_to_units(estimate.net_profit, decimals)),
        ("margin", "Margin (%)", round(estimate.margin, 1)),
        ("roi", "ROI (%)", round(estimate.roi, 1)),
    ]
    return pd.DataFrame(rows, columns=["key", "label", "value"])


def monthly_to_display(df: pd.DataFrame, decimals: int = 2) -> pd.DataFrame:
    """Convert the money columns of a monthly breakdown to currency units."""
    out = df.copy()
    for column in ("revenue", "cogs", "fees", "import_fees", "expenses", "profit"):
        out[column] = (out[column] / 100).round(decimals)
    return out


# ---------------------------------------------------------------------------
# Record listings
# ---------------------------------------------------------------------------

INVENTORY_DISPLAY_COLUMNS = [
    "id",
    "brand",
    "model",
    "reference_number",
    "condition",
    "status",
    "purchase_price",
    "target_sell_price",
    "resolved_sale_price",
    "purchase_date",
    "resolved_sold_date",
]


def inventory_to_display(items: Sequence[InventoryItem], decimals: int = 2) -> pd.DataFrame:
    """Inventory listing with amounts in currency units and plain dates."""
    df = inventory_to_dataframe(list(items))[INVENTORY_DISPLAY_COLUMNS].copy()
    for column in ("purchase_price", "target_sell_price", "resolved_sale_price"):
        df[column] = (df[column].fillna(0).astype("float64") / 100).round(decimals)
    for column in ("purchase_date", "resolved_sold_date"):
        df[column] = pd.to_datetime(df[column]).dt.date
    return df.rename(
        columns={"resolved_sale_price": "sale_price", "resolved_sold_date": "sold_date"}
    )


def expenses_to_display(expenses: Sequence[Expense], decimals: int = 2) -> pd.DataFrame:
    df = expenses_to_dataframe(list(expenses))
    df["amount"] = (df["amount"].astype("float64") / 100).round(decimals)
    df["date"] = pd.to_datetime(df["date"]).dt.date
    return df


def clients_to_dataframe(clients: Sequence[Client]) -> pd.DataFrame:
    columns = ["id", "name", "type", "is_vip", "email", "phone", "social_handle", "country"]
    rows = [{column: getattr(client, column) for column in columns} for client in clients]
    return pd.DataFrame(rows, columns=columns)

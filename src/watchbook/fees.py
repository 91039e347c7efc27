# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Fee composition for inventory items.

Two distinct fee notions exist in WatchBook:

- The per-item fee total (`compose_item_fees`): service, polish, platform,
  shipping and insurance fees, plus a fixed watch-register fee when the
  item is registered. It is subtracted from the sale price to obtain the
  per-watch profit and ROI.
- The import fee (`import_fee_of`): never part of the per-item total, only
  subtracted once at portfolio level when computing net profit.

All amounts are integer cents. Missing (None) fields count as 0. Both
functions are total over any well-formed item and never raise.

This module also hosts the quick deal estimate used before buying a watch.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from .db import InventoryItem
from .exceptions import ValidationError

WATCH_REGISTER_FEE = 600

DEFAULT_PLATFORM_RATES: Mapping[str, float] = {"chrono24": 0.065}


def _cents(value: Optional[int]) -> int:
    return int(value or 0)


def compose_item_fees(
    item: InventoryItem,
    watch_register_fee: int = WATCH_REGISTER_FEE,
) -> int:
    """
    Return the total ancillary fees of one item, in cents.

    fees = service + polish + platform + shipping + insurance
           + watch_register_fee (only when the item is registered)

    The import fee is intentionally excluded.
    """
    total = (
        _cents(item.service_fee)
        + _cents(item.polish_fee)
        + _cents(item.platform_fees)
        + _cents(item.shipping_fee)
        + _cents(item.insurance_fee)
    )
    if item.watch_register:
        total += watch_register_fee
    return total


def import_fee_of(item: InventoryItem) -> int:
    """Import fee of one item, 0 when missing."""
    return _cents(item.import_fee)


# ---------------------------------------------------------------------------
# Quick deal estimate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DealEstimate:
    """
    Outcome of a hypothetical buy / sell.

    Attributes
    ----------
    total_cost:
        Buy price plus every cost of the deal, in cents.
    platform_fee:
        Commission charged by the selling platform, in cents.
    net_profit:
        Sale price minus total cost, in cents. 0 when no sale price is given.
    margin:
        Net profit as a percentage of the sale price.
    roi:
        Net profit as a percentage of the buy price.
    """

    total_cost: int
    platform_fee: int
    net_profit: int
    margin: float
    roi: float


def quick_estimate(
    buy_price: int,
    sale_price: int,
    *,
    service_cost: int = 0,
    shipping: int = 0,
    platform: Optional[str] = None,
    watch_register: bool = False,
    watch_register_fee: int = WATCH_REGISTER_FEE,
    platform_rates: Mapping[str, float] = DEFAULT_PLATFORM_RATES,
) -> DealEstimate:
    """
    Estimate the profit of a deal before committing to it.

    Parameters
    ----------
    buy_price, sale_price:
        Prices in cents.
    service_cost, shipping:
        Expected costs in cents.
    platform:
        Name of the selling platform (e.g. "chrono24"). None or "private"
        means no commission.
    watch_register:
        Whether the watch will be registered (adds the fixed register fee).
    platform_rates:
        Commission rates by lowercase platform name.

    Raises
    ------
    ValidationError
        If a price is negative or the platform is unknown.
    """
    for name, value in (
        ("buy_price", buy_price),
        ("sale_price", sale_price),
        ("service_cost", service_cost),
        ("shipping", shipping),
    ):
        if value < 0:
            raise ValidationError(f"{name} cannot be negative.", name)

    platform_fee = 0
    if platform is not None and platform.lower() != "private":
        key = platform.lower()
        if key not in platform_rates:
            known = ", ".join(sorted(platform_rates)) or "none"
            raise ValidationError(
                f"Unknown platform {platform!r} (known: {known}, private).",
                "platform",
            )
        platform_fee = round(sale_price * platform_rates[key])

    register_fee = watch_register_fee if watch_register else 0
    total_cost = buy_price + service_cost + platform_fee + shipping + register_fee

    net_profit = sale_price - total_cost if sale_price > 0 else 0
    margin = net_profit / sale_price * 100 if sale_price > 0 else 0.0
    roi = net_profit / buy_price * 100 if buy_price > 0 else 0.0

    return DealEstimate(
        total_cost=total_cost,
        platform_fee=platform_fee,
        net_profit=net_profit,
        margin=margin,
        roi=roi,
    )

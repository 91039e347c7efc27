# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for WatchBook.

This module sits between:
- the low-level database helpers in `db.py`,
- the metrics engine (`engine.py`, `comparison.py`, `multi_periods.py`),
- user-facing layers such as the CLI.

It exposes a typed interface that takes an AppConfig, so that callers never
have to know where records live or which settings the engine needs.

Responsibilities
----------------
1) CRUD Operations
   - Create, edit, mark as sold and delete inventory items.
   - Create, edit and load clients (clients are never deleted).
   - Create, edit and delete expenses.
   - Validate every create / update request before it reaches the
     database. The engine does not re-validate: this is the only gate.

2) Reporting
   - Metrics for one period, dashboard statistics, period comparison,
     monthly breakdown and quick deal estimate, all computed from a fresh
     read of the database.
   - Client detail: watches bought from and sold to one client.

3) Demo data
   - Seed an empty database with a dealer, a client and three watches.

Error handling
--------------
- Malformed input raises ValidationError (naming the offending field).
- Unknown ids raise NotFoundError.
- SQLite failures are logged and re-raised as PersistenceError. They are
  not retried.
"""

from __future__ import annotations

import dataclasses
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import pandas as pd

from .comparison import ComparisonResult, compare_metrics
from .config import AppConfig
from .db import (
    CLIENT_TYPES,
    CONDITIONS,
    EXPENSE_CATEGORIES,
    INVENTORY_STATUSES,
    Client,
    ClientUpdate,
    DatabaseConfig,
    Expense,
    ExpensesFilter,
    ExpenseUpdate,
    InventoryItem,
    InventoryUpdate,
    NewClient,
    NewExpense,
    NewInventoryItem,
)
from .db import delete_expense as _db_delete_expense
from .db import delete_inventory_item as _db_delete_inventory_item
from .db import get_client as _db_get_client
from .db import get_expense as _db_get_expense
from .db import get_inventory_item as _db_get_inventory_item
from .db import has_inventory as _db_has_inventory
from .db import insert_client as _db_insert_client
from .db import insert_expense as _db_insert_expense
from .db import insert_inventory_item as _db_insert_inventory_item
from .db import list_clients as _db_list_clients
from .db import list_expenses as _db_list_expenses
from .db import list_inventory_items as _db_list_inventory_items
from .db import update_client as _db_update_client
from .db import update_expense as _db_update_expense
from .db import update_inventory_item as _db_update_inventory_item
from .engine import (
    DashboardStats,
    MetricsSnapshot,
    compute_dashboard_stats,
    compute_period_metrics,
)
from .exceptions import NotFoundError, PersistenceError, ValidationError
from .fees import DealEstimate, quick_estimate
from .multi_periods import monthly_profit_breakdown
from .periods import PeriodSelector, _now

logger = logging.getLogger(__name__)

_MONEY_FIELDS = (
    "purchase_price",
    "target_sell_price",
    "sale_price",
    "sold_price",
    "import_fee",
    "service_fee",
    "polish_fee",
    "platform_fees",
    "shipping_fee",
    "insurance_fee",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _get_db_config(app_config: AppConfig) -> DatabaseConfig:
    """Access the database configuration from an AppConfig."""
    return app_config.database


@contextmanager
def _store_errors(action: str) -> Iterator[None]:
    """Log SQLite failures and re-raise them as PersistenceError."""
    try:
        yield
    except sqlite3.Error as exc:
        logger.exception("Database error while trying to %s", action)
        raise PersistenceError(f"Database error while trying to {action}: {exc}") from exc


def _require_text(value: Optional[str], field: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required.", field)


def _require_choice(value: Optional[str], choices: Sequence[str], field: str) -> None:
    if value is not None and value not in choices:
        raise ValidationError(
            f"Invalid {field} {value!r}, expected one of: {', '.join(choices)}.",
            field,
        )


def _require_non_negative(value: Optional[int], field: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer amount in cents.", field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative.", field)


def _validate_item_fields(values: Any, *, creating: bool) -> None:
    """Validate a NewInventoryItem or the non-None fields of an InventoryUpdate."""
    if creating:
        for field in ("brand", "model", "reference_number"):
            _require_text(getattr(values, field), field)
        if values.condition is None:
            raise ValidationError("condition is required.", "condition")
        if values.purchase_price is None:
            raise ValidationError("purchase_price is required.", "purchase_price")
        if values.target_sell_price is None:
            raise ValidationError("target_sell_price is required.", "target_sell_price")
    else:
        for field in ("brand", "model", "reference_number"):
            if getattr(values, field) is not None:
                _require_text(getattr(values, field), field)

    _require_choice(values.condition, CONDITIONS, "condition")
    _require_choice(values.status, INVENTORY_STATUSES, "status")

    for field in _MONEY_FIELDS:
        _require_non_negative(getattr(values, field), field)

    if values.year is not None and not 1800 <= values.year <= _now().year + 1:
        raise ValidationError(f"Invalid year {values.year}.", "year")


def _require_client(db_cfg: DatabaseConfig, client_id: Optional[int], field: str) -> None:
    if client_id is None:
        return
    if _db_get_client(db_cfg, client_id) is None:
        raise ValidationError(f"{field} refers to unknown client #{client_id}.", field)


def _validate_expense_fields(values: Any, *, creating: bool) -> None:
    if creating or values.description is not None:
        _require_text(values.description, "description")
    if creating and values.amount is None:
        raise ValidationError("amount is required.", "amount")
    if creating and values.date is None:
        raise ValidationError("date is required.", "date")
    _require_non_negative(values.amount, "amount")
    _require_choice(values.category, EXPENSE_CATEGORIES, "category")


def _require_item(db_cfg: DatabaseConfig, item_id: Optional[int], field: str) -> None:
    if item_id is None:
        return
    if _db_get_inventory_item(db_cfg, item_id) is None:
        raise ValidationError(f"{field} refers to unknown inventory item #{item_id}.", field)


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------


def list_inventory(app_config: AppConfig, status: Optional[str] = None) -> list[InventoryItem]:
    """List inventory items, optionally restricted to one status."""
    _require_choice(status, INVENTORY_STATUSES, "status")
    with _store_errors("list inventory"):
        return _db_list_inventory_items(_get_db_config(app_config), status)


def load_inventory_item(app_config: AppConfig, item_id: int) -> InventoryItem:
    """
    Load a single inventory item.

    Raises
    ------
    NotFoundError
        If the item does not exist.
    """
    with _store_errors(f"load inventory item #{item_id}"):
        item = _db_get_inventory_item(_get_db_config(app_config), item_id)
    if item is None:
        raise NotFoundError(f"Inventory item #{item_id} not found.")
    return item


def create_inventory_item(app_config: AppConfig, new_item: NewInventoryItem) -> InventoryItem:
    """
    Validate and create a new inventory item.

    Raises
    ------
    ValidationError
        If a required field is missing, an enum value is unknown, an amount
        is negative, or a referenced client does not exist.
    """
    db_cfg = _get_db_config(app_config)
    _validate_item_fields(new_item, creating=True)

    with _store_errors("create inventory item"):
        _require_client(db_cfg, new_item.client_id, "client_id")
        _require_client(db_cfg, new_item.buyer_id, "buyer_id")
        created = _db_insert_inventory_item(db_cfg, new_item)

    logger.info("Created inventory item #%s (%s %s)", created.id, created.brand, created.model)
    return created


def edit_inventory_item(
    app_config: AppConfig,
    item_id: int,
    update: InventoryUpdate,
) -> InventoryItem:
    """
    Validate and apply a partial update to an inventory item.

    Only non-None attributes of `update` are changed.

    Raises
    ------
    ValidationError
        If no fields are provided or a field is invalid.
    NotFoundError
        If the item does not exist.
    """
    db_cfg = _get_db_config(app_config)
    _validate_item_fields(update, creating=False)

    with _store_errors(f"update inventory item #{item_id}"):
        _require_client(db_cfg, update.client_id, "client_id")
        _require_client(db_cfg, update.buyer_id, "buyer_id")
        updated = _db_update_inventory_item(db_cfg, item_id, update)

    logger.info("Updated inventory item #%s", item_id)
    return updated


def mark_item_sold(
    app_config: AppConfig,
    item_id: int,
    sale_price: int,
    *,
    sold_date: Optional[datetime] = None,
    sold_to: Optional[str] = None,
    buyer_id: Optional[int] = None,
    sold_platform: Optional[str] = None,
    platform_fees: Optional[int] = None,
    shipping_fee: Optional[int] = None,
) -> InventoryItem:
    """
    Record the sale of an item: status "sold", sale price and sold date.

    The sold date defaults to now. When a buyer id is given without a
    buyer name, the client's name is stored in `sold_to`.
    """
    if sale_price is None or sale_price <= 0:
        raise ValidationError("sale_price must be a positive amount in cents.", "sale_price")

    if sold_to is None and buyer_id is not None:
        with _store_errors(f"load client #{buyer_id}"):
            buyer = _db_get_client(_get_db_config(app_config), buyer_id)
        if buyer is None:
            raise ValidationError(f"buyer_id refers to unknown client #{buyer_id}.", "buyer_id")
        sold_to = buyer.name

    update = InventoryUpdate(
        status="sold",
        sale_price=sale_price,
        sold_date=sold_date or _now(),
        sold_to=sold_to,
        buyer_id=buyer_id,
        sold_platform=sold_platform,
        platform_fees=platform_fees,
        shipping_fee=shipping_fee,
    )
    return edit_inventory_item(app_config, item_id, update)


def remove_inventory_item(app_config: AppConfig, item_id: int) -> int:
    """
    Delete an inventory item and its linked expenses.

    Returns the number of linked expenses deleted.
    """
    with _store_errors(f"delete inventory item #{item_id}"):
        deleted_expenses = _db_delete_inventory_item(_get_db_config(app_config), item_id)

    logger.info(
        "Deleted inventory item #%s and %s linked expense(s)", item_id, deleted_expenses
    )
    return deleted_expenses


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientDetail:
    """
    One client with the watches exchanged with them.

    Attributes
    ----------
    client:
        The client record.
    purchases:
        Items bought from this client (they were the seller).
    sales:
        Items sold to this client, matched by buyer id or by name.
    total_purchase_value:
        Sum of the purchase prices of `purchases`, in cents.
    """

    client: Client
    purchases: tuple[InventoryItem, ...]
    sales: tuple[InventoryItem, ...]
    total_purchase_value: int


def list_all_clients(app_config: AppConfig) -> list[Client]:
    with _store_errors("list clients"):
        return _db_list_clients(_get_db_config(app_config))


def load_client(app_config: AppConfig, client_id: int) -> Client:
    """
    Load a single client.

    Raises
    ------
    NotFoundError
        If the client does not exist.
    """
    with _store_errors(f"load client #{client_id}"):
        client = _db_get_client(_get_db_config(app_config), client_id)
    if client is None:
        raise NotFoundError(f"Client #{client_id} not found.")
    return client


def create_client(app_config: AppConfig, new_client: NewClient) -> Client:
    _require_text(new_client.name, "name")
    _require_choice(new_client.type, CLIENT_TYPES, "type")

    with _store_errors("create client"):
        created = _db_insert_client(_get_db_config(app_config), new_client)

    logger.info("Created client #%s (%s)", created.id, created.name)
    return created


def edit_client(app_config: AppConfig, client_id: int, update: ClientUpdate) -> Client:
    if update.name is not None:
        _require_text(update.name, "name")
    _require_choice(update.type, CLIENT_TYPES, "type")

    with _store_errors(f"update client #{client_id}"):
        updated = _db_update_client(_get_db_config(app_config), client_id, update)

    logger.info("Updated client #%s", client_id)
    return updated


def client_detail(app_config: AppConfig, client_id: int) -> ClientDetail:
    """Load a client together with the watches bought from and sold to them."""
    client = load_client(app_config, client_id)
    items = list_inventory(app_config)

    purchases = tuple(item for item in items if item.client_id == client.id)
    sales = tuple(
        item
        for item in items
        if item.buyer_id == client.id
        or (item.sold_to is not None and item.sold_to == client.name)
    )
    return ClientDetail(
        client=client,
        purchases=purchases,
        sales=sales,
        total_purchase_value=sum(item.purchase_price or 0 for item in purchases),
    )


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------


def list_all_expenses(
    app_config: AppConfig,
    filters: Optional[ExpensesFilter] = None,
) -> list[Expense]:
    with _store_errors("list expenses"):
        return _db_list_expenses(_get_db_config(app_config), filters)


def load_expense(app_config: AppConfig, expense_id: int) -> Expense:
    with _store_errors(f"load expense #{expense_id}"):
        expense = _db_get_expense(_get_db_config(app_config), expense_id)
    if expense is None:
        raise NotFoundError(f"Expense #{expense_id} not found.")
    return expense


def create_expense(app_config: AppConfig, new_expense: NewExpense) -> Expense:
    """
    Validate and create a new expense.

    Raises
    ------
    ValidationError
        If the description, amount or date is missing, the amount is
        negative, the category is unknown or the linked item does not exist.
    """
    db_cfg = _get_db_config(app_config)
    _validate_expense_fields(new_expense, creating=True)

    with _store_errors("create expense"):
        _require_item(db_cfg, new_expense.inventory_id, "inventory_id")
        created = _db_insert_expense(db_cfg, new_expense)

    logger.info("Created expense #%s (%s)", created.id, created.description)
    return created


def edit_expense(app_config: AppConfig, expense_id: int, update: ExpenseUpdate) -> Expense:
    db_cfg = _get_db_config(app_config)
    _validate_expense_fields(update, creating=False)

    with _store_errors(f"update expense #{expense_id}"):
        _require_item(db_cfg, update.inventory_id, "inventory_id")
        updated = _db_update_expense(db_cfg, expense_id, update)

    logger.info("Updated expense #%s", expense_id)
    return updated


def remove_expense(app_config: AppConfig, expense_id: int) -> None:
    with _store_errors(f"delete expense #{expense_id}"):
        _db_delete_expense(_get_db_config(app_config), expense_id)
    logger.info("Deleted expense #%s", expense_id)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def _load_records(app_config: AppConfig) -> tuple[list[InventoryItem], list[Expense]]:
    db_cfg = _get_db_config(app_config)
    with _store_errors("load records"):
        items = _db_list_inventory_items(db_cfg)
        expenses = _db_list_expenses(db_cfg)
    logger.debug("Loaded %s item(s) and %s expense(s)", len(items), len(expenses))
    return items, expenses


def period_metrics(
    app_config: AppConfig,
    selector: PeriodSelector,
    *,
    expense_scope: Optional[str] = None,
    top_n: Optional[int] = None,
    now: Optional[datetime] = None,
) -> MetricsSnapshot:
    """
    Compute the metrics of one period from a fresh read of the database.

    Parameters
    ----------
    expense_scope:
        "period" or "all". Defaults to the configured scope.
    top_n:
        Overrides the configured number of top / bottom performers.
    """
    settings = app_config.metrics
    if top_n is not None:
        if top_n < 0:
            raise ValidationError("top_n cannot be negative.", "top_n")
        settings = dataclasses.replace(settings, top_n=top_n)

    items, expenses = _load_records(app_config)
    return compute_period_metrics(
        items,
        expenses,
        selector,
        expense_scope=expense_scope,
        settings=settings,
        watch_register_fee=app_config.fees.watch_register_fee,
        now=now,
    )


def dashboard_stats(app_config: AppConfig) -> DashboardStats:
    items, _ = _load_records(app_config)
    return compute_dashboard_stats(
        items,
        include_import_fee=app_config.metrics.include_import_fee,
        watch_register_fee=app_config.fees.watch_register_fee,
    )


def compare_periods(
    app_config: AppConfig,
    period_a: PeriodSelector,
    period_b: PeriodSelector,
    *,
    metric_keys: Optional[Sequence[str]] = None,
    expense_scope: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ComparisonResult:
    """Compare two periods; both are recomputed from the database."""
    items, expenses = _load_records(app_config)
    return compare_metrics(
        items,
        expenses,
        period_a,
        period_b,
        metric_keys=metric_keys,
        settings=app_config.metrics,
        expense_scope=expense_scope,
        watch_register_fee=app_config.fees.watch_register_fee,
        now=now,
    )


def monthly_breakdown(
    app_config: AppConfig,
    year: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    items, expenses = _load_records(app_config)
    return monthly_profit_breakdown(
        items,
        expenses,
        year,
        settings=app_config.metrics,
        watch_register_fee=app_config.fees.watch_register_fee,
        now=now,
    )


def estimate_deal(
    app_config: AppConfig,
    buy_price: int,
    sale_price: int,
    **options: Any,
) -> DealEstimate:
    """Quick estimate using the configured fee settings."""
    return quick_estimate(
        buy_price,
        sale_price,
        watch_register_fee=app_config.fees.watch_register_fee,
        platform_rates=app_config.fees.platform_rates,
        **options,
    )


# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------


def seed_demo_data(app_config: AppConfig) -> bool:
    """
    Populate an empty database with demo clients and watches.

    Returns
    -------
    bool
        True if data was inserted, False if the database already holds
        clients or inventory.
    """
    db_cfg = _get_db_config(app_config)
    with _store_errors("check for existing data"):
        if _db_has_inventory(db_cfg) or _db_list_clients(db_cfg):
            logger.info("Database is not empty, skipping demo data")
            return False

    dealer = create_client(
        app_config,
        NewClient(
            name="Luxury Watch Supply Co.",
            email="dealer@supply.co",
            type="dealer",
            notes="Trusted supplier for Rolex/Patek.",
        ),
    )
    collector = create_client(
        app_config,
        NewClient(
            name="John Smith",
            email="john@example.com",
            type="client",
            notes="VIP Collector. Likes vintage Omega.",
        ),
    )

    create_inventory_item(
        app_config,
        NewInventoryItem(
            brand="Rolex",
            model="Submariner",
            reference_number="124060",
            purchase_price=900000,
            target_sell_price=1150000,
            purchase_date=datetime(2025, 1, 10),
            condition="New",
            status="in_stock",
            box=True,
            papers=True,
            client_id=dealer.id,
            notes="Full set, stickers on.",
        ),
    )
    create_inventory_item(
        app_config,
        NewInventoryItem(
            brand="Patek Philippe",
            model="Nautilus",
            reference_number="5711/1A",
            purchase_price=9000000,
            target_sell_price=11500000,
            sold_price=11000000,
            purchase_date=datetime(2024, 11, 1),
            sold_date=datetime(2024, 12, 15),
            condition="Mint",
            status="sold",
            box=True,
            papers=True,
            client_id=dealer.id,
            buyer_id=collector.id,
            sold_to=collector.name,
            notes="Quick flip.",
        ),
    )
    create_inventory_item(
        app_config,
        NewInventoryItem(
            brand="Omega",
            model="Speedmaster Professional",
            reference_number="311.30.42.30.01.005",
            purchase_price=400000,
            target_sell_price=550000,
            purchase_date=datetime(2025, 1, 20),
            condition="Used",
            status="servicing",
            box=False,
            papers=True,
            notes="Needs service.",
        ),
    )

    logger.info("Inserted demo data: 2 clients, 3 inventory items")
    return True

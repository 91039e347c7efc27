# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for WatchBook.

This module provides all low-level accessors and utilities for interacting
with the SQLite database used by the application. It is responsible for:

- Initializing and migrating the database schema.
- Exposing CRUD operations on inventory items, clients and expenses.
- Cascading the deletion of an inventory item to its linked expenses.
- Materializing rows as typed, frozen dataclasses.

The database is the single source of truth for every record. The metrics
engine never reads it directly: higher layers load lists of records here
and hand them to the engine.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) clients
   One row per counterparty (buyer, seller or dealer).

   - id             INTEGER PRIMARY KEY AUTOINCREMENT
   - name           TEXT    NOT NULL
   - email, phone, social_handle, country, notes   TEXT
   - type           TEXT    NOT NULL DEFAULT 'client'  -- 'client' | 'dealer'
   - is_vip         INTEGER NOT NULL DEFAULT 0
   - created_at     TEXT              -- ISO datetime, UTC

2) inventory
   One row per watch, tracked through its lifecycle
   (incoming -> received -> servicing -> in_stock -> sold).

   - descriptive columns: brand, model, reference_number, serial_number,
     internal_serial, year, condition, box, papers, notes
   - money columns (INTEGER, cents): purchase_price, target_sell_price,
     sale_price, sold_price (legacy alias of sale_price), import_fee,
     service_fee, polish_fee, platform_fees, shipping_fee, insurance_fee
   - watch_register INTEGER (boolean), adds a fixed fee when set
   - lifecycle dates (TEXT, ISO datetime): purchase_date, date_received,
     date_listed, date_sent_to_service, date_returned_from_service,
     sold_date, date_sold (sold_date and date_sold are historical aliases)
   - status TEXT NOT NULL DEFAULT 'incoming'
   - sale details: sold_to, sold_platform, shipping_partner, tracking_number,
     purchased_from, paid_with
   - client_id (seller) and buyer_id, both referencing clients(id)
   - created_at TEXT

3) expenses
   Business costs, optionally linked to one inventory item.

   - id, description, amount (INTEGER cents), date (TEXT), category,
     is_recurring (INTEGER boolean), inventory_id (nullable FK)

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text. Timezone-aware values are
  converted to UTC and stored naive, so that every datetime handed to the
  engine is comparable with every other.
- Foreign key enforcement is explicitly enabled.
- Older databases that predate the service / reception lifecycle columns
  are migrated in place by `init_database`.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Literal

import pandas as pd

from .exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

InventoryStatus = Literal["incoming", "received", "servicing", "in_stock", "sold"]
INVENTORY_STATUSES: tuple[str, ...] = (
    "incoming",
    "received",
    "servicing",
    "in_stock",
    "sold",
)

CONDITIONS: tuple[str, ...] = ("New", "Mint", "Used", "Damaged")

CLIENT_TYPES: tuple[str, ...] = ("client", "dealer")

EXPENSE_CATEGORIES: tuple[str, ...] = (
    "marketing",
    "rent_storage",
    "subscriptions",
    "tools",
    "insurance",
    "service",
    "shipping",
    "parts",
    "platform_fees",
    "other",
)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for WatchBook.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class InventoryItem:
    """
    One watch as stored in the `inventory` table.

    Optional money fields are None when never set; the metrics engine treats
    them as 0. Use `resolved_sold_date` / `resolved_sale_price` instead of
    reading the aliased columns directly.
    """

    id: int

    brand: str
    model: str
    reference_number: str
    condition: str
    purchase_price: int
    target_sell_price: int
    status: str = "incoming"

    serial_number: str | None = None
    internal_serial: str | None = None
    year: int | None = None
    box: bool = False
    papers: bool = False

    purchased_from: str | None = None
    paid_with: str | None = None
    import_fee: int | None = None
    watch_register: bool = False

    service_fee: int | None = None
    polish_fee: int | None = None

    sale_price: int | None = None
    sold_price: int | None = None
    sold_to: str | None = None
    platform_fees: int | None = None
    shipping_fee: int | None = None
    insurance_fee: int | None = None

    purchase_date: datetime | None = None
    date_received: datetime | None = None
    date_listed: datetime | None = None
    date_sent_to_service: datetime | None = None
    date_returned_from_service: datetime | None = None
    sold_date: datetime | None = None
    date_sold: datetime | None = None

    shipping_partner: str | None = None
    tracking_number: str | None = None
    sold_platform: str | None = None
    notes: str | None = None

    client_id: int | None = None
    buyer_id: int | None = None
    created_at: datetime | None = None

    @property
    def resolved_sold_date(self) -> datetime | None:
        """`sold_date`, falling back to the legacy `date_sold` column."""
        if self.sold_date is not None:
            return self.sold_date
        return self.date_sold

    @property
    def resolved_sale_price(self) -> int:
        """`sale_price`, falling back to the legacy `sold_price` column, else 0."""
        if self.sale_price:
            return self.sale_price
        return self.sold_price or 0

    @property
    def is_sold(self) -> bool:
        return self.status == "sold"


@dataclass(frozen=True)
class NewInventoryItem:
    """Data required to create a new inventory item."""

    brand: str
    model: str
    reference_number: str
    condition: str
    purchase_price: int
    target_sell_price: int
    status: str = "incoming"

    serial_number: str | None = None
    internal_serial: str | None = None
    year: int | None = None
    box: bool = False
    papers: bool = False

    purchased_from: str | None = None
    paid_with: str | None = None
    import_fee: int | None = 0
    watch_register: bool = False

    service_fee: int | None = 0
    polish_fee: int | None = 0

    sale_price: int | None = 0
    sold_price: int | None = None
    sold_to: str | None = None
    platform_fees: int | None = 0
    shipping_fee: int | None = 0
    insurance_fee: int | None = 0

    purchase_date: datetime | None = None
    date_received: datetime | None = None
    date_listed: datetime | None = None
    date_sent_to_service: datetime | None = None
    date_returned_from_service: datetime | None = None
    sold_date: datetime | None = None
    date_sold: datetime | None = None

    shipping_partner: str | None = None
    tracking_number: str | None = None
    sold_platform: str | None = None
    notes: str | None = None

    client_id: int | None = None
    buyer_id: int | None = None


@dataclass(frozen=True)
class InventoryUpdate:
    """
    Fields that can be updated on an existing inventory item.

    Each attribute is optional. Only non-None values are applied during
    the update operation.
    """

    brand: str | None = None
    model: str | None = None
    reference_number: str | None = None
    condition: str | None = None
    purchase_price: int | None = None
    target_sell_price: int | None = None
    status: str | None = None

    serial_number: str | None = None
    internal_serial: str | None = None
    year: int | None = None
    box: bool | None = None
    papers: bool | None = None

    purchased_from: str | None = None
    paid_with: str | None = None
    import_fee: int | None = None
    watch_register: bool | None = None

    service_fee: int | None = None
    polish_fee: int | None = None

    sale_price: int | None = None
    sold_price: int | None = None
    sold_to: str | None = None
    platform_fees: int | None = None
    shipping_fee: int | None = None
    insurance_fee: int | None = None

    purchase_date: datetime | None = None
    date_received: datetime | None = None
    date_listed: datetime | None = None
    date_sent_to_service: datetime | None = None
    date_returned_from_service: datetime | None = None
    sold_date: datetime | None = None
    date_sold: datetime | None = None

    shipping_partner: str | None = None
    tracking_number: str | None = None
    sold_platform: str | None = None
    notes: str | None = None

    client_id: int | None = None
    buyer_id: int | None = None


@dataclass(frozen=True)
class Client:
    """A counterparty: buyer, seller or dealer."""

    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    social_handle: str | None = None
    country: str | None = None
    type: str = "client"
    is_vip: bool = False
    notes: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class NewClient:
    name: str
    email: str | None = None
    phone: str | None = None
    social_handle: str | None = None
    country: str | None = None
    type: str = "client"
    is_vip: bool = False
    notes: str | None = None


@dataclass(frozen=True)
class ClientUpdate:
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    social_handle: str | None = None
    country: str | None = None
    type: str | None = None
    is_vip: bool | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Expense:
    """A business cost, optionally linked to one inventory item."""

    id: int
    description: str
    amount: int
    date: datetime
    category: str = "other"
    is_recurring: bool = False
    inventory_id: int | None = None


@dataclass(frozen=True)
class NewExpense:
    description: str
    amount: int
    date: datetime
    category: str = "other"
    is_recurring: bool = False
    inventory_id: int | None = None


@dataclass(frozen=True)
class ExpenseUpdate:
    description: str | None = None
    amount: int | None = None
    date: datetime | None = None
    category: str | None = None
    is_recurring: bool | None = None
    inventory_id: int | None = None


@dataclass(frozen=True)
class ExpensesFilter:
    """
    Filters used to list expenses.

    The filters can be combined. Date bounds are inclusive and compare
    against the expense date.

    Attributes
    ----------
    start, end:
        Inclusive date bounds.
    category:
        Exact category match.
    description_contains:
        Case-insensitive substring search on the description.
    inventory_id:
        Restrict to expenses linked to one inventory item.
    recurring_only:
        If True, returns only recurring expenses.
    """

    start: date | None = None
    end: date | None = None
    category: str | None = None
    description_contains: str | None = None
    inventory_id: int | None = None
    recurring_only: bool = False


# Column groups drive conversions between Python values and SQLite storage.
_INVENTORY_COLUMNS: tuple[str, ...] = tuple(
    f.name for f in fields(NewInventoryItem)
)
_CLIENT_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(NewClient))
_EXPENSE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(NewExpense))

_BOOL_COLUMNS = frozenset(
    {"box", "papers", "watch_register", "is_vip", "is_recurring"}
)
_DATETIME_COLUMNS = frozenset(
    {
        "purchase_date",
        "date_received",
        "date_listed",
        "date_sent_to_service",
        "date_returned_from_service",
        "sold_date",
        "date_sold",
        "created_at",
        "date",
    }
)

# Lifecycle columns added after the first schema version.
_INVENTORY_LATE_COLUMNS: dict[str, str] = {
    "internal_serial": "TEXT",
    "purchased_from": "TEXT",
    "paid_with": "TEXT",
    "date_received": "TEXT",
    "date_sent_to_service": "TEXT",
    "date_returned_from_service": "TEXT",
    "shipping_partner": "TEXT",
    "tracking_number": "TEXT",
    "sold_platform": "TEXT",
    "created_at": "TEXT",
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Return the set of column names for the given table."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    return {row[1] for row in cur.fetchall()}


def _migrate_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Add the lifecycle columns missing from databases created by older versions.

    This function is idempotent: columns that already exist are left alone,
    and new columns start as NULL for existing rows.
    """
    inventory_columns = _get_table_columns(conn, "inventory")
    for column, sql_type in _INVENTORY_LATE_COLUMNS.items():
        if column not in inventory_columns:
            logger.debug("Adding missing column inventory.%s", column)
            conn.execute(f"ALTER TABLE inventory ADD COLUMN {column} {sql_type};")


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables and indexes if they do not exist yet and migrate the schema.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS clients (
            id             INTEGER PRIMARY KEY AUTOINCREMENT,
            name           TEXT    NOT NULL,
            email          TEXT,
            phone          TEXT,
            social_handle  TEXT,
            country        TEXT,
            type           TEXT    NOT NULL DEFAULT 'client',
            is_vip         INTEGER NOT NULL DEFAULT 0,
            notes          TEXT,
            created_at     TEXT
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS inventory (
            id                          INTEGER PRIMARY KEY AUTOINCREMENT,
            brand                       TEXT    NOT NULL,
            model                       TEXT    NOT NULL,
            reference_number            TEXT    NOT NULL,
            serial_number               TEXT,
            internal_serial             TEXT,
            year                        INTEGER,

            purchased_from              TEXT,
            paid_with                   TEXT,
            purchase_price              INTEGER NOT NULL,
            import_fee                  INTEGER DEFAULT 0,
            watch_register              INTEGER NOT NULL DEFAULT 0,

            service_fee                 INTEGER DEFAULT 0,
            polish_fee                  INTEGER DEFAULT 0,

            sale_price                  INTEGER DEFAULT 0,
            sold_to                     TEXT,
            platform_fees               INTEGER DEFAULT 0,
            shipping_fee                INTEGER DEFAULT 0,
            insurance_fee               INTEGER DEFAULT 0,

            target_sell_price           INTEGER NOT NULL,
            sold_price                  INTEGER,

            purchase_date               TEXT,
            date_received               TEXT,
            date_listed                 TEXT,
            date_sent_to_service        TEXT,
            date_returned_from_service  TEXT,
            sold_date                   TEXT,
            date_sold                   TEXT,

            condition                   TEXT    NOT NULL,
            status                      TEXT    NOT NULL DEFAULT 'incoming',
            box                         INTEGER NOT NULL DEFAULT 0,
            papers                      INTEGER NOT NULL DEFAULT 0,
            notes                       TEXT,

            shipping_partner            TEXT,
            tracking_number             TEXT,
            sold_platform               TEXT,

            client_id                   INTEGER,
            buyer_id                    INTEGER,
            created_at                  TEXT,

            FOREIGN KEY (client_id) REFERENCES clients(id),
            FOREIGN KEY (buyer_id)  REFERENCES clients(id)
        );
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS expenses (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            inventory_id  INTEGER,
            description   TEXT    NOT NULL,
            amount        INTEGER NOT NULL,
            date          TEXT    NOT NULL,
            category      TEXT    NOT NULL DEFAULT 'other',
            is_recurring  INTEGER NOT NULL DEFAULT 0,

            FOREIGN KEY (inventory_id) REFERENCES inventory(id)
        );
        """
    )

    _migrate_schema_if_needed(conn)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_inventory_status ON inventory(status);")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);")
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_expenses_inventory ON expenses(inventory_id);"
    )

    conn.commit()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as a naive ISO string."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds")


def _to_iso_datetime(value: Any) -> str | None:
    """Convert a date-like value (date, datetime, ISO string) to ISO text."""
    if value is None:
        return None
    parsed = parse_datetime(value)
    return parsed.isoformat(timespec="seconds") if parsed is not None else None


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse a date-like value into a naive datetime.

    Accepts datetime, date and ISO-8601 strings (with or without time, with
    or without offset). Aware values are converted to UTC before the tzinfo
    is dropped. Empty strings become None.

    Raises
    ------
    ValidationError
        If a string cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid date {text!r}, expected ISO-8601 (YYYY-MM-DD)."
            ) from exc

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_db_value(column: str, value: Any) -> Any:
    if value is None:
        return None
    if column in _BOOL_COLUMNS:
        return 1 if value else 0
    if column in _DATETIME_COLUMNS:
        return _to_iso_datetime(value)
    return value


def _from_db_row(row: sqlite3.Row, columns: tuple[str, ...]) -> dict[str, Any]:
    """Build constructor kwargs from a row, converting booleans and dates."""
    values: dict[str, Any] = {}
    for column in columns:
        raw = row[column]
        if column in _BOOL_COLUMNS:
            values[column] = bool(raw)
        elif column in _DATETIME_COLUMNS:
            values[column] = parse_datetime(raw) if raw is not None else None
        else:
            values[column] = raw
    return values


def _row_to_inventory_item(row: sqlite3.Row) -> InventoryItem:
    values = _from_db_row(row, _INVENTORY_COLUMNS + ("created_at",))
    return InventoryItem(id=row["id"], **values)


def _row_to_client(row: sqlite3.Row) -> Client:
    values = _from_db_row(row, _CLIENT_COLUMNS + ("created_at",))
    return Client(id=row["id"], **values)


def _row_to_expense(row: sqlite3.Row) -> Expense:
    values = _from_db_row(row, _EXPENSE_COLUMNS)
    return Expense(id=row["id"], **values)


def _insert(
    cfg: DatabaseConfig,
    table: str,
    columns: tuple[str, ...],
    record: Any,
    *,
    stamp_created_at: bool = False,
) -> int:
    """Insert one dataclass record and return the new row id.

    With `stamp_created_at`, the `created_at` column is filled with the
    current UTC time.
    """
    params = [_to_db_value(c, getattr(record, c)) for c in columns]
    if stamp_created_at:
        columns = columns + ("created_at",)
        params.append(_now_utc_iso())
    placeholders = ", ".join("?" for _ in columns)

    conn = _connect(cfg)
    try:
        cur = conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders});",
            params,
        )
        new_id = cur.lastrowid
        conn.commit()
    finally:
        conn.close()

    logger.debug("Inserted %s #%s", table, new_id)
    return new_id


def _update(
    cfg: DatabaseConfig,
    table: str,
    columns: tuple[str, ...],
    record_id: int,
    update: Any,
) -> None:
    """
    Apply the non-None attributes of `update` to one row.

    Raises
    ------
    ValidationError
        If no fields are provided for update.
    NotFoundError
        If no row has the given id.
    """
    assignments: list[str] = []
    params: list[Any] = []
    for column in columns:
        value = getattr(update, column)
        if value is None:
            continue
        assignments.append(f"{column} = ?")
        params.append(_to_db_value(column, value))

    if not assignments:
        raise ValidationError(f"No fields to update on {table} #{record_id}.")

    params.append(record_id)

    conn = _connect(cfg)
    try:
        cur = conn.execute(
            f"""
            UPDATE {table}
               SET {", ".join(assignments)}
             WHERE id = ?;
            """,
            params,
        )
        if cur.rowcount == 0:
            raise NotFoundError(f"{table} #{record_id} not found.")
        conn.commit()
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Public API: schema
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file (and its parent directory) if it does not exist.
    - Creates tables and indexes if they are missing.
    - Migrates older inventory tables in place.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def has_inventory(cfg: DatabaseConfig) -> bool:
    """Return True if the database contains at least one inventory item."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.execute("SELECT 1 FROM inventory LIMIT 1;")
        return cur.fetchone() is not None
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Public API: inventory
# ---------------------------------------------------------------------------


def list_inventory_items(
    cfg: DatabaseConfig,
    status: str | None = None,
) -> list[InventoryItem]:
    """
    Load inventory items, newest first, optionally restricted to one status.

    Raises
    ------
    ValueError
        If `status` is not a known lifecycle status.
    """
    init_database(cfg)

    query = "SELECT * FROM inventory"
    params: list[Any] = []
    if status is not None:
        if status not in INVENTORY_STATUSES:
            raise ValidationError(f"Unknown inventory status: {status!r}", "status")
        query += " WHERE status = ?"
        params.append(status)
    query += " ORDER BY COALESCE(created_at, '') DESC, id DESC;"

    conn = _connect(cfg)
    try:
        rows = conn.execute(query, params).fetchall()
    finally:
        conn.close()

    return [_row_to_inventory_item(row) for row in rows]


def get_inventory_item(cfg: DatabaseConfig, item_id: int) -> InventoryItem | None:
    """Load a single inventory item by id, or None if it does not exist."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        row = conn.execute("SELECT * FROM inventory WHERE id = ?;", (item_id,)).fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return _row_to_inventory_item(row)


def insert_inventory_item(cfg: DatabaseConfig, new_item: NewInventoryItem) -> InventoryItem:
    """Insert a new inventory item and return it as stored."""
    init_database(cfg)

    item_id = _insert(
        cfg, "inventory", _INVENTORY_COLUMNS, new_item, stamp_created_at=True
    )

    result = get_inventory_item(cfg, item_id)
    if result is None:
        msg = f"Inventory item #{item_id} was just inserted but could not be reloaded."
        raise RuntimeError(msg)
    return result


def update_inventory_item(
    cfg: DatabaseConfig,
    item_id: int,
    update: InventoryUpdate,
) -> InventoryItem:
    """
    Apply a partial update to an existing inventory item.

    Raises
    ------
    ValidationError
        If no fields are provided for update.
    NotFoundError
        If the item does not exist.
    """
    init_database(cfg)
    _update(cfg, "inventory", _INVENTORY_COLUMNS, item_id, update)

    result = get_inventory_item(cfg, item_id)
    if result is None:
        raise NotFoundError(f"Inventory item #{item_id} not found.")
    return result


def delete_inventory_item(cfg: DatabaseConfig, item_id: int) -> int:
    """
    Delete an inventory item and every expense linked to it.

    Returns
    -------
    int
        Number of linked expenses deleted along with the item.

    Raises
    ------
    NotFoundError
        If the item does not exist.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.execute("DELETE FROM expenses WHERE inventory_id = ?;", (item_id,))
        expenses_deleted = cur.rowcount
        cur = conn.execute("DELETE FROM inventory WHERE id = ?;", (item_id,))
        if cur.rowcount == 0:
            conn.rollback()
            raise NotFoundError(f"Inventory item #{item_id} not found.")
        conn.commit()
    finally:
        conn.close()

    return expenses_deleted


# ---------------------------------------------------------------------------
# Public API: clients
# ---------------------------------------------------------------------------


def list_clients(cfg: DatabaseConfig) -> list[Client]:
    """Load every client, most recently created first."""
    init_database(cfg)

    conn = _connect(cfg)
    try:
        rows = conn.execute(
            "SELECT * FROM clients ORDER BY COALESCE(created_at, '') DESC, id DESC;"
        ).fetchall()
    finally:
        conn.close()

    return [_row_to_client(row) for row in rows]


def get_client(cfg: DatabaseConfig, client_id: int) -> Client | None:
    init_database(cfg)

    conn = _connect(cfg)
    try:
        row = conn.execute("SELECT * FROM clients WHERE id = ?;", (client_id,)).fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return _row_to_client(row)


def insert_client(cfg: DatabaseConfig, new_client: NewClient) -> Client:
    """Insert a new client; `created_at` is set to the current UTC time."""
    init_database(cfg)

    client_id = _insert(cfg, "clients", _CLIENT_COLUMNS, new_client, stamp_created_at=True)

    result = get_client(cfg, client_id)
    if result is None:
        msg = f"Client #{client_id} was just inserted but could not be reloaded."
        raise RuntimeError(msg)
    return result


def update_client(cfg: DatabaseConfig, client_id: int, update: ClientUpdate) -> Client:
    init_database(cfg)
    _update(cfg, "clients", _CLIENT_COLUMNS, client_id, update)

    result = get_client(cfg, client_id)
    if result is None:
        raise NotFoundError(f"Client #{client_id} not found.")
    return result


# ---------------------------------------------------------------------------
# Public API: expenses
# ---------------------------------------------------------------------------


def list_expenses(
    cfg: DatabaseConfig,
    filters: ExpensesFilter | None = None,
) -> list[Expense]:
    """
    Load expenses ordered by date (newest first), with optional filters.

    Parameters
    ----------
    cfg:
        Database configuration.
    filters:
        Optional ExpensesFilter. When None, every expense is returned.
    """
    init_database(cfg)

    where_clauses: list[str] = ["1 = 1"]
    params: list[Any] = []

    if filters is not None:
        if filters.start is not None:
            where_clauses.append("date >= ?")
            params.append(filters.start.isoformat())
        if filters.end is not None:
            # Dates are stored with a time part: compare the date prefix only.
            where_clauses.append("substr(date, 1, 10) <= ?")
            params.append(filters.end.isoformat())
        if filters.category is not None:
            where_clauses.append("category = ?")
            params.append(filters.category)
        if filters.description_contains is not None:
            where_clauses.append("LOWER(description) LIKE ?")
            params.append(f"%{filters.description_contains.lower()}%")
        if filters.inventory_id is not None:
            where_clauses.append("inventory_id = ?")
            params.append(filters.inventory_id)
        if filters.recurring_only:
            where_clauses.append("is_recurring = 1")

    query = f"""
        SELECT *
          FROM expenses
         WHERE {' AND '.join(where_clauses)}
         ORDER BY date DESC, id DESC;
    """

    conn = _connect(cfg)
    try:
        rows = conn.execute(query, params).fetchall()
    finally:
        conn.close()

    return [_row_to_expense(row) for row in rows]


def list_expenses_for_item(cfg: DatabaseConfig, item_id: int) -> list[Expense]:
    """Expenses linked to one inventory item."""
    return list_expenses(cfg, ExpensesFilter(inventory_id=item_id))


def get_expense(cfg: DatabaseConfig, expense_id: int) -> Expense | None:
    init_database(cfg)

    conn = _connect(cfg)
    try:
        row = conn.execute("SELECT * FROM expenses WHERE id = ?;", (expense_id,)).fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return _row_to_expense(row)


def insert_expense(cfg: DatabaseConfig, new_expense: NewExpense) -> Expense:
    init_database(cfg)
    expense_id = _insert(cfg, "expenses", _EXPENSE_COLUMNS, new_expense)

    result = get_expense(cfg, expense_id)
    if result is None:
        msg = f"Expense #{expense_id} was just inserted but could not be reloaded."
        raise RuntimeError(msg)
    return result


def update_expense(cfg: DatabaseConfig, expense_id: int, update: ExpenseUpdate) -> Expense:
    init_database(cfg)
    _update(cfg, "expenses", _EXPENSE_COLUMNS, expense_id, update)

    result = get_expense(cfg, expense_id)
    if result is None:
        raise NotFoundError(f"Expense #{expense_id} not found.")
    return result


def delete_expense(cfg: DatabaseConfig, expense_id: int) -> None:
    """
    Delete an expense.

    Raises
    ------
    NotFoundError
        If the expense does not exist.
    """
    init_database(cfg)

    conn = _connect(cfg)
    try:
        cur = conn.execute("DELETE FROM expenses WHERE id = ?;", (expense_id,))
        if cur.rowcount == 0:
            raise NotFoundError(f"Expense #{expense_id} not found.")
        conn.commit()
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# DataFrame helpers
# ---------------------------------------------------------------------------


def inventory_to_dataframe(items: list[InventoryItem]) -> pd.DataFrame:
    """
    Convert inventory items to a DataFrame, one row per item.

    Money columns stay in integer cents. The resolved sold date and sale
    price are added as `resolved_sold_date` / `resolved_sale_price`.
    """
    columns = ["id", *_INVENTORY_COLUMNS, "created_at"]
    if not items:
        return pd.DataFrame(
            columns=[*columns, "resolved_sold_date", "resolved_sale_price"]
        )

    rows = []
    for item in items:
        row = asdict(item)
        row["resolved_sold_date"] = item.resolved_sold_date
        row["resolved_sale_price"] = item.resolved_sale_price
        rows.append(row)

    return pd.DataFrame(
        rows, columns=[*columns, "resolved_sold_date", "resolved_sale_price"]
    )


def expenses_to_dataframe(expenses: list[Expense]) -> pd.DataFrame:
    """Convert expenses to a DataFrame with a proper datetime `date` column."""
    columns = ["id", *_EXPENSE_COLUMNS]
    if not expenses:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame([asdict(e) for e in expenses], columns=columns)
    df["date"] = pd.to_datetime(df["date"])
    return df

# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for WatchBook.

This module wires together the main building blocks of WatchBook:

- global configuration (database, fees, metrics, display options),
- the inventory, client and expense services,
- the metrics engine (period metrics, dashboard, comparison, monthly
  breakdown, quick estimate),
- view helpers (tabular rendering and CSV export).

The CLI is intentionally thin: it does not implement any financial logic
itself. It parses arguments, calls the services and renders the returned
DataFrames.


Configuration
-------------

By default, the CLI reads its configuration from ``watchbook_config.toml``
in the current working directory. You can override this path using:

    --config PATH

When no ``--config`` is given and the default file does not exist, every
built-in default is used and the database lives in
``data/db/watchbook.sqlite``.


Display modes
-------------

``--display-mode`` overrides the ``[display] mode`` setting:

- ``table``: print tables to the console,
- ``csv``:   write CSV files to ``--output`` (default ``data/output``),
- ``both``:  do both.

CSV file names carry a timestamp, e.g. ``metrics_2025-02-10-14-03-12.csv``.


Amounts and months
------------------

Amounts are typed in currency units (``9000`` or ``9000.50``) and stored
as integer cents. Months are typed as calendar months (1 = January).


Commands
--------

- ``dashboard``:
    Inventory value, realized profit, active / sold counts, turn rate.

        python -m watchbook.cli dashboard

- ``metrics [--month M] [--year Y] [--expense-scope period|all] [--top N]``:
    Full metrics snapshot of a period: totals, margins, brand breakdown,
    top / bottom performers and hold-time buckets.

        python -m watchbook.cli metrics --year 2025
        python -m watchbook.cli metrics --month 2 --year 2025 --top 5

- ``compare --month-a M --year-a Y --month-b M --year-b Y [--metrics ...]``:
    Side-by-side comparison of two periods with differences and
    percentage changes.

        python -m watchbook.cli compare --month-a 2 --year-a 2025 --month-b 1 --year-b 2025

- ``monthly [--year Y]``:
    Revenue, costs and profit per calendar month.

- ``estimate --buy PRICE --sale PRICE [--service] [--shipping] [--platform] [--watch-register]``:
    Quick profit estimate of a deal before buying.

- ``inventory list|show|add|update|sell|delete``:
    Manage watches.

        python -m watchbook.cli inventory add --brand Rolex --model Submariner \\
            --reference 124060 --condition New --purchase-price 9000 \\
            --target-price 11500 --purchase-date 2025-01-10
        python -m watchbook.cli inventory sell 1 --price 11500 --date 2025-02-10

- ``clients list|show|add|update``:
    Manage clients. ``show`` lists the watches bought from and sold to
    the client.

- ``expenses list|add|update|delete``:
    Manage business expenses.

- ``seed``:
    Insert demo data into an empty database.


End of module description.
"""

import argparse
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DEFAULT_CONFIG_FILE, AppConfig, default_app_config, load_app_config
from .db import (
    CLIENT_TYPES,
    CONDITIONS,
    EXPENSE_CATEGORIES,
    INVENTORY_STATUSES,
    ClientUpdate,
    ExpensesFilter,
    ExpenseUpdate,
    InventoryUpdate,
    NewClient,
    NewExpense,
    NewInventoryItem,
    init_database,
    parse_datetime,
)
from .engine import METRICS
from .exceptions import WatchBookError
from .log_config import setup_logging
from .periods import PeriodSelector, determine_selector_from_args
from .services import (
    client_detail,
    compare_periods,
    create_client,
    create_expense,
    create_inventory_item,
    dashboard_stats,
    edit_client,
    edit_expense,
    edit_inventory_item,
    estimate_deal,
    list_all_clients,
    list_all_expenses,
    list_inventory,
    load_inventory_item,
    mark_item_sold,
    monthly_breakdown,
    period_metrics,
    remove_expense,
    remove_inventory_item,
    seed_demo_data,
)
from .views import (
    brands_to_dataframe,
    clients_to_dataframe,
    comparison_to_dataframe,
    dashboard_to_dataframe,
    estimate_to_dataframe,
    expenses_to_display,
    hold_time_to_dataframe,
    inventory_to_display,
    monthly_to_display,
    performances_to_dataframe,
    snapshot_to_dataframe,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_period_arguments(parser: argparse.ArgumentParser, suffix: str = "") -> None:
    flag = f"-{suffix}" if suffix else ""
    parser.add_argument(
        f"--month{flag}",
        type=int,
        help="Calendar month (1-12). Omit for all months.",
    )
    parser.add_argument(
        f"--year{flag}",
        type=int,
        help="4-digit year. Omit for all years.",
    )


def _add_item_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    """Inventory fields shared by 'inventory add' and 'inventory update'."""
    parser.add_argument("--brand", required=required)
    parser.add_argument("--model", required=required)
    parser.add_argument("--reference", dest="reference_number", required=required)
    parser.add_argument("--condition", choices=CONDITIONS, required=required)
    parser.add_argument(
        "--purchase-price", dest="purchase_price", required=required, help="Currency units."
    )
    parser.add_argument(
        "--target-price", dest="target_sell_price", required=required, help="Currency units."
    )
    parser.add_argument("--status", choices=INVENTORY_STATUSES)
    parser.add_argument("--serial", dest="serial_number")
    parser.add_argument("--internal-serial", dest="internal_serial")
    parser.add_argument("--year", type=int)
    parser.add_argument("--box", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--papers", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--purchased-from", dest="purchased_from")
    parser.add_argument("--paid-with", dest="paid_with")
    parser.add_argument("--import-fee", dest="import_fee")
    parser.add_argument("--service-fee", dest="service_fee")
    parser.add_argument("--polish-fee", dest="polish_fee")
    parser.add_argument("--insurance-fee", dest="insurance_fee")
    parser.add_argument(
        "--watch-register",
        dest="watch_register",
        action=argparse.BooleanOptionalAction,
        default=None,
    )
    parser.add_argument("--purchase-date", dest="purchase_date", help="YYYY-MM-DD.")
    parser.add_argument("--date-received", dest="date_received")
    parser.add_argument("--date-listed", dest="date_listed")
    parser.add_argument("--date-sent-to-service", dest="date_sent_to_service")
    parser.add_argument("--date-returned-from-service", dest="date_returned_from_service")
    parser.add_argument("--seller-id", dest="client_id", type=int)
    parser.add_argument("--notes")


def _add_client_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--name", required=required)
    parser.add_argument("--email")
    parser.add_argument("--phone")
    parser.add_argument("--social", dest="social_handle")
    parser.add_argument("--country")
    parser.add_argument("--type", choices=CLIENT_TYPES)
    parser.add_argument("--vip", dest="is_vip", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--notes")


def _add_expense_fields(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--description", required=required)
    parser.add_argument("--amount", required=required, help="Currency units.")
    parser.add_argument("--date", required=required, help="YYYY-MM-DD.")
    parser.add_argument("--category", choices=EXPENSE_CATEGORIES)
    parser.add_argument(
        "--recurring", dest="is_recurring", action=argparse.BooleanOptionalAction, default=None
    )
    parser.add_argument("--item", dest="inventory_id", type=int, help="Linked inventory item id.")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m watchbook.cli",
        description=(
            "WatchBook - Inventory & CRM application for luxury-watch resellers. "
            "Tracks watches, clients and expenses, and computes margins, ROI, "
            "hold time and profit per day."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of watchbook and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            f"If omitted, '{DEFAULT_CONFIG_FILE}' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help="Override the display mode defined in the configuration.",
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help="Directory for CSV exports (default: data/output).",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="COMMAND")

    # Reporting
    subparsers.add_parser("dashboard", help="Show dashboard statistics.")

    metrics = subparsers.add_parser("metrics", help="Show the metrics of a period.")
    _add_period_arguments(metrics)
    metrics.add_argument(
        "--expense-scope",
        dest="expense_scope",
        choices=["period", "all"],
        help="Subtract expenses of the period only, or all expenses.",
    )
    metrics.add_argument("--top", dest="top_n", type=int, help="Number of top / bottom performers.")

    compare = subparsers.add_parser("compare", help="Compare two periods.")
    _add_period_arguments(compare, "a")
    _add_period_arguments(compare, "b")
    compare.add_argument(
        "--metrics",
        dest="metric_keys",
        nargs="+",
        choices=list(METRICS),
        metavar="METRIC",
        help="Metrics to compare (default: configured comparison metrics).",
    )
    compare.add_argument("--expense-scope", dest="expense_scope", choices=["period", "all"])

    monthly = subparsers.add_parser("monthly", help="Show the monthly profit breakdown.")
    monthly.add_argument("--year", type=int, help="Restrict to one year.")

    estimate = subparsers.add_parser("estimate", help="Estimate the profit of a deal.")
    estimate.add_argument("--buy", required=True, help="Buy price (currency units).")
    estimate.add_argument("--sale", required=True, help="Expected sale price.")
    estimate.add_argument("--service", default="0", help="Expected service cost.")
    estimate.add_argument("--shipping", default="0", help="Expected shipping cost.")
    estimate.add_argument("--platform", help="Selling platform (e.g. chrono24, private).")
    estimate.add_argument("--watch-register", dest="watch_register", action="store_true")

    # Inventory
    inventory = subparsers.add_parser("inventory", help="Manage watches.")
    inventory_sub = inventory.add_subparsers(dest="inventory_command", required=True)

    inv_list = inventory_sub.add_parser("list", help="List watches.")
    inv_list.add_argument("--status", choices=INVENTORY_STATUSES)

    inv_show = inventory_sub.add_parser("show", help="Show one watch.")
    inv_show.add_argument("item_id", type=int)

    inv_add = inventory_sub.add_parser("add", help="Add a watch.")
    _add_item_fields(inv_add, required=True)

    inv_update = inventory_sub.add_parser("update", help="Update a watch.")
    inv_update.add_argument("item_id", type=int)
    _add_item_fields(inv_update, required=False)

    inv_sell = inventory_sub.add_parser("sell", help="Record the sale of a watch.")
    inv_sell.add_argument("item_id", type=int)
    inv_sell.add_argument("--price", required=True, help="Sale price (currency units).")
    inv_sell.add_argument("--date", help="Sale date (YYYY-MM-DD), default today.")
    inv_sell.add_argument("--buyer-id", dest="buyer_id", type=int)
    inv_sell.add_argument("--sold-to", dest="sold_to")
    inv_sell.add_argument("--platform", dest="sold_platform")
    inv_sell.add_argument("--platform-fees", dest="platform_fees")
    inv_sell.add_argument("--shipping-fee", dest="shipping_fee")

    inv_delete = inventory_sub.add_parser(
        "delete", help="Delete a watch and its linked expenses."
    )
    inv_delete.add_argument("item_id", type=int)

    # Clients
    clients = subparsers.add_parser("clients", help="Manage clients.")
    clients_sub = clients.add_subparsers(dest="clients_command", required=True)

    clients_sub.add_parser("list", help="List clients.")

    cl_show = clients_sub.add_parser("show", help="Show a client and their watches.")
    cl_show.add_argument("client_id", type=int)

    cl_add = clients_sub.add_parser("add", help="Add a client.")
    _add_client_fields(cl_add, required=True)

    cl_update = clients_sub.add_parser("update", help="Update a client.")
    cl_update.add_argument("client_id", type=int)
    _add_client_fields(cl_update, required=False)

    # Expenses
    expenses = subparsers.add_parser("expenses", help="Manage business expenses.")
    expenses_sub = expenses.add_subparsers(dest="expenses_command", required=True)

    ex_list = expenses_sub.add_parser("list", help="List expenses.")
    ex_list.add_argument("--from-date", dest="from_date", help="YYYY-MM-DD.")
    ex_list.add_argument("--to-date", dest="to_date", help="YYYY-MM-DD.")
    ex_list.add_argument("--category", choices=EXPENSE_CATEGORIES)
    ex_list.add_argument("--search", dest="description_contains")
    ex_list.add_argument("--item", dest="inventory_id", type=int)
    ex_list.add_argument("--recurring-only", dest="recurring_only", action="store_true")

    ex_add = expenses_sub.add_parser("add", help="Add an expense.")
    _add_expense_fields(ex_add, required=True)

    ex_update = expenses_sub.add_parser("update", help="Update an expense.")
    ex_update.add_argument("expense_id", type=int)
    _add_expense_fields(ex_update, required=False)

    ex_delete = expenses_sub.add_parser("delete", help="Delete an expense.")
    ex_delete.add_argument("expense_id", type=int)

    subparsers.add_parser("seed", help="Insert demo data into an empty database.")

    return ap


# ---------------------------------------------------------------------------
# Value parsing
# ---------------------------------------------------------------------------


def _parse_amount(value: Optional[str], name: str = "amount") -> Optional[int]:
    """
    Parse an amount typed in currency units into integer cents.

    Raises
    ------
    SystemExit
        If the amount is not a number.
    """
    if value is None:
        return None
    try:
        cents = (Decimal(str(value).replace(",", ".")) * 100).quantize(Decimal(1))
    except InvalidOperation as exc:
        raise SystemExit(f"Invalid {name}: {value!r}. Expected a number.") from exc
    return int(cents)


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    SystemExit
        If the date format is invalid.
    """
    if value is None:
        return None

    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f"Invalid date format: {value!r}. Expected YYYY-MM-DD."
        raise SystemExit(msg) from exc


def _parse_optional_datetime(value: Optional[str]) -> Optional[datetime]:
    parsed = _parse_optional_date(value)
    if parsed is None:
        return None
    return parse_datetime(parsed)


_ITEM_MONEY_ARGS = (
    "purchase_price",
    "target_sell_price",
    "import_fee",
    "service_fee",
    "polish_fee",
    "insurance_fee",
)
_ITEM_DATE_ARGS = (
    "purchase_date",
    "date_received",
    "date_listed",
    "date_sent_to_service",
    "date_returned_from_service",
)
_ITEM_PLAIN_ARGS = (
    "brand",
    "model",
    "reference_number",
    "condition",
    "status",
    "serial_number",
    "internal_serial",
    "year",
    "box",
    "papers",
    "purchased_from",
    "paid_with",
    "watch_register",
    "client_id",
    "notes",
)


def _item_values_from_args(args: argparse.Namespace) -> dict:
    """Collect the inventory fields given on the command line (None when absent)."""
    values = {name: getattr(args, name) for name in _ITEM_PLAIN_ARGS}
    for name in _ITEM_MONEY_ARGS:
        values[name] = _parse_amount(getattr(args, name), name)
    for name in _ITEM_DATE_ARGS:
        values[name] = _parse_optional_datetime(getattr(args, name))
    return values


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render(
    sections: list[tuple[str, str, pd.DataFrame]],
    display_mode: str,
    output_dir: Optional[str],
) -> None:
    """
    Render (title, file stem, DataFrame) sections as tables and/or CSV files.
    """
    if display_mode in {"table", "both"}:
        for title, _, df in sections:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no rows)")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        out_dir = Path(output_dir) if output_dir else Path("data/output")
        out_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, stem, df in sections:
            path = out_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _handle_dashboard(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    stats = dashboard_stats(config)
    _render(
        [("Dashboard", "dashboard", dashboard_to_dataframe(stats, config.decimals))],
        display_mode,
        args.output_dir,
    )


def _handle_metrics(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    selector = determine_selector_from_args(args)
    snapshot = period_metrics(
        config,
        selector,
        expense_scope=args.expense_scope,
        top_n=args.top_n,
    )
    decimals = config.decimals

    print(f"Applied period: {snapshot.period_label} ({config.currency})")
    _render(
        [
            ("Metrics", "metrics", snapshot_to_dataframe(snapshot, decimals)),
            ("Brands", "brands", brands_to_dataframe(snapshot, decimals)),
            (
                "Top performers",
                "top_performers",
                performances_to_dataframe(snapshot.top_performers, decimals),
            ),
            (
                "Bottom performers",
                "bottom_performers",
                performances_to_dataframe(snapshot.bottom_performers, decimals),
            ),
            ("Hold time", "hold_time", hold_time_to_dataframe(snapshot)),
        ],
        display_mode,
        args.output_dir,
    )


def _selector_from_pair(month: Optional[int], year: Optional[int]) -> PeriodSelector:
    return determine_selector_from_args(argparse.Namespace(month=month, year=year))


def _handle_compare(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    period_a = _selector_from_pair(args.month_a, args.year_a)
    period_b = _selector_from_pair(args.month_b, args.year_b)

    result = compare_periods(
        config,
        period_a,
        period_b,
        metric_keys=args.metric_keys,
        expense_scope=args.expense_scope,
    )
    print(f"Comparing {period_a.label} with {period_b.label} ({config.currency})")
    _render(
        [("Comparison", "comparison", comparison_to_dataframe(result, config.decimals))],
        display_mode,
        args.output_dir,
    )


def _handle_monthly(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    df = monthly_breakdown(config, args.year)
    title = f"Monthly breakdown {args.year}" if args.year else "Monthly breakdown (all years)"
    _render(
        [(title, "monthly", monthly_to_display(df, config.decimals))],
        display_mode,
        args.output_dir,
    )


def _handle_estimate(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    estimate = estimate_deal(
        config,
        _parse_amount(args.buy, "buy price"),
        _parse_amount(args.sale, "sale price"),
        service_cost=_parse_amount(args.service, "service cost"),
        shipping=_parse_amount(args.shipping, "shipping cost"),
        platform=args.platform,
        watch_register=args.watch_register,
    )
    _render(
        [("Quick estimate", "estimate", estimate_to_dataframe(estimate, config.decimals))],
        display_mode,
        args.output_dir,
    )


def _handle_inventory(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    command = args.inventory_command
    decimals = config.decimals

    if command == "list":
        items = list_inventory(config, args.status)
        _render(
            [("Inventory", "inventory", inventory_to_display(items, decimals))],
            display_mode,
            args.output_dir,
        )
        print()
        print(f"Total watches: {len(items)}")
        return

    if command == "show":
        item = load_inventory_item(config, args.item_id)
        print(f"#{item.id} {item.brand} {item.model} ({item.reference_number})")
        print(inventory_to_display([item], decimals).T.to_string(header=False))
        return

    if command == "add":
        values = _item_values_from_args(args)
        values = {k: v for k, v in values.items() if v is not None}
        created = create_inventory_item(config, NewInventoryItem(**values))
        print(f"Added inventory item #{created.id} ({created.brand} {created.model}).")
        return

    if command == "update":
        update = InventoryUpdate(**_item_values_from_args(args))
        updated = edit_inventory_item(config, args.item_id, update)
        print(f"Updated inventory item #{updated.id} (status: {updated.status}).")
        return

    if command == "sell":
        sold = mark_item_sold(
            config,
            args.item_id,
            _parse_amount(args.price, "sale price"),
            sold_date=_parse_optional_datetime(args.date),
            sold_to=args.sold_to,
            buyer_id=args.buyer_id,
            sold_platform=args.sold_platform,
            platform_fees=_parse_amount(args.platform_fees, "platform fees"),
            shipping_fee=_parse_amount(args.shipping_fee, "shipping fee"),
        )
        print(f"Inventory item #{sold.id} marked as sold.")
        return

    if command == "delete":
        deleted_expenses = remove_inventory_item(config, args.item_id)
        print(
            f"Deleted inventory item #{args.item_id} "
            f"and {deleted_expenses} linked expense(s)."
        )
        return

    raise ValueError(f"Unknown inventory command: {command!r}")


def _handle_clients(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    command = args.clients_command

    if command == "list":
        _render(
            [("Clients", "clients", clients_to_dataframe(list_all_clients(config)))],
            display_mode,
            args.output_dir,
        )
        return

    if command == "show":
        detail = client_detail(config, args.client_id)
        client = detail.client
        vip = " (VIP)" if client.is_vip else ""
        print(f"#{client.id} {client.name}{vip} - {client.type}")
        for label, value in (
            ("Email", client.email),
            ("Phone", client.phone),
            ("Social", client.social_handle),
            ("Country", client.country),
            ("Notes", client.notes),
        ):
            if value:
                print(f"{label}: {value}")
        total = detail.total_purchase_value / 100
        print(f"Total purchase value: {total:.{config.decimals}f} {config.currency}")
        _render(
            [
                (
                    "Bought from client",
                    "client_purchases",
                    inventory_to_display(detail.purchases, config.decimals),
                ),
                (
                    "Sold to client",
                    "client_sales",
                    inventory_to_display(detail.sales, config.decimals),
                ),
            ],
            display_mode,
            args.output_dir,
        )
        return

    values = {
        "name": args.name,
        "email": args.email,
        "phone": args.phone,
        "social_handle": args.social_handle,
        "country": args.country,
        "type": args.type,
        "is_vip": args.is_vip,
        "notes": args.notes,
    }

    if command == "add":
        created = create_client(
            config, NewClient(**{k: v for k, v in values.items() if v is not None})
        )
        print(f"Added client #{created.id} ({created.name}).")
        return

    if command == "update":
        updated = edit_client(config, args.client_id, ClientUpdate(**values))
        print(f"Updated client #{updated.id} ({updated.name}).")
        return

    raise ValueError(f"Unknown clients command: {command!r}")


def _handle_expenses(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    command = args.expenses_command

    if command == "list":
        filters = ExpensesFilter(
            start=_parse_optional_date(args.from_date),
            end=_parse_optional_date(args.to_date),
            category=args.category,
            description_contains=args.description_contains,
            inventory_id=args.inventory_id,
            recurring_only=args.recurring_only,
        )
        expenses = list_all_expenses(config, filters)
        _render(
            [("Expenses", "expenses", expenses_to_display(expenses, config.decimals))],
            display_mode,
            args.output_dir,
        )
        total = sum(e.amount for e in expenses) / 100
        print()
        print(
            f"Total expenses: {len(expenses)} | "
            f"Total amount: {total:.{config.decimals}f} {config.currency}"
        )
        return

    if command == "delete":
        remove_expense(config, args.expense_id)
        print(f"Deleted expense #{args.expense_id}.")
        return

    values = {
        "description": args.description,
        "amount": _parse_amount(args.amount),
        "date": _parse_optional_datetime(args.date),
        "category": args.category,
        "is_recurring": args.is_recurring,
        "inventory_id": args.inventory_id,
    }

    if command == "add":
        created = create_expense(
            config, NewExpense(**{k: v for k, v in values.items() if v is not None})
        )
        print(f"Added expense #{created.id} ({created.description}).")
        return

    if command == "update":
        updated = edit_expense(config, args.expense_id, ExpenseUpdate(**values))
        print(f"Updated expense #{updated.id} ({updated.description}).")
        return

    raise ValueError(f"Unknown expenses command: {command!r}")


def _handle_seed(args: argparse.Namespace, config: AppConfig, display_mode: str) -> None:
    if seed_demo_data(config):
        print("Demo data inserted: 2 clients, 3 watches.")
    else:
        print("Database is not empty: demo data not inserted.")


_HANDLERS = {
    "dashboard": _handle_dashboard,
    "metrics": _handle_metrics,
    "compare": _handle_compare,
    "monthly": _handle_monthly,
    "estimate": _handle_estimate,
    "inventory": _handle_inventory,
    "clients": _handle_clients,
    "expenses": _handle_expenses,
    "seed": _handle_seed,
}


def _load_config(config_path: Optional[str]) -> AppConfig:
    if config_path:
        return load_app_config(config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    logger.info("No %s found, using built-in defaults", DEFAULT_CONFIG_FILE)
    return default_app_config(Path("data/db/watchbook.sqlite").resolve())


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the WatchBook CLI.

    This function parses command-line arguments, loads the configuration,
    sets up logging, initializes the database and dispatches to the
    requested command. Application errors are reported on stderr with a
    non-zero exit status.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"watchbook version {__version__}")
        return

    if args.command is None:
        parser.print_help()
        return

    try:
        # 1) Configuration and logging
        config = _load_config(args.config_path)
        setup_logging(logging.DEBUG if args.verbose else config.log_level)
        logger.debug("Using database %s", config.database.path)

        # 2) Initialize the database (create file and schema if needed)
        init_database(config.database)

        # 3) Resolve display mode: config value overridden by CLI if provided.
        display_mode = args.display_mode or config.display_mode

        _HANDLERS[args.command](args, config, display_mode)
    except (WatchBookError, FileNotFoundError) as exc:
        raise SystemExit(f"Error: {exc}") from exc


if __name__ == "__main__":
    main()

# WatchBook - Inventory & CRM application for luxury-watch resellers
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for WatchBook.

This module defines the PeriodSelector value object (a month and a year,
each optionally "all") and the Period Filter applied identically by every
view: dashboard, metrics, financials and the period comparison.

Relevant-date rule
------------------
- sold item with a resolved sold date -> that sold date,
- otherwise -> the purchase date,
- no date at all -> the record always passes the filter, so legacy rows
  are never silently dropped from aggregates.

Months are 0-based (0 = January ... 11 = December) inside the library. The
CLI accepts the usual 1-12 and converts at the boundary.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from .db import Expense, InventoryItem
from .exceptions import ValidationError

ALL = "all"

MonthSelector = Union[int, str]
YearSelector = Union[int, str]


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def _now() -> datetime:
    """Return the current naive datetime (isolated for easier testing)."""
    return datetime.now()


@dataclass(frozen=True)
class PeriodSelector:
    """
    A (month, year) selection, each axis either "all" or a concrete value.

    Attributes
    ----------
    month:
        "all" or an int in 0..11.
    year:
        "all" or a 4-digit year.
    """

    month: MonthSelector = ALL
    year: YearSelector = ALL

    @classmethod
    def parse(cls, month: Any = None, year: Any = None) -> "PeriodSelector":
        """
        Build a selector from loosely typed values (strings, ints, None).

        None and "all" (any case) mean "all" on that axis.

        Raises
        ------
        ValidationError
            If the month is not in 0..11 or the year is not a 4-digit year.
        """
        return cls(month=_parse_month(month), year=_parse_year(year))

    @property
    def has_month(self) -> bool:
        return self.month != ALL

    @property
    def has_year(self) -> bool:
        return self.year != ALL

    @property
    def label(self) -> str:
        """Human-readable label, e.g. "February 2025" or "All Time"."""
        if self.has_month and self.has_year:
            return f"{calendar.month_name[int(self.month) + 1]} {self.year}"
        if self.has_month:
            return f"{calendar.month_name[int(self.month) + 1]} (All Years)"
        if self.has_year:
            return str(self.year)
        return "All Time"

    def matches(self, when: Optional[datetime]) -> bool:
        """True if `when` falls inside the selection (None always matches)."""
        if when is None:
            return True
        if self.has_month and when.month - 1 != self.month:
            return False
        if self.has_year and when.year != self.year:
            return False
        return True


ALL_TIME = PeriodSelector()


def _parse_month(value: Any) -> MonthSelector:
    if value is None or (isinstance(value, str) and value.strip().lower() == ALL):
        return ALL
    if isinstance(value, bool):
        raise ValidationError(f"Invalid month selector: {value!r}", "month")
    try:
        month = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid month selector: {value!r}", "month") from exc
    if not 0 <= month <= 11:
        raise ValidationError(
            f"Month selector must be 'all' or between 0 and 11, got {month}.",
            "month",
        )
    return month


def _parse_year(value: Any) -> YearSelector:
    if value is None or (isinstance(value, str) and value.strip().lower() == ALL):
        return ALL
    if isinstance(value, bool):
        raise ValidationError(f"Invalid year selector: {value!r}", "year")
    try:
        year = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid year selector: {value!r}", "year") from exc
    if not 1000 <= year <= 9999:
        raise ValidationError(
            f"Year selector must be 'all' or a 4-digit year, got {year}.", "year"
        )
    return year


# ---------------------------------------------------------------------------
# Period Filter
# ---------------------------------------------------------------------------


def relevant_date(item: InventoryItem) -> Optional[datetime]:
    """
    Date used to place an item in a period.

    The resolved sold date for sold items, else the purchase date, else None.
    """
    if item.is_sold:
        sold_at = item.resolved_sold_date
        if sold_at is not None:
            return sold_at
    return item.purchase_date


def filter_items_by_period(
    items: Iterable[InventoryItem],
    selector: PeriodSelector,
) -> list[InventoryItem]:
    """
    Keep the items whose relevant date matches both axes of the selector.

    Items with no relevant date always pass.
    """
    return [item for item in items if selector.matches(relevant_date(item))]


def filter_expenses_by_period(
    expenses: Iterable[Expense],
    selector: PeriodSelector,
) -> list[Expense]:
    """Keep the expenses whose date matches the selector."""
    return [expense for expense in expenses if selector.matches(expense.date)]


def days_in_period(
    selector: PeriodSelector,
    sold_items: Sequence[InventoryItem] = (),
    today: Optional[date] = None,
) -> int:
    """
    Number of days used to compute profit per day.

    - month and year: days of that month,
    - month only: days of that month in the current year,
    - year only: days in that year,
    - neither: days from the earliest sold date to today (inclusive,
      at least 1), or 365 when nothing has been sold.

    Parameters
    ----------
    selector:
        Period selection.
    sold_items:
        Sold items of the period, only used when no axis is selected.
    today:
        Reference date, defaults to the current date.
    """
    if today is None:
        today = _today()

    if selector.has_month:
        year = int(selector.year) if selector.has_year else today.year
        return calendar.monthrange(year, int(selector.month) + 1)[1]

    if selector.has_year:
        return 366 if calendar.isleap(int(selector.year)) else 365

    sold_dates = [
        item.resolved_sold_date.date()
        for item in sold_items
        if item.resolved_sold_date is not None
    ]
    if not sold_dates:
        return 365

    return max(1, (today - min(sold_dates)).days + 1)


def available_years(items: Iterable[InventoryItem]) -> list[int]:
    """Distinct years of the items' relevant dates, newest first."""
    years = {when.year for when in map(relevant_date, items) if when is not None}
    return sorted(years, reverse=True)


def determine_selector_from_args(args) -> PeriodSelector:
    """
    Build a PeriodSelector from CLI args.

    `args.month` is 1-12 (calendar month) and `args.year` a 4-digit year;
    either may be missing or None, meaning "all".
    """
    month_raw = getattr(args, "month", None)
    year_raw = getattr(args, "year", None)

    month: Any = None
    if month_raw is not None:
        if not 1 <= int(month_raw) <= 12:
            raise ValidationError(
                f"--month must be between 1 and 12, got {month_raw}.", "month"
            )
        month = int(month_raw) - 1

    return PeriodSelector.parse(month, year_raw)

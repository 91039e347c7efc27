from argparse import Namespace
from datetime import date, datetime

import pytest

import watchbook.periods as periods
from watchbook.db import Expense, InventoryItem
from watchbook.exceptions import ValidationError
from watchbook.periods import (
    PeriodSelector,
    available_years,
    days_in_period,
    determine_selector_from_args,
    filter_expenses_by_period,
    filter_items_by_period,
    relevant_date,
)


def make_item(item_id: int, **overrides) -> InventoryItem:
    values = dict(
        id=item_id,
        brand="Omega",
        model="Speedmaster",
        reference_number="311.30.42.30.01.005",
        condition="Used",
        purchase_price=400000,
        target_sell_price=550000,
        status="in_stock",
    )
    values.update(overrides)
    return InventoryItem(**values)


def sample_items() -> list[InventoryItem]:
    return [
        # Bought and sold in 2025.
        make_item(
            1,
            status="sold",
            purchase_date=datetime(2025, 1, 10),
            sold_date=datetime(2025, 2, 10),
        ),
        # Sold with the legacy date column only.
        make_item(
            2,
            status="sold",
            purchase_date=datetime(2024, 11, 1),
            date_sold=datetime(2024, 12, 15),
        ),
        # In stock, bought in March 2025.
        make_item(3, purchase_date=datetime(2025, 3, 5)),
        # Sold without any sold date: placed by its purchase date.
        make_item(4, status="sold", purchase_date=datetime(2025, 2, 20)),
        # No date at all.
        make_item(5),
        # In stock, bought in February 2024.
        make_item(6, purchase_date=datetime(2024, 2, 29)),
    ]


def ids(items) -> set[int]:
    return {item.id for item in items}


# ---------------------------------------------------------------------------
# Selector
# ---------------------------------------------------------------------------


def test_parse_accepts_all_none_and_numbers():
    assert PeriodSelector.parse() == PeriodSelector("all", "all")
    assert PeriodSelector.parse("ALL", None) == PeriodSelector("all", "all")
    assert PeriodSelector.parse("1", "2025") == PeriodSelector(1, 2025)
    assert PeriodSelector.parse(0, 2024) == PeriodSelector(0, 2024)


@pytest.mark.parametrize(
    "month, year",
    [(12, None), (-1, None), ("feb", None), (None, 25), (None, "twenty")],
)
def test_parse_rejects_out_of_range_values(month, year):
    with pytest.raises(ValidationError):
        PeriodSelector.parse(month, year)


def test_labels():
    assert PeriodSelector(1, 2025).label == "February 2025"
    assert PeriodSelector(1, "all").label == "February (All Years)"
    assert PeriodSelector("all", 2025).label == "2025"
    assert PeriodSelector().label == "All Time"


def test_determine_selector_from_args_uses_calendar_months():
    selector = determine_selector_from_args(Namespace(month=2, year=2025))
    assert selector == PeriodSelector(1, 2025)

    assert determine_selector_from_args(Namespace()) == PeriodSelector()

    with pytest.raises(ValidationError):
        determine_selector_from_args(Namespace(month=0, year=None))


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


def test_relevant_date_prefers_sold_date_then_legacy_column():
    items = {item.id: item for item in sample_items()}

    assert relevant_date(items[1]) == datetime(2025, 2, 10)
    assert relevant_date(items[2]) == datetime(2024, 12, 15)
    assert relevant_date(items[4]) == datetime(2025, 2, 20)
    assert relevant_date(items[5]) is None


def test_sold_date_wins_over_legacy_column():
    item = make_item(
        1,
        status="sold",
        sold_date=datetime(2025, 5, 1),
        date_sold=datetime(2025, 4, 1),
    )
    assert relevant_date(item) == datetime(2025, 5, 1)


def test_unsold_item_uses_purchase_date_even_with_sold_date():
    item = make_item(
        1,
        status="in_stock",
        purchase_date=datetime(2025, 1, 1),
        sold_date=datetime(2025, 5, 1),
    )
    assert relevant_date(item) == datetime(2025, 1, 1)


def test_filter_by_month_and_year():
    items = sample_items()

    # February 2025: item 1 (sold), item 4 (purchase date), item 5 (no date).
    assert ids(filter_items_by_period(items, PeriodSelector(1, 2025))) == {1, 4, 5}

    # Year 2024: item 2 (legacy sold date), item 6, item 5.
    assert ids(filter_items_by_period(items, PeriodSelector("all", 2024))) == {2, 5, 6}

    # February of any year.
    assert ids(filter_items_by_period(items, PeriodSelector(1, "all"))) == {1, 4, 5, 6}

    # Everything.
    assert ids(filter_items_by_period(items, PeriodSelector())) == {1, 2, 3, 4, 5, 6}


def test_month_partition_matches_full_year():
    """The 12 months of a year re-merge into the full-year result."""
    items = sample_items()
    dated = {item.id for item in items if relevant_date(item) is not None}

    for year in (2024, 2025):
        full_year = ids(filter_items_by_period(items, PeriodSelector("all", year)))

        merged: set[int] = set()
        for month in range(12):
            month_ids = ids(filter_items_by_period(items, PeriodSelector(month, year)))
            # Dateless records appear in every month.
            assert 5 in month_ids
            merged |= month_ids

        assert merged == full_year
        assert (merged & dated) == (full_year & dated)


def test_filter_expenses_by_period():
    expenses = [
        Expense(id=1, description="Ads", amount=10000, date=datetime(2025, 2, 3)),
        Expense(id=2, description="Rent", amount=50000, date=datetime(2025, 3, 1)),
        Expense(id=3, description="Tools", amount=2000, date=datetime(2024, 2, 3)),
    ]
    assert ids(filter_expenses_by_period(expenses, PeriodSelector(1, 2025))) == {1}
    assert ids(filter_expenses_by_period(expenses, PeriodSelector(1, "all"))) == {1, 3}
    assert ids(filter_expenses_by_period(expenses, PeriodSelector())) == {1, 2, 3}


# ---------------------------------------------------------------------------
# Days in period
# ---------------------------------------------------------------------------


def test_days_in_period_with_month_and_year():
    assert days_in_period(PeriodSelector(1, 2024)) == 29
    assert days_in_period(PeriodSelector(1, 2025)) == 28
    assert days_in_period(PeriodSelector(0, 2025)) == 31


def test_days_in_period_month_only_uses_current_year(monkeypatch):
    monkeypatch.setattr(periods, "_today", lambda: date(2024, 6, 1))
    assert days_in_period(PeriodSelector(1, "all")) == 29

    assert days_in_period(PeriodSelector(1, "all"), today=date(2025, 6, 1)) == 28


def test_days_in_period_year_only():
    assert days_in_period(PeriodSelector("all", 2024)) == 366
    assert days_in_period(PeriodSelector("all", 2025)) == 365


def test_days_in_period_all_time():
    sold = [
        make_item(1, status="sold", sold_date=datetime(2025, 2, 10)),
        make_item(2, status="sold", date_sold=datetime(2025, 1, 1)),
    ]
    assert days_in_period(PeriodSelector(), sold, date(2025, 1, 31)) == 31
    assert days_in_period(PeriodSelector(), sold, date(2025, 1, 1)) == 1
    # A sold date in the future still yields at least one day.
    assert days_in_period(PeriodSelector(), sold, date(2024, 12, 1)) == 1


def test_days_in_period_defaults_to_365_without_sales():
    assert days_in_period(PeriodSelector(), [], date(2025, 1, 1)) == 365


def test_available_years_newest_first():
    assert available_years(sample_items()) == [2025, 2024]
    assert available_years([]) == []

"""
Expense list helpers: search, frequency filter, ordering and outliers.

Orderings by cost use the monthly-normalized value, so a daily coffee
and a yearly insurance premium sort against each other fairly.
"""

from collections.abc import Iterable
from typing import Optional, Union

from burnrate.finance.core import coerce_amount, normalize_to_monthly
from burnrate.models.expense import Expense, Frequency, SortMode

ALL_FREQUENCIES = "all"


def filter_expenses(
    expenses: Iterable[Expense],
    search: str = "",
    frequency: Optional[Union[Frequency, str]] = None,
) -> list[Expense]:
    """
    Expenses whose name or category contains `search` (case-insensitive),
    optionally restricted to one frequency. `None` or "all" keeps every
    frequency; an unrecognized frequency only matches records stored with
    that same string.
    """
    needle = (search or "").strip().casefold()
    wanted = None if frequency in (None, ALL_FREQUENCIES) else frequency

    matches = []
    for expense in expenses:
        if needle and needle not in expense.name.casefold() and needle not in expense.category.casefold():
            continue
        if wanted is not None and expense.frequency != wanted:
            continue
        matches.append(expense)
    return matches


def _monthly_value(expense: Expense) -> float:
    return normalize_to_monthly(expense.amount, expense.frequency)


def sort_expenses(
    expenses: Iterable[Expense],
    mode: Union[SortMode, str] = SortMode.HIGHEST,
) -> list[Expense]:
    """Return a new list ordered by `mode`. Equal keys keep their input order."""
    mode = SortMode(mode)

    if mode == SortMode.HIGHEST:
        return sorted(expenses, key=_monthly_value, reverse=True)
    if mode == SortMode.LOWEST:
        return sorted(expenses, key=_monthly_value)
    if mode == SortMode.A_Z:
        return sorted(expenses, key=lambda e: e.name.casefold())
    return sorted(expenses, key=lambda e: e.category.casefold())


def top_expenses(expenses: Iterable[Expense], n: int = 5) -> list[Expense]:
    """The `n` largest expenses by raw amount, regardless of frequency."""
    ranked = sorted(
        expenses,
        key=lambda e: coerce_amount(e.amount) or 0.0,
        reverse=True,
    )
    return ranked[:max(n, 0)]

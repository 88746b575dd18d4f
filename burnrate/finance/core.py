"""
Finance Core

Pure functions that turn heterogeneous expense records (different
frequencies, recurrence flags and currencies) into one comparable
"monthly burn" figure, group it by category, validate input and
format money for display.

DESIGN DECISION: Nothing in this module raises, and nothing in it does I/O.
A financial dashboard must keep rendering when a stored record is
malformed, so bad numbers and unknown frequencies degrade to a zero
contribution. Rejecting bad input is validate_expense_input's job and
happens before a record is accepted, not while aggregating.

Records may be Expense/ExpenseDraft models or plain mappings
(camelCase `isRecurring` is accepted for mappings loaded from JSON).
"""

import copy
import math
import numbers
import sys
from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Optional

from babel import Locale, UnknownLocaleError
from babel.numbers import format_currency as _babel_format_currency

from burnrate.models.expense import CategoryTotal, Frequency

# Average calendar month: 365.25 days / 12, 52.14 weeks / 12.
MONTHLY_MULTIPLIERS: dict[Frequency, float] = {
    Frequency.DAILY: 30.44,
    Frequency.WEEKLY: 4.345,
    Frequency.MONTHLY: 1.0,
    Frequency.YEARLY: 1 / 12,
    Frequency.ONE_TIME: 0.0,  # Not part of the recurring burn
}

DEFAULT_CURRENCY_CODE = "USD"
DEFAULT_LOCALE = "en-US"
_DISPLAY_PRECISION = 400

# Totals saturate here instead of overflowing to infinity.
MAX_TOTAL = sys.float_info.max

NAME_REQUIRED = "Name is required."
AMOUNT_NOT_A_NUMBER = "Amount must be a number."
AMOUNT_NEGATIVE = "Amount cannot be negative."
CATEGORY_REQUIRED = "Category is required."


# =============================================================================
# HELPERS
# =============================================================================

def coerce_amount(value: Any) -> Optional[float]:
    """
    Return `value` as a finite float, or None.

    Booleans, strings, None, NaN and infinities are not amounts.
    """
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_frequency(value: Any) -> Optional[Frequency]:
    """Return the matching Frequency, or None for anything unrecognized."""
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(value)
    except (ValueError, TypeError):
        return None


def _read(record: Any, field: str, alias: Optional[str] = None) -> Any:
    """Read a field from a model or a mapping; missing fields read as None."""
    if isinstance(record, Mapping):
        if field in record:
            return record[field]
        return record.get(alias) if alias else None
    return getattr(record, field, None)


# =============================================================================
# NORMALIZATION & AGGREGATION
# =============================================================================

def normalize_to_monthly(amount: Any, frequency: Any) -> float:
    """
    Convert an amount paid at `frequency` into its average monthly value.

    Negative, NaN or non-numeric amounts and unknown frequencies give 0.
    One-time amounts also give 0: they are not part of the monthly burn.
    So does an amount too large to normalize to a finite figure.
    """
    value = coerce_amount(amount)
    if value is None or value < 0:
        return 0.0

    multiplier = MONTHLY_MULTIPLIERS.get(coerce_frequency(frequency), 0.0)
    monthly = value * multiplier
    return monthly if math.isfinite(monthly) else 0.0


def calculate_total_monthly_burn(expenses: Iterable[Any]) -> float:
    """
    Total average monthly spend across `expenses`.

    A record that is one-time AND not flagged recurring is skipped outright.
    Everything else contributes its normalized monthly value - including
    a one-time record flagged recurring, which normalizes to 0 anyway, and
    a weekly record flagged non-recurring, which counts in full.
    """
    contributions = []
    for expense in expenses:
        frequency = _read(expense, "frequency")
        is_recurring = _read(expense, "is_recurring", "isRecurring")

        if coerce_frequency(frequency) is Frequency.ONE_TIME and not is_recurring:
            continue

        contributions.append(normalize_to_monthly(_read(expense, "amount"), frequency))

    # fsum keeps the total independent of input order.
    try:
        return math.fsum(contributions)
    except OverflowError:
        return MAX_TOTAL


def get_category_breakdown(expenses: Iterable[Any]) -> list[CategoryTotal]:
    """
    Monthly totals per category, largest first.

    Only strictly positive contributions are accumulated, so categories
    that hold nothing but one-time or malformed records do not appear.
    Ties keep no particular order.
    """
    totals: dict[Any, float] = {}
    for expense in expenses:
        value = normalize_to_monthly(
            _read(expense, "amount"),
            _read(expense, "frequency"),
        )
        if value > 0:
            category = _read(expense, "category")
            totals[category] = min(totals.get(category, 0.0) + value, MAX_TOTAL)

    breakdown = [CategoryTotal(category, total) for category, total in totals.items()]
    breakdown.sort(key=lambda row: row.total, reverse=True)
    return breakdown


# =============================================================================
# VALIDATION
# =============================================================================

def validate_expense_input(candidate: Any) -> Optional[str]:
    """
    Check a candidate expense before it is accepted.

    Returns None when valid, otherwise the message for the FIRST rule that
    fails, in this order: name, amount is a number, amount is not
    negative, category. Frequency is not checked here.
    """
    name = _read(candidate, "name")
    if not isinstance(name, str) or not name.strip():
        return NAME_REQUIRED

    amount = coerce_amount(_read(candidate, "amount"))
    if amount is None:
        return AMOUNT_NOT_A_NUMBER
    if amount < 0:
        return AMOUNT_NEGATIVE

    if not _read(candidate, "category"):
        return CATEGORY_REQUIRED

    return None


# =============================================================================
# FORMATTING
# =============================================================================

def _resolve_locale(identifier: Any) -> Locale:
    """Parse a BCP 47 style identifier ("en-US"), falling back to the default."""
    try:
        return Locale.parse(str(identifier).replace("_", "-"), sep="-")
    except (UnknownLocaleError, ValueError, TypeError):
        return Locale.parse(DEFAULT_LOCALE, sep="-")


def format_currency(
    amount: Any,
    currency_code: str = DEFAULT_CURRENCY_CODE,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """
    Render `amount` as a whole-unit currency string for `locale`.

    Rounds half away from zero (1234.5 USD in en-US is "$1,235") and keeps
    the locale's grouping and symbol placement. Display only: the value
    itself is never changed. Non-numeric amounts render as zero.
    """
    value = coerce_amount(amount)
    resolved = _resolve_locale(locale)
    code = str(currency_code or DEFAULT_CURRENCY_CODE).strip().upper()

    pattern = copy.copy(resolved.currency_formats["standard"])
    pattern.frac_prec = (0, 0)

    # Enough precision to quantize any finite float to whole units.
    with localcontext() as ctx:
        ctx.prec = _DISPLAY_PRECISION
        whole = Decimal(repr(value if value is not None else 0.0)).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
        return _babel_format_currency(
            whole,
            code,
            format=pattern,
            locale=resolved,
            currency_digits=False,
        )

"""
Core Data Models for Burnrate

These models define the schemas for expense data flowing between the
application layer, storage and the finance core.

DESIGN DECISION: A stored Expense is a snapshot, not a validated form.
The model deliberately accepts negative or NaN amounts and unknown
frequency strings: the finance core must degrade such records to a zero
contribution instead of refusing to load the user's data.
Input validation happens separately, in validate_expense_input, before a
record is accepted.
"""

from enum import Enum
from typing import Any, NamedTuple, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Frequency(str, Enum):
    """
    How often an expense is paid.

    Determines the multiplier used to normalize it to a monthly figure.
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one-time"


class SortMode(str, Enum):
    """Orderings offered by the expense list."""
    HIGHEST = "highest"    # Largest monthly-normalized cost first
    LOWEST = "lowest"      # Smallest monthly-normalized cost first
    A_Z = "a-z"            # Name, alphabetical
    CATEGORY = "category"  # Category label, alphabetical


class BudgetLevel(str, Enum):
    """Traffic-light state of the burn against the budget."""
    SAFE = "safe"
    WARNING = "warning"  # More than 85% of the budget used
    OVER = "over"


# =============================================================================
# EXPENSE MODELS
# =============================================================================

def _new_expense_id() -> str:
    return uuid4().hex


class Expense(BaseModel):
    """
    A tracked expense, as stored.

    `is_recurring` is independent of `frequency`. When absent, the UI
    treats the expense as recurring; the burn calculation treats it as
    "not explicitly one-time".
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        ser_json_inf_nan="constants",
    )

    id: str = Field(
        default_factory=_new_expense_id,
        description="Opaque unique identifier, assigned by the caller"
    )
    category: str = Field(
        ...,
        description="Category label (e.g. Housing, Food); not checked against CATEGORIES"
    )
    name: str = Field(
        ...,
        description="Free-text description"
    )
    amount: float = Field(
        ...,
        description="Amount per occurrence, in the user's currency"
    )
    frequency: Union[Frequency, str] = Field(
        default=Frequency.MONTHLY,
        union_mode="left_to_right",
        description="Payment frequency; unknown values are kept as raw strings"
    )
    icon: str = Field(
        default="",
        description="Display glyph, cosmetic only"
    )
    is_recurring: Optional[bool] = Field(
        default=None,
        alias="isRecurring",
        description="Whether the user intends the cost to recur indefinitely"
    )

    def to_storage_dict(self) -> dict:
        """Serialize with the camelCase keys used by persisted documents."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ExpenseDraft(BaseModel):
    """
    A candidate expense, before validation.

    Produced by forms and by receipt scanning. Every field is optional
    and `amount` is untyped, because the whole point of a draft is that
    it may still be wrong.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    amount: Any = None
    category: Optional[str] = None
    frequency: Optional[Union[Frequency, str]] = Field(
        default=None,
        union_mode="left_to_right",
    )
    icon: Optional[str] = None
    is_recurring: Optional[bool] = Field(
        default=None,
        alias="isRecurring",
    )


class Currency(BaseModel):
    """
    A supported display currency.

    Immutable; selected from SUPPORTED_CURRENCIES.
    """
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="ISO 4217 currency code")
    symbol: str = Field(..., description="Display glyph")
    name: str
    locale: str = Field(..., description="Locale driving number formatting, e.g. en-US")


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class CategoryTotal(NamedTuple):
    """One row of the category breakdown: (category, monthly total)."""
    category: str
    total: float


class BudgetStatus(BaseModel):
    """Monthly burn compared against the user's budget."""

    total: float = Field(..., description="Monthly burn")
    budget: float = Field(..., description="Monthly budget cap")
    progress_pct: float = Field(
        ...,
        ge=0.0,
        le=100.0,
        description="Share of the budget used, capped at 100"
    )
    is_over_budget: bool
    level: BudgetLevel
    headroom: float = Field(
        ...,
        description="Budget minus burn; negative when over budget"
    )


# =============================================================================
# REFERENCE DATA
# =============================================================================

SUPPORTED_CURRENCIES: list[Currency] = [
    Currency(code="USD", symbol="$", name="US Dollar", locale="en-US"),
    Currency(code="EUR", symbol="€", name="Euro", locale="de-DE"),
    Currency(code="JPY", symbol="¥", name="Japanese Yen", locale="ja-JP"),
    Currency(code="GBP", symbol="£", name="British Pound", locale="en-GB"),
    Currency(code="AUD", symbol="A$", name="Australian Dollar", locale="en-AU"),
    Currency(code="CAD", symbol="C$", name="Canadian Dollar", locale="en-CA"),
    Currency(code="CHF", symbol="Fr", name="Swiss Franc", locale="fr-CH"),
    Currency(code="CNY", symbol="¥", name="Chinese Yuan", locale="zh-CN"),
    Currency(code="SEK", symbol="kr", name="Swedish Krona", locale="sv-SE"),
    Currency(code="NZD", symbol="NZ$", name="New Zealand Dollar", locale="en-NZ"),
    Currency(code="MXN", symbol="$", name="Mexican Peso", locale="es-MX"),
    Currency(code="SGD", symbol="S$", name="Singapore Dollar", locale="en-SG"),
    Currency(code="HKD", symbol="HK$", name="Hong Kong Dollar", locale="zh-HK"),
    Currency(code="NOK", symbol="kr", name="Norwegian Krone", locale="nb-NO"),
    Currency(code="KRW", symbol="₩", name="South Korean Won", locale="ko-KR"),
    Currency(code="TRY", symbol="₺", name="Turkish Lira", locale="tr-TR"),
    Currency(code="INR", symbol="₹", name="Indian Rupee", locale="en-IN"),
    Currency(code="RUB", symbol="₽", name="Russian Ruble", locale="ru-RU"),
    Currency(code="BRL", symbol="R$", name="Brazilian Real", locale="pt-BR"),
    Currency(code="ZAR", symbol="R", name="South African Rand", locale="en-ZA"),
]

DEFAULT_CURRENCY: Currency = SUPPORTED_CURRENCIES[0]

DEFAULT_BUDGET: float = 5000.0

CATEGORIES: list[str] = [
    "Housing", "Utilities", "Food", "Transport", "Health", "Insurance",
    "Debt", "Savings", "Investing", "Entertainment", "Personal Care",
    "Education", "Family", "Pets", "Gifts", "Software", "Tech",
    "Miscellaneous",
]

FALLBACK_CATEGORY = "Miscellaneous"

CATEGORY_ICONS: dict[str, str] = {
    "Housing": "🏠", "Utilities": "💡", "Software": "🔄", "Food": "🍔",
    "Transport": "🚗", "Health": "❤️", "Debt": "💳", "Savings": "💰",
    "Investing": "📈", "Entertainment": "🎬", "Personal Care": "💅",
    "Education": "📚", "Tech": "💻", "Family": "👶", "Pets": "🐾",
    "Gifts": "🎁", "Insurance": "🛡️", "Miscellaneous": "📦",
}

DEFAULT_ICON = "💸"


def find_currency(code: str) -> Optional[Currency]:
    """Look up a supported currency by ISO code (case-insensitive)."""
    code = (code or "").strip().upper()
    for currency in SUPPORTED_CURRENCIES:
        if currency.code == code:
            return currency
    return None


def icon_for_category(category: Optional[str]) -> str:
    """Default icon for a category, used when the user picks none."""
    return CATEGORY_ICONS.get(category or "", DEFAULT_ICON)

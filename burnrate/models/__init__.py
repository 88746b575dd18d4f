"""
Data Models Package

This package contains all Pydantic models used in Burnrate.
All data flowing through the system must conform to these schemas.
"""

from burnrate.models.expense import (
    CATEGORIES,
    CATEGORY_ICONS,
    DEFAULT_BUDGET,
    DEFAULT_CURRENCY,
    DEFAULT_ICON,
    FALLBACK_CATEGORY,
    SUPPORTED_CURRENCIES,
    BudgetLevel,
    BudgetStatus,
    CategoryTotal,
    Currency,
    Expense,
    ExpenseDraft,
    Frequency,
    SortMode,
    find_currency,
    icon_for_category,
)
from burnrate.models.seed import INITIAL_EXPENSES, initial_expenses
from burnrate.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from burnrate.models.usage import Plan, UsageAccount, UsageSnapshot

__all__ = [
    # Expense models
    "BudgetLevel",
    "BudgetStatus",
    "CategoryTotal",
    "Currency",
    "Expense",
    "ExpenseDraft",
    "Frequency",
    "SortMode",
    # Reference data
    "CATEGORIES",
    "CATEGORY_ICONS",
    "DEFAULT_BUDGET",
    "DEFAULT_CURRENCY",
    "DEFAULT_ICON",
    "FALLBACK_CATEGORY",
    "INITIAL_EXPENSES",
    "SUPPORTED_CURRENCIES",
    "find_currency",
    "icon_for_category",
    "initial_expenses",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Usage models
    "Plan",
    "UsageAccount",
    "UsageSnapshot",
]

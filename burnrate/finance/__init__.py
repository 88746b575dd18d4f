"""
Finance package.

`core` holds the pure normalization and aggregation engine; the other
modules build list views, budget status and AI context on top of it.
"""

from burnrate.finance.core import (
    MONTHLY_MULTIPLIERS,
    calculate_total_monthly_burn,
    coerce_amount,
    coerce_frequency,
    format_currency,
    get_category_breakdown,
    normalize_to_monthly,
    validate_expense_input,
)
from burnrate.finance.budget import budget_status
from burnrate.finance.context import (
    build_advisor_briefing,
    build_briefing_prompt,
    build_planner_context,
    build_planner_prompt,
    build_welcome_summary,
)
from burnrate.finance.listing import filter_expenses, sort_expenses, top_expenses

__all__ = [
    # Core
    "MONTHLY_MULTIPLIERS",
    "calculate_total_monthly_burn",
    "coerce_amount",
    "coerce_frequency",
    "format_currency",
    "get_category_breakdown",
    "normalize_to_monthly",
    "validate_expense_input",
    # Views
    "budget_status",
    "filter_expenses",
    "sort_expenses",
    "top_expenses",
    # AI context
    "build_advisor_briefing",
    "build_briefing_prompt",
    "build_planner_context",
    "build_planner_prompt",
    "build_welcome_summary",
]

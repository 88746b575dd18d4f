"""
AI Context Builders

The AI advisor never sees the ledger itself. It gets a compact textual
summary built here from the core's aggregation outputs.

The planner context is deliberately dense ("token golf"): one line,
no spaces, rounded whole numbers, e.g.

    Cur:USD|Burn:1234|Cats:Housing:900,Food:334|Top5:Rent:900,Groceries:77|Count:3
"""

import math
import textwrap
from collections.abc import Sequence

from burnrate.finance.core import (
    calculate_total_monthly_burn,
    coerce_amount,
    get_category_breakdown,
)
from burnrate.finance.listing import top_expenses
from burnrate.models.expense import Currency, Expense

TOP_N = 5
BRAND_NAME = "Burnrate"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity."""
    return math.floor(value + 0.5)


def _amount(expense: Expense) -> int:
    return round_half_up(coerce_amount(expense.amount) or 0.0)


def build_planner_context(expenses: Sequence[Expense], currency: Currency) -> str:
    """Dense one-line ledger summary for the planner prompt."""
    burn = calculate_total_monthly_burn(expenses)

    categories = ",".join(
        f"{row.category}:{round_half_up(row.total)}"
        for row in get_category_breakdown(expenses)
    )
    largest = ",".join(
        f"{expense.name}:{_amount(expense)}"
        for expense in top_expenses(expenses, TOP_N)
    )

    return (
        f"Cur:{currency.code}|Burn:{round_half_up(burn)}"
        f"|Cats:{categories}|Top5:{largest}|Count:{len(expenses)}"
    )


def build_planner_prompt(context: str, goal: str) -> str:
    """Planner instruction wrapped around the dense context."""
    return (
        f"Data[{context}] Goal[{goal.strip()}] "
        "Task:Strict financial roadmap. Brevity:High. Output:Markdown."
    )


def build_briefing_prompt(planner_prompt: str) -> str:
    """Ask for a two-sentence spoken summary of the same plan."""
    return (
        f"{planner_prompt} Task:Provide a 2-sentence ruthless executive "
        "summary of this plan. Speak directly to the user."
    )


def build_advisor_briefing(
    expenses: Sequence[Expense],
    currency: Currency,
    budget: float,
) -> str:
    """
    System context for the conversational advisor.

    Leads with the budget status so "How am I doing?" can be answered
    from the first line of data.
    """
    burn = calculate_total_monthly_burn(expenses)

    top_categories = ", ".join(
        f"{row.category}: {round_half_up(row.total)}"
        for row in get_category_breakdown(expenses)[:TOP_N]
    )
    outliers = ", ".join(
        f"{expense.name} ({_amount(expense)})"
        for expense in top_expenses(expenses, TOP_N)
    )

    if burn > budget:
        status = f"CRITICAL: OVER BUDGET by {round_half_up(burn - budget)}"
    else:
        status = f"SAFE: Under budget by {round_half_up(budget - burn)}"

    return textwrap.dedent(f"""\
        SYSTEM IDENTITY: You are {BRAND_NAME}, a sharp, no-nonsense personal finance advisor.

        LIVE DATA FEED:
        - Currency: {currency.code} ({currency.symbol})
        - Monthly Burn Rate: {round_half_up(burn)}
        - Budget Cap: {budget:g}
        - Status: {status}
        - Top Cost Centers: {top_categories}
        - Largest Outliers: {outliers}
        - Total Data Points: {len(expenses)}

        PROTOCOL:
        - Be concise and professional.
        - Use the provided data to answer questions about spending, savings, or specific costs.
        - If the user asks "How am I doing?", reference the Budget Status immediately.
        - Do not invent data. Use only the feed provided.
        """)


def build_welcome_summary(expenses: Sequence[Expense], currency: Currency) -> str:
    """One spoken line greeting the user with their burn."""
    burn = calculate_total_monthly_burn(expenses)
    return (
        f"Welcome to {BRAND_NAME}. Your calculated monthly burn is "
        f"{currency.symbol}{round_half_up(burn)}. You are tracking "
        f"{len(expenses)} distinct data points. Stay sharp."
    )

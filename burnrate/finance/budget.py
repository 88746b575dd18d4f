"""Monthly burn against the user's budget."""

from burnrate.models.expense import BudgetLevel, BudgetStatus

# Progress above this share of the budget is flagged before it is exceeded.
WARNING_THRESHOLD_PCT = 85.0


def budget_status(total: float, budget: float) -> BudgetStatus:
    """
    Compare a monthly burn with the budget cap.

    Progress is capped at 100%. A zero budget reads as fully used as
    soon as anything is spent.
    """
    if budget > 0:
        progress = min(total / budget * 100, 100.0)
    else:
        progress = 100.0 if total > 0 else 0.0
    progress = max(progress, 0.0)

    is_over = total > budget
    if is_over:
        level = BudgetLevel.OVER
    elif progress > WARNING_THRESHOLD_PCT:
        level = BudgetLevel.WARNING
    else:
        level = BudgetLevel.SAFE

    return BudgetStatus(
        total=total,
        budget=budget,
        progress_pct=progress,
        is_over_budget=is_over,
        level=level,
        headroom=budget - total,
    )

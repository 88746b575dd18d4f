"""
Usage Credits

DESIGN DECISION: AI calls cost money, so every credit-consuming feature
passes through one gate. The gate is pure: it takes an account and
returns the updated account (or raises). Persisting the result and
auditing it is the caller's job.

Free accounts have a fixed allowance; pro/business plans are unlimited.
The free tier also caps the number of tracked expenses.
"""

import structlog

from burnrate.models.usage import UsageAccount, UsageSnapshot

logger = structlog.get_logger(__name__)

# Credit cost per AI operation.
CREDIT_COSTS: dict[str, int] = {
    "briefing": 1,
    "planning": 5,
    "planning_audio": 1,
    "live_session": 20,
    "receipt_scan": 2,
}
DEFAULT_CREDIT_COST = 1

FREE_TIER_EXPENSE_LIMIT = 100
LOW_CREDIT_THRESHOLD_PCT = 80.0


class CreditLimitExceededError(Exception):
    """The free allowance cannot cover the requested operation."""

    def __init__(self, used: int, limit: int, operation: str):
        self.used = used
        self.limit = limit
        self.operation = operation
        super().__init__(
            f"AI credit limit reached: {operation} needs {credit_cost(operation)} "
            f"credit(s), {used}/{limit} used"
        )


class ExpenseLimitExceededError(Exception):
    """The free tier already tracks the maximum number of expenses."""

    def __init__(self, count: int, limit: int = FREE_TIER_EXPENSE_LIMIT):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Free tier is limited to {limit} expenses. Upgrade to track more."
        )


def credit_cost(operation: str) -> int:
    """Credits charged for `operation`; unknown operations cost 1."""
    return CREDIT_COSTS.get(operation, DEFAULT_CREDIT_COST)


class CreditGate:
    """
    Decides whether an AI operation may run and charges for it.

    Usage:
        account = CreditGate.authorize(account, "planning")
    """

    @staticmethod
    def authorize(account: UsageAccount, operation: str) -> UsageAccount:
        """
        Charge `operation` against `account`.

        Returns:
            The account after deduction (unchanged for paid plans)

        Raises:
            CreditLimitExceededError: If a free account cannot afford it
        """
        if account.is_unlimited:
            return account

        cost = credit_cost(operation)
        if account.credits_used + cost > account.credits_limit:
            logger.info(
                "credit_limit_reached",
                operation=operation,
                used=account.credits_used,
                limit=account.credits_limit,
            )
            raise CreditLimitExceededError(
                used=account.credits_used,
                limit=account.credits_limit,
                operation=operation,
            )

        return account.model_copy(update={"credits_used": account.credits_used + cost})


def usage_snapshot(account: UsageAccount) -> UsageSnapshot:
    """Remaining allowance and warning flags for display."""
    used = account.credits_used
    limit = account.credits_limit
    remaining = max(limit - used, 0)

    if account.is_unlimited:
        return UsageSnapshot(
            used=used,
            limit=limit,
            remaining=remaining,
            percentage=0.0,
            is_low=False,
            is_out=False,
        )

    percentage = min(used / limit * 100, 100.0) if limit > 0 else 100.0
    return UsageSnapshot(
        used=used,
        limit=limit,
        remaining=remaining,
        percentage=percentage,
        is_low=percentage > LOW_CREDIT_THRESHOLD_PCT,
        is_out=used >= limit,
    )


def check_expense_limit(account: UsageAccount, count: int, limit: int = FREE_TIER_EXPENSE_LIMIT) -> None:
    """
    Raise if a free account may not add another expense.

    Raises:
        ExpenseLimitExceededError: If `count` already reached `limit`
    """
    if not account.is_unlimited and count >= limit:
        raise ExpenseLimitExceededError(count=count, limit=limit)

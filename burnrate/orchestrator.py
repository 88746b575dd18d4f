"""
Main Orchestrator for Burnrate

This module ties together storage, the finance core, the credit gate,
the AI advisor and the audit log, and defines the end-to-end flows for:
1. Ledger changes (validate → limit check → save → audit)
2. Dashboard (ledger → burn, breakdown, budget status)
3. AI features (credit gate → context → advisor → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing enters the ledger without passing validate_expense_input
- The in-memory ledger only changes after the save succeeded
- No AI call runs without the credit gate authorizing it
- Receipt scans produce a draft; the user decides whether to add it
- Every step is audited
"""

from collections.abc import Mapping
from typing import Any, Awaitable, Optional, TypeVar, Union
from uuid import UUID

import structlog
from pydantic import BaseModel, Field, ValidationError

from burnrate.agents import (
    AdvisorError,
    BriefingResult,
    ChatReply,
    FinanceAdvisorAgent,
    PlanResult,
)
from burnrate.audit import AuditLogger, create_correlation_id
from burnrate.config import Settings, StorageBackend, get_settings
from burnrate.credits import (
    FREE_TIER_EXPENSE_LIMIT,
    CreditGate,
    CreditLimitExceededError,
    ExpenseLimitExceededError,
    check_expense_limit,
    credit_cost,
    usage_snapshot,
)
from burnrate.finance import (
    budget_status,
    build_advisor_briefing,
    build_briefing_prompt,
    build_planner_context,
    build_planner_prompt,
    build_welcome_summary,
    calculate_total_monthly_burn,
    coerce_amount,
    format_currency,
    get_category_breakdown,
    validate_expense_input,
)
from burnrate.models import (
    DEFAULT_BUDGET,
    DEFAULT_CURRENCY,
    BudgetStatus,
    CategoryTotal,
    Currency,
    Expense,
    ExpenseDraft,
    Frequency,
    Plan,
    UsageAccount,
    UsageSnapshot,
    find_currency,
    icon_for_category,
)
from burnrate.services.storage import (
    AuditStorageInterface,
    ExpenseStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonLinesAuditStorage,
    LocalJsonStorage,
    NotFoundError,
    StorageError,
)

logger = structlog.get_logger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_IMAGE_FORMATS = ("jpg", "jpeg", "png", "webp")

DraftLike = Union[ExpenseDraft, Mapping[str, Any]]
T = TypeVar("T")


class ExpenseValidationError(ValueError):
    """A candidate expense failed validate_expense_input."""
    pass


class UnsupportedUploadError(ValueError):
    """A receipt image is too large or not a supported format."""
    pass


class DashboardSummary(BaseModel):
    """Everything the dashboard renders, computed in one pass."""

    total_burn: float = Field(description="Average monthly spend")
    formatted_burn: str = Field(description="Total burn in the display currency")
    breakdown: list[CategoryTotal] = Field(
        default_factory=list,
        description="Monthly totals per category, largest first"
    )
    budget: BudgetStatus
    expense_count: int = Field(ge=0)
    currency: Currency
    usage: UsageSnapshot


def _as_draft(draft: DraftLike) -> ExpenseDraft:
    if isinstance(draft, ExpenseDraft):
        return draft
    try:
        return ExpenseDraft.model_validate(dict(draft))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ExpenseValidationError(f"Invalid {field}: {first['msg']}") from e


class ExpenseTracker:
    """
    One user's ledger, settings and AI usage.

    Call `load()` once before anything else. Every mutating method saves
    the full snapshot through the storage backend and only then updates
    the in-memory state, so a failed save leaves the tracker unchanged.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        agent: Optional[FinanceAdvisorAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
        default_usage: Optional[UsageAccount] = None,
        expense_limit: int = FREE_TIER_EXPENSE_LIMIT,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        image_formats: tuple[str, ...] = DEFAULT_IMAGE_FORMATS,
    ):
        self._storage = storage
        self._agent = agent
        self._audit_logger = audit_logger or AuditLogger()
        self._default_usage = default_usage or UsageAccount()
        self._expense_limit = expense_limit
        self._max_upload_bytes = max_upload_bytes
        self._image_formats = tuple(fmt.lower() for fmt in image_formats)

        self._expenses: list[Expense] = []
        self._currency: Currency = DEFAULT_CURRENCY
        self._budget: float = DEFAULT_BUDGET
        self._usage: UsageAccount = self._default_usage

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def expenses(self) -> list[Expense]:
        return list(self._expenses)

    @property
    def currency(self) -> Currency:
        return self._currency

    @property
    def budget(self) -> float:
        return self._budget

    @property
    def usage(self) -> UsageAccount:
        return self._usage

    async def load(self) -> None:
        """Load the ledger, settings and usage from storage."""
        self._expenses = await self._storage.load_expenses()
        self._currency = await self._storage.load_currency()
        self._budget = await self._storage.load_budget()
        self._usage = await self._storage.load_usage() or self._default_usage
        logger.info(
            "tracker_loaded",
            expense_count=len(self._expenses),
            currency=self._currency.code,
            plan=self._usage.plan.value,
        )

    async def _persist(self, operation: str, save: Awaitable[None]) -> None:
        """Await a storage write, auditing it if it fails."""
        try:
            await save
        except StorageError as e:
            await self._audit_logger.log_storage_failed(operation=operation, error_message=str(e))
            raise

    async def _save_expenses(self, expenses: list[Expense], operation: str) -> None:
        await self._persist(operation, self._storage.save_expenses(expenses))
        self._expenses = expenses

    # =========================================================================
    # LEDGER
    # =========================================================================

    async def _reject(self, message: str, draft: ExpenseDraft) -> None:
        candidate = {
            field: value if isinstance(value, (str, int, float, bool)) else repr(value)
            for field, value in draft.model_dump(exclude_none=True).items()
        }
        await self._audit_logger.log_validation_failed(message=message, candidate=candidate)
        raise ExpenseValidationError(message)

    async def add_expense(self, draft: DraftLike) -> Expense:
        """
        Validate and add a new expense at the top of the ledger.

        Raises:
            ExpenseValidationError: With the first failing rule's message
            ExpenseLimitExceededError: If the free tier is full
            StorageError: If the save failed (ledger unchanged)
        """
        draft = _as_draft(draft)
        message = validate_expense_input(draft)
        if message:
            await self._reject(message, draft)

        try:
            check_expense_limit(self._usage, len(self._expenses), self._expense_limit)
        except ExpenseLimitExceededError:
            await self._audit_logger.log_expense_limit_reached(
                count=len(self._expenses),
                limit=self._expense_limit,
            )
            raise

        frequency = draft.frequency if draft.frequency is not None else Frequency.MONTHLY
        expense = Expense(
            name=draft.name,
            amount=coerce_amount(draft.amount),
            category=str(draft.category),
            frequency=frequency,
            icon=draft.icon or icon_for_category(draft.category),
            is_recurring=True if draft.is_recurring is None else draft.is_recurring,
        )

        await self._save_expenses([expense] + self._expenses, "add_expense")
        await self._audit_logger.log_expense_added(
            expense_id=expense.id,
            name=expense.name,
            amount=expense.amount,
            frequency=getattr(expense.frequency, "value", expense.frequency),
        )
        return expense

    def _index_of(self, expense_id: str) -> int:
        for index, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return index
        raise NotFoundError(f"Expense not found: {expense_id}")

    async def update_expense(self, expense_id: str, draft: DraftLike) -> Expense:
        """
        Apply the fields set in `draft` to an existing expense.

        Raises:
            NotFoundError: If no expense has `expense_id`
            ExpenseValidationError: If the merged expense is invalid
        """
        index = self._index_of(expense_id)
        current = self._expenses[index]
        draft = _as_draft(draft)

        changes = {
            field: value
            for field, value in draft.model_dump(exclude_none=True).items()
            if value != getattr(current, field)
        }
        candidate = current.model_dump()
        candidate.update(changes)

        message = validate_expense_input(candidate)
        if message:
            await self._reject(message, draft)

        if "amount" in changes:
            changes["amount"] = coerce_amount(changes["amount"])
        updated = Expense.model_validate({**current.model_dump(), **changes})

        expenses = list(self._expenses)
        expenses[index] = updated
        await self._save_expenses(expenses, "update_expense")
        await self._audit_logger.log_expense_updated(
            expense_id=expense_id,
            changes=updated.model_dump(mode="json", include=set(changes)),
        )
        return updated

    async def delete_expense(self, expense_id: str) -> Expense:
        """
        Remove an expense.

        Raises:
            NotFoundError: If no expense has `expense_id`
        """
        index = self._index_of(expense_id)
        removed = self._expenses[index]

        expenses = self._expenses[:index] + self._expenses[index + 1:]
        await self._save_expenses(expenses, "delete_expense")
        await self._audit_logger.log_expense_deleted(expense_id=expense_id, name=removed.name)
        return removed

    # =========================================================================
    # SETTINGS
    # =========================================================================

    async def set_budget(self, amount: Any) -> float:
        """
        Set the monthly budget cap.

        Raises:
            ValueError: If `amount` is not a finite number >= 0
        """
        value = coerce_amount(amount)
        if value is None or value < 0:
            raise ValueError("Budget must be a non-negative number.")

        await self._persist("set_budget", self._storage.save_budget(value))
        old_budget, self._budget = self._budget, value
        await self._audit_logger.log_budget_changed(old_budget, value)
        return value

    async def set_currency(self, code: str) -> Currency:
        """
        Switch the display currency. Amounts are not converted.

        Raises:
            ValueError: If `code` is not a supported currency
        """
        currency = find_currency(code)
        if currency is None:
            raise ValueError(f"Unsupported currency: {code}")

        await self._persist("set_currency", self._storage.save_currency(currency))
        old_code, self._currency = self._currency.code, currency
        await self._audit_logger.log_currency_changed(old_code, currency.code)
        return currency

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    def dashboard(self) -> DashboardSummary:
        """Burn, breakdown and budget status for the current ledger."""
        total = calculate_total_monthly_burn(self._expenses)
        return DashboardSummary(
            total_burn=total,
            formatted_burn=format_currency(total, self._currency.code, self._currency.locale),
            breakdown=get_category_breakdown(self._expenses),
            budget=budget_status(total, self._budget),
            expense_count=len(self._expenses),
            currency=self._currency,
            usage=usage_snapshot(self._usage),
        )

    def welcome_summary(self) -> str:
        return build_welcome_summary(self._expenses, self._currency)

    # =========================================================================
    # AI FEATURES
    # =========================================================================

    def _require_agent(self) -> FinanceAdvisorAgent:
        if self._agent is None:
            raise AdvisorError("AI advisor is not configured")
        return self._agent

    async def _charge(self, operation: str, correlation_id: UUID) -> None:
        """Authorize `operation` and persist the deduction."""
        try:
            account = CreditGate.authorize(self._usage, operation)
        except CreditLimitExceededError as e:
            await self._audit_logger.log_credit_limit_reached(
                operation=operation,
                used=e.used,
                limit=e.limit,
                correlation_id=correlation_id,
            )
            raise

        if account is self._usage:
            return

        await self._persist(operation, self._storage.save_usage(account))
        self._usage = account
        await self._audit_logger.log_credits_consumed(
            operation=operation,
            cost=credit_cost(operation),
            used=account.credits_used,
            limit=account.credits_limit,
            correlation_id=correlation_id,
        )

    async def _call_advisor(self, call: Awaitable[T], correlation_id: UUID) -> T:
        try:
            return await call
        except AdvisorError as e:
            await self._audit_logger.log_external_service_error(
                service="gemini",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

    def _check_upload(self, image_bytes: bytes, mime_type: str) -> None:
        if not image_bytes:
            raise UnsupportedUploadError("Receipt image is empty.")
        if len(image_bytes) > self._max_upload_bytes:
            raise UnsupportedUploadError(
                f"Receipt image is larger than {self._max_upload_bytes // (1024 * 1024)} MB."
            )
        subtype = (mime_type or "").rpartition("/")[2].lower()
        if subtype not in self._image_formats:
            raise UnsupportedUploadError(f"Unsupported image type: {mime_type}")

    async def scan_receipt(self, image_bytes: bytes, mime_type: str) -> ExpenseDraft:
        """
        Read a receipt into a one-time expense draft.

        The draft is NOT added to the ledger; pass it to add_expense once
        the user has confirmed it.

        Raises:
            UnsupportedUploadError: For empty, oversized or non-image uploads
            CreditLimitExceededError: If the free allowance is used up
            AdvisorError: If the model call or parsing failed
            ExpenseValidationError: If the extraction is not a valid expense
        """
        self._check_upload(image_bytes, mime_type)
        agent = self._require_agent()
        correlation_id = create_correlation_id()

        await self._charge("receipt_scan", correlation_id)
        extraction = await self._call_advisor(
            agent.parse_receipt(image_bytes, mime_type),
            correlation_id,
        )

        draft = ExpenseDraft(
            name=extraction.name,
            amount=extraction.amount,
            category=extraction.category,
            frequency=Frequency.ONE_TIME,
            icon=icon_for_category(extraction.category),
            is_recurring=False,
        )
        message = validate_expense_input(draft)
        if message:
            await self._reject(message, draft)

        await self._audit_logger.log_receipt_scanned(
            name=extraction.name,
            amount=extraction.amount,
            category=extraction.category,
            correlation_id=correlation_id,
        )
        return draft

    async def generate_plan(self, goal: str) -> PlanResult:
        """
        Strict financial roadmap toward `goal`, from the ledger summary.
        """
        if not goal or not goal.strip():
            raise ValueError("Goal is required.")
        agent = self._require_agent()
        correlation_id = create_correlation_id()

        context = build_planner_context(self._expenses, self._currency)
        prompt = build_planner_prompt(context, goal)
        await self._charge("planning", correlation_id)
        result = await self._call_advisor(agent.generate_plan(prompt), correlation_id)

        await self._audit_logger.log_plan_generated(
            goal=goal.strip(),
            context_length=len(context),
            correlation_id=correlation_id,
        )
        return result

    async def generate_briefing(self, goal: str) -> BriefingResult:
        """Two-sentence spoken summary of the plan toward `goal`."""
        if not goal or not goal.strip():
            raise ValueError("Goal is required.")
        agent = self._require_agent()
        correlation_id = create_correlation_id()

        context = build_planner_context(self._expenses, self._currency)
        prompt = build_briefing_prompt(build_planner_prompt(context, goal))
        await self._charge("planning_audio", correlation_id)
        result = await self._call_advisor(agent.generate_briefing(prompt), correlation_id)

        await self._audit_logger.log_briefing_generated(correlation_id)
        return result

    async def ask_advisor(self, message: str) -> ChatReply:
        """Answer a question against the live advisor briefing."""
        agent = self._require_agent()
        correlation_id = create_correlation_id()

        context = build_advisor_briefing(self._expenses, self._currency, self._budget)
        await self._charge("live_session", correlation_id)
        return await self._call_advisor(agent.chat(message, context=context), correlation_id)


def create_storage(settings: Settings) -> tuple[ExpenseStorageInterface, AuditStorageInterface]:
    """Build the expense and audit storage selected by `storage_backend`."""
    app = settings.app
    backend = app.storage_backend

    if backend == StorageBackend.SHEETS:
        # Imported here so local setups never load the Google client stack.
        from burnrate.services.storage.google_sheets import (
            GoogleSheetsAuditStorage,
            GoogleSheetsClient,
            GoogleSheetsExpenseStorage,
        )

        client = GoogleSheetsClient(settings.google_sheets)
        return (
            GoogleSheetsExpenseStorage(client, default_budget=app.default_budget),
            GoogleSheetsAuditStorage(client),
        )

    if backend == StorageBackend.MEMORY:
        return InMemoryStorage(default_budget=app.default_budget), InMemoryAuditStorage()

    return (
        LocalJsonStorage(app.data_dir, default_budget=app.default_budget),
        JsonLinesAuditStorage(app.data_dir),
    )


def create_tracker(
    settings: Optional[Settings] = None,
    agent: Optional[FinanceAdvisorAgent] = None,
) -> ExpenseTracker:
    """
    Factory function to create a fully wired tracker.

    Args:
        settings: Application settings; defaults to get_settings()
        agent: AI advisor. If None, one is built when a Gemini API key
               is configured; otherwise AI features are unavailable.

    Returns:
        An ExpenseTracker (call `await tracker.load()` before use)
    """
    settings = settings or get_settings()
    app = settings.app

    expense_storage, audit_storage = create_storage(settings)

    if agent is None:
        try:
            agent = FinanceAdvisorAgent(settings.gemini)
        except Exception as e:
            # AI not configured - continue without it
            logger.warning("advisor_unavailable", error=str(e))
            agent = None

    return ExpenseTracker(
        storage=expense_storage,
        agent=agent,
        audit_logger=AuditLogger(audit_storage),
        default_usage=UsageAccount(
            plan=Plan(app.plan),
            credits_limit=app.free_tier_credit_limit,
        ),
        expense_limit=app.free_tier_expense_limit,
        max_upload_bytes=app.max_upload_size_bytes,
        image_formats=tuple(app.supported_formats_list),
    )

"""
Tests for Burnrate models

Test strategy:
1. Unit tests for individual components (models, finance core, credits)
2. Integration tests for flows (with in-memory storage and fake AI models)
3. No real API calls in tests (use fakes)
"""

import json
from uuid import uuid4

import pytest
from pydantic import ValidationError

from burnrate.models import (
    CATEGORIES,
    CATEGORY_ICONS,
    DEFAULT_CURRENCY,
    DEFAULT_ICON,
    INITIAL_EXPENSES,
    SUPPORTED_CURRENCIES,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Expense,
    ExpenseDraft,
    Frequency,
    Plan,
    UsageAccount,
    find_currency,
    icon_for_category,
    initial_expenses,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation with defaults."""
        expense = Expense(category="Food", name="Groceries", amount=150)
        assert expense.amount == 150.0
        assert expense.frequency == Frequency.MONTHLY
        assert expense.is_recurring is None
        assert expense.id

    def test_expense_ids_are_unique(self):
        first = Expense(category="Food", name="A", amount=1)
        second = Expense(category="Food", name="B", amount=1)
        assert first.id != second.id

    def test_expense_strips_whitespace(self):
        """Test that whitespace is stripped from names."""
        expense = Expense(category="Food", name="  Coffee  ", amount=4)
        assert expense.name == "Coffee"

    def test_expense_accepts_camel_case_alias(self):
        expense = Expense.model_validate(
            {"category": "Food", "name": "Coffee", "amount": 4, "isRecurring": False}
        )
        assert expense.is_recurring is False

    def test_expense_keeps_known_frequency_as_enum(self):
        expense = Expense(category="Food", name="Coffee", amount=4, frequency="daily")
        assert expense.frequency is Frequency.DAILY

    def test_expense_keeps_unknown_frequency_as_string(self):
        """Stored snapshots with unknown frequencies must still load."""
        expense = Expense(category="Food", name="Coffee", amount=4, frequency="fortnightly")
        assert expense.frequency == "fortnightly"

    def test_expense_accepts_negative_amount_snapshot(self):
        expense = Expense(category="Food", name="Refund", amount=-5)
        assert expense.amount == -5.0

    def test_to_storage_dict_uses_camel_case(self):
        expense = Expense(
            id="x1", category="Food", name="Coffee", amount=4,
            frequency=Frequency.ONE_TIME, is_recurring=False,
        )
        data = expense.to_storage_dict()
        assert data == {
            "id": "x1",
            "category": "Food",
            "name": "Coffee",
            "amount": 4.0,
            "frequency": "one-time",
            "icon": "",
            "isRecurring": False,
        }

    def test_to_storage_dict_omits_missing_recurrence(self):
        expense = Expense(category="Food", name="Coffee", amount=4)
        assert "isRecurring" not in expense.to_storage_dict()

    def test_draft_accepts_anything_as_amount(self):
        """Drafts hold unvalidated input."""
        draft = ExpenseDraft(name="Coffee", amount="abc")
        assert draft.amount == "abc"
        assert draft.category is None


class TestReferenceData:
    """Tests for currencies, categories and seed data."""

    def test_default_currency_is_usd(self):
        assert DEFAULT_CURRENCY.code == "USD"
        assert DEFAULT_CURRENCY.symbol == "$"
        assert DEFAULT_CURRENCY.locale == "en-US"

    def test_supported_currency_codes_are_unique(self):
        codes = [currency.code for currency in SUPPORTED_CURRENCIES]
        assert len(codes) == len(set(codes)) == 20

    def test_find_currency_is_case_insensitive(self):
        assert find_currency(" eur ").code == "EUR"

    def test_find_currency_unknown(self):
        assert find_currency("XYZ") is None
        assert find_currency("") is None

    def test_currency_is_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_CURRENCY.code = "EUR"

    def test_every_category_has_an_icon(self):
        for category in CATEGORIES:
            assert category in CATEGORY_ICONS

    def test_icon_for_unknown_category(self):
        assert icon_for_category("Yachts") == DEFAULT_ICON
        assert icon_for_category(None) == DEFAULT_ICON
        assert icon_for_category("Food") == "🍔"

    def test_seed_ledger(self):
        assert len(INITIAL_EXPENSES) == 51
        assert len({expense.id for expense in INITIAL_EXPENSES}) == 51
        assert all(expense.category in CATEGORIES for expense in INITIAL_EXPENSES)

    def test_initial_expenses_returns_copies(self):
        copies = initial_expenses()
        copies[0].name = "Changed"
        assert INITIAL_EXPENSES[0].name != "Changed"


class TestUsageModels:
    """Tests for the usage account."""

    def test_defaults(self):
        account = UsageAccount()
        assert account.plan == Plan.FREE
        assert account.credits_used == 0
        assert account.credits_limit == 50
        assert account.is_unlimited is False

    @pytest.mark.parametrize("plan", [Plan.PRO, Plan.BUSINESS])
    def test_paid_plans_are_unlimited(self, plan):
        assert UsageAccount(plan=plan).is_unlimited is True

    def test_rejects_negative_usage(self):
        with pytest.raises(ValidationError):
            UsageAccount(credits_used=-1)


class TestAuditModels:
    """Tests for audit event models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            description="Expense added: Coffee",
        )
        assert event.event_type == AuditEventType.EXPENSE_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEventBuilder.expense_added("x1", "Coffee", 4.0, "daily")
        log_dict = event.to_log_dict()

        assert "event_id" in log_dict
        assert log_dict["event_type"] == "expense_added"
        assert log_dict["entity_id"] == "x1"
        assert log_dict["details"]["frequency"] == "daily"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEventBuilder.expense_deleted("x1", "Coffee")
        row = event.to_sheets_row()

        assert len(row) == 11  # Expected number of columns
        assert row[2] == "expense_deleted"  # event_type
        assert row[5] == "x1"  # entity_id
        assert json.loads(row[8]) == {"name": "Coffee"}
        assert row[10] == "True"  # is_user_action

    def test_audit_event_json_round_trip(self):
        event = AuditEventBuilder.credits_consumed("planning", 5, 10, 50, correlation_id=uuid4())
        restored = AuditEvent.model_validate_json(event.model_dump_json())
        assert restored == event

    def test_builder_credit_limit_is_warning(self):
        event = AuditEventBuilder.credit_limit_reached("planning", 48, 50)
        assert event.severity == AuditSeverity.WARNING
        assert event.details == {"operation": "planning", "used": 48, "limit": 50}
        assert event.is_user_action is False

    def test_builder_expense_updated_lists_changed_fields(self):
        event = AuditEventBuilder.expense_updated("x1", {"name": "Tea", "amount": 3.0})
        assert event.description == "Expense updated: amount, name"

    def test_builder_budget_changed(self):
        event = AuditEventBuilder.budget_changed(5000.0, 4200.5)
        assert event.description == "Budget changed from 5000 to 4200.5"
        assert event.entity_type == "settings"

    def test_builder_receipt_scanned_keeps_correlation(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.receipt_scanned("Cafe", 12.5, "Food", correlation_id)
        assert event.correlation_id == correlation_id
        assert event.entity_type == "receipt"

    def test_builder_storage_failed_is_error(self):
        event = AuditEventBuilder.storage_failed("add_expense", "disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "disk full"

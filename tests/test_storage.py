"""
Tests for storage backends.

Local and in-memory backends are exercised directly; the Google Sheets
backend runs against an in-process fake worksheet.
"""

import asyncio
import json
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from tenacity import wait_none

from burnrate.models import (
    DEFAULT_CURRENCY,
    INITIAL_EXPENSES,
    AuditEventBuilder,
    Expense,
    Frequency,
    Plan,
    UsageAccount,
    find_currency,
)
from burnrate.services.storage import (
    BUDGET_KEY,
    CURRENCY_KEY,
    EXPENSES_KEY,
    USAGE_KEY,
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonLinesAuditStorage,
    LocalJsonStorage,
    StorageError,
)
from burnrate.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    EXPENSE_COLUMNS,
    SETTINGS_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsExpenseStorage,
    expense_to_row,
    row_to_expense,
)


def run(coro):
    return asyncio.run(coro)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage backends."""

    def __init__(self, header):
        self.rows = [list(header)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(value) for value in row])

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = str(value)

    def update(self, values=None, range_name="A1", value_input_option=None):
        assert range_name == "A1"
        written = [[str(value) for value in row] for row in values]
        self.rows = written + self.rows[len(written):]

    def batch_clear(self, ranges):
        for cell_range in ranges:
            first_row = int(cell_range.split(":")[0][1:])
            self.rows = self.rows[:first_row - 1]


class FakeSheetsClient:
    def __init__(self):
        self.expenses = FakeWorksheet(EXPENSE_COLUMNS)
        self.settings = FakeWorksheet(SETTINGS_COLUMNS)
        self.audit = FakeWorksheet(AUDIT_COLUMNS)

    def get_expenses_sheet(self):
        return self.expenses

    def get_settings_sheet(self):
        return self.settings

    def get_audit_sheet(self):
        return self.audit


@pytest.fixture
def expenses():
    return [
        Expense(id="a", category="Food", name="Coffee", amount=4.5, frequency="daily", is_recurring=True),
        Expense(id="b", category="Gifts", name="Gift", amount=80, frequency="one-time", is_recurring=False),
        Expense(id="c", category="Housing", name="Rent", amount=1500),
    ]


class TestInMemoryStorage:
    """Tests for the shared key/value load and fallback logic."""

    def test_fresh_storage_returns_seed(self):
        loaded = run(InMemoryStorage().load_expenses())
        assert loaded == INITIAL_EXPENSES
        assert loaded is not INITIAL_EXPENSES

    def test_seed_copies_are_independent(self):
        storage = InMemoryStorage()
        loaded = run(storage.load_expenses())
        loaded[0].name = "Changed"
        assert run(storage.load_expenses())[0].name != "Changed"

    def test_round_trip(self, expenses):
        storage = InMemoryStorage()
        run(storage.save_expenses(expenses))
        assert run(storage.load_expenses()) == expenses

    def test_saved_document_uses_camel_case(self, expenses):
        storage = InMemoryStorage()
        run(storage.save_expenses(expenses))
        document = json.loads(storage.documents[EXPENSES_KEY])
        assert document[1]["isRecurring"] is False
        assert document[1]["frequency"] == "one-time"

    @pytest.mark.parametrize("raw", ["", "not json", "{}", "[]", "null", '"text"'])
    def test_corrupt_or_empty_ledger_falls_back_to_seed(self, raw):
        storage = InMemoryStorage({EXPENSES_KEY: raw})
        assert run(storage.load_expenses()) == INITIAL_EXPENSES

    def test_invalid_records_are_skipped(self):
        raw = json.dumps([
            {"id": "a", "category": "Food", "name": "Coffee", "amount": 4, "frequency": "daily"},
            {"id": "b", "name": "No category or amount"},
        ])
        loaded = run(InMemoryStorage({EXPENSES_KEY: raw}).load_expenses())
        assert [expense.id for expense in loaded] == ["a"]

    def test_unknown_frequency_survives_round_trip(self):
        storage = InMemoryStorage()
        run(storage.save_expenses([Expense(category="Food", name="X", amount=1, frequency="hourly")]))
        assert run(storage.load_expenses())[0].frequency == "hourly"

    def test_currency_default(self):
        assert run(InMemoryStorage().load_currency()) == DEFAULT_CURRENCY

    def test_currency_round_trip(self):
        storage = InMemoryStorage()
        run(storage.save_currency(find_currency("EUR")))
        assert run(storage.load_currency()).code == "EUR"

    @pytest.mark.parametrize(
        "raw",
        ["garbage", '{"code": "EUR"}', '{"symbol": "€"}', "[]", '{"code": "", "symbol": "$"}'],
    )
    def test_invalid_currency_falls_back(self, raw):
        storage = InMemoryStorage({CURRENCY_KEY: raw})
        assert run(storage.load_currency()) == DEFAULT_CURRENCY

    def test_saved_currency_is_canonicalized(self):
        raw = json.dumps({"code": "gbp", "symbol": "£"})
        loaded = run(InMemoryStorage({CURRENCY_KEY: raw}).load_currency())
        assert loaded == find_currency("GBP")

    def test_unlisted_currency_with_full_fields_is_kept(self):
        raw = json.dumps({"code": "XTS", "symbol": "T", "name": "Test", "locale": "en-US"})
        assert run(InMemoryStorage({CURRENCY_KEY: raw}).load_currency()).code == "XTS"

    def test_budget_default(self):
        assert run(InMemoryStorage().load_budget()) == 5000
        assert run(InMemoryStorage(default_budget=3000).load_budget()) == 3000

    def test_budget_round_trip(self):
        storage = InMemoryStorage()
        run(storage.save_budget(4200.5))
        assert run(storage.load_budget()) == 4200.5

    @pytest.mark.parametrize("raw", ["abc", "-5", "NaN", "Infinity", "[1]"])
    def test_invalid_budget_falls_back(self, raw):
        assert run(InMemoryStorage({BUDGET_KEY: raw}).load_budget()) == 5000

    def test_usage_missing(self):
        assert run(InMemoryStorage().load_usage()) is None

    def test_usage_round_trip(self):
        storage = InMemoryStorage()
        account = UsageAccount(plan=Plan.PRO, credits_used=7)
        run(storage.save_usage(account))
        assert run(storage.load_usage()) == account

    def test_corrupt_usage(self):
        assert run(InMemoryStorage({USAGE_KEY: '{"credits_used": -1}'}).load_usage()) is None

    def test_write_failure_raises_storage_error(self, expenses):
        class BrokenStorage(InMemoryStorage):
            def _write_document(self, key, raw):
                raise OSError("disk full")

        with pytest.raises(StorageError):
            run(BrokenStorage().save_expenses(expenses))

    def test_read_failure_falls_back(self):
        class BrokenStorage(InMemoryStorage):
            def _read_document(self, key):
                raise OSError("unreadable")

        storage = BrokenStorage()
        assert run(storage.load_expenses()) == INITIAL_EXPENSES
        assert run(storage.load_budget()) == 5000


class TestLocalJsonStorage:
    """Tests for the file-backed storage."""

    def test_one_file_per_key(self, tmp_path, expenses):
        storage = LocalJsonStorage(tmp_path / "data")
        run(storage.save_expenses(expenses))
        run(storage.save_budget(1234))

        assert (tmp_path / "data" / f"{EXPENSES_KEY}.json").exists()
        assert (tmp_path / "data" / f"{BUDGET_KEY}.json").read_text() == "1234"

    def test_round_trip_across_instances(self, tmp_path, expenses):
        run(LocalJsonStorage(tmp_path).save_expenses(expenses))
        run(LocalJsonStorage(tmp_path).save_currency(find_currency("JPY")))

        reopened = LocalJsonStorage(tmp_path)
        assert run(reopened.load_expenses()) == expenses
        assert run(reopened.load_currency()).code == "JPY"

    def test_missing_directory_reads_defaults(self, tmp_path):
        storage = LocalJsonStorage(tmp_path / "missing")
        assert run(storage.load_expenses()) == INITIAL_EXPENSES
        assert run(storage.load_currency()) == DEFAULT_CURRENCY

    def test_overwrite_leaves_no_temp_files(self, tmp_path, expenses):
        storage = LocalJsonStorage(tmp_path)
        run(storage.save_expenses(expenses))
        run(storage.save_expenses(expenses[:1]))

        assert run(storage.load_expenses()) == expenses[:1]
        assert [p.name for p in tmp_path.iterdir()] == [f"{EXPENSES_KEY}.json"]

    def test_corrupt_file_falls_back(self, tmp_path):
        (tmp_path / f"{EXPENSES_KEY}.json").write_text("{broken", encoding="utf-8")
        assert run(LocalJsonStorage(tmp_path).load_expenses()) == INITIAL_EXPENSES


class TestAuditStorage:
    """Tests for the local audit stores."""

    def test_jsonl_append_and_read(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path)
        correlation_id = uuid4()
        first = AuditEventBuilder.plan_generated("save", 40, correlation_id)
        second = AuditEventBuilder.credits_consumed("planning", 5, 5, 50, correlation_id)
        other = AuditEventBuilder.budget_changed(1, 2)

        for event in (first, second, other):
            assert run(storage.append_event(event)) is True

        assert len(storage.path.read_text().splitlines()) == 3
        related = run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_id for e in related] == [first.event_id, second.event_id]

    def test_jsonl_skips_bad_lines(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path)
        run(storage.append_event(AuditEventBuilder.budget_changed(1, 2)))
        with storage.path.open("a", encoding="utf-8") as handle:
            handle.write("not an event\n")

        assert len(run(storage.get_recent_events())) == 1

    def test_jsonl_missing_file(self, tmp_path):
        assert run(JsonLinesAuditStorage(tmp_path).get_recent_events()) == []

    def test_in_memory_recent_events_limit(self):
        storage = InMemoryAuditStorage()
        for n in range(5):
            run(storage.append_event(AuditEventBuilder.budget_changed(n, n + 1)))
        assert len(run(storage.get_recent_events(limit=2))) == 2


class TestGoogleSheetsStorage:
    """Tests for the Google Sheets backend against a fake client."""

    def test_row_round_trip(self, expenses):
        for expense in expenses:
            assert row_to_expense([str(cell) for cell in expense_to_row(expense)]) == expense

    def test_row_with_missing_cells(self):
        expense = row_to_expense(["x", "Food", "Tea", "3"])
        assert expense.frequency == Frequency.MONTHLY
        assert expense.is_recurring is None

    def test_empty_sheet_returns_seed(self):
        storage = GoogleSheetsExpenseStorage(client=FakeSheetsClient())
        assert run(storage.load_expenses()) == INITIAL_EXPENSES

    def test_save_rewrites_the_sheet(self, expenses):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client=client)
        run(storage.save_expenses(expenses))
        run(storage.save_expenses(expenses[:2]))

        assert client.expenses.rows[0] == EXPENSE_COLUMNS
        assert len(client.expenses.rows) == 3
        assert run(storage.load_expenses()) == expenses[:2]

    def test_save_trims_rows_past_the_ledger(self, expenses):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client=client)
        run(storage.save_expenses(expenses))
        run(storage.save_expenses([]))

        assert client.expenses.rows == [EXPENSE_COLUMNS]

    def test_failed_write_keeps_saved_ledger(self, expenses, monkeypatch):
        """A write that fails must not leave an empty tab behind."""
        monkeypatch.setattr(GoogleSheetsExpenseStorage.save_expenses.retry, "wait", wait_none())
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client=client)
        run(storage.save_expenses(expenses))

        def failing_update(*args, **kwargs):
            raise OSError("quota exceeded")

        monkeypatch.setattr(client.expenses, "update", failing_update)
        with pytest.raises(StorageError):
            run(storage.save_expenses(expenses[:1]))

        assert len(client.expenses.rows) == 4
        assert run(storage.load_expenses()) == expenses

    def test_malformed_rows_are_skipped(self, expenses):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client=client)
        run(storage.save_expenses(expenses))
        client.expenses.rows.append(["bad", "Food", "Broken", "not-a-number"])

        assert [e.id for e in run(storage.load_expenses())] == ["a", "b", "c"]

    def test_settings_tab_holds_documents(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsExpenseStorage(client=client)
        run(storage.save_budget(100))
        run(storage.save_budget(250))
        run(storage.save_currency(find_currency("INR")))

        assert len(client.settings.rows) == 3  # header + budget + currency
        assert run(storage.load_budget()) == 250
        assert run(storage.load_currency()).code == "INR"

    def test_unreachable_sheet_falls_back(self):
        client = MagicMock()
        client.get_expenses_sheet.side_effect = OSError("offline")
        client.get_settings_sheet.side_effect = OSError("offline")
        storage = GoogleSheetsExpenseStorage(client=client)

        assert run(storage.load_expenses()) == INITIAL_EXPENSES
        assert run(storage.load_budget()) == 5000

    def test_audit_round_trip(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsAuditStorage(client=client)
        correlation_id = uuid4()
        event = AuditEventBuilder.receipt_scanned("Cafe", 12.5, "Food", correlation_id)

        assert run(storage.append_event(event)) is True
        related = run(storage.get_events_by_correlation_id(correlation_id))
        assert len(related) == 1
        assert related[0].details["amount"] == 12.5

    def test_audit_write_failure_returns_false(self):
        client = MagicMock()
        client.get_audit_sheet.side_effect = OSError("offline")
        storage = GoogleSheetsAuditStorage(client=client)
        assert run(storage.append_event(AuditEventBuilder.budget_changed(1, 2))) is False

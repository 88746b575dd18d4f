"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a shared backend because:
1. Non-technical users can view and edit their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a personal ledger is tiny)
- No transactions: the ledger tab is rewritten as a whole on every save
- Limited query capabilities (we filter in Python)

Layout:
- Expenses tab: one expense per row
- Settings tab: key/value rows (currency, budget, usage)
- AuditLog tab: append-only events
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from burnrate.config import GoogleSheetsSettings, get_settings
from burnrate.models.audit import AuditEvent, AuditEventType, AuditSeverity
from burnrate.models.expense import DEFAULT_BUDGET, Expense
from burnrate.models.seed import initial_expenses
from burnrate.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    StorageError,
)
from burnrate.services.storage.key_value import KeyValueExpenseStorage

logger = structlog.get_logger(__name__)


# Column mappings for Expenses sheet
EXPENSE_COLUMNS = [
    "id",
    "category",
    "name",
    "amount",
    "frequency",
    "icon",
    "is_recurring",
]
EXPENSE_LAST_COLUMN = chr(ord("A") + len(EXPENSE_COLUMNS) - 1)

SETTINGS_COLUMNS = ["key", "value"]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet creation and retry logic.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            logger.info("worksheet_created", title=title)
            sheet = spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns))
            sheet.append_row(columns)
            return sheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        return self._get_or_create(self._settings.expenses_sheet_name, EXPENSE_COLUMNS, 1000)

    def get_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the Settings worksheet."""
        return self._get_or_create(self._settings.settings_sheet_name, SETTINGS_COLUMNS, 50)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        # More rows for audit log
        return self._get_or_create(self._settings.audit_sheet_name, AUDIT_COLUMNS, 5000)


def expense_to_row(expense: Expense) -> list:
    """Convert an Expense to a spreadsheet row."""
    frequency = expense.frequency
    return [
        expense.id,
        expense.category,
        expense.name,
        repr(float(expense.amount)),
        getattr(frequency, "value", frequency),
        expense.icon,
        "" if expense.is_recurring is None else str(expense.is_recurring),
    ]


def row_to_expense(row: list) -> Expense:
    """
    Convert a spreadsheet row to an Expense.

    Raises:
        ValueError: If the amount cell is not a number
        ValidationError: If the row does not make a valid Expense
    """
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default

    recurring = safe_get(6).strip().lower()
    return Expense(
        id=safe_get(0),
        category=safe_get(1),
        name=safe_get(2),
        amount=float(safe_get(3, "0")),
        frequency=safe_get(4, "monthly"),
        icon=safe_get(5),
        is_recurring=None if not recurring else recurring == "true",
    )


class GoogleSheetsExpenseStorage(KeyValueExpenseStorage):
    """
    Google Sheets implementation of ledger and settings storage.

    The ledger is stored as rows; currency, budget and usage are JSON
    documents in the Settings tab, decoded the same way as every other
    key/value backend.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        default_budget: float = DEFAULT_BUDGET,
    ):
        super().__init__(default_budget=default_budget)
        self._client = client or GoogleSheetsClient()

    def _read_document(self, key: str) -> Optional[str]:
        sheet = self._client.get_settings_sheet()
        for row in sheet.get_all_values()[1:]:
            if row and row[0] == key:
                return row[1] if len(row) > 1 else None
        return None

    def _write_document(self, key: str, raw: str) -> None:
        sheet = self._client.get_settings_sheet()
        all_rows = sheet.get_all_values()
        # Start from 2 (row 1 is header)
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == key:
                sheet.update_cell(idx, 2, raw)
                return
        sheet.append_row([key, raw], value_input_option="RAW")

    async def load_expenses(self) -> list[Expense]:
        try:
            all_rows = self._client.get_expenses_sheet().get_all_values()[1:]
        except Exception as e:
            logger.warning("storage_read_failed", key="expenses", error=str(e))
            return initial_expenses()

        expenses = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                expenses.append(row_to_expense(row))
            except (ValueError, ValidationError):
                logger.warning("skipped_invalid_expense", expense_id=row[0])

        if not expenses:
            logger.info("expenses_seeded")
            return initial_expenses()
        return expenses

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save_expenses(self, expenses: list[Expense]) -> None:
        try:
            sheet = self._client.get_expenses_sheet()
            values = [EXPENSE_COLUMNS] + [expense_to_row(e) for e in expenses]
            # Write before trimming: the tab is never empty mid-save.
            sheet.update(values=values, range_name="A1", value_input_option="RAW")
            sheet.batch_clear([f"A{len(values) + 1}:{EXPENSE_LAST_COLUMN}"])
        except Exception as e:
            raise StorageError(f"Failed to save expenses: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except (ValueError, ValidationError):
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_type=event.event_type.value)
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._all_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

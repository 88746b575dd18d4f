"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for persistence.
This allows us to:
1. Swap local JSON files for Google Sheets (or a real database) later
2. Use in-memory storage for testing
3. Keep the finance core completely unaware of storage

The contract mirrors what the app actually needs: load a snapshot at
startup, save the whole snapshot after every change. Loads never fail
the app - a missing or corrupt document falls back to the defaults.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from burnrate.models.audit import AuditEvent
from burnrate.models.expense import Currency, Expense
from burnrate.models.usage import UsageAccount

# Document keys shared by every key/value backend.
EXPENSES_KEY = "burnrate_expenses_v1"
CURRENCY_KEY = "burnrate_currency_v1"
BUDGET_KEY = "burnrate_budget_v1"
USAGE_KEY = "burnrate_usage_v1"


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for the expense ledger and user settings.

    Any storage implementation (local files, Google Sheets, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load_expenses(self) -> list[Expense]:
        """
        Load the saved expense ledger.

        Returns:
            The saved expenses, or a fresh copy of the seed ledger when
            nothing was saved or the saved document is empty or corrupt.
        """
        pass

    @abstractmethod
    async def save_expenses(self, expenses: list[Expense]) -> None:
        """
        Replace the saved ledger with `expenses`.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def load_currency(self) -> Currency:
        """Load the display currency, or the default (USD)."""
        pass

    @abstractmethod
    async def save_currency(self, currency: Currency) -> None:
        """Persist the display currency."""
        pass

    @abstractmethod
    async def load_budget(self) -> float:
        """Load the monthly budget, or the default."""
        pass

    @abstractmethod
    async def save_budget(self, amount: float) -> None:
        """Persist the monthly budget."""
        pass

    @abstractmethod
    async def load_usage(self) -> Optional[UsageAccount]:
        """
        Load AI credit usage.

        Returns:
            The saved account, or None if usage was never recorded
        """
        pass

    @abstractmethod
    async def save_usage(self, account: UsageAccount) -> None:
        """Persist AI credit usage."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one receipt scan).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass

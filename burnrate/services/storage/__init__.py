"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Local JSON files are the default backend; Google Sheets and in-memory
storage implement the same interfaces and are swappable.
"""

from burnrate.services.storage.interface import (
    BUDGET_KEY,
    CURRENCY_KEY,
    EXPENSES_KEY,
    USAGE_KEY,
    AuditStorageInterface,
    ConnectionError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageError,
)
from burnrate.services.storage.key_value import KeyValueExpenseStorage
from burnrate.services.storage.local import (
    InMemoryAuditStorage,
    InMemoryStorage,
    JsonLinesAuditStorage,
    LocalJsonStorage,
)

__all__ = [
    # Keys
    "BUDGET_KEY",
    "CURRENCY_KEY",
    "EXPENSES_KEY",
    "USAGE_KEY",
    # Interfaces
    "AuditStorageInterface",
    "ExpenseStorageInterface",
    "KeyValueExpenseStorage",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Local implementations
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "JsonLinesAuditStorage",
    "LocalJsonStorage",
]

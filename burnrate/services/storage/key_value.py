"""
Key/Value Document Storage

Shared load/save logic for backends that keep each piece of state as
one JSON document under a fixed key (local files, process memory, the
Google Sheets settings tab).

Backends only implement raw document reads and writes; decoding,
defaults and corruption handling live here so every backend falls back
the same way.
"""

import json
import math
from abc import abstractmethod
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from burnrate.models.expense import (
    DEFAULT_BUDGET,
    DEFAULT_CURRENCY,
    Currency,
    Expense,
    find_currency,
)
from burnrate.models.seed import initial_expenses
from burnrate.models.usage import UsageAccount
from burnrate.services.storage.interface import (
    BUDGET_KEY,
    CURRENCY_KEY,
    EXPENSES_KEY,
    USAGE_KEY,
    ExpenseStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


def decode_expenses(raw: Optional[str]) -> Optional[list[Expense]]:
    """
    Decode a saved ledger document.

    Returns None when the document is missing, empty or corrupt; the
    caller decides what to fall back to.
    """
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("corrupt_expenses_document", error=str(e))
        return None

    if not isinstance(parsed, list) or not parsed:
        return None

    # One bad record must not cost the user the rest of the ledger.
    expenses = []
    for index, item in enumerate(parsed):
        try:
            expenses.append(Expense.model_validate(item))
        except ValidationError as e:
            logger.warning("skipped_invalid_expense", index=index, error_count=e.error_count())
    return expenses or None


def encode_expenses(expenses: list[Expense]) -> str:
    return json.dumps(
        [expense.to_storage_dict() for expense in expenses],
        ensure_ascii=False,
    )


def decode_currency(raw: Optional[str]) -> Currency:
    """Saved currency if it has a code and symbol, else the default."""
    if not raw:
        return DEFAULT_CURRENCY
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return DEFAULT_CURRENCY

    if not isinstance(parsed, dict) or not parsed.get("code") or not parsed.get("symbol"):
        return DEFAULT_CURRENCY

    # Prefer the canonical entry so the locale is always a supported one.
    supported = find_currency(str(parsed["code"]))
    if supported is not None:
        return supported

    try:
        return Currency(**parsed)
    except (ValidationError, TypeError):
        return DEFAULT_CURRENCY


def decode_budget(raw: Optional[str], default: float = DEFAULT_BUDGET) -> float:
    """Saved budget if it is a finite, non-negative number, else `default`."""
    if raw is None or raw == "":
        return default
    try:
        value = float(json.loads(raw))
    except (json.JSONDecodeError, TypeError, ValueError):
        logger.warning("corrupt_budget_document", raw=raw[:50])
        return default
    if not math.isfinite(value) or value < 0:
        return default
    return value


def decode_usage(raw: Optional[str]) -> Optional[UsageAccount]:
    if not raw:
        return None
    try:
        return UsageAccount.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("corrupt_usage_document", error_count=e.error_count())
        return None


class KeyValueExpenseStorage(ExpenseStorageInterface):
    """
    ExpenseStorageInterface over a raw document store.

    Subclasses implement `_read_document` / `_write_document`.
    Write failures are wrapped in StorageError.
    """

    def __init__(self, default_budget: float = DEFAULT_BUDGET):
        self._default_budget = default_budget

    @abstractmethod
    def _read_document(self, key: str) -> Optional[str]:
        """Return the raw document stored under `key`, or None."""

    @abstractmethod
    def _write_document(self, key: str, raw: str) -> None:
        """Store `raw` under `key`, replacing any previous document."""

    def _safe_read(self, key: str) -> Optional[str]:
        try:
            return self._read_document(key)
        except Exception as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return None

    def _write(self, key: str, value: Any) -> None:
        raw = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
        try:
            self._write_document(key, raw)
        except Exception as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Failed to save {key}: {e}") from e

    async def load_expenses(self) -> list[Expense]:
        expenses = decode_expenses(self._safe_read(EXPENSES_KEY))
        if expenses is None:
            logger.info("expenses_seeded")
            return initial_expenses()
        return expenses

    async def save_expenses(self, expenses: list[Expense]) -> None:
        self._write(EXPENSES_KEY, encode_expenses(expenses))

    async def load_currency(self) -> Currency:
        return decode_currency(self._safe_read(CURRENCY_KEY))

    async def save_currency(self, currency: Currency) -> None:
        self._write(CURRENCY_KEY, currency.model_dump())

    async def load_budget(self) -> float:
        return decode_budget(self._safe_read(BUDGET_KEY), self._default_budget)

    async def save_budget(self, amount: float) -> None:
        self._write(BUDGET_KEY, amount)

    async def load_usage(self) -> Optional[UsageAccount]:
        return decode_usage(self._safe_read(USAGE_KEY))

    async def save_usage(self, account: UsageAccount) -> None:
        self._write(USAGE_KEY, account.model_dump_json())

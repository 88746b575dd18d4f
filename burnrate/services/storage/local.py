"""
Local Storage Implementations

JSON files on disk for the single-user default, and plain dicts/lists
for tests and throwaway sessions.

DESIGN DECISION: One file per document key, written atomically
(temp file + rename). A crash mid-write leaves the previous document
intact instead of a half-written ledger.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from burnrate.models.audit import AuditEvent
from burnrate.models.expense import DEFAULT_BUDGET
from burnrate.services.storage.interface import AuditStorageInterface
from burnrate.services.storage.key_value import KeyValueExpenseStorage

logger = structlog.get_logger(__name__)

AUDIT_FILE_NAME = "audit.jsonl"


class LocalJsonStorage(KeyValueExpenseStorage):
    """Each document lives in `<data_dir>/<key>.json`."""

    def __init__(
        self,
        data_dir: Union[str, Path],
        default_budget: float = DEFAULT_BUDGET,
    ):
        super().__init__(default_budget=default_budget)
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _read_document(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_document(self, key: str, raw: str) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(raw)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class InMemoryStorage(KeyValueExpenseStorage):
    """
    Documents kept in a dict for the life of the process.

    `documents` can be pre-filled to simulate previously saved
    (or corrupt) state.
    """

    def __init__(
        self,
        documents: Optional[dict[str, str]] = None,
        default_budget: float = DEFAULT_BUDGET,
    ):
        super().__init__(default_budget=default_budget)
        self.documents: dict[str, str] = dict(documents or {})

    def _read_document(self, key: str) -> Optional[str]:
        return self.documents.get(key)

    def _write_document(self, key: str, raw: str) -> None:
        self.documents[key] = raw


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON event per line.

    Unreadable lines are skipped on read so one bad line never hides
    the rest of the history.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._path = Path(data_dir) / AUDIT_FILE_NAME

    @property
    def path(self) -> Path:
        return self._path

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.model_dump_json() + "\n")
            return True
        except OSError as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_type=event.event_type.value)
            return False

    def _read_all(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        events = []
        with self._path.open(encoding="utf-8") as handle:
            for line in handle:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(AuditEvent.model_validate_json(line))
                except ValidationError:
                    logger.warning("audit_line_skipped")
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_all() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._read_all()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events kept in a list, in append order."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]

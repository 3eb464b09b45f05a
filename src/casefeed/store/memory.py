"""
In-memory audit store for tests and single-process development.
"""

import threading
from datetime import datetime

from casefeed.store.base import AuditStore
from casefeed.store.models import AuditRecord


class InMemoryAuditStore(AuditStore):
    """Keeps audit records in a list, in insertion order."""

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []
        self._lock = threading.Lock()

    @property
    def records(self) -> list[AuditRecord]:
        with self._lock:
            return list(self._records)

    def store(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get(self, record_id: str) -> AuditRecord | None:
        with self._lock:
            return next((r for r in self._records if r.id == record_id), None)

    def query(
        self,
        *,
        actor_id: str | None = None,
        action: str | None = None,
        target_id: str | None = None,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[AuditRecord]:
        matched = [
            r
            for r in self.records
            if self._matches(r, actor_id, action, target_id, start_time, end_time)
        ]
        return matched[offset : offset + limit]

    def clear(self) -> None:
        """Clear all records (for testing)."""
        with self._lock:
            self._records.clear()

"""
JSONL file-based audit store.

A simple append-only file implementation for development and small
deployments.
"""

import json
import threading
from datetime import datetime
from pathlib import Path

from casefeed.store.base import AuditStore
from casefeed.store.models import AuditRecord


class JsonlAuditStore(AuditStore):
    """
    Audit store that writes records to a JSONL file.

    Each line in the file is a JSON-encoded audit record.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize the JSONL store.

        Args:
            path: Path to the JSONL file
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def store(self, record: AuditRecord) -> None:
        """Append a record to the JSONL file."""
        line = record.model_dump_json() + "\n"
        with self._lock, open(self.path, "a", encoding="utf-8") as f:
            f.write(line)

    def get(self, record_id: str) -> AuditRecord | None:
        """Find a record by ID."""
        for record in self._iter_records():
            if record.id == record_id:
                return record
        return None

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
        """Query records with filters."""
        results: list[AuditRecord] = []
        skipped = 0

        for record in self._iter_records():
            if not self._matches(record, actor_id, action, target_id, start_time, end_time):
                continue

            # Handle offset
            if skipped < offset:
                skipped += 1
                continue

            results.append(record)
            if len(results) >= limit:
                break

        return results

    def _iter_records(self):
        if not self.path.exists():
            return
        with open(self.path, encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                yield AuditRecord.model_validate(json.loads(line))

    def clear(self) -> None:
        """Clear all records (for testing)."""
        if self.path.exists():
            self.path.unlink()

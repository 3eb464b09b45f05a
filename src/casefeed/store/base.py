"""
Abstract audit store interface.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from casefeed.store.models import AuditRecord, AuditStatus


class AuditStore(ABC):
    """
    Abstract base class for audit log storage.

    ``record`` is the audit hook the write path calls synchronously after
    every create, update and delete. Implementations only provide storage.
    """

    def record(
        self,
        action: str,
        actor_id: str,
        target_type: str,
        target_id: Any,
        status: AuditStatus | str,
        **extra: Any,
    ) -> AuditRecord:
        """Build an AuditRecord and store it."""
        record = AuditRecord(
            id=str(uuid4()),
            action=action,
            actor_id=actor_id,
            target_type=target_type,
            target_id=None if target_id is None else str(target_id),
            status=AuditStatus(status),
            timestamp=datetime.now(timezone.utc),
            request_id=extra.pop("request_id", None),
            error=extra.pop("error", None),
            metadata=extra or None,
        )
        self.store(record)
        return record

    @abstractmethod
    def store(self, record: AuditRecord) -> None:
        """
        Store an audit record.
        """
        ...

    @abstractmethod
    def get(self, record_id: str) -> AuditRecord | None:
        """
        Retrieve an audit record by ID.
        """
        ...

    @abstractmethod
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
        """
        Query audit records with filters, oldest first.
        """
        ...

    @staticmethod
    def _matches(
        record: AuditRecord,
        actor_id: str | None,
        action: str | None,
        target_id: str | None,
        start_time: datetime | None,
        end_time: datetime | None,
    ) -> bool:
        if actor_id and record.actor_id != actor_id:
            return False
        if action and record.action != action:
            return False
        if target_id and record.target_id != str(target_id):
            return False
        if start_time and record.timestamp < start_time:
            return False
        if end_time and record.timestamp > end_time:
            return False
        return True

"""
casefeed Store Module.

Audit logging for the interaction write path.
"""

from casefeed.store.base import AuditStore
from casefeed.store.jsonl import JsonlAuditStore
from casefeed.store.memory import InMemoryAuditStore
from casefeed.store.models import AuditRecord, AuditStatus

__all__ = [
    # Models
    "AuditRecord",
    "AuditStatus",
    # Base
    "AuditStore",
    # Implementations
    "JsonlAuditStore",
    "InMemoryAuditStore",
]

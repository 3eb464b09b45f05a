"""
Audit record models.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditStatus(str, Enum):
    """Outcome of an audited write."""

    SUCCESS = "success"
    FAILURE = "failure"


class AuditRecord(BaseModel):
    """
    Record of a single write against the interaction store.

    Captures who did what to which record, and whether it succeeded.
    """

    # Unique identifier for this audit record
    id: str

    # e.g. "interaction.create"
    action: str

    actor_id: str
    target_type: str
    target_id: str | None = None

    status: AuditStatus
    timestamp: datetime

    # Request tracking
    request_id: str | None = None

    # Error message (if failed)
    error: str | None = None

    # Additional metadata
    metadata: dict[str, Any] | None = None

    model_config = {"frozen": True}

    def is_success(self) -> bool:
        """Check if the audited operation succeeded."""
        return self.status == AuditStatus.SUCCESS

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to a dict suitable for logging."""
        data = self.model_dump(mode="json")
        data["timestamp"] = self.timestamp.isoformat()
        return data

"""
Shared enumerations for casefeed.
"""

from enum import Enum


class Role(str, Enum):
    """Actor roles known to the visibility policy."""

    ADMIN = "admin"
    DEVELOPER = "developer"
    LAWYER = "lawyer"
    RENTAL_COMPANY = "rental_company"
    WORKSPACE_USER = "workspace_user"


class InteractionType(str, Enum):
    """Kinds of logged interaction."""

    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    SMS = "sms"
    NOTE = "note"
    DOCUMENT = "document"


class InteractionPriority(str, Enum):
    """Interaction priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class InteractionStatus(str, Enum):
    """Interaction workflow status. No transition graph is enforced."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FOLLOW_UP_REQUIRED = "follow_up_required"


class SortField(str, Enum):
    """Sortable feed fields."""

    TIMESTAMP = "timestamp"
    CASE_NUMBER = "caseNumber"
    PRIORITY = "priority"
    STATUS = "status"


class SortDirection(str, Enum):
    """Sort order direction."""

    ASC = "asc"
    DESC = "desc"


class CountFailureMode(str, Enum):
    """What the executor does when the count query fails."""

    ABORT = "abort"  # whole page fails
    DEGRADE = "degrade"  # items returned, total_count is None

"""
casefeed Core Module.

Contains the request context, feed schemas, error taxonomy, and shared types.
"""

from casefeed.core.context import Actor, RequestContext
from casefeed.core.dsl import (
    CreateInteraction,
    Failure,
    FeedItem,
    FeedPage,
    InteractionFilter,
    PageFacets,
    SortSpec,
    UpdateInteraction,
    parse_model,
)
from casefeed.core.errors import (
    CaseFeedError,
    DataAccessError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from casefeed.core.types import (
    CountFailureMode,
    InteractionPriority,
    InteractionStatus,
    InteractionType,
    Role,
    SortDirection,
    SortField,
)

__all__ = [
    # Context
    "Actor",
    "RequestContext",
    # DSL
    "InteractionFilter",
    "SortSpec",
    "FeedItem",
    "FeedPage",
    "PageFacets",
    "Failure",
    "CreateInteraction",
    "UpdateInteraction",
    "parse_model",
    # Errors
    "CaseFeedError",
    "ValidationError",
    "DataAccessError",
    "NotFoundError",
    "RateLimitError",
    # Types
    "Role",
    "InteractionType",
    "InteractionPriority",
    "InteractionStatus",
    "SortField",
    "SortDirection",
    "CountFailureMode",
]

"""
casefeed - role-scoped, paginated case interaction feeds.

casefeed decides which cases and interactions an actor may see and turns
caller-supplied filter, sort and pagination requests into a single
parameterized fetch against a relational store.
"""

__version__ = "0.1.0"

from casefeed.config import FeedSettings
from casefeed.core.context import Actor, RequestContext
from casefeed.core.dsl import (
    Failure,
    FeedItem,
    FeedPage,
    InteractionFilter,
    PageFacets,
    SortSpec,
)
from casefeed.core.errors import (
    CaseFeedError,
    DataAccessError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from casefeed.feed.service import InteractionFeedService
from casefeed.feed.writer import InteractionWriter
from casefeed.policy.visibility import RoleVisibilityPolicy, VisibilityPredicate
from casefeed.query.compiler import PredicateCompiler
from casefeed.query.executor import PaginatedQueryExecutor

__all__ = [
    # Version
    "__version__",
    # Config
    "FeedSettings",
    # Context
    "Actor",
    "RequestContext",
    # Schemas
    "InteractionFilter",
    "SortSpec",
    "FeedItem",
    "FeedPage",
    "PageFacets",
    "Failure",
    # Errors
    "CaseFeedError",
    "ValidationError",
    "DataAccessError",
    "NotFoundError",
    "RateLimitError",
    # Components
    "RoleVisibilityPolicy",
    "VisibilityPredicate",
    "PredicateCompiler",
    "PaginatedQueryExecutor",
    "InteractionFeedService",
    "InteractionWriter",
]

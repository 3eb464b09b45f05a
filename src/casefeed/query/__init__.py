"""
casefeed Query Module.

Predicate compilation and paginated execution.
"""

from casefeed.query.builder import Fragment, FragmentKind, PredicateBuilder
from casefeed.query.compiler import CompiledPredicate, PredicateCompiler, escape_like
from casefeed.query.executor import (
    PaginatedQueryExecutor,
    RawPage,
    count_select,
    feed_select,
)

__all__ = [
    # Builder
    "PredicateBuilder",
    "Fragment",
    "FragmentKind",
    # Compiler
    "PredicateCompiler",
    "CompiledPredicate",
    "escape_like",
    # Executor
    "PaginatedQueryExecutor",
    "RawPage",
    "feed_select",
    "count_select",
]

"""
Logging context management for casefeed.

Lets actor and request information ride along with every log message emitted
while a feed request is being served.
"""

from __future__ import annotations

import contextvars
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from casefeed.core.context import RequestContext

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "casefeed_log_context",
    default=None,
)


@dataclass
class LogContext:
    """
    Structured logging context.

    Contains fields that should be included in all log messages within
    a specific scope (usually one request).
    """

    actor_id: str | None = None
    role: str | None = None
    request_id: str | None = None
    client_address: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request_context(cls, ctx: RequestContext) -> LogContext:
        """Create a LogContext from a RequestContext."""
        return cls(
            actor_id=ctx.actor.id,
            role=ctx.actor.role_name,
            request_id=ctx.request_id,
            client_address=ctx.client_address,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary of non-None values."""
        result = {
            k: v
            for k, v in (
                ("actor_id", self.actor_id),
                ("role", self.role),
                ("request_id", self.request_id),
                ("client_address", self.client_address),
            )
            if v is not None
        }
        result.update(self.extra)
        return result


def get_log_context() -> dict[str, Any]:
    """Get the current log context."""
    ctx = _log_context.get()
    return ctx.copy() if ctx else {}


def clear_log_context() -> None:
    """Clear the current log context."""
    _log_context.set(None)


@contextmanager
def with_log_context(
    context: LogContext | dict[str, Any] | None = None,
    **kwargs: Any,
) -> Iterator[None]:
    """
    Context manager for setting log context within a scope.

    Example:
        with with_log_context(actor_id="u-1", request_id="123"):
            logger.info("Fetching feed")  # Includes actor_id and request_id
    """
    previous = _log_context.get()

    if context is not None:
        new_context = (
            context.to_dict() if isinstance(context, LogContext) else context.copy()
        )
    else:
        new_context = previous.copy() if previous else {}

    new_context.update(kwargs)
    _log_context.set(new_context)

    try:
        yield
    finally:
        _log_context.set(previous)


class ContextFilter(logging.Filter):
    """
    Logging filter that injects context fields into log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = get_log_context()
        for key, value in context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True

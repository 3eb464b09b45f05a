"""
Error taxonomy for casefeed.

All casefeed errors inherit from CaseFeedError and include:
- A unique error code for programmatic handling
- A human-readable message
- Optional retry hints telling the caller how to correct the request

Authorization failures have no error class. An actor without enough scoping
information gets an empty result, never an exception.
"""

from typing import Any


class CaseFeedError(Exception):
    """
    Base class for all casefeed errors.

    Attributes:
        code: Unique error code for programmatic handling
        message: Human-readable error message
        retry_hints: Suggestions for how to fix the error
        details: Additional error context
    """

    code: str = "CASEFEED_ERROR"

    def __init__(
        self,
        message: str,
        *,
        retry_hints: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retry_hints = retry_hints or []
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "retry_hints": self.retry_hints,
            "details": self.details,
        }


class ValidationError(CaseFeedError):
    """Malformed filter, sort, pagination or write input."""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            details={"field": field} if field else {},
            **kwargs,
        )

    @classmethod
    def from_pydantic(cls, exc: Any, model: str) -> "ValidationError":
        """Build from a pydantic ValidationError, keeping the first bad field."""
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(part) for part in first.get("loc", ()))
        message = first.get("msg", str(exc))
        return cls(
            f"Invalid {model}: {loc + ': ' if loc else ''}{message}",
            field=loc or None,
            retry_hints=[f"{len(errors)} validation error(s) in {model}"],
        )


class DataAccessError(CaseFeedError):
    """Connection, pool checkout or query execution failed."""

    code = "DATA_ACCESS_ERROR"

    def __init__(
        self,
        operation: str,
        cause: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(
            f"Data access failed during {operation} ({reason})",
            retry_hints=["The request can be retried; reads are idempotent"],
            details={"operation": operation},
            **kwargs,
        )
        self.operation = operation
        self.cause = cause


class NotFoundError(CaseFeedError):
    """
    Requested entity was not found.

    When the visibility policy hides a record we raise NotFoundError rather
    than revealing that the record exists but is inaccessible.
    """

    code = "NOT_FOUND"

    def __init__(
        self,
        entity: str,
        id: Any,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            f"Resource not found: {entity} with id '{id}'",
            details={"entity": entity, "id": id},
            **kwargs,
        )


class RateLimitError(CaseFeedError):
    """Raised when a client exceeds the request rate limit."""

    code = "RATE_LIMITED"

    def __init__(
        self,
        message: str,
        limit: int,
        window_seconds: int,
        retry_after: float,
    ) -> None:
        super().__init__(
            message,
            retry_hints=[f"Retry after {retry_after:.1f}s"],
            details={"limit": limit, "window_seconds": window_seconds},
        )
        self.limit = limit
        self.window_seconds = window_seconds
        self.retry_after = retry_after

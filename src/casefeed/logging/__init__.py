"""
casefeed structured logging.

JSON or text output with per-request context injection.
"""

from casefeed.logging.config import (
    FeedLogger,
    LogFormat,
    LogLevel,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from casefeed.logging.context import LogContext, get_log_context, with_log_context
from casefeed.logging.formatters import JSONFormatter, TextFormatter

__all__ = [
    # Configuration
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "FeedLogger",
    "LogLevel",
    "LogFormat",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    # Context
    "LogContext",
    "get_log_context",
    "with_log_context",
]

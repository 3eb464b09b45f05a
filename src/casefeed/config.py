"""
Runtime settings for casefeed.

Settings are plain frozen dataclasses validated on construction. Deployments
usually build them from ``CASEFEED_*`` environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from casefeed.core.types import CountFailureMode

ENV_PREFIX = "CASEFEED_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class FeedSettings:
    """
    Configuration for the feed engine.

    Attributes:
        database_url: SQLAlchemy URL of the backing store
        pool_size: Connections kept open in the pool
        max_overflow: Extra connections allowed above pool_size
        pool_timeout: Seconds to wait for a pooled connection before failing
        pool_recycle: Seconds after which idle connections are recycled
        default_page_size: Page size used when the caller gives none
        max_page_size: Largest page size a caller may request
        count_failure_mode: Behavior when the count query fails
        rate_limit_requests: Requests allowed per client address per window
        rate_limit_window_seconds: Rate limit window length
        log_level: Log level for the casefeed logger
        log_format: "json" or "text"
    """

    database_url: str = "sqlite:///./casefeed.db"
    pool_size: int = 5
    max_overflow: int = 15
    pool_timeout: float = 2.0
    pool_recycle: int = 1800
    default_page_size: int = 20
    max_page_size: int = 100
    count_failure_mode: CountFailureMode = CountFailureMode.ABORT
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        if self.pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        if self.max_overflow < 0:
            raise ValueError("max_overflow must be >= 0")
        if self.pool_timeout <= 0:
            raise ValueError("pool_timeout must be positive")
        if self.max_page_size < 1:
            raise ValueError("max_page_size must be at least 1")
        if not 1 <= self.default_page_size <= self.max_page_size:
            raise ValueError("default_page_size must be between 1 and max_page_size")
        if self.rate_limit_requests < 1:
            raise ValueError("rate_limit_requests must be at least 1")
        if self.rate_limit_window_seconds < 1:
            raise ValueError("rate_limit_window_seconds must be at least 1")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        if self.log_format.lower() not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        if not isinstance(self.count_failure_mode, CountFailureMode):
            object.__setattr__(
                self, "count_failure_mode", CountFailureMode(self.count_failure_mode)
            )

    @property
    def max_connections(self) -> int:
        """Upper bound on simultaneously checked-out connections."""
        return self.pool_size + self.max_overflow

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> FeedSettings:
        """
        Build settings from environment variables.

        Each field maps to ``CASEFEED_<FIELD_NAME>``, e.g. ``CASEFEED_POOL_SIZE``.
        Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue
            default = f.default
            if isinstance(default, int):
                values[f.name] = int(raw)
            elif isinstance(default, float):
                values[f.name] = float(raw)
            elif isinstance(default, CountFailureMode):
                values[f.name] = CountFailureMode(raw.strip().lower())
            else:
                values[f.name] = raw
        return cls(**values)  # type: ignore[arg-type]

"""
Rate limiting for casefeed.

Fixed-window request counting keyed by client network address. The counter
lives behind a backend whose increment is atomic, so concurrent requests
from the same address can never both observe a stale count.
"""

from __future__ import annotations

import random
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from casefeed.config import FeedSettings
from casefeed.core.errors import RateLimitError
from casefeed.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class RateLimitConfig:
    """
    Configuration for rate limiting.

    Attributes:
        max_requests: Requests allowed per key per window
        window_seconds: Window length in seconds
        cleanup_probability: Chance that an increment also purges expired keys
        key_prefix: Prefix for rate limit keys (for namespacing)
    """

    max_requests: int = 100
    window_seconds: int = 60
    cleanup_probability: float = 0.01
    key_prefix: str = "casefeed"

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be at least 1")
        if not 0.0 <= self.cleanup_probability <= 1.0:
            raise ValueError("cleanup_probability must be between 0 and 1")

    @classmethod
    def from_settings(cls, settings: FeedSettings) -> RateLimitConfig:
        return cls(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )


@dataclass
class WindowState:
    """Counter state after an increment."""

    count: int
    expires_at: float


class RateLimitBackend(ABC):
    """
    Abstract backend for rate limit storage.

    Backends must be thread-safe and increment atomically.
    """

    @abstractmethod
    def increment(self, key: str, window_seconds: int) -> WindowState:
        """
        Increment the counter for key, starting a new window if it expired.

        Returns:
            The window state after the increment
        """
        ...

    @abstractmethod
    def get_count(self, key: str) -> int:
        """Current count for key (0 if absent or expired)."""
        ...

    @abstractmethod
    def reset(self, key: str) -> None:
        """Reset counter for key."""
        ...


@dataclass
class _WindowEntry:
    """Entry for tracking requests in a time window."""

    count: int = 0
    expires_at: float = 0.0


class InMemoryBackend(RateLimitBackend):
    """
    In-memory backend guarded by a lock.

    Suitable for a single process. Expired entries are purged occasionally
    from inside ``increment`` so memory stays bounded by active clients.
    """

    def __init__(
        self,
        cleanup_probability: float = 0.01,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self._windows: dict[str, _WindowEntry] = {}
        self._lock = threading.Lock()
        self._cleanup_probability = cleanup_probability
        self._clock = clock
        self._rng = rng

    def increment(self, key: str, window_seconds: int) -> WindowState:
        with self._lock:
            now = self._clock()
            if self._rng() < self._cleanup_probability:
                self._purge_expired(now)

            entry = self._windows.get(key)
            if entry is None or now >= entry.expires_at:
                # Start new window
                entry = _WindowEntry(count=1, expires_at=now + window_seconds)
                self._windows[key] = entry
            else:
                entry.count += 1
            return WindowState(count=entry.count, expires_at=entry.expires_at)

    def get_count(self, key: str) -> int:
        with self._lock:
            entry = self._windows.get(key)
            if entry is None or self._clock() >= entry.expires_at:
                return 0
            return entry.count

    def reset(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)

    def cleanup_expired(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries cleaned up
        """
        with self._lock:
            return self._purge_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _purge_expired(self, now: float) -> int:
        expired_keys = [key for key, entry in self._windows.items() if now >= entry.expires_at]
        for key in expired_keys:
            del self._windows[key]
        return len(expired_keys)


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    current_count: int
    limit: int
    window_seconds: int
    retry_after: float = 0.0
    key: str = ""


def client_address(
    headers: Mapping[str, str],
    peer: str | None = None,
) -> str:
    """
    Resolve the client address used as the rate limit key.

    Order: first hop of X-Forwarded-For, then X-Real-IP, then the socket
    peer, then "unknown".
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = lowered.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return peer or UNKNOWN_CLIENT


class RateLimiter:
    """
    Per-address request rate limiter.

    Usage:
        limiter = RateLimiter(RateLimitConfig(max_requests=100, window_seconds=60))

        result = limiter.check("203.0.113.9")
        if not result.allowed:
            ...

        # Or raise automatically
        limiter.check_and_raise("203.0.113.9")
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        backend: RateLimitBackend | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self.backend = backend or InMemoryBackend(
            cleanup_probability=self.config.cleanup_probability,
            clock=clock,
        )

    def _build_key(self, address: str) -> str:
        return f"{self.config.key_prefix}:addr:{address or UNKNOWN_CLIENT}"

    def check(self, address: str) -> RateLimitResult:
        """Count one request from ``address`` and report whether it is allowed."""
        key = self._build_key(address)
        state = self.backend.increment(key, self.config.window_seconds)
        if state.count > self.config.max_requests:
            return RateLimitResult(
                allowed=False,
                current_count=state.count,
                limit=self.config.max_requests,
                window_seconds=self.config.window_seconds,
                retry_after=max(state.expires_at - self._clock(), 0.0),
                key=key,
            )
        return RateLimitResult(
            allowed=True,
            current_count=state.count,
            limit=self.config.max_requests,
            window_seconds=self.config.window_seconds,
            key=key,
        )

    def check_and_raise(self, address: str) -> RateLimitResult:
        """
        Check the rate limit and raise RateLimitError if exceeded.

        Raises:
            RateLimitError: If rate limit is exceeded
        """
        result = self.check(address)
        if not result.allowed:
            logger.warning(
                "Rate limit exceeded",
                client_address=address,
                current_count=result.current_count,
                limit=result.limit,
            )
            raise RateLimitError(
                f"Rate limit exceeded: {result.current_count}/{result.limit} "
                f"requests in {result.window_seconds}s window. "
                f"Retry after {result.retry_after:.1f}s.",
                limit=result.limit,
                window_seconds=result.window_seconds,
                retry_after=result.retry_after,
            )
        return result

    def get_status(self, address: str) -> RateLimitResult:
        """Current status for ``address`` without counting a request."""
        key = self._build_key(address)
        count = self.backend.get_count(key)
        return RateLimitResult(
            allowed=count <= self.config.max_requests,
            current_count=count,
            limit=self.config.max_requests,
            window_seconds=self.config.window_seconds,
            key=key,
        )


def create_rate_limiter(settings: FeedSettings | None = None) -> RateLimiter:
    """Create an in-memory rate limiter from settings (100 requests / 60 s by default)."""
    return RateLimiter(config=RateLimitConfig.from_settings(settings or FeedSettings()))

"""
casefeed Middleware Module.

Request rate limiting keyed by client address.
"""

from casefeed.middleware.rate_limit import (
    InMemoryBackend,
    RateLimitBackend,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
    client_address,
    create_rate_limiter,
)

__all__ = [
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitBackend",
    "RateLimitResult",
    "InMemoryBackend",
    "client_address",
    "create_rate_limiter",
]

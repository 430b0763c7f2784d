"""
Rate limiting package for the Proxy.

Holds the fixed window limiter and the admission middleware that enforces
per-identity request budgets, skipping requests the cache can answer.
"""

from .fixed_window import (
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    RateWindow,
    REJECTION_MESSAGE,
    get_remote_address,
)

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitMiddleware",
    "RateWindow",
    "REJECTION_MESSAGE",
    "get_remote_address",
]

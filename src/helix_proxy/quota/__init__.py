"""
Quota module enforcing the upstream request budget.

Provides a per-process sliding window limiter and a Redis-backed
fixed window limiter shared across instances.
"""

from helix_proxy.quota.limiter import (
    FixedWindowLimiter,
    RateLimiter,
    SlidingWindowLimiter,
)

__all__ = [
    "FixedWindowLimiter",
    "RateLimiter",
    "SlidingWindowLimiter",
]

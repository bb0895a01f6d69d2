"""
Rate limiting algorithms for the upstream request budget.

Provides two strategies:
- Sliding Window: exact per-process limiting over recent timestamps
- Fixed Window: Redis counters bucketed by window, shared by a fleet
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from typing import Any
import logging
import math
import time

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Abstract base class for rate limiters."""

    def __init__(self, limit: int, window_seconds: int) -> None:
        self._limit = limit
        self._window_seconds = window_seconds

    @property
    @abstractmethod
    def name(self) -> str:
        """Limiter algorithm name."""
        ...

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @abstractmethod
    async def allow(self, key: str) -> bool:
        """
        Decide whether one more upstream request fits the budget.

        Args:
            key: Budget scope (the routing kind)

        Returns:
            True if the request may proceed
        """
        ...

    @abstractmethod
    async def reset(self, key: str) -> bool:
        """
        Reset the budget for a key.

        Args:
            key: Budget scope

        Returns:
            True if reset successful
        """
        ...


class SlidingWindowLimiter(RateLimiter):
    """
    Sliding window rate limiter held in process memory.

    Keeps the timestamps of admitted requests per key. A denied call
    records nothing, so rejections never eat into the budget.
    """

    def __init__(
        self,
        limit: int = 120,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize sliding window limiter.

        Args:
            limit: Maximum requests per window
            window_seconds: Window size in seconds
            clock: Source of epoch seconds
        """
        super().__init__(limit, window_seconds)
        self._clock = clock
        self._timestamps: dict[str, deque[float]] = {}

    @property
    def name(self) -> str:
        return "sliding_window"

    def _prune(self, timestamps: deque[float], now: float) -> None:
        """Remove timestamps outside the current window."""
        cutoff = now - self._window_seconds
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()

    def count(self, key: str) -> int:
        """Number of admitted requests currently inside the window."""
        timestamps = self._timestamps.get(key)
        if not timestamps:
            return 0
        self._prune(timestamps, self._clock())
        return len(timestamps)

    async def allow(self, key: str) -> bool:
        """Admit the request if fewer than `limit` fall inside the window."""
        now = self._clock()
        timestamps = self._timestamps.setdefault(key, deque())
        self._prune(timestamps, now)

        if len(timestamps) >= self._limit:
            logger.debug(f"Sliding window full for {key} ({len(timestamps)}/{self._limit})")
            return False

        timestamps.append(now)
        return True

    async def reset(self, key: str) -> bool:
        """Reset rate limit for a key."""
        self._timestamps.pop(key, None)
        return True


class FixedWindowLimiter(RateLimiter):
    """
    Fixed window rate limiter backed by Redis counters.

    Each key gets one counter per window bucket,
    ``<prefix>rl:<floor(now / window)>:<key>``. INCR and EXPIRE NX run in
    one transaction, so a bucket always expires one window after it is
    created. Every call consumes a unit, admitted or not.
    """

    def __init__(
        self,
        client: Any,
        limit: int = 120,
        window_seconds: int = 60,
        prefix: str = "twitch:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize fixed window limiter.

        Args:
            client: Connected redis.asyncio client
            limit: Maximum requests per window
            window_seconds: Window size in seconds
            prefix: Key prefix for namespacing
            clock: Source of epoch seconds
        """
        super().__init__(limit, window_seconds)
        self._client = client
        self._prefix = prefix
        self._clock = clock

    @property
    def name(self) -> str:
        return "fixed_window"

    def _bucket_key(self, key: str, now: float) -> str:
        bucket = math.floor(now / self._window_seconds)
        return f"{self._prefix}rl:{bucket}:{key}"

    async def allow(self, key: str) -> bool:
        """Count the request in the current bucket and compare to the limit."""
        bucket_key = self._bucket_key(key, self._clock())
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(bucket_key)
                pipe.expire(bucket_key, self._window_seconds, nx=True)
                count, _ = await pipe.execute()
        except Exception as e:
            logger.warning(f"Redis error in rate limiter, allowing request: {e}")
            return True

        if count > self._limit:
            logger.debug(f"Fixed window exhausted for {bucket_key} ({count}/{self._limit})")
            return False
        return True

    async def reset(self, key: str) -> bool:
        """Reset the current bucket for a key."""
        try:
            await self._client.delete(self._bucket_key(key, self._clock()))
        except Exception as e:
            logger.warning(f"Redis error in rate limiter reset: {e}")
            return False
        return True

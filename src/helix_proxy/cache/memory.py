"""In-memory cache backend implementation."""

import logging
import time
from collections.abc import Callable
from typing import Any

from helix_proxy.cache.base import CacheBackend, CacheEntry

logger = logging.getLogger(__name__)


class InMemoryCache(CacheBackend):
    """
    In-memory cache backend using a simple dictionary.

    Entries are kept past their freshness window so they can be served
    as stale fallbacks. Nothing is evicted; the map lives as long as
    the process.

    Limitations:
    - Not shared across instances
    - Lost on restart
    - Grows with the number of distinct upstream URLs
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize in-memory cache.

        Args:
            clock: Source of epoch seconds
        """
        self._store: dict[str, CacheEntry] = {}
        self._clock = clock
        self._connected = True

    @property
    def name(self) -> str:
        return "memory"

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def lookup(self, key: str) -> CacheEntry | None:
        """Get an entry regardless of its expiry."""
        return self._store.get(key)

    async def store(self, key: str, payload: Any, ttl_seconds: int) -> bool:
        """Store a payload, overwriting the previous entry."""
        self._store[key] = CacheEntry.create(key, payload, ttl_seconds, self._clock())
        return True

    async def any_entry(self) -> CacheEntry | None:
        """Return the oldest inserted entry, if any."""
        return next(iter(self._store.values()), None)

    async def close(self) -> None:
        """Mark the cache closed and drop its contents."""
        self._connected = False
        self._store.clear()

    async def health_check(self) -> dict[str, Any]:
        """Return health status with cache statistics."""
        now = self._clock()
        total_entries = self.size()
        stale_entries = sum(1 for v in self._store.values() if not v.is_fresh(now))

        return {
            "backend": self.name,
            "connected": self.is_connected,
            "total_entries": total_entries,
            "stale_entries": stale_entries,
        }

    def size(self) -> int:
        """Get current number of entries (sync method for convenience)."""
        return len(self._store)

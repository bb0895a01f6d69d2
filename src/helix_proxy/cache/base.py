"""Abstract base class for cache backends."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """
    A cached upstream payload with its freshness bounds.

    Attributes:
        key: Canonical upstream URL
        payload: Upstream JSON body
        stored_at: Epoch seconds when the payload was fetched
        expires_at: Epoch seconds after which the entry is stale
    """

    key: str
    payload: Any
    stored_at: float
    expires_at: float

    @classmethod
    def create(cls, key: str, payload: Any, ttl_seconds: int, now: float) -> "CacheEntry":
        return cls(key=key, payload=payload, stored_at=now, expires_at=now + ttl_seconds)

    def is_fresh(self, now: float | None = None) -> bool:
        """Check whether the entry may still be served as a direct hit."""
        if now is None:
            now = time.time()
        return now < self.expires_at

    def age_seconds(self, now: float | None = None) -> float:
        """Get age of entry in seconds."""
        if now is None:
            now = time.time()
        return now - self.stored_at


class CacheBackend(ABC):
    """
    Abstract base class for response cache backends.

    Backends store entries and hand them back; deciding whether an
    entry is fresh is left to the caller.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this backend.

        Returns:
            Backend name (e.g., 'memory', 'redis')
        """
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """
        Check if the backend is connected and healthy.

        Returns:
            True if connected, False otherwise
        """
        ...

    @abstractmethod
    async def lookup(self, key: str) -> CacheEntry | None:
        """
        Get the entry stored under a key.

        Args:
            key: Canonical upstream URL

        Returns:
            The entry, fresh or stale, or None if the backend holds nothing
        """
        ...

    @abstractmethod
    async def store(self, key: str, payload: Any, ttl_seconds: int) -> bool:
        """
        Store a payload, replacing any previous entry.

        Args:
            key: Canonical upstream URL
            payload: JSON-serializable upstream body
            ttl_seconds: Freshness window for the entry

        Returns:
            True if successful, False otherwise
        """
        ...

    @abstractmethod
    async def any_entry(self) -> CacheEntry | None:
        """
        Get an arbitrary stored entry, for best-effort degraded answers.

        Returns:
            Any entry the backend holds, or None when empty
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the cache connection."""
        ...

    async def health_check(self) -> dict[str, Any]:
        """
        Perform a health check on the cache backend.

        Returns:
            Dict with health status info
        """
        return {
            "backend": self.name,
            "connected": self.is_connected,
        }

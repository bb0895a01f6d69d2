"""Redis cache backend implementation."""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from helix_proxy.cache.base import CacheBackend, CacheEntry

logger = logging.getLogger(__name__)


class RedisCache(CacheBackend):
    """
    Redis cache backend shared by every proxy instance.

    Entries are written with a server-side TTL equal to their freshness
    window, so Redis purges them at the boundary. This backend can only
    serve entries that are still present, never time-stale ones.

    Key layout: ``<prefix>cache:<upstream url>``
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        prefix: str = "twitch:",
        client: Any = None,
        max_connections: int = 10,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL
            prefix: Key prefix for namespacing
            client: Already-connected redis.asyncio client to reuse
            max_connections: Maximum connections in pool
            socket_timeout: Socket timeout in seconds
            socket_connect_timeout: Connection timeout in seconds
            clock: Source of epoch seconds
        """
        self._url = url
        self._prefix = prefix
        self._max_connections = max_connections
        self._socket_timeout = socket_timeout
        self._socket_connect_timeout = socket_connect_timeout
        self._clock = clock
        self._client: Any = client
        self._connected = client is not None

    @property
    def name(self) -> str:
        return "redis"

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def client(self) -> Any:
        """The underlying redis.asyncio client (None until connected)."""
        return self._client

    def _get_key(self, key: str) -> str:
        """Get prefixed key."""
        return f"{self._prefix}cache:{key}"

    def _serialize(self, entry: CacheEntry) -> str:
        """Serialize an entry to a JSON envelope."""
        return json.dumps({
            "v": entry.payload,
            "s": entry.stored_at,
            "e": entry.expires_at,
        })

    def _deserialize(self, key: str, data: str | bytes | None) -> CacheEntry | None:
        """Deserialize a JSON envelope into an entry."""
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            parsed = json.loads(data)
            return CacheEntry(
                key=key,
                payload=parsed["v"],
                stored_at=float(parsed["s"]),
                expires_at=float(parsed["e"]),
            )
        except (json.JSONDecodeError, TypeError, KeyError, ValueError):
            logger.warning(f"Discarding malformed cache envelope for {key}")
            return None

    async def connect(self) -> bool:
        """
        Connect to Redis.

        Returns:
            True if connected successfully
        """
        if self._connected and self._client:
            return True

        try:
            import redis.asyncio as redis

            self._client = redis.from_url(
                self._url,
                max_connections=self._max_connections,
                socket_timeout=self._socket_timeout,
                socket_connect_timeout=self._socket_connect_timeout,
                decode_responses=False,
            )

            await self._client.ping()
            self._connected = True
            logger.info(f"Connected to Redis at {self._url}")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self._connected = False
            return False

    async def _ensure_connected(self) -> bool:
        """Ensure we're connected to Redis."""
        if not self._connected:
            return await self.connect()
        return True

    async def lookup(self, key: str) -> CacheEntry | None:
        """Get an entry if Redis still holds it."""
        if not await self._ensure_connected():
            return None

        try:
            data = await self._client.get(self._get_key(key))
            return self._deserialize(key, data)
        except Exception as e:
            logger.error(f"Redis GET error for {key}: {e}")
            return None

    async def store(self, key: str, payload: Any, ttl_seconds: int) -> bool:
        """Store a payload with a server-side TTL."""
        if not await self._ensure_connected():
            return False

        entry = CacheEntry.create(key, payload, ttl_seconds, self._clock())
        try:
            await self._client.set(
                self._get_key(key),
                self._serialize(entry),
                ex=max(1, int(ttl_seconds)),
            )
            return True
        except Exception as e:
            logger.error(f"Redis SET error for {key}: {e}")
            return False

    async def any_entry(self) -> CacheEntry | None:
        """Return the first cache entry a SCAN turns up."""
        if not await self._ensure_connected():
            return None

        try:
            async for raw_key in self._client.scan_iter(match=f"{self._prefix}cache:*", count=100):
                if isinstance(raw_key, bytes):
                    raw_key = raw_key.decode("utf-8")
                data = await self._client.get(raw_key)
                entry = self._deserialize(raw_key[len(self._get_key("")):], data)
                if entry is not None:
                    return entry
            return None
        except Exception as e:
            logger.error(f"Redis SCAN error: {e}")
            return None

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._client:
            try:
                await self._client.aclose()
            except Exception as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self._client = None
                self._connected = False

    async def health_check(self) -> dict[str, Any]:
        """Return health status with Redis info."""
        if not await self._ensure_connected():
            return {
                "backend": self.name,
                "connected": False,
                "error": "Not connected to Redis",
            }

        try:
            info = await self._client.info("server")
            return {
                "backend": self.name,
                "connected": True,
                "redis_version": info.get("redis_version"),
                "uptime_seconds": info.get("uptime_in_seconds"),
            }
        except Exception as e:
            return {
                "backend": self.name,
                "connected": self._connected,
                "error": str(e),
            }

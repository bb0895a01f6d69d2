"""Cache factory for creating cache instances based on configuration."""

import logging
import time
from collections.abc import Callable

from helix_proxy.cache.base import CacheBackend
from helix_proxy.cache.memory import InMemoryCache
from helix_proxy.cache.redis import RedisCache
from helix_proxy.config import Settings

logger = logging.getLogger(__name__)


def create_cache(
    settings: Settings,
    clock: Callable[[], float] = time.time,
) -> CacheBackend:
    """
    Create a cache backend instance.

    Redis is used iff a Redis URL is configured; otherwise the
    process-local map.

    Args:
        settings: Application settings
        clock: Source of epoch seconds

    Returns:
        CacheBackend instance (not yet connected)
    """
    if settings.distributed:
        return RedisCache(
            url=settings.redis_url,
            prefix=settings.redis_prefix,
            clock=clock,
        )
    return InMemoryCache(clock=clock)


async def initialize_cache(
    settings: Settings,
    clock: Callable[[], float] = time.time,
) -> CacheBackend:
    """
    Create the cache and establish connections.

    Call this during application startup. If Redis is configured but
    unreachable, the in-memory cache is used instead for the lifetime
    of the process.

    Returns:
        Initialized CacheBackend instance
    """
    cache = create_cache(settings, clock)

    if isinstance(cache, RedisCache):
        connected = await cache.connect()
        if not connected:
            await cache.close()
            logger.warning("Failed to connect to Redis, using fallback memory cache")
            return InMemoryCache(clock=clock)

    logger.info(f"Initialized {cache.name} cache backend")
    return cache

"""Process-wide proxy state, built once at startup."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from helix_proxy.auth import RedisTokenStore, TokenManager
from helix_proxy.cache import CacheBackend, InMemoryCache, RedisCache, initialize_cache
from helix_proxy.config import Settings
from helix_proxy.http import HttpClient
from helix_proxy.quota import FixedWindowLimiter, RateLimiter, SlidingWindowLimiter
from helix_proxy.routing import RequestRouter

logger = logging.getLogger(__name__)


@dataclass
class ProxyState:
    """
    Shared, mutable state of one proxy process.

    Holds the backends chosen at startup. Backends are never
    re-selected per request.
    """

    cache: CacheBackend
    limiter: RateLimiter
    tokens: TokenManager
    http: HttpClient
    router: RequestRouter
    clock: Callable[[], float] = field(default=time.time)

    @property
    def backend_name(self) -> str:
        return self.cache.name

    async def close(self) -> None:
        """Close network resources."""
        await self.http.close()
        await self.cache.close()


def build_state(
    settings: Settings,
    cache: CacheBackend,
    http: HttpClient | None = None,
    clock: Callable[[], float] = time.time,
) -> ProxyState:
    """
    Assemble the state around an already-created cache.

    A connected RedisCache brings the Redis fixed-window limiter and
    shared token store with it; any other cache gets the in-process
    sliding-window limiter.
    """
    if http is None:
        http = HttpClient.from_timeouts(settings.http_timeout_connect, settings.http_timeout_read)

    limiter: RateLimiter
    shared_store: RedisTokenStore | None = None

    if isinstance(cache, RedisCache) and cache.client is not None:
        limiter = FixedWindowLimiter(
            cache.client,
            limit=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            prefix=settings.redis_prefix,
            clock=clock,
        )
        shared_store = RedisTokenStore(cache.client, prefix=settings.redis_prefix, clock=clock)
    else:
        limiter = SlidingWindowLimiter(
            limit=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
            clock=clock,
        )

    logger.info(f"Proxy state ready: cache={cache.name}, limiter={limiter.name}")
    return ProxyState(
        cache=cache,
        limiter=limiter,
        tokens=TokenManager(http, shared_store=shared_store, clock=clock),
        http=http,
        router=RequestRouter(settings.twitch_api_base),
        clock=clock,
    )


def create_local_state(
    settings: Settings,
    clock: Callable[[], float] = time.time,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProxyState:
    """Build a state with the process-local backends."""
    http = HttpClient.from_timeouts(
        settings.http_timeout_connect,
        settings.http_timeout_read,
        transport=transport,
    )
    return build_state(settings, InMemoryCache(clock=clock), http=http, clock=clock)


async def initialize_state(
    settings: Settings,
    clock: Callable[[], float] = time.time,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ProxyState:
    """
    Build the state for the configured deployment.

    Uses Redis when REDIS_URL is set and reachable, the local
    backends otherwise.
    """
    cache = await initialize_cache(settings, clock)
    http = HttpClient.from_timeouts(
        settings.http_timeout_connect,
        settings.http_timeout_read,
        transport=transport,
    )
    return build_state(settings, cache, http=http, clock=clock)

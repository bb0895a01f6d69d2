"""
End-to-end decision flow for one proxied request.

Order of decisions:
1. credentials configured, request routable
2. fresh cache hit
3. request budget (stale serve when exhausted)
4. app token
5. upstream call (stale serve when it fails)
6. cache the fresh payload
7. anything unexpected: serve the request's cached entry, else any entry
"""

import logging

from helix_proxy.cache import CacheEntry
from helix_proxy.config import Settings
from helix_proxy.proxy.response import CacheStatus, ProxyResponse
from helix_proxy.results import ErrorKind, ProxyError
from helix_proxy.routing import RequestDescriptor
from helix_proxy.state import ProxyState

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "rate limited - try again later"

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.UNEXPECTED: 500,
}

# Used when an upstream failure has no status of its own (timeouts, refused connections)
UPSTREAM_UNAVAILABLE_STATUS = 502


class ProxyOrchestrator:
    """Composes router, cache, limiter and token manager per request."""

    def __init__(self, state: ProxyState, settings: Settings) -> None:
        """
        Initialize the orchestrator.

        Args:
            state: Process-wide backends
            settings: Credentials and endpoints, checked on every request
        """
        self._state = state
        self._settings = settings

    @property
    def state(self) -> ProxyState:
        return self._state

    async def handle(self, descriptor: RequestDescriptor) -> ProxyResponse:
        """
        Handle one inbound request.

        Args:
            descriptor: Parsed request

        Returns:
            ProxyResponse with payload or error body and cache metadata
        """
        try:
            return await self._handle(descriptor)
        except Exception as e:
            logger.exception(f"Unexpected error handling {descriptor.kind} request")
            return await self._degraded(descriptor, str(e) or type(e).__name__)

    async def _handle(self, descriptor: RequestDescriptor) -> ProxyResponse:
        state = self._state

        configured = state.tokens.check_configuration(self._settings)
        if not configured.ok:
            return self._reject(configured.error)

        routed = state.router.route_descriptor(descriptor)
        if not routed.ok:
            return self._reject(routed.error)
        policy = routed.value

        cached = await state.cache.lookup(policy.cache_key)
        if cached is not None and cached.is_fresh(state.clock()):
            logger.debug(f"Cache hit for {policy.cache_key}")
            return self._serve(cached)

        if not await state.limiter.allow(policy.kind.value):
            logger.warning(f"Request budget exhausted for {policy.kind.value}")
            return self._fallback(cached, ProxyError(ErrorKind.RATE_LIMITED, RATE_LIMITED_MESSAGE))

        token = await state.tokens.get_token(self._settings)
        if not token.ok:
            return self._reject(token.error)

        fetched = await state.http.fetch_json(
            "GET",
            policy.upstream_url,
            headers={
                "Client-ID": self._settings.twitch_client_id or "",
                "Authorization": f"Bearer {token.value}",
            },
        )
        if not fetched.ok:
            return self._fallback(cached, fetched.error)

        await state.cache.store(policy.cache_key, fetched.value, policy.freshness_seconds)
        logger.debug(f"Cache miss for {policy.cache_key}, stored for {policy.freshness_seconds}s")
        return ProxyResponse(
            status_code=200,
            body=fetched.value,
            cache=CacheStatus.MISS,
            backend=state.backend_name,
        )

    def _serve(self, entry: CacheEntry, **flags: bool) -> ProxyResponse:
        return ProxyResponse(
            status_code=200,
            body=entry.payload,
            cache=CacheStatus.HIT,
            backend=self._state.backend_name,
            **flags,
        )

    def _fallback(self, cached: CacheEntry | None, error: ProxyError) -> ProxyResponse:
        """Serve a stale entry for a recoverable error, or surface the error."""
        if cached is None:
            return self._reject(error)

        age = cached.age_seconds(self._state.clock())
        logger.warning(f"Serving stale {cached.key}, {age:.0f}s old ({error.kind.value}: {error.message})")
        return self._serve(
            cached,
            stale=True,
            rate_limited=error.kind is ErrorKind.RATE_LIMITED,
            origin_error=error.kind is ErrorKind.UPSTREAM,
        )

    def _reject(self, error: ProxyError) -> ProxyResponse:
        """Render an unrecoverable error."""
        if error.kind is ErrorKind.UPSTREAM:
            if error.status_code is None:
                return ProxyResponse.error(UPSTREAM_UNAVAILABLE_STATUS, error.message)
            body = error.body if error.body is not None else {"error": error.message}
            return ProxyResponse(status_code=error.status_code, body=body)

        return ProxyResponse.error(STATUS_BY_KIND[error.kind], error.message)

    async def _degraded(self, descriptor: RequestDescriptor, message: str) -> ProxyResponse:
        """
        Best-effort answer after an unexpected failure.

        Prefers the request's own cached entry, then any entry at all.
        """
        state = self._state
        try:
            entry = None
            routed = state.router.route_descriptor(descriptor)
            if routed.ok:
                entry = await state.cache.lookup(routed.value.cache_key)
            if entry is None:
                entry = await state.cache.any_entry()
        except Exception:
            logger.exception("Cache unavailable for degraded answer")
            entry = None

        if entry is None:
            return ProxyResponse.error(STATUS_BY_KIND[ErrorKind.UNEXPECTED], message)

        logger.warning(f"Serving degraded answer from {entry.key}")
        return self._serve(entry, degraded=True)

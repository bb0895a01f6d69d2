"""Async HTTP client for the Twitch identity and Helix endpoints."""

import logging
from typing import Any

import httpx

from helix_proxy.results import ErrorKind, Result

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return str(exc) or type(exc).__name__


class HttpClient:
    """
    HTTP client making exactly one attempt per call.

    Uses httpx for async requests. There is no retry loop: a failed
    call is reported to the caller, which falls back to cached data
    instead of retrying.
    """

    DEFAULT_TIMEOUT = httpx.Timeout(
        connect=5.0,
        read=10.0,
        write=5.0,
        pool=5.0,
    )

    def __init__(
        self,
        timeout: httpx.Timeout | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            timeout: Request timeout configuration
            headers: Default headers for all requests
            transport: Optional httpx transport (e.g. MockTransport in tests)
        """
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._default_headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_timeouts(cls, connect: float, read: float, **kwargs: Any) -> "HttpClient":
        """Build a client from connect/read timeouts in seconds."""
        timeout = httpx.Timeout(connect=connect, read=read, write=connect, pool=connect)
        return cls(timeout=timeout, **kwargs)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers=self._default_headers,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Make a single HTTP request.

        Raises:
            httpx.HTTPError: On transport failures and timeouts
        """
        client = await self._get_client()
        return await client.request(method, url, **kwargs)

    async def fetch_json(self, method: str, url: str, **kwargs: Any) -> Result[Any]:
        """
        Make a request and classify the outcome.

        Transport failures and statuses >= 400 become upstream errors
        carrying the status and decoded body. A 2xx body that is not
        JSON raises, since it fits none of the expected outcomes.

        Returns:
            Result holding the decoded JSON body
        """
        try:
            response = await self.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {_describe(e)}")
            return Result.failure(ErrorKind.UPSTREAM, f"upstream request failed: {_describe(e)}")

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {"error": response.text}
            logger.warning(f"{method} {url} returned {response.status_code}")
            return Result.failure(
                ErrorKind.UPSTREAM,
                f"upstream returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        return Result.success(response.json())

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            logger.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

"""Transport-neutral response produced by the orchestrator."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CacheStatus(str, Enum):
    """Whether the payload came from the cache."""

    HIT = "hit"
    MISS = "miss"


@dataclass(frozen=True)
class ProxyResponse:
    """
    Result of handling one inbound request.

    The flags are observability metadata; the body shape does not
    depend on them.
    """

    status_code: int
    body: Any
    cache: CacheStatus | None = None
    stale: bool = False
    rate_limited: bool = False
    origin_error: bool = False
    degraded: bool = False
    backend: str | None = None

    @classmethod
    def error(cls, status_code: int, message: str) -> "ProxyResponse":
        return cls(status_code=status_code, body={"error": message})

    @property
    def headers(self) -> dict[str, str]:
        """Render the metadata flags as response headers."""
        headers: dict[str, str] = {}
        if self.cache is not None:
            headers["X-Cache"] = self.cache.value.upper()
        if self.backend is not None and self.cache is not None:
            headers["X-Cache-Backend"] = self.backend
        if self.stale:
            headers["X-Cache-Stale"] = "true"
        if self.rate_limited:
            headers["X-Rate-Limited"] = "true"
        if self.origin_error:
            headers["X-Origin-Error"] = "true"
        if self.degraded:
            headers["X-Error"] = "true"
        return headers

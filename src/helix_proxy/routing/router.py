"""Request router mapping inbound query parameters to Helix API calls."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from urllib.parse import quote

from helix_proxy.results import ErrorKind, Result

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched, besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"


class RequestKind(str, Enum):
    """Supported values of the `type` query parameter."""

    USER = "user"
    VIDEOS = "videos"
    CLIPS = "clips"


@dataclass(frozen=True)
class RequestDescriptor:
    """
    A parsed inbound request.

    Attributes:
        kind: Raw value of the `type` parameter (may be unsupported)
        parameters: Remaining query parameters
    """

    kind: str | None
    parameters: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "RequestDescriptor":
        """Build a descriptor from a flat query-string mapping."""
        params = dict(query)
        kind = params.pop("type", None)
        return cls(kind=kind, parameters=params)


@dataclass(frozen=True)
class RoutePolicy:
    """Canonical upstream call and the cache policy that applies to it."""

    kind: RequestKind
    upstream_url: str
    """Fully substituted upstream URL, also used as the cache key."""

    freshness_seconds: int

    @property
    def cache_key(self) -> str:
        return self.upstream_url


@dataclass(frozen=True)
class _Route:
    required_param: str
    path: str
    extra_query: str
    freshness_seconds: int


ROUTES: dict[RequestKind, _Route] = {
    RequestKind.USER: _Route("login", "users", "", 60 * 60),
    RequestKind.VIDEOS: _Route("user_id", "videos", "&first=6&type=archive", 60 * 5),
    RequestKind.CLIPS: _Route("broadcaster_id", "clips", "&first=6", 60 * 5),
}


def encode_component(value: str) -> str:
    """Percent-encode a query value the way encodeURIComponent does."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


class RequestRouter:
    """Validates descriptors and derives the upstream call for each kind."""

    def __init__(self, api_base: str = "https://api.twitch.tv/helix/") -> None:
        self._api_base = api_base if api_base.endswith("/") else f"{api_base}/"

    def route(self, kind: str | None, parameters: Mapping[str, str]) -> Result[RoutePolicy]:
        """
        Resolve a request kind and its parameters.

        Args:
            kind: Value of the `type` parameter
            parameters: Query parameters

        Returns:
            Result holding a RoutePolicy, or a validation error
        """
        try:
            request_kind = RequestKind(kind)
        except ValueError:
            return Result.failure(ErrorKind.VALIDATION, "unsupported type")

        route = ROUTES[request_kind]
        value = parameters.get(route.required_param)
        if not value:
            return Result.failure(ErrorKind.VALIDATION, f"missing {route.required_param}")

        url = (
            f"{self._api_base}{route.path}"
            f"?{route.required_param}={encode_component(value)}{route.extra_query}"
        )
        logger.debug(f"Routed {request_kind.value} request to {url}")

        return Result.success(
            RoutePolicy(
                kind=request_kind,
                upstream_url=url,
                freshness_seconds=route.freshness_seconds,
            )
        )

    def route_descriptor(self, descriptor: RequestDescriptor) -> Result[RoutePolicy]:
        """Resolve a RequestDescriptor."""
        return self.route(descriptor.kind, descriptor.parameters)

"""Routing package mapping inbound requests to Helix API calls."""

from helix_proxy.routing.router import (
    ROUTES,
    RequestDescriptor,
    RequestKind,
    RequestRouter,
    RoutePolicy,
)

__all__ = [
    "ROUTES",
    "RequestDescriptor",
    "RequestKind",
    "RequestRouter",
    "RoutePolicy",
]

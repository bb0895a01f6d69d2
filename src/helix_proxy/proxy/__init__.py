"""Proxy orchestration: cache, budget and fallback decisions per request."""

from helix_proxy.proxy.orchestrator import ProxyOrchestrator
from helix_proxy.proxy.response import CacheStatus, ProxyResponse

__all__ = [
    "CacheStatus",
    "ProxyOrchestrator",
    "ProxyResponse",
]

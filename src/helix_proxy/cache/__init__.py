"""
Cache module for upstream response payloads.

Provides pluggable cache backends (in-memory and Redis) keyed by the
canonical upstream URL.
"""

from helix_proxy.cache.base import CacheBackend, CacheEntry
from helix_proxy.cache.memory import InMemoryCache
from helix_proxy.cache.redis import RedisCache
from helix_proxy.cache.factory import create_cache, initialize_cache

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    "initialize_cache",
]

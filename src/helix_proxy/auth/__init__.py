"""Authentication package: Twitch app access token management."""

from helix_proxy.auth.store import RedisTokenStore, TokenRecord
from helix_proxy.auth.token import TokenManager, strip_bearer

__all__ = [
    "RedisTokenStore",
    "TokenManager",
    "TokenRecord",
    "strip_bearer",
]

"""Redis-backed storage for the shared app access token."""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Minimum Redis TTL for a stored token, in seconds
MIN_TOKEN_TTL = 60


@dataclass(frozen=True)
class TokenRecord:
    """An access token and the epoch second from which it must be refreshed."""

    access_token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class RedisTokenStore:
    """
    Shares the app access token across instances through Redis.

    The token is stored as a plain string under ``<prefix>app_token``
    with a TTL of ``expires_in - 30`` seconds (at least 60).
    """

    def __init__(
        self,
        client: Any,
        prefix: str = "twitch:",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._key = f"{prefix}app_token"
        self._clock = clock

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> TokenRecord | None:
        """Read the shared token, or None if absent or Redis is unreachable."""
        try:
            token = await self._client.get(self._key)
            if token is None:
                return None
            ttl = await self._client.ttl(self._key)
        except Exception as e:
            logger.warning(f"Redis error reading app token: {e}")
            return None

        if isinstance(token, bytes):
            token = token.decode("utf-8")
        if ttl is None or ttl <= 0:
            return None
        return TokenRecord(access_token=token, expires_at=self._clock() + ttl)

    async def save(self, token: str, expires_in: float) -> bool:
        """Write the shared token with its TTL."""
        ttl = max(MIN_TOKEN_TTL, math.floor(expires_in - 30))
        try:
            await self._client.set(self._key, token, ex=ttl)
            return True
        except Exception as e:
            logger.warning(f"Redis error storing app token: {e}")
            return False

"""App access token lifecycle for the Twitch API."""

import json
import logging
import re
import time
from collections.abc import Callable

from helix_proxy.auth.store import RedisTokenStore, TokenRecord
from helix_proxy.config import Settings
from helix_proxy.http.client import HttpClient
from helix_proxy.results import ErrorKind, Result

logger = logging.getLogger(__name__)

# Subtracted from expires_in so a token is refreshed before Twitch rejects it
EXPIRY_BUFFER_SECONDS = 30

# Assumed lifetime when the token endpoint omits expires_in
DEFAULT_TOKEN_LIFETIME = 50 * 60

MISSING_CREDENTIALS = "Twitch credentials not configured on server"

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)


def strip_bearer(value: str) -> str:
    """Remove an optional leading 'Bearer ' from a static credential."""
    return _BEARER_PREFIX.sub("", value.lstrip()).strip()


class TokenManager:
    """
    Obtains the bearer token used for Helix calls.

    Two credential modes are supported:
    - client secret: app access tokens from the client-credentials
      exchange, cached until 30 seconds before they expire
    - static bearer (legacy): TWITCH_OAUTH returned as-is

    Concurrent refreshes are not coordinated; they converge on a
    valid token and the last write wins.
    """

    def __init__(
        self,
        http: HttpClient,
        shared_store: RedisTokenStore | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the token manager.

        Args:
            http: Client used for the token exchange
            shared_store: Redis store shared by all instances (distributed mode)
            clock: Source of epoch seconds
        """
        self._http = http
        self._shared_store = shared_store
        self._clock = clock
        self._record: TokenRecord | None = None

    @property
    def record(self) -> TokenRecord | None:
        """The current app token record, if one has been obtained."""
        return self._record

    def check_configuration(self, settings: Settings) -> Result[None]:
        """Verify credentials are configured, without any network call."""
        if not settings.twitch_client_id:
            return Result.failure(ErrorKind.CONFIGURATION, MISSING_CREDENTIALS)
        if settings.twitch_client_secret:
            return Result.success(None)
        if settings.twitch_oauth and strip_bearer(settings.twitch_oauth):
            return Result.success(None)
        return Result.failure(ErrorKind.CONFIGURATION, MISSING_CREDENTIALS)

    async def get_token(self, settings: Settings) -> Result[str]:
        """
        Get a bearer token for the configured credential mode.

        Returns:
            Result holding the token, or a configuration/upstream error
        """
        configured = self.check_configuration(settings)
        if not configured.ok:
            return Result(error=configured.error)

        if settings.twitch_client_secret:
            return await self._get_app_token(settings)

        return Result.success(strip_bearer(settings.twitch_oauth or ""))

    async def _get_app_token(self, settings: Settings) -> Result[str]:
        now = self._clock()
        if self._record is not None and self._record.is_valid(now):
            return Result.success(self._record.access_token)

        if self._shared_store is not None:
            shared = await self._shared_store.load()
            if shared is not None and shared.is_valid(now):
                self._record = shared
                return Result.success(shared.access_token)

        return await self._exchange(settings)

    async def _exchange(self, settings: Settings) -> Result[str]:
        """Perform the client-credentials exchange and store the token."""
        logger.info("Requesting new Twitch app access token")
        result = await self._http.fetch_json(
            "POST",
            settings.twitch_token_url,
            data={
                "client_id": settings.twitch_client_id,
                "client_secret": settings.twitch_client_secret,
                "grant_type": "client_credentials",
            },
        )

        if not result.ok:
            error = result.error
            detail = json.dumps(error.body) if error.body is not None else error.message
            logger.error(f"Token exchange failed: {detail}")
            return Result.failure(
                ErrorKind.UPSTREAM,
                f"token endpoint error: {detail}",
                status_code=error.status_code,
                body=error.body,
            )

        payload = result.value if isinstance(result.value, dict) else {}
        token = payload.get("access_token")
        if not token:
            return Result.failure(
                ErrorKind.UPSTREAM,
                f"token endpoint error: {json.dumps(result.value)}",
            )

        expires_in = payload.get("expires_in")
        lifetime = expires_in - EXPIRY_BUFFER_SECONDS if expires_in else DEFAULT_TOKEN_LIFETIME
        self._record = TokenRecord(access_token=token, expires_at=self._clock() + lifetime)
        logger.info(f"Obtained app access token (expires_in={expires_in})")

        if self._shared_store is not None:
            await self._shared_store.save(token, expires_in or DEFAULT_TOKEN_LIFETIME + EXPIRY_BUFFER_SECONDS)

        return Result.success(token)

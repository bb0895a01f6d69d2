"""Pytest configuration and fixtures."""

import fnmatch
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from helix_proxy.config import Settings
from helix_proxy.proxy import ProxyOrchestrator
from helix_proxy.state import ProxyState, create_local_state

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TwitchStub:
    """Programmable stand-in for the Twitch identity and Helix endpoints."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_calls = 0
        self.api_calls = 0
        self.token_status = 200
        self.token_body: Any = {"access_token": "apptoken", "expires_in": 3600}
        self.api_status = 200
        self.api_body: Any = {"data": [{"id": "u1"}]}
        self.api_content: bytes | None = None
        self.api_error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "id.twitch.tv":
            self.token_calls += 1
            return httpx.Response(self.token_status, json=self.token_body)

        self.api_calls += 1
        if self.api_error is not None:
            raise self.api_error
        if self.api_content is not None:
            return httpx.Response(self.api_status, content=self.api_content)
        return httpx.Response(self.api_status, json=self.api_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_api_request(self) -> httpx.Request:
        return [r for r in self.requests if r.url.host != "id.twitch.tv"][-1]


class FakeRedis:
    """Minimal async Redis double honouring key expiry against a clock."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[bytes, float | None]] = {}
        self.exec_error: Exception | None = None

    def _live(self, key: str) -> tuple[bytes, float | None] | None:
        item = self._data.get(key)
        if item is None:
            return None
        if item[1] is not None and self._clock() >= item[1]:
            del self._data[key]
            return None
        return item

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> bytes | None:
        item = self._live(key)
        return None if item is None else item[0]

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._data[key] = (value, self._clock() + ex if ex else None)
        return True

    async def incr(self, key: str) -> int:
        item = self._live(key)
        count = int(item[0]) + 1 if item else 1
        self._data[key] = (str(count).encode(), item[1] if item else None)
        return count

    async def expire(self, key: str, seconds: int, nx: bool = False) -> bool:
        item = self._live(key)
        if item is None or (nx and item[1] is not None):
            return False
        self._data[key] = (item[0], self._clock() + seconds)
        return True

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

    async def ttl(self, key: str) -> int:
        item = self._live(key)
        if item is None:
            return -2
        if item[1] is None:
            return -1
        return int(item[1] - self._clock())

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    async def scan_iter(self, match: str | None = None, count: int | None = None) -> AsyncIterator[bytes]:
        for key in list(self._data):
            if self._live(key) is None:
                continue
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key.encode("utf-8")

    async def info(self, *sections: str) -> dict[str, Any]:
        return {"redis_version": "7.2.0", "uptime_in_seconds": 1}

    async def aclose(self) -> None:
        pass

    def keys(self) -> list[str]:
        return [key for key in list(self._data) if self._live(key) is not None]


class FakePipeline:
    """MULTI/EXEC double: queued commands run together or not at all."""

    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._commands: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self._commands.clear()

    def incr(self, key: str) -> "FakePipeline":
        self._commands.append(("incr", (key,), {}))
        return self

    def expire(self, key: str, seconds: int, nx: bool = False) -> "FakePipeline":
        self._commands.append(("expire", (key, seconds), {"nx": nx}))
        return self

    async def execute(self) -> list[Any]:
        if self._redis.exec_error is not None:
            raise self._redis.exec_error
        results = [
            await getattr(self._redis, name)(*args, **kwargs)
            for name, args, kwargs in self._commands
        ]
        self._commands.clear()
        return results


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the environment and any .env file."""
    values: dict[str, Any] = {
        "twitch_client_id": "testid",
        "twitch_client_secret": "secret",
        "twitch_oauth": None,
        "redis_url": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at a fixed instant."""
    return FakeClock()


@pytest.fixture
def twitch() -> TwitchStub:
    """Stubbed Twitch endpoints."""
    return TwitchStub()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    """In-memory Redis double."""
    return FakeRedis(clock)


@pytest.fixture
def settings() -> Settings:
    """Settings using the client-credentials flow and local backends."""
    return make_settings()


@pytest.fixture
def state(settings: Settings, clock: FakeClock, twitch: TwitchStub) -> ProxyState:
    """Local proxy state wired to the Twitch stub."""
    return create_local_state(settings, clock=clock, transport=twitch.transport)


@pytest.fixture
def orchestrator(state: ProxyState, settings: Settings) -> ProxyOrchestrator:
    """Orchestrator over the local state."""
    return ProxyOrchestrator(state, settings)

"""Tests for API endpoints."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock, TwitchStub, make_settings
from helix_proxy import __version__
from helix_proxy.api.app import create_app
from helix_proxy.config import Settings
from helix_proxy.state import ProxyState


@pytest.fixture
def client(settings: Settings, state: ProxyState) -> Iterator[TestClient]:
    """Create test client around the stubbed state."""
    app = create_app(settings=settings, state=state)
    with TestClient(app) as client:
        yield client


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test health check returns healthy."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["cache"]["backend"] == "memory"
        assert data["limiter"] == "sliding_window"

    def test_lifespan_builds_state(self) -> None:
        """Test state is created at startup when none is injected."""
        app = create_app(settings=make_settings())

        with TestClient(app) as client:
            response = client.get("/health")
            assert app.state.orchestrator is not None

        assert response.status_code == 200
        assert response.json()["cache"]["backend"] == "memory"
        assert app.state.orchestrator is None


class TestProxyEndpoint:
    """Tests for the proxy endpoint."""

    def test_miss_then_hit(self, client: TestClient, twitch: TwitchStub) -> None:
        """Test cache headers across two identical requests."""
        first = client.get("/twitch", params={"type": "user", "login": "cannabisusers"})
        second = client.get("/twitch", params={"type": "user", "login": "cannabisusers"})

        assert first.status_code == 200
        assert first.json() == {"data": [{"id": "u1"}]}
        assert first.headers["X-Cache"] == "MISS"
        assert first.headers["X-Cache-Backend"] == "memory"
        assert second.headers["X-Cache"] == "HIT"
        assert second.json() == first.json()
        assert twitch.api_calls == 1

    def test_serverless_path(self, client: TestClient) -> None:
        """Test the legacy function path serves the same handler."""
        response = client.get(
            "/.netlify/functions/twitch", params={"type": "clips", "broadcaster_id": "1"}
        )

        assert response.status_code == 200
        assert response.headers["X-Cache"] == "MISS"

    def test_validation_error(self, client: TestClient) -> None:
        """Test bad requests get a JSON error without cache headers."""
        response = client.get("/twitch", params={"type": "streams"})

        assert response.status_code == 400
        assert response.json() == {"error": "unsupported type"}
        assert "X-Cache" not in response.headers

    def test_missing_param(self, client: TestClient) -> None:
        """Test a missing identifier is reported."""
        response = client.get("/twitch", params={"type": "videos"})

        assert response.status_code == 400
        assert response.json() == {"error": "missing user_id"}

    def test_stale_headers(
        self, client: TestClient, twitch: TwitchStub, clock: FakeClock
    ) -> None:
        """Test stale serves are flagged in headers."""
        client.get("/twitch", params={"type": "user", "login": "a"})
        clock.advance(3601)
        twitch.api_status = 500
        twitch.api_body = {"error": "Internal Server Error"}

        response = client.get("/twitch", params={"type": "user", "login": "a"})

        assert response.status_code == 200
        assert response.headers["X-Cache"] == "HIT"
        assert response.headers["X-Cache-Stale"] == "true"
        assert response.headers["X-Origin-Error"] == "true"

    def test_timing_header(self, client: TestClient) -> None:
        """Test every response carries its processing time."""
        response = client.get("/twitch", params={"type": "user", "login": "a"})
        assert "X-Process-Time-Ms" in response.headers

    def test_missing_credentials(self, state: ProxyState) -> None:
        """Test an unconfigured server answers 500."""
        settings = make_settings(twitch_client_id=None, twitch_client_secret=None)

        with TestClient(create_app(settings=settings, state=state)) as client:
            response = client.get("/twitch", params={"type": "user", "login": "a"})

        assert response.status_code == 500
        assert response.json() == {"error": "Twitch credentials not configured on server"}

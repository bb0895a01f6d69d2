"""Tests for the command-line interface."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from click.testing import CliRunner

from conftest import TwitchStub, make_settings
from helix_proxy.cli import _check_token, cli
from helix_proxy.http import HttpClient


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def invoke(runner: CliRunner, args: list[str], **overrides):
    with patch("helix_proxy.cli.get_settings", return_value=make_settings(**overrides)):
        return runner.invoke(cli, args, obj={})


class TestServe:
    """Tests for the serve command."""

    def test_serve_uses_settings(self, runner: CliRunner) -> None:
        """Test uvicorn is started with the configured bind address."""
        with patch("uvicorn.run") as run:
            result = invoke(runner, ["serve"], api_host="127.0.0.1", api_port=9001)

        assert result.exit_code == 0
        run.assert_called_once_with(
            "helix_proxy.api.app:create_app", factory=True, host="127.0.0.1", port=9001
        )

    def test_serve_overrides(self, runner: CliRunner) -> None:
        """Test command-line options win over settings."""
        with patch("uvicorn.run") as run:
            invoke(runner, ["serve", "--host", "0.0.0.0", "--port", "8080"])

        assert run.call_args.kwargs["port"] == 8080


class TestCheckToken:
    """Tests for the check-token command."""

    def test_skips_without_credentials(self, runner: CliRunner) -> None:
        """Test the check is skipped when the secret is absent."""
        result = invoke(runner, ["check-token"], twitch_client_secret=None)

        assert result.exit_code == 0
        assert "skipping" in result.output

    def test_success(self, runner: CliRunner) -> None:
        """Test a successful exchange reports the lifetime."""
        check = AsyncMock(return_value=(True, "Token fetched successfully", 5000.0))
        with patch("helix_proxy.cli._check_token", check):
            result = invoke(runner, ["check-token"])

        assert result.exit_code == 0
        assert "expires_in=5000s" in result.output
        assert "short-lived" not in result.output

    def test_short_lived_warning(self, runner: CliRunner) -> None:
        """Test tokens under an hour are flagged."""
        check = AsyncMock(return_value=(True, "Token fetched successfully", 1200.0))
        with patch("helix_proxy.cli._check_token", check):
            result = invoke(runner, ["check-token"])

        assert result.exit_code == 0
        assert "short-lived" in result.output

    def test_failure(self, runner: CliRunner) -> None:
        """Test a failed exchange exits non-zero."""
        check = AsyncMock(return_value=(False, "token endpoint error: invalid client", None))
        with patch("helix_proxy.cli._check_token", check):
            result = invoke(runner, ["check-token"])

        assert result.exit_code == 1
        assert "invalid client" in result.output

    @pytest.mark.asyncio
    async def test_check_token_exchange(self, twitch: TwitchStub) -> None:
        """Test the helper performs a real exchange."""
        client = HttpClient(transport=twitch.transport)
        with patch.object(HttpClient, "from_timeouts", return_value=client):
            ok, message, lifetime = await _check_token(make_settings())

        assert ok is True
        assert twitch.token_calls == 1
        assert 3590 < lifetime <= 3600


class TestHealth:
    """Tests for the health command."""

    def test_healthy(self, runner: CliRunner) -> None:
        """Test a 200 probe passes."""
        response = httpx.Response(200, json={"data": []}, headers={"X-Cache": "HIT"})
        with patch("httpx.get", return_value=response) as get:
            result = invoke(runner, ["health", "--url", "http://proxy:8000/"])

        assert result.exit_code == 0
        assert "Function health OK" in result.output
        get.assert_called_once_with(
            "http://proxy:8000/twitch",
            params={"type": "user", "login": "cannabisusers"},
            timeout=10.0,
        )

    def test_error_status(self, runner: CliRunner) -> None:
        """Test an error status fails the probe."""
        response = httpx.Response(500, json={"error": "boom"})
        with patch("httpx.get", return_value=response):
            result = invoke(runner, ["health"])

        assert result.exit_code == 1
        assert "failed" in result.output

    def test_unreachable(self, runner: CliRunner) -> None:
        """Test a connection error fails the probe."""
        with patch("httpx.get", side_effect=httpx.ConnectError("refused")):
            result = invoke(runner, ["health"])

        assert result.exit_code == 1
        assert "refused" in result.output

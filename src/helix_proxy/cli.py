"""
Helix Proxy CLI
Command-line interface for running and checking the proxy.
"""

import asyncio
import logging
import sys
import time

import click
import httpx
from rich.console import Console
from rich.table import Table

from helix_proxy.auth import TokenManager
from helix_proxy.auth.token import EXPIRY_BUFFER_SECONDS
from helix_proxy.config import get_settings
from helix_proxy.http import HttpClient

console = Console()

# Tokens living shorter than this are reported as a warning
SHORT_TOKEN_SECONDS = 3600


@click.group()
@click.option("--log-level", "-l", default=None, help="Override LOG_LEVEL")
@click.pass_context
def cli(ctx, log_level: str | None):
    """Helix Proxy CLI - cached, rate-limited access to the Twitch API."""
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT)")
@click.pass_context
def serve(ctx, host: str | None, port: int | None):
    """Run the proxy HTTP server."""
    import uvicorn

    settings = ctx.obj["settings"]
    uvicorn.run(
        "helix_proxy.api.app:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
    )


async def _check_token(settings) -> tuple[bool, str, float | None]:
    async with HttpClient.from_timeouts(
        settings.http_timeout_connect, settings.http_timeout_read
    ) as http:
        tokens = TokenManager(http)
        result = await tokens.get_token(settings)
        if not result.ok:
            return False, result.error.message, None
        record = tokens.record
        lifetime = record.expires_at - time.time() + EXPIRY_BUFFER_SECONDS
        return True, "Token fetched successfully", lifetime


@cli.command("check-token")
@click.pass_context
def check_token(ctx):
    """Request an app access token to verify the client credentials."""
    settings = ctx.obj["settings"]
    if not settings.twitch_client_id or not settings.twitch_client_secret:
        console.print(
            "[yellow]TWITCH_CLIENT_ID or TWITCH_CLIENT_SECRET not set; skipping token check[/yellow]"
        )
        return

    ok, message, lifetime = asyncio.run(_check_token(settings))
    if not ok:
        console.print(f"❌ [red]{message}[/red]")
        sys.exit(1)

    console.print(f"✅ [green]{message}; expires_in={lifetime:.0f}s[/green]")
    if lifetime < SHORT_TOKEN_SECONDS:
        console.print(f"⚠️ [yellow]Token short-lived: expires_in={lifetime:.0f}s[/yellow]")


@cli.command()
@click.option("--url", "-u", default="http://localhost:8000", help="Proxy base URL")
@click.option("--login", default="cannabisusers", help="Login used for the probe request")
def health(url: str, login: str):
    """Probe a running proxy with a user lookup."""
    probe = f"{url.rstrip('/')}/twitch"
    try:
        response = httpx.get(probe, params={"type": "user", "login": login}, timeout=10.0)
    except httpx.HTTPError as e:
        console.print(f"❌ [red]Function health check error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Proxy health")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", str(response.status_code))
    for header in ("X-Cache", "X-Cache-Backend", "X-Cache-Stale", "X-Rate-Limited", "X-Origin-Error"):
        if header in response.headers:
            table.add_row(header, response.headers[header])
    console.print(table)

    if response.is_error:
        console.print(f"❌ [red]Function health check failed: {response.status_code} {response.text}[/red]")
        sys.exit(1)
    console.print("✅ [green]Function health OK[/green]")


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()

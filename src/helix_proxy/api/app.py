"""FastAPI transport adapter for the proxy."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from helix_proxy import __version__
from helix_proxy.config import Settings, get_settings
from helix_proxy.proxy import ProxyOrchestrator
from helix_proxy.routing import RequestDescriptor
from helix_proxy.state import ProxyState, initialize_state

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    version: str = Field(..., description="Proxy version")
    cache: dict[str, Any] = Field(..., description="Cache backend health")
    limiter: str = Field(..., description="Rate limiting algorithm in use")


def create_app(
    settings: Settings | None = None,
    state: ProxyState | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        state: Prebuilt proxy state; built at startup when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan events."""
        owned: ProxyState | None = None
        if getattr(app.state, "orchestrator", None) is None:
            logger.info("Starting Helix proxy...")
            owned = await initialize_state(settings)
            app.state.orchestrator = ProxyOrchestrator(owned, settings)
        yield
        if owned is not None:
            logger.info("Shutting down Helix proxy...")
            await owned.close()
            app.state.orchestrator = None

    app = FastAPI(
        title="Helix Proxy",
        description="Caching, rate-limited proxy for the Twitch Helix API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = ProxyOrchestrator(state, settings) if state is not None else None

    # Request timing middleware
    @app.middleware("http")
    async def add_timing_header(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"
        return response

    async def proxy(request: Request) -> JSONResponse:
        orchestrator: ProxyOrchestrator = request.app.state.orchestrator
        descriptor = RequestDescriptor.from_query(dict(request.query_params))
        result = await orchestrator.handle(descriptor)
        return JSONResponse(
            status_code=result.status_code,
            content=result.body,
            headers=result.headers,
        )

    app.add_api_route("/twitch", proxy, methods=["GET"])
    # Path of the Netlify function this proxy replaces
    app.add_api_route("/.netlify/functions/twitch", proxy, methods=["GET"])

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        orchestrator: ProxyOrchestrator = request.app.state.orchestrator
        return HealthResponse(
            status="healthy",
            version=__version__,
            cache=await orchestrator.state.cache.health_check(),
            limiter=orchestrator.state.limiter.name,
        )

    return app

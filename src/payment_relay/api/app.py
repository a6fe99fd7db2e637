"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from payment_relay import __version__
from payment_relay.api.middleware.cors import setup_cors
from payment_relay.api.routes import api_router
from payment_relay.config.settings import AppConfig
from payment_relay.engine.client import RelayEngine
from payment_relay.errors.relay_errors import RelayError
from payment_relay.metrics.collector import RelayMetrics
from payment_relay.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the engine on startup and shut it down on exit."""
    config: AppConfig = app.state.config
    engine = RelayEngine(
        config,
        metrics=app.state.metrics,
        http_transport=app.state.http_transport,
    )
    try:
        await engine.initialize()
        app.state.engine = engine
        yield
    finally:
        app.state.engine = None
        await engine.close()


def create_app(
    *,
    config: AppConfig | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
        http_transport: Optional transport for outbound push/relay calls.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="payment-relay",
        version=__version__,
        description="Payment webhook reconciliation and Web Push notification relay",
        lifespan=_lifespan,
    )

    app.state.config = config
    app.state.http_transport = http_transport
    app.state.engine = None
    app.state.metrics = RelayMetrics()

    # -- Middleware --
    setup_cors(app)

    # -- Error handler --
    @app.exception_handler(RelayError)
    async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "code": exc.code},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        body = generate_latest(request.app.state.metrics.registry)
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Prometheus request metrics middleware --
    if config.metrics.enabled:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    app.include_router(api_router)

    return app

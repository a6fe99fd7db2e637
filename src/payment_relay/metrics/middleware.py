"""HTTP request metrics for the relay API.

Requests are labelled by route template, so ``PUT /admin/templates/pix_paid``
and ``PUT /admin/templates/boleto_paid`` share one series. Unrouted requests
(404s) keep their raw path. ``/metrics`` scrapes are not counted.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from collections.abc import Callable

    from prometheus_client import CollectorRegistry
    from starlette.requests import Request
    from starlette.responses import Response

_APP_LABEL = "payment-relay"
_SKIPPED_PATHS = frozenset({"/metrics"})


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Counts requests and times them, per method, route and status."""

    def __init__(self, app: object, *, registry: CollectorRegistry) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._requests = Counter(
            "http_request_total",
            "Total HTTP requests",
            ("method", "path", "status_code", "app"),
            registry=registry,
        )
        self._latency = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ("method", "path", "app"),
            registry=registry,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:  # type: ignore[type-arg]
        if request.url.path in _SKIPPED_PATHS:
            return await call_next(request)

        start = time.monotonic()
        response: Response = await call_next(request)
        elapsed = time.monotonic() - start

        path = _route_path(request)
        self._requests.labels(request.method, path, str(response.status_code), _APP_LABEL).inc()
        self._latency.labels(request.method, path, _APP_LABEL).observe(elapsed)
        return response

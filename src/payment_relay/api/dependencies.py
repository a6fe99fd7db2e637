"""FastAPI dependency injection helpers.

Usage in a route::

    @router.get("/admin/templates")
    async def list_templates(
        _: Annotated[None, Depends(require_admin)],
        engine: Annotated[RelayEngine, Depends(get_engine)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from payment_relay.api.middleware.auth import (
    AUTH_HEADER_ADMIN,
    AUTH_HEADER_WEBHOOK_SECRET,
    check_admin,
    check_webhook_secret,
)
from payment_relay.engine.client import RelayEngine  # noqa: TC001
from payment_relay.errors.relay_errors import RelayError


def get_engine(request: Request) -> RelayEngine:
    """Retrieve the engine from ``app.state``.

    Raises:
        RelayError: 503 if the engine has not been started.
    """
    engine: RelayEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise RelayError("service is starting", status_code=503, code="unavailable")
    return engine


def require_admin(
    engine: Annotated[RelayEngine, Depends(get_engine)],
    authorization: Annotated[str, Header()] = "",
    x_admin_token: Annotated[str, Header(alias=AUTH_HEADER_ADMIN)] = "",
) -> None:
    """Dependency that requires the admin token."""
    check_admin(engine.config, authorization=authorization, admin_header=x_admin_token)


def require_webhook_secret(
    engine: Annotated[RelayEngine, Depends(get_engine)],
    x_webhook_secret: Annotated[str, Header(alias=AUTH_HEADER_WEBHOOK_SECRET)] = "",
) -> None:
    """Dependency that checks the shared webhook secret when one is configured."""
    check_webhook_secret(engine.config, x_webhook_secret)

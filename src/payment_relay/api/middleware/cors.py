"""CORS middleware configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from payment_relay.api.middleware.auth import AUTH_HEADER_ADMIN, AUTH_HEADER_WEBHOOK_SECRET

if TYPE_CHECKING:
    from fastapi import FastAPI

_CUSTOM_HEADERS = [AUTH_HEADER_ADMIN, AUTH_HEADER_WEBHOOK_SECRET]


def setup_cors(app: FastAPI) -> None:
    """Allow all origins; the dashboard and gateways call from anywhere."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*", *_CUSTOM_HEADERS],
    )

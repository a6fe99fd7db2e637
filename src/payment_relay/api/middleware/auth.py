"""Shared-secret checks for admin routes and inbound webhooks.

- Admin routes take ``Authorization: Bearer <token>`` or ``x-admin-token``.
- Webhooks carry ``x-webhook-secret`` when a secret is configured.
"""

from __future__ import annotations

import hmac
from typing import TYPE_CHECKING

from payment_relay.errors.definitions import ForbiddenError, UnauthorizedError

if TYPE_CHECKING:
    from payment_relay.config.settings import AppConfig

AUTH_HEADER_ADMIN = "x-admin-token"
AUTH_HEADER_WEBHOOK_SECRET = "x-webhook-secret"

_BEARER_PREFIX = "bearer "


def _matches(expected: str, supplied: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def bearer_token(authorization: str) -> str:
    """Extract the token from an ``Authorization: Bearer ...`` header value."""
    if authorization.lower().startswith(_BEARER_PREFIX):
        return authorization[len(_BEARER_PREFIX) :].strip()
    return ""


def check_admin(config: AppConfig, *, authorization: str = "", admin_header: str = "") -> None:
    """Require the configured admin token.

    Raises:
        ForbiddenError: No admin token is configured, so admin routes are off.
        UnauthorizedError: The token is missing or wrong.
    """
    if not config.admin_token:
        raise ForbiddenError("admin routes are disabled")
    supplied = bearer_token(authorization) or admin_header
    if not supplied or not _matches(config.admin_token, supplied):
        raise UnauthorizedError("invalid admin token")


def check_webhook_secret(config: AppConfig, supplied: str) -> None:
    """Require ``x-webhook-secret`` when a secret is configured.

    Raises:
        UnauthorizedError: The secret is configured and the header does not match.
    """
    secret = config.webhook.secret
    if secret and not _matches(secret, supplied or ""):
        raise UnauthorizedError("invalid webhook secret")

"""API request/response schemas (Pydantic models)."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


class WebhookResponse(BaseModel):
    """Result of reconciling one webhook event."""

    success: bool = True
    action: str
    transaction_id: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str


# ---------------------------------------------------------------------------
# Push subscriptions
# ---------------------------------------------------------------------------


class SubscriptionKeys(BaseModel):
    p256dh: str = ""
    auth: str = ""


class SubscribeRequest(BaseModel):
    """Browser ``PushSubscription.toJSON()`` plus an optional owner label."""

    endpoint: str = ""
    keys: SubscriptionKeys = Field(default_factory=SubscriptionKeys)
    user_id: str | None = None


class UnsubscribeRequest(BaseModel):
    endpoint: str = ""


class SubscriptionResponse(BaseModel):
    id: str
    endpoint: str
    user_id: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class VapidKeyResponse(BaseModel):
    vapidPublicKey: str  # noqa: N815 - browser-facing field name


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateRequest(BaseModel):
    title: str
    message: str
    kind: str = "info"
    is_active: bool = True


class TemplateResponse(BaseModel):
    event_type: str
    title: str
    message: str
    kind: str
    is_active: bool

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


class ImportRequest(BaseModel):
    rows: list[Any] | None = None


class ImportResponse(BaseModel):
    imported: int
    errors: int
    total: int

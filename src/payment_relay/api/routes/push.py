"""Push subscription management.

The dashboard registers the browser's ``PushSubscription`` here and
fetches the VAPID public key it needs to create one.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from payment_relay.api.dependencies import get_engine, require_admin
from payment_relay.api.schemas import (
    SubscribeRequest,
    SubscriptionResponse,
    UnsubscribeRequest,
    VapidKeyResponse,
)
from payment_relay.engine.client import RelayEngine  # noqa: TC001
from payment_relay.errors.definitions import SigningError, ValidationError
from payment_relay.errors.relay_errors import RelayError

router = APIRouter(prefix="/push", tags=["push"])

logger = logging.getLogger(__name__)


@router.post("/subscribe")
async def subscribe(
    body: SubscribeRequest,
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> dict[str, object]:
    """Save or refresh a push subscription."""
    if not body.endpoint or not body.keys.p256dh or not body.keys.auth:
        raise ValidationError("Invalid subscription data")
    await engine.subscriptions.upsert(
        body.endpoint, body.keys.p256dh, body.keys.auth, user_id=body.user_id
    )
    logger.info("Push subscription saved")
    return {"success": True, "message": "Subscription saved"}


@router.post("/unsubscribe")
async def unsubscribe(
    body: UnsubscribeRequest,
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> dict[str, object]:
    """Remove a push subscription. Unknown endpoints are not an error."""
    await engine.subscriptions.delete_by_endpoint(body.endpoint)
    return {"success": True, "message": "Subscription removed"}


@router.get("/subscriptions", response_model=list[SubscriptionResponse])
async def list_subscriptions(
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> list[SubscriptionResponse]:
    """List stored push endpoints."""
    subs = await engine.subscriptions.list_all()
    return [SubscriptionResponse.model_validate(s) for s in subs]


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
async def vapid_public_key(
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> VapidKeyResponse:
    """Return the application server key browsers subscribe with."""
    signer = engine.signer
    if signer is None:
        raise RelayError("VAPID key not configured", status_code=503, code="vapid-missing")
    try:
        key = signer.public_key_b64
    except SigningError as exc:
        raise RelayError(exc.message, status_code=503, code="vapid-invalid") from exc
    return VapidKeyResponse(vapidPublicKey=key)

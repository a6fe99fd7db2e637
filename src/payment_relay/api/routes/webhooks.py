"""Inbound payment webhook."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from payment_relay.api.dependencies import get_engine, require_webhook_secret
from payment_relay.api.schemas import ErrorResponse, WebhookResponse
from payment_relay.engine.client import RelayEngine  # noqa: TC001
from payment_relay.errors.definitions import ValidationError

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhook-receiver",
    status_code=201,
    response_model=WebhookResponse,
    responses={200: {"model": WebhookResponse}, 400: {"model": ErrorResponse}},
)
async def receive_webhook(
    request: Request,
    _: Annotated[None, Depends(require_webhook_secret)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> JSONResponse:
    """Reconcile a payment event into the ledger.

    Answers 201 when a row was created and 200 when an existing row was
    updated. Push and relay failures never change the answer.
    """
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body is not valid JSON") from exc

    result = await engine.reconciler.ingest(body, source=request.headers.get("user-agent"))
    payload = WebhookResponse(action=result.action, transaction_id=result.transaction_id)
    return JSONResponse(
        status_code=201 if result.created else 200,
        content=payload.model_dump(),
    )

"""Admin routes: notification templates and bulk import."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from payment_relay.api.dependencies import get_engine, require_admin
from payment_relay.api.schemas import (
    ImportRequest,
    ImportResponse,
    TemplateRequest,
    TemplateResponse,
)
from payment_relay.engine.client import RelayEngine  # noqa: TC001

router = APIRouter(tags=["admin"])


@router.get("/admin/templates", response_model=list[TemplateResponse])
async def list_templates(
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> list[TemplateResponse]:
    """List relay templates."""
    templates = await engine.templates.list_all()
    return [TemplateResponse.model_validate(t) for t in templates]


@router.put("/admin/templates/{event_type}", response_model=TemplateResponse)
async def put_template(
    event_type: str,
    body: TemplateRequest,
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> TemplateResponse:
    """Create or replace the relay template for an event type (e.g. ``pix_paid``)."""
    template = await engine.templates.upsert(
        event_type,
        title=body.title,
        message=body.message,
        kind=body.kind,
        is_active=body.is_active,
    )
    return TemplateResponse.model_validate(template)


@router.post("/transactions/import", response_model=ImportResponse)
async def import_transactions(
    body: ImportRequest,
    _: Annotated[None, Depends(require_admin)],
    engine: Annotated[RelayEngine, Depends(get_engine)],
) -> ImportResponse:
    """Bulk-insert transactions from a spreadsheet export."""
    summary = await engine.importer.import_rows(body.rows)
    return ImportResponse(imported=summary.imported, errors=summary.errors, total=summary.total)

"""Inbound payload models (Pydantic)."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from decimal import Decimal  # noqa: TC003
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from payment_relay.engine.models.transaction import TransactionType  # noqa: TC001

# Payload key of the delivery artifact (e.g. the boleto PDF link), kept in metadata.
ARTIFACT_URL_KEY = "boleto_url"


class WebhookEvent(BaseModel):
    """A payment event pushed by an external gateway.

    Only ``type`` and ``amount`` are required. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    type: TransactionType
    amount: Decimal = Field(ge=0)
    status: str | None = None
    event: str | None = None
    external_id: str | None = None
    paid_at: datetime | None = None
    description: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    customer_document: str | None = None
    metadata: dict[str, Any] | None = None
    boleto_url: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator(
        "external_id", "customer_phone", "customer_document", mode="before"
    )
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        # Gateways send barcodes and phones as numbers as often as strings.
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def has_external_id(self) -> bool:
        return bool(self.external_id and self.external_id.strip())

    def artifact_metadata(self) -> dict[str, Any]:
        """Payload metadata merged with the artifact URL when one was sent."""
        merged = dict(self.metadata or {})
        if self.boleto_url:
            merged[ARTIFACT_URL_KEY] = self.boleto_url
        return merged


class ImportRow(BaseModel):
    """One row of a bulk import. Every field is lenient."""

    model_config = ConfigDict(extra="ignore")

    type: Any = None
    status: Any = None
    amount: Any = None
    external_id: Any = None
    description: Any = None
    customer_name: Any = None
    customer_email: Any = None
    customer_phone: Any = None
    customer_document: Any = None
    metadata: Any = None
    paid_at: Any = None
    created_at: Any = None
    webhook_source: Any = None

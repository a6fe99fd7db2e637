"""Transaction model: one ledger row per real-world payment."""

from __future__ import annotations

import enum
from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]
from decimal import Decimal  # noqa: TC003

from sqlalchemy import DateTime, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payment_relay.engine.models.base import Base, MetadataMixin, TimestampMixin


class TransactionType(enum.StrEnum):
    """Payment instrument kinds."""

    BOLETO = "boleto"
    PIX = "pix"
    CARTAO = "cartao"


class TransactionStatus(enum.StrEnum):
    """Ledger row lifecycle states."""

    GENERATED = "generated"
    PAID = "paid"
    PENDING = "pending"
    CANCELED = "canceled"
    EXPIRED = "expired"


# Status names used by the payment gateways that feed this ledger.
STATUS_ALIASES: dict[str, TransactionStatus] = {
    "gerado": TransactionStatus.GENERATED,
    "pago": TransactionStatus.PAID,
    "pendente": TransactionStatus.PENDING,
    "cancelado": TransactionStatus.CANCELED,
    "expirado": TransactionStatus.EXPIRED,
}

TYPE_LABELS: dict[str, str] = {
    TransactionType.BOLETO: "Boleto",
    TransactionType.PIX: "PIX",
    TransactionType.CARTAO: "Cartão",
}


def parse_status(raw: str | None) -> TransactionStatus | None:
    """Map a canonical or aliased status name to ``TransactionStatus``.

    Returns ``None`` for empty or unknown values.
    """
    if not raw:
        return None
    key = raw.strip().lower()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        return TransactionStatus(key)
    except ValueError:
        return None


class Transaction(Base, TimestampMixin, MetadataMixin):
    """A ledger row.

    ``external_id`` is written once, at creation, and never rewritten on
    update. Imported rows keep the raw source value, so matching always
    goes through
    :func:`payment_relay.engine.normalize.normalize_external_id`.
    """

    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    external_id: Mapped[str | None] = mapped_column(Text, nullable=True, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TransactionStatus.GENERATED
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    customer_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    customer_document: Mapped[str | None] = mapped_column(String(32), nullable=True)

    webhook_source: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} type={self.type} status={self.status}>"

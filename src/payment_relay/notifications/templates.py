"""Text composition for push messages and relay templates."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from payment_relay.engine.models.transaction import TYPE_LABELS, TransactionStatus
from payment_relay.push.sender import PushMessage

if TYPE_CHECKING:
    from payment_relay.notifications.events import TransactionNotice

DEFAULT_CUSTOMER_NAME = "Cliente"

_STATUS_LABELS: dict[str, str] = {
    TransactionStatus.GENERATED: "gerado",
    TransactionStatus.PAID: "pago",
    TransactionStatus.PENDING: "pendente",
    TransactionStatus.CANCELED: "cancelado",
    TransactionStatus.EXPIRED: "expirado",
}

_CENT = Decimal("0.01")


def format_brl(amount: Decimal | float | int) -> str:
    """Format an amount as Brazilian reais: ``R$ 1.234,50``."""
    value = Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")


def type_label(tx_type: str) -> str:
    return TYPE_LABELS.get(tx_type, tx_type.capitalize())


def first_name(name: str | None) -> str:
    """First whitespace-delimited token of *name*, or the default customer name."""
    parts = (name or "").split()
    return parts[0] if parts else DEFAULT_CUSTOMER_NAME


def placeholders(notice: TransactionNotice) -> dict[str, str]:
    full_name = (notice.customer_name or "").strip() or DEFAULT_CUSTOMER_NAME
    return {
        "{nome}": full_name,
        "{primeiro_nome}": first_name(notice.customer_name),
        "{valor}": format_brl(notice.amount),
        "{tipo}": type_label(notice.type),
    }


def render(template: str, notice: TransactionNotice) -> str:
    """Substitute every known placeholder in *template*. Unknown braces are left alone."""
    text = template
    for token, value in placeholders(notice).items():
        text = text.replace(token, value)
    return text


def compose_push(notice: TransactionNotice) -> PushMessage:
    """Title and body for the broadcast push, e.g. ``PIX pago`` / ``Ana Souza - R$ 50,00``."""
    status_label = _STATUS_LABELS.get(notice.status, notice.status)
    name = (notice.customer_name or "").strip() or DEFAULT_CUSTOMER_NAME
    return PushMessage(
        title=f"{type_label(notice.type)} {status_label}",
        body=f"{name} - {format_brl(notice.amount)}",
        tag=notice.tag,
    )

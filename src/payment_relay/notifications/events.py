"""Notification input derived from a ledger row."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from payment_relay.engine.models.transaction import Transaction

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"


@dataclass(frozen=True)
class TransactionNotice:
    """What the dispatcher needs to know about a ledger change."""

    transaction_id: str
    type: str
    status: str
    amount: Decimal
    customer_name: str | None = None
    action: str = ACTION_CREATED

    @classmethod
    def from_transaction(cls, tx: Transaction, action: str) -> TransactionNotice:
        return cls(
            transaction_id=tx.id,
            type=str(tx.type),
            status=str(tx.status),
            amount=Decimal(tx.amount),
            customer_name=tx.customer_name,
            action=action,
        )

    @property
    def event_type(self) -> str:
        """Template key, e.g. ``pix_paid``."""
        return f"{self.type}_{self.status}"

    @property
    def tag(self) -> str:
        """Collapse tag. Updates carry the new status so each transition is shown once."""
        if self.action == ACTION_UPDATED:
            return f"tx-{self.transaction_id}-{self.status}"
        return f"tx-{self.transaction_id}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["amount"] = str(self.amount)
        return data

"""Reconciler: the webhook entry point.

Turns one inbound payment event into exactly one ledger write:

1. Validate the payload (``type`` and ``amount`` are required).
2. Derive the target status: an explicit ``status`` wins, otherwise the
   ``event`` name is matched by substring (paid/pago, cancel, expir).
3. Match an existing row by normalized external id, first match wins.
4. Update the match or create a new row.
5. Hand the result to the notification dispatcher. Nothing it does can
   change the outcome of the write.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from payment_relay.engine.models.base import utcnow
from payment_relay.engine.models.transaction import (
    Transaction,
    TransactionStatus,
    parse_status,
)
from payment_relay.engine.normalize import normalize_external_id, normalize_phone
from payment_relay.engine.payloads import WebhookEvent
from payment_relay.errors.definitions import ValidationError
from payment_relay.notifications.events import (
    ACTION_CREATED,
    ACTION_UPDATED,
    TransactionNotice,
)

if TYPE_CHECKING:
    from payment_relay.engine.repository.transactions import TransactionRepository
    from payment_relay.metrics.collector import RelayMetrics
    from payment_relay.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("type", "amount")

# Customer fields copied onto an existing row only when the payload carries them.
_OPTIONAL_FIELDS = ("customer_name", "customer_email", "customer_document", "description")


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one ingest: ``created`` or ``updated`` plus the row."""

    action: str
    transaction: Transaction

    @property
    def created(self) -> bool:
        return self.action == ACTION_CREATED

    @property
    def transaction_id(self) -> str:
        return self.transaction.id


def parse_event(body: Any) -> WebhookEvent:
    """Validate a decoded JSON body into a :class:`WebhookEvent`.

    Raises:
        ValidationError: If the body is not an object, a required field is
            missing, or a field has the wrong shape.
    """
    if not isinstance(body, dict):
        raise ValidationError("payload must be a JSON object")
    missing = [name for name in _REQUIRED_FIELDS if body.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(_REQUIRED_FIELDS)}")
    try:
        return WebhookEvent.model_validate(body)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid payload: {problems}") from exc


def derive_status(
    event: WebhookEvent, *, now: datetime | None = None
) -> tuple[TransactionStatus, datetime | None]:
    """Pick the target status and the ``paid_at`` that goes with it.

    ``paid_at`` is only returned for ``paid``; it is the payload's value or
    *now* when the payload has none.

    Raises:
        ValidationError: If an explicit ``status`` is not a known name.
    """
    if event.status:
        status = parse_status(event.status)
        if status is None:
            raise ValidationError(f"Unknown status: {event.status}")
    else:
        name = (event.event or "").lower()
        if "paid" in name or "pago" in name:
            status = TransactionStatus.PAID
        elif "cancel" in name:
            status = TransactionStatus.CANCELED
        elif "expir" in name:
            status = TransactionStatus.EXPIRED
        else:
            status = TransactionStatus.GENERATED

    if status is not TransactionStatus.PAID:
        return status, None
    return status, event.paid_at or now or utcnow()


class Reconciler:
    """Find-or-create ledger writes for inbound webhook events."""

    def __init__(
        self,
        transactions: TransactionRepository,
        *,
        dispatcher: NotificationDispatcher | None = None,
        dispatch_deadline: float | None = None,
        metrics: RelayMetrics | None = None,
    ) -> None:
        self._transactions = transactions
        self._dispatcher = dispatcher
        self._deadline = dispatch_deadline
        self._metrics = metrics

    async def ingest(self, body: Any, *, source: str | None = None) -> ReconcileResult:
        """Reconcile one event and notify subscribers.

        Args:
            body: Decoded JSON payload.
            source: Where the event came from (the caller's user agent).

        Raises:
            ValidationError: Bad payload. Nothing is written.
            PersistenceError: The ledger write failed.
        """
        event = parse_event(body)
        status, paid_at = derive_status(event)

        existing = None
        if event.has_external_id:
            existing = await self._transactions.find_by_external_id(event.external_id or "")

        if existing is not None:
            tx = await self._update(existing, event, status, paid_at)
            result = ReconcileResult(ACTION_UPDATED, tx)
        else:
            tx = await self._create(event, status, paid_at, source)
            result = ReconcileResult(ACTION_CREATED, tx)

        logger.info("Transaction %s: %s (status=%s)", result.action, tx.id, tx.status)
        if self._metrics is not None:
            self._metrics.webhook_event(result.action)

        await self._notify(TransactionNotice.from_transaction(tx, result.action))
        return result

    async def _create(
        self,
        event: WebhookEvent,
        status: TransactionStatus,
        paid_at: datetime | None,
        source: str | None,
    ) -> Transaction:
        external_id = None
        if event.has_external_id:
            external_id = normalize_external_id(event.external_id) or event.external_id
        tx = Transaction(
            id=str(uuid.uuid4()),
            external_id=external_id,
            type=event.type.value,
            status=status.value,
            amount=event.amount,
            description=event.description,
            customer_name=event.customer_name,
            customer_email=event.customer_email,
            customer_phone=normalize_phone(event.customer_phone),
            customer_document=event.customer_document,
            webhook_source=source or "unknown",
            paid_at=paid_at,
        )
        tx.metadata_ = event.artifact_metadata()
        return await self._transactions.create(tx)

    async def _update(
        self,
        existing: Transaction,
        event: WebhookEvent,
        status: TransactionStatus,
        paid_at: datetime | None,
    ) -> Transaction:
        fields: dict[str, Any] = {"status": status.value}
        if status is TransactionStatus.PAID:
            # A repeated paid event keeps the first payment time unless it brings its own.
            fields["paid_at"] = event.paid_at or existing.paid_at or paid_at
        for name in _OPTIONAL_FIELDS:
            value = getattr(event, name)
            if value is not None:
                fields[name] = value
        phone = normalize_phone(event.customer_phone)
        if phone is not None:
            fields["customer_phone"] = phone
        return await self._transactions.update(
            existing.id,
            fields=fields,
            metadata=event.artifact_metadata(),
        )

    async def _notify(self, notice: TransactionNotice) -> None:
        if self._dispatcher is None:
            return
        try:
            await asyncio.wait_for(self._dispatcher.notify(notice), timeout=self._deadline)
        except TimeoutError:
            logger.warning(
                "Notification dispatch for %s exceeded %.1fs; abandoning in-flight sends",
                notice.transaction_id,
                self._deadline or 0.0,
            )
        except Exception:
            logger.exception("Notification dispatch failed for %s", notice.transaction_id)

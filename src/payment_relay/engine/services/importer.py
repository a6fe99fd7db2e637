"""Bulk transaction import for spreadsheet migrations.

Rows are coerced leniently: an unknown type becomes ``boleto``, an
unknown status becomes ``generated``, an unparsable amount becomes 0.
Inserts go in batches of 100; a failed batch is counted as errors and
the import moves on. Imports never notify subscribers.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from payment_relay.engine.models.base import utcnow
from payment_relay.engine.models.transaction import (
    Transaction,
    TransactionStatus,
    TransactionType,
    parse_status,
)
from payment_relay.engine.normalize import normalize_phone
from payment_relay.engine.payloads import ImportRow
from payment_relay.errors.definitions import PersistenceError, ValidationError

if TYPE_CHECKING:
    from payment_relay.engine.repository.transactions import TransactionRepository

logger = logging.getLogger(__name__)

BATCH_SIZE = 100
IMPORT_SOURCE = "import"
_VALID_TYPES = frozenset(t.value for t in TransactionType)


@dataclass(frozen=True)
class ImportSummary:
    imported: int
    errors: int
    total: int


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else "0").replace(",", "."))
    except InvalidOperation:
        return Decimal(0)
    return amount if amount.is_finite() else Decimal(0)


def _timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    text = _text(value)
    if text is None:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _metadata(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def row_to_transaction(row: ImportRow) -> Transaction:
    """Coerce one import row into a new ledger row."""
    raw_type = (_text(row.type) or TransactionType.BOLETO).lower()
    tx_type = raw_type if raw_type in _VALID_TYPES else TransactionType.BOLETO.value
    status = parse_status(_text(row.status)) or TransactionStatus.GENERATED

    tx = Transaction(
        id=str(uuid.uuid4()),
        external_id=_text(row.external_id),
        type=tx_type,
        status=status.value,
        amount=_amount(row.amount),
        description=_text(row.description),
        customer_name=_text(row.customer_name),
        customer_email=_text(row.customer_email),
        customer_phone=normalize_phone(_text(row.customer_phone)),
        customer_document=_text(row.customer_document),
        webhook_source=_text(row.webhook_source) or IMPORT_SOURCE,
        paid_at=_timestamp(row.paid_at),
        created_at=_timestamp(row.created_at) or utcnow(),
    )
    tx.metadata_ = _metadata(row.metadata)
    return tx


class TransactionImporter:
    """Inserts imported rows in batches."""

    def __init__(self, transactions: TransactionRepository) -> None:
        self._transactions = transactions

    async def import_rows(self, rows: Any) -> ImportSummary:
        """Import *rows* and report how many made it in.

        Raises:
            ValidationError: If *rows* is missing, empty, or not a list.
        """
        if not isinstance(rows, list) or not rows:
            raise ValidationError("No rows to import")

        prepared = [
            row_to_transaction(ImportRow.model_validate(r if isinstance(r, dict) else {}))
            for r in rows
        ]
        logger.info("Importing %d transaction(s)", len(prepared))

        imported = 0
        errors = 0
        for start in range(0, len(prepared), BATCH_SIZE):
            batch = prepared[start : start + BATCH_SIZE]
            try:
                imported += await self._transactions.insert_many(batch)
            except PersistenceError as exc:
                logger.error("Import batch at offset %d failed: %s", start, exc.message)
                errors += len(batch)

        logger.info("Import finished: %d imported, %d failed", imported, errors)
        return ImportSummary(imported=imported, errors=errors, total=len(rows))

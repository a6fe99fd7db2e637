"""Ledger repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from payment_relay.engine.models.transaction import Transaction
from payment_relay.engine.normalize import normalize_external_id
from payment_relay.engine.repository.base import session_scope
from payment_relay.errors.definitions import NotFoundError

if TYPE_CHECKING:
    from payment_relay.datastore.client import Datastore


class TransactionRepository:
    """Data access layer for ledger rows."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def get_by_id(self, tx_id: str) -> Transaction | None:
        """Find a row by primary key."""
        async with session_scope(self._ds, "transaction lookup") as session:
            return await session.get(Transaction, tx_id)

    async def find_by_external_id(self, raw_external_id: str) -> Transaction | None:
        """Return the first row whose normalized ``external_id`` equals the normalized input.

        Rows are scanned oldest first, so the earliest row wins if duplicates
        ever exist. Only ``(id, external_id)`` pairs are loaded for the scan.
        """
        key = normalize_external_id(raw_external_id)
        if key is None:
            return None
        async with session_scope(self._ds, "external id match") as session:
            stmt = (
                select(Transaction.id, Transaction.external_id)
                .where(Transaction.external_id.is_not(None), Transaction.external_id != "")
                .order_by(Transaction.created_at, Transaction.id)
            )
            result = await session.execute(stmt)
            for tx_id, stored in result.all():
                if normalize_external_id(stored) == key:
                    return await session.get(Transaction, tx_id)
        return None

    async def create(self, tx: Transaction) -> Transaction:
        """Persist a new row."""
        async with session_scope(self._ds, "transaction insert") as session:
            session.add(tx)
            await session.commit()
            await session.refresh(tx)
        return tx

    async def update(
        self,
        tx_id: str,
        *,
        fields: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> Transaction:
        """Apply *fields* and merge *metadata* into an existing row in one commit.

        Raises:
            NotFoundError: If the row disappeared since it was matched.
        """
        async with session_scope(self._ds, "transaction update") as session:
            tx = await session.get(Transaction, tx_id)
            if tx is None:
                raise NotFoundError(f"transaction {tx_id} not found")
            for name, value in fields.items():
                setattr(tx, name, value)
            if metadata:
                tx.merge_metadata(metadata)
            await session.commit()
            await session.refresh(tx)
            return tx

    async def insert_many(self, rows: list[Transaction]) -> int:
        """Insert a batch in a single commit. Returns the number of rows written."""
        async with session_scope(self._ds, "transaction batch insert") as session:
            session.add_all(rows)
            await session.commit()
        return len(rows)

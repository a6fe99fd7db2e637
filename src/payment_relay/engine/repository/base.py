"""Session scope shared by the repositories."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from payment_relay.errors.definitions import PersistenceError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from payment_relay.datastore.client import Datastore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def session_scope(datastore: Datastore, operation: str) -> AsyncIterator[AsyncSession]:
    """Open a session and turn driver errors into ``PersistenceError``.

    The caller commits. A failure rolls back whatever the session holds.
    """
    async with datastore.session() as session:
        try:
            yield session
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.error("Datastore failure during %s: %s", operation, exc)
            raise PersistenceError(f"{operation} failed") from exc

"""The ledger database handle shared by all repositories."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from payment_relay.datastore.engines import backend_name, create_engine
from payment_relay.datastore.migrations import create_relay_tables

if TYPE_CHECKING:
    from payment_relay.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)


class Datastore:
    """Owns the async engine and hands out sessions to the repositories.

    Sessions do not expire loaded rows on commit, so a repository can
    return the ``Transaction`` it just wrote and the dispatcher can read it
    after the session is closed.

    Usage::

        ds = Datastore(config.db)
        await ds.open(create_tables=True)
        async with ds.session() as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """The open engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            msg = "Datastore is not open. Call open() first."
            raise RuntimeError(msg)
        return self._engine

    @property
    def backend(self) -> str:
        """Database backend named by the DSN (``sqlite`` or ``postgresql``)."""
        return backend_name(self._config.dsn)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def open(self, *, create_tables: bool = False) -> None:
        """Create the engine, and the relay tables when *create_tables* is set."""
        self._engine = create_engine(self._config)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        if create_tables:
            await create_relay_tables(self._engine)
        logger.info("Datastore open (%s)", self.backend)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessions = None

    def session(self) -> AsyncSession:
        """New session; use it as an async context manager.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._sessions is None:
            msg = "Datastore is not open. Call open() first."
            raise RuntimeError(msg)
        return self._sessions()

"""Create and drop the relay's three tables.

Only the tables in :data:`~payment_relay.engine.models.ALL_MODELS` are
touched, so a database shared with other applications keeps its own
tables. Deployed databases are upgraded with the Alembic scripts under
``alembic/``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from payment_relay.engine.models import ALL_MODELS, Base

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncEngine


def relay_tables() -> list[Table]:
    """Tables owned by this service, in dependency order."""
    return [model.__table__ for model in ALL_MODELS]  # type: ignore[misc]


async def create_relay_tables(engine: AsyncEngine) -> None:
    """Create missing tables. Existing tables and rows are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=relay_tables())


async def drop_relay_tables(engine: AsyncEngine) -> None:
    """Drop the relay tables and everything in them. Tests only."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=relay_tables())

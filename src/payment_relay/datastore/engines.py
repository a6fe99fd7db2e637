"""Async engine construction for the ledger database.

The backend is read from the DSN scheme, not from ``DatabaseConfig.engine``,
so a PostgreSQL DSN always gets a pool even if the engine field was left at
its default.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from payment_relay.config.settings import DatabaseConfig


def backend_name(dsn: str) -> str:
    """Return ``sqlite`` or ``postgresql`` (or whatever the DSN names)."""
    return make_url(dsn).get_backend_name()


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an ``AsyncEngine`` for *config*.

    SQLite waits up to ``busy_timeout`` seconds for the file lock, since a
    webhook write and a subscription prune can overlap. PostgreSQL gets a
    pre-pinged pool sized from the connection limits.
    """
    kwargs: dict[str, Any] = {"echo": config.debug_sql}

    if backend_name(config.dsn) == "sqlite":
        kwargs["connect_args"] = {"timeout": config.busy_timeout}
    else:
        kwargs["pool_size"] = config.max_idle_connections
        kwargs["max_overflow"] = config.max_open_connections - config.max_idle_connections
        kwargs["pool_pre_ping"] = True

    return create_async_engine(config.dsn, **kwargs)

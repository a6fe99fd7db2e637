"""Tests for the datastore: engine factory, client lifecycle, table creation."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect, text

from payment_relay.config.settings import DatabaseConfig
from payment_relay.datastore.client import Datastore
from payment_relay.datastore.engines import backend_name, create_engine
from payment_relay.datastore.migrations import create_relay_tables, drop_relay_tables

TABLES = {"transactions", "push_subscriptions", "notification_templates"}


def _sqlite(tmp_path) -> DatabaseConfig:
    return DatabaseConfig(engine="sqlite", dsn=f"sqlite+aiosqlite:///{tmp_path / 'ds.db'}")


async def _table_names(ds: Datastore) -> set[str]:
    async with ds.engine.connect() as conn:
        return set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))


class TestCreateEngine:
    @pytest.mark.parametrize(
        ("dsn", "expected"),
        [
            ("sqlite+aiosqlite:///./relay.db", "sqlite"),
            ("postgresql+asyncpg://u:p@db:5432/relay", "postgresql"),
        ],
    )
    def test_backend_name(self, dsn, expected) -> None:
        assert backend_name(dsn) == expected

    async def test_create_sqlite_engine(self, tmp_path) -> None:
        engine = create_engine(_sqlite(tmp_path))
        try:
            async with engine.connect() as conn:
                assert (await conn.execute(text("SELECT 1"))).scalar() == 1
        finally:
            await engine.dispose()

    async def test_engine_echo_flag(self, tmp_path) -> None:
        config = _sqlite(tmp_path)
        config.debug_sql = True
        engine = create_engine(config)
        assert engine.echo is True
        await engine.dispose()


class TestDatastore:
    async def test_not_open_by_default(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        assert ds.is_open is False
        with pytest.raises(RuntimeError, match="not open"):
            _ = ds.engine
        with pytest.raises(RuntimeError, match="not open"):
            ds.session()

    async def test_open_close(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open()
        assert ds.is_open is True
        assert ds.backend == "sqlite"
        await ds.close()
        assert ds.is_open is False
        await ds.close()

    async def test_open_without_tables(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open()
        try:
            assert not TABLES & await _table_names(ds)
        finally:
            await ds.close()

    async def test_open_creates_tables(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open(create_tables=True)
        try:
            assert TABLES <= await _table_names(ds)
        finally:
            await ds.close()


class TestRelayTables:
    async def test_create_and_drop(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open()
        try:
            await create_relay_tables(ds.engine)
            assert TABLES <= await _table_names(ds)
            await drop_relay_tables(ds.engine)
            assert not TABLES & await _table_names(ds)
        finally:
            await ds.close()

    async def test_create_is_repeatable(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open()
        try:
            await create_relay_tables(ds.engine)
            await create_relay_tables(ds.engine)
            assert TABLES <= await _table_names(ds)
        finally:
            await ds.close()

    async def test_foreign_tables_are_left_alone(self, tmp_path) -> None:
        ds = Datastore(_sqlite(tmp_path))
        await ds.open(create_tables=True)
        try:
            async with ds.engine.begin() as conn:
                await conn.execute(text("CREATE TABLE other_app (id INTEGER PRIMARY KEY)"))
            await drop_relay_tables(ds.engine)
            assert await _table_names(ds) == {"other_app"}
        finally:
            await ds.close()

"""Tests for RelayEngine lifecycle and wiring."""

from __future__ import annotations

import pytest
from ecdsa import NIST256p, SigningKey

from payment_relay.engine.client import RelayEngine
from payment_relay.metrics.collector import RelayMetrics
from payment_relay.notifications.relay import HttpRelay, NoopRelay
from payment_relay.push.vapid import b64url_encode


class TestRelayEngineLifecycle:
    async def test_accessors_fail_before_initialize(self, app_config) -> None:
        engine = RelayEngine(app_config)
        assert engine.is_initialized is False
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = engine.reconciler
        assert engine.signer is None

    async def test_initialize_and_close(self, app_config) -> None:
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert engine.is_initialized is True
            assert engine.datastore.is_open is True
            assert engine.signer is not None
            assert engine.reconciler is not None
            assert engine.importer is not None
        finally:
            await engine.close()
        assert engine.is_initialized is False
        await engine.close()

    async def test_double_initialize(self, app_config) -> None:
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            with pytest.raises(RuntimeError, match="already initialized"):
                await engine.initialize()
        finally:
            await engine.close()

    async def test_shared_metrics(self, app_config) -> None:
        metrics = RelayMetrics()
        engine = RelayEngine(app_config, metrics=metrics)
        await engine.initialize()
        try:
            assert engine.metrics is metrics
        finally:
            await engine.close()


class TestRelayEngineWiring:
    async def test_no_vapid_keys_disables_push(self, app_config) -> None:
        app_config.vapid.private_key = ""
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert engine.signer is None
        finally:
            await engine.close()

    async def test_garbage_vapid_keys_disable_push(self, app_config) -> None:
        app_config.vapid.private_key = "abcde"
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert engine.signer is None
            result = await engine.reconciler.ingest({"type": "pix", "amount": 1})
            assert result.created is True
        finally:
            await engine.close()

    async def test_relay_selection(self, app_config) -> None:
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert isinstance(engine._relay, NoopRelay)
        finally:
            await engine.close()

        app_config.relay.enabled = True
        app_config.relay.url = "https://relay.example/hook"
        app_config.relay.device = "phone-1"
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert isinstance(engine._relay, HttpRelay)
        finally:
            await engine.close()

    async def test_short_private_key_disables_push(self, app_config, subscriptions) -> None:
        app_config.vapid.private_key = "AAAA"
        app_config.push.prune_on_any_failure = True
        await subscriptions.upsert("https://push.example/send/0", "p", "a")
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert engine.signer is None
            await engine.reconciler.ingest({"type": "pix", "amount": 1})
            assert await engine.subscriptions.count() == 1
        finally:
            await engine.close()

    async def test_mismatched_key_pair_disables_push(self, app_config) -> None:
        other = SigningKey.generate(curve=NIST256p)
        other_public = b"\x04" + other.get_verifying_key().to_string()
        app_config.vapid.public_key = b64url_encode(other_public)
        engine = RelayEngine(app_config)
        await engine.initialize()
        try:
            assert engine.signer is None
        finally:
            await engine.close()

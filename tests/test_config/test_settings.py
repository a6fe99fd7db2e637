"""Tests for the configuration system."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import pytest

from payment_relay.config.settings import (
    AppConfig,
    DatabaseConfig,
    DatabaseEngine,
    PushConfig,
    PushUrgency,
    RelayConfig,
    RelayMethod,
    ServerConfig,
    VapidConfig,
    WebhookConfig,
    _load_yaml,
)

if TYPE_CHECKING:
    from pathlib import Path

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    """Verify default values."""

    def test_server_defaults(self) -> None:
        cfg = ServerConfig()
        assert cfg.host == "0.0.0.0"  # noqa: S104
        assert cfg.port == 8000

    def test_database_defaults(self) -> None:
        cfg = DatabaseConfig()
        assert cfg.engine == DatabaseEngine.SQLITE
        assert cfg.dsn.startswith("sqlite+aiosqlite://")

    def test_vapid_defaults(self) -> None:
        cfg = VapidConfig()
        assert cfg.is_configured is False
        assert cfg.expiration_hours == 12
        assert cfg.subject.startswith("mailto:")

    def test_push_defaults(self) -> None:
        cfg = PushConfig()
        assert cfg.ttl == 86400
        assert cfg.urgency == PushUrgency.HIGH
        assert cfg.max_concurrency == 10
        assert cfg.prune_on_any_failure is False

    def test_relay_defaults(self) -> None:
        cfg = RelayConfig()
        assert cfg.enabled is False
        assert cfg.method == RelayMethod.POST
        assert cfg.is_configured is False

    def test_webhook_defaults(self) -> None:
        cfg = WebhookConfig()
        assert cfg.secret == ""
        assert cfg.dispatch_deadline == 25.0

    def test_app_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.debug is False
        assert cfg.admin_token == ""
        assert cfg.metrics.enabled is True


class TestDerivedFlags:
    def test_vapid_needs_both_keys(self) -> None:
        assert VapidConfig(public_key="a").is_configured is False
        assert VapidConfig(public_key="a", private_key="b").is_configured is True

    def test_relay_needs_url_and_device(self) -> None:
        assert RelayConfig(enabled=True, url="https://x").is_configured is False
        assert RelayConfig(enabled=True, url="https://x", device="d").is_configured is True

    def test_concurrency_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            PushConfig(max_concurrency=0)


# ---------------------------------------------------------------------------
# Environment variables
# ---------------------------------------------------------------------------


class TestEnvironment:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAYRELAY_PUSH__TTL", "60")
        monkeypatch.setenv("PAYRELAY_RELAY__METHOD", "GET")
        cfg = AppConfig()
        assert cfg.push.ttl == 60
        assert cfg.relay.method == RelayMethod.GET

    def test_top_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAYRELAY_ADMIN_TOKEN", "from-env")
        assert AppConfig().admin_token == "from-env"

    def test_urgency_validated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PAYRELAY_PUSH__URGENCY", "urgent")
        with pytest.raises(ValueError):
            PushConfig()


# ---------------------------------------------------------------------------
# YAML
# ---------------------------------------------------------------------------


class TestYaml:
    def test_load_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nope.yaml") == {}

    def test_load_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        assert _load_yaml(path) == {}

    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            textwrap.dedent(
                """\
                admin_token: yaml-token
                vapid:
                  subject: mailto:yaml@example.com
                push:
                  ttl: 120
                  max_concurrency: 4
                relay:
                  enabled: true
                  url: https://relay.example/hook
                  device: phone-1
                """
            ),
            encoding="utf-8",
        )
        cfg = AppConfig.from_yaml(path)
        assert cfg.admin_token == "yaml-token"
        assert cfg.vapid.subject == "mailto:yaml@example.com"
        assert cfg.push.ttl == 120
        assert cfg.push.max_concurrency == 4
        assert cfg.relay.is_configured is True

    def test_env_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("admin_token: yaml-token\n", encoding="utf-8")
        monkeypatch.setenv("PAYRELAY_ADMIN_TOKEN", "env-token")
        assert AppConfig.from_yaml(path).admin_token == "env-token"

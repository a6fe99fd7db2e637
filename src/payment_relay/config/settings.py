"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``PAYRELAY_``, nested via ``__``)
2. YAML config file (``PAYRELAY_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class PushUrgency(enum.StrEnum):
    """Web Push ``Urgency`` header values (RFC 8030 section 5.3)."""

    VERY_LOW = "very-low"
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class RelayMethod(enum.StrEnum):
    """HTTP method used by the secondary relay."""

    GET = "GET"
    POST = "POST"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./payment_relay.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    busy_timeout: float = Field(default=30.0, description="Seconds SQLite waits for a locked file")
    debug_sql: bool = False


class VapidConfig(BaseSettings):
    """VAPID signing key pair for Web Push.

    Both keys are base64url-encoded raw bytes: the public key is the
    65-byte uncompressed P-256 point, the private key the 32-byte scalar.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_VAPID__",
        case_sensitive=False,
    )

    public_key: str = ""
    private_key: str = ""
    subject: str = "mailto:admin@example.com"
    expiration_hours: int = 12

    @property
    def is_configured(self) -> bool:
        """Whether both halves of the key pair are present."""
        return bool(self.public_key and self.private_key)


class PushConfig(BaseSettings):
    """Push delivery settings."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_PUSH__",
        case_sensitive=False,
    )

    ttl: int = 86400
    urgency: PushUrgency = PushUrgency.HIGH
    timeout: float = 10.0
    max_concurrency: int = Field(default=10, ge=1)
    prune_on_any_failure: bool = False


class RelayConfig(BaseSettings):
    """Secondary templated relay (e.g. a phone notification app webhook)."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_RELAY__",
        case_sensitive=False,
    )

    enabled: bool = False
    url: str = ""
    device: str = ""
    method: RelayMethod = RelayMethod.POST
    timeout: float = 10.0

    @property
    def is_configured(self) -> bool:
        """Whether the relay is switched on and has somewhere to send."""
        return self.enabled and bool(self.url) and bool(self.device)


class WebhookConfig(BaseSettings):
    """Inbound webhook settings."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_WEBHOOK__",
        case_sensitive=False,
    )

    secret: str = ""
    dispatch_deadline: float = 25.0


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``PAYRELAY_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYRELAY_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    version: str = "0.1.0"
    admin_token: str = ""
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    vapid: VapidConfig = Field(default_factory=VapidConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values are defaults; env vars already in *values* win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                values[key] = {**val, **values[key]}
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))

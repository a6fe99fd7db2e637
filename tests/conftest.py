"""Shared test fixtures for the payment-relay test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
from ecdsa import NIST256p, SigningKey

from payment_relay.config.settings import DatabaseEngine

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

ADMIN_TOKEN = "test-admin-token"


class PushRecorder:
    """httpx handler that records outbound requests and answers per URL.

    ``statuses`` maps a full URL to the status code to answer with.
    URLs listed in ``unreachable`` raise a connection error instead.
    """

    def __init__(self, default_status: int = 201) -> None:
        self.default_status = default_status
        self.statuses: dict[str, int] = {}
        self.unreachable: set[str] = set()
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(self.statuses.get(url, self.default_status))

    def to(self, prefix: str) -> list[httpx.Request]:
        """Requests whose URL starts with *prefix*."""
        return [r for r in self.requests if str(r.url).startswith(prefix)]


@pytest.fixture
def vapid_keys() -> dict[str, str]:
    """A fresh P-256 key pair, base64url-encoded the way it is configured."""
    from payment_relay.push.vapid import b64url_encode

    sk = SigningKey.generate(curve=NIST256p)
    return {
        "private_key": b64url_encode(sk.to_string()),
        "public_key": b64url_encode(b"\x04" + sk.get_verifying_key().to_string()),
    }


@pytest.fixture
def app_config(tmp_path, vapid_keys):
    """Provide a test AppConfig backed by a throwaway SQLite file."""
    from payment_relay.config.settings import AppConfig, DatabaseConfig, VapidConfig

    return AppConfig(
        debug=True,
        admin_token=ADMIN_TOKEN,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn=f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}",
        ),
        vapid=VapidConfig(subject="mailto:ops@example.com", **vapid_keys),
    )


@pytest.fixture
async def datastore(app_config) -> AsyncIterator:
    """An open datastore with all tables created."""
    from payment_relay.datastore.client import Datastore

    ds = Datastore(app_config.db)
    await ds.open(create_tables=True)
    yield ds
    await ds.close()


@pytest.fixture
def transactions(datastore):
    from payment_relay.engine.repository import TransactionRepository

    return TransactionRepository(datastore)


@pytest.fixture
def subscriptions(datastore):
    from payment_relay.engine.repository import SubscriptionStore

    return SubscriptionStore(datastore)


@pytest.fixture
def templates(datastore):
    from payment_relay.engine.repository import TemplateRepository

    return TemplateRepository(datastore)


@pytest.fixture
def push_recorder() -> PushRecorder:
    return PushRecorder()


@pytest.fixture
def signer(app_config):
    from payment_relay.push.vapid import VapidSigner

    return VapidSigner.from_config(app_config.vapid)


@pytest.fixture
async def push_sender(app_config, signer, push_recorder) -> AsyncIterator:
    """A connected PushSender whose requests land in ``push_recorder``."""
    from payment_relay.push.sender import PushSender

    sender = PushSender(signer, app_config.push, transport=httpx.MockTransport(push_recorder))
    await sender.connect()
    yield sender
    await sender.close()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def test_client(app_config, push_recorder) -> Iterator:
    """Provide a started FastAPI TestClient with outbound HTTP mocked."""
    from fastapi.testclient import TestClient

    from payment_relay.api.app import create_app

    app = create_app(config=app_config, http_transport=httpx.MockTransport(push_recorder))
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client

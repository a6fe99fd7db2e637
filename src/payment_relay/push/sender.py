"""Web Push delivery: one payload to one subscription endpoint."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

import httpx

from payment_relay.errors.definitions import DeliveryError, SigningError

if TYPE_CHECKING:
    from payment_relay.config.settings import PushConfig
    from payment_relay.engine.models.push_subscription import PushSubscription
    from payment_relay.push.vapid import VapidSigner

logger = logging.getLogger(__name__)

# Push services answer 404/410 for subscriptions that will never work again.
_GONE_STATUSES = frozenset({404, 410})


class DeliveryOutcome(enum.StrEnum):
    """Result of one delivery attempt."""

    DELIVERED = "delivered"
    PERMANENT_FAILURE = "permanent_failure"
    TRANSIENT_FAILURE = "transient_failure"
    # No request left the process. Never pruned.
    SIGNING_FAILURE = "signing_failure"

    @property
    def delivered(self) -> bool:
        return self is DeliveryOutcome.DELIVERED


@dataclass(frozen=True)
class PushMessage:
    """Notification body shown by the service worker.

    ``tag`` lets the client replace an earlier notification for the same
    transaction instead of stacking a new one.
    """

    title: str
    body: str
    tag: str

    def to_json(self) -> bytes:
        return json.dumps(asdict(self), ensure_ascii=False).encode("utf-8")


class PushSender:
    """Delivers push messages with VAPID authentication.

    The body is posted as plain JSON. It is not encrypted with the
    subscription's ``p256dh``/``auth`` keys (RFC 8291 ``aes128gcm``), so
    delivery only works against push endpoints that accept unencrypted
    bodies. Each request is bounded by ``PushConfig.timeout``.

    Usage::

        sender = PushSender(signer, push_config)
        await sender.connect()
        try:
            outcome = await sender.send(subscription, message)
        finally:
            await sender.close()
    """

    def __init__(
        self,
        signer: VapidSigner,
        config: PushConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._signer = signer
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._config.timeout,
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    async def send(self, subscription: PushSubscription, message: PushMessage) -> DeliveryOutcome:
        """Attempt one delivery. Never raises.

        A 404 or 410 from the push service is permanent. Other error
        statuses, timeouts and network errors are transient. A signing
        problem is reported separately because no request was made.
        """
        try:
            await self._deliver(subscription.endpoint, message)
        except SigningError as exc:
            logger.warning("Push signing failed for %s: %s", subscription.id, exc.message)
            return DeliveryOutcome.SIGNING_FAILURE
        except DeliveryError as exc:
            if exc.remote_status in _GONE_STATUSES:
                logger.info("Push endpoint gone for %s (%s)", subscription.id, exc.remote_status)
                return DeliveryOutcome.PERMANENT_FAILURE
            logger.warning("Push delivery failed for %s: %s", subscription.id, exc.message)
            return DeliveryOutcome.TRANSIENT_FAILURE
        return DeliveryOutcome.DELIVERED

    def _headers(self, endpoint: str) -> dict[str, str]:
        assertion = self._signer.sign(endpoint)
        return {
            "Authorization": assertion.authorization(self._signer.public_key_b64),
            "TTL": str(self._config.ttl),
            "Urgency": self._config.urgency.value,
            "Content-Type": "application/json",
        }

    async def _deliver(self, endpoint: str, message: PushMessage) -> None:
        client = self._ensure_connected()
        headers = self._headers(endpoint)
        try:
            response = await client.post(endpoint, content=message.to_json(), headers=headers)
        except httpx.HTTPError as exc:
            raise DeliveryError(f"push request failed: {exc!r}") from exc
        if not response.is_success:
            raise DeliveryError(
                f"push service returned {response.status_code}",
                remote_status=response.status_code,
            )

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            raise DeliveryError("push sender not connected")
        return self._client

"""Secondary templated relay.

The dispatcher talks to a :class:`SecondaryRelay`. When the relay is
switched off or has no target, :class:`NoopRelay` stands in so the
dispatcher never branches on configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from payment_relay.config.settings import RelayMethod
from payment_relay.errors.definitions import DeliveryError

if TYPE_CHECKING:
    from payment_relay.config.settings import RelayConfig

logger = logging.getLogger(__name__)


@runtime_checkable
class SecondaryRelay(Protocol):
    """Capability interface for the optional relay channel."""

    @property
    def enabled(self) -> bool: ...

    async def send(self, title: str, message: str, *, kind: str = "info") -> None: ...


class NoopRelay:
    """Relay used when the channel is disabled."""

    @property
    def enabled(self) -> bool:
        return False

    async def send(self, title: str, message: str, *, kind: str = "info") -> None:
        return None


class HttpRelay:
    """Sends title/message/type/device to a configured URL, GET or POST."""

    def __init__(
        self,
        config: RelayConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return True

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(timeout=self._config.timeout, transport=self._transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, title: str, message: str, *, kind: str = "info") -> None:
        """Fire one relay request.

        Raises:
            DeliveryError: On network failure or a non-2xx answer.
        """
        if self._client is None:
            raise DeliveryError("relay not connected")
        params = {
            "title": title,
            "message": message,
            "type": kind,
            "device": self._config.device,
        }
        try:
            if self._config.method == RelayMethod.GET:
                response = await self._client.get(self._config.url, params=params)
            else:
                response = await self._client.post(self._config.url, json=params)
        except httpx.HTTPError as exc:
            raise DeliveryError(f"relay request failed: {exc!r}") from exc
        if not response.is_success:
            raise DeliveryError(
                f"relay returned {response.status_code}",
                remote_status=response.status_code,
            )
        logger.info("Relay notification sent (%s)", kind)


def build_relay(
    config: RelayConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpRelay | NoopRelay:
    """Return an :class:`HttpRelay` when configured, otherwise a :class:`NoopRelay`."""
    if config.is_configured:
        return HttpRelay(config, transport=transport)
    return NoopRelay()

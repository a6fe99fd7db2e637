"""RelayEngine: central engine owning infrastructure and services."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from payment_relay.config.settings import AppConfig
    from payment_relay.datastore.client import Datastore
    from payment_relay.engine.repository.subscriptions import SubscriptionStore
    from payment_relay.engine.repository.templates import TemplateRepository
    from payment_relay.engine.repository.transactions import TransactionRepository
    from payment_relay.engine.services.importer import TransactionImporter
    from payment_relay.engine.services.reconciler import Reconciler
    from payment_relay.metrics.collector import RelayMetrics
    from payment_relay.notifications.dispatcher import NotificationDispatcher
    from payment_relay.notifications.relay import HttpRelay, NoopRelay
    from payment_relay.push.sender import PushSender
    from payment_relay.push.vapid import VapidSigner

logger = logging.getLogger(__name__)

_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class RelayEngine:
    """Owns the datastore, repositories, push sender, relay and services.

    Provides lifecycle management and a service registry. One engine
    serves every request; requests share nothing but the stores.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        metrics: RelayMetrics | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Metrics sink shared with the HTTP layer. A private one
                is created when omitted.
            http_transport: Optional transport for outbound push and relay
                calls. Tests pass an ``httpx.MockTransport``.
        """
        self._config = config
        self._transport = http_transport
        self._initialized = False

        self._datastore: Datastore | None = None
        self._external_metrics = metrics
        self._metrics: RelayMetrics | None = None
        self._transactions: TransactionRepository | None = None
        self._subscriptions: SubscriptionStore | None = None
        self._templates: TemplateRepository | None = None
        self._signer: VapidSigner | None = None
        self._sender: PushSender | None = None
        self._relay: HttpRelay | NoopRelay | None = None
        self._dispatcher: NotificationDispatcher | None = None
        self._reconciler: Reconciler | None = None
        self._importer: TransactionImporter | None = None

    async def initialize(self) -> None:
        """Open the datastore, create tables and build services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        from payment_relay.datastore.client import Datastore
        from payment_relay.engine.repository import (
            SubscriptionStore,
            TemplateRepository,
            TransactionRepository,
        )
        from payment_relay.engine.services.importer import TransactionImporter
        from payment_relay.engine.services.reconciler import Reconciler
        from payment_relay.metrics.collector import RelayMetrics
        from payment_relay.notifications.dispatcher import NotificationDispatcher
        from payment_relay.notifications.relay import HttpRelay, build_relay

        self._datastore = Datastore(self._config.db)
        await self._datastore.open(create_tables=True)

        self._metrics = self._external_metrics or RelayMetrics()
        self._transactions = TransactionRepository(self._datastore)
        self._subscriptions = SubscriptionStore(self._datastore)
        self._templates = TemplateRepository(self._datastore)

        if self._config.vapid.is_configured:
            from payment_relay.errors.definitions import SigningError
            from payment_relay.push.sender import PushSender
            from payment_relay.push.vapid import VapidSigner

            try:
                self._signer = VapidSigner.from_config(self._config.vapid)
            except SigningError as exc:
                logger.error("VAPID keys invalid, push broadcast disabled: %s", exc.message)
            else:
                self._sender = PushSender(
                    self._signer, self._config.push, transport=self._transport
                )
                await self._sender.connect()
        else:
            logger.info("VAPID keys not configured; push broadcast disabled")

        self._relay = build_relay(self._config.relay, transport=self._transport)
        if isinstance(self._relay, HttpRelay):
            await self._relay.connect()

        self._dispatcher = NotificationDispatcher(
            subscriptions=self._subscriptions,
            templates=self._templates,
            config=self._config.push,
            sender=self._sender,
            relay=self._relay,
            metrics=self._metrics,
        )
        self._reconciler = Reconciler(
            self._transactions,
            dispatcher=self._dispatcher,
            dispatch_deadline=self._config.webhook.dispatch_deadline,
            metrics=self._metrics,
        )
        self._importer = TransactionImporter(self._transactions)

        self._initialized = True
        logger.info("Relay engine initialized")

    async def close(self) -> None:
        """Shut down clients and the datastore. Safe to call twice."""
        if not self._initialized:
            return

        from payment_relay.notifications.relay import HttpRelay

        self._reconciler = None
        self._importer = None
        self._dispatcher = None

        if self._sender is not None:
            await self._sender.close()
            self._sender = None
        self._signer = None

        if isinstance(self._relay, HttpRelay):
            await self._relay.close()
        self._relay = None

        self._transactions = None
        self._subscriptions = None
        self._templates = None
        self._metrics = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False
        logger.info("Relay engine shut down")

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def datastore(self) -> Datastore:
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def metrics(self) -> RelayMetrics:
        if self._metrics is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._metrics

    @property
    def transactions(self) -> TransactionRepository:
        if self._transactions is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._transactions

    @property
    def subscriptions(self) -> SubscriptionStore:
        if self._subscriptions is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._subscriptions

    @property
    def templates(self) -> TemplateRepository:
        if self._templates is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._templates

    @property
    def dispatcher(self) -> NotificationDispatcher:
        if self._dispatcher is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._dispatcher

    @property
    def reconciler(self) -> Reconciler:
        if self._reconciler is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._reconciler

    @property
    def importer(self) -> TransactionImporter:
        if self._importer is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._importer

    @property
    def signer(self) -> VapidSigner | None:
        """VAPID signer, or ``None`` when push is not configured."""
        return self._signer

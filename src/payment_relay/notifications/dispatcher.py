"""Notification dispatcher: broadcast push plus secondary relay.

Per ledger change the dispatcher runs two independent jobs concurrently:

1. Broadcast a push message to every stored subscription, at most
   ``max_concurrency`` requests in flight. Failed subscriptions are
   collected and pruned in one batch after the whole pass.
2. Render the active template for the event type and hand it to the
   secondary relay.

Neither job raises. Missing keys, subscriptions or templates simply
skip the work.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from payment_relay.notifications.relay import NoopRelay
from payment_relay.notifications.templates import compose_push, render
from payment_relay.push.sender import DeliveryOutcome

if TYPE_CHECKING:
    from payment_relay.config.settings import PushConfig
    from payment_relay.engine.models.push_subscription import PushSubscription
    from payment_relay.engine.repository.subscriptions import SubscriptionStore
    from payment_relay.engine.repository.templates import TemplateRepository
    from payment_relay.metrics.collector import RelayMetrics
    from payment_relay.notifications.events import TransactionNotice
    from payment_relay.notifications.relay import SecondaryRelay
    from payment_relay.push.sender import PushMessage, PushSender

logger = logging.getLogger(__name__)


async def _send_one(
    sender: PushSender, sub: PushSubscription, message: PushMessage
) -> DeliveryOutcome:
    try:
        return await sender.send(sub, message)
    except Exception:
        logger.exception("Unexpected push failure for subscription %s", sub.id)
        return DeliveryOutcome.TRANSIENT_FAILURE


@dataclass
class DispatchReport:
    """Summary of one dispatch."""

    attempted: int = 0
    delivered: int = 0
    pruned: list[str] = field(default_factory=list)
    relayed: bool = False


class NotificationDispatcher:
    """Fans a ledger change out to push subscribers and the secondary relay."""

    def __init__(
        self,
        *,
        subscriptions: SubscriptionStore,
        templates: TemplateRepository,
        config: PushConfig,
        sender: PushSender | None = None,
        relay: SecondaryRelay | None = None,
        metrics: RelayMetrics | None = None,
    ) -> None:
        self._subscriptions = subscriptions
        self._templates = templates
        self._config = config
        self._sender = sender
        self._relay = relay or NoopRelay()
        self._metrics = metrics

    async def notify(self, notice: TransactionNotice) -> DispatchReport:
        """Run broadcast and relay side by side and report what happened."""
        report = DispatchReport()
        if self._metrics is not None:
            with self._metrics.track_dispatch():
                await self._run(notice, report)
        else:
            await self._run(notice, report)
        return report

    async def _run(self, notice: TransactionNotice, report: DispatchReport) -> None:
        results = await asyncio.gather(
            self.broadcast(notice, report),
            self.relay(notice, report),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.error(
                    "Notification job failed for %s: %r", notice.transaction_id, result
                )

    # ------------------------------------------------------------------
    # Broadcast push
    # ------------------------------------------------------------------

    async def broadcast(self, notice: TransactionNotice, report: DispatchReport) -> None:
        """Send the push message to all subscriptions, then prune the dead ones."""
        if self._sender is None:
            logger.debug("Push disabled: no VAPID keys configured")
            return
        subscriptions = await self._subscriptions.list_all()
        if not subscriptions:
            return

        message = compose_push(notice)
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        sender = self._sender

        async def _attempt(sub: PushSubscription) -> DeliveryOutcome:
            async with semaphore:
                return await _send_one(sender, sub, message)

        outcomes = await asyncio.gather(*(_attempt(sub) for sub in subscriptions))

        failed: list[str] = []
        for sub, outcome in zip(subscriptions, outcomes, strict=True):
            if self._metrics is not None:
                self._metrics.push_delivery(outcome.value)
            if outcome.delivered:
                report.delivered += 1
            elif self._should_prune(outcome):
                failed.append(sub.id)
        report.attempted = len(subscriptions)

        if failed:
            removed = await self._subscriptions.delete_many(failed)
            report.pruned = failed
            if self._metrics is not None:
                self._metrics.push_pruned(removed)
            logger.info("Pruned %d push subscription(s)", removed)

    def _should_prune(self, outcome: DeliveryOutcome) -> bool:
        if outcome is DeliveryOutcome.PERMANENT_FAILURE:
            return True
        if outcome is DeliveryOutcome.SIGNING_FAILURE:
            return False
        return self._config.prune_on_any_failure

    # ------------------------------------------------------------------
    # Secondary relay
    # ------------------------------------------------------------------

    async def relay(self, notice: TransactionNotice, report: DispatchReport) -> None:
        """Render the event's template and send it through the relay. Best effort."""
        if not self._relay.enabled:
            return
        try:
            template = await self._templates.get_active(notice.event_type)
            if template is None:
                return
            await self._relay.send(
                render(template.title, notice),
                render(template.message, notice),
                kind=template.kind,
            )
        except Exception as exc:
            logger.warning("Relay notification failed for %s: %s", notice.event_type, exc)
            if self._metrics is not None:
                self._metrics.relay_send("failed")
            return
        report.relayed = True
        if self._metrics is not None:
            self._metrics.relay_send("sent")

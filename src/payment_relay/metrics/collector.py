"""Metrics collector: Prometheus counters and histograms.

- ``payrelay_webhook_events_total{action}``
- ``payrelay_push_deliveries_total{outcome}``
- ``payrelay_push_pruned_total``
- ``payrelay_relay_sends_total{result}``
- ``payrelay_dispatch_duration_seconds``
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry, Counter, Histogram

if TYPE_CHECKING:
    from collections.abc import Iterator

_PREFIX = "payrelay"


class MetricsCollector:
    """Low-level Prometheus collector that owns the registry.

    Use :class:`RelayMetrics` for the high-level tracking interface.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._registry

    def histogram(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Histogram:
        """Register and return a Histogram."""
        return Histogram(name, doc, labels, registry=self._registry)

    def counter(self, name: str, doc: str, labels: tuple[str, ...] = ()) -> Counter:
        """Register and return a Counter."""
        return Counter(name, doc, labels, registry=self._registry)


class RelayMetrics:
    """Counters for the ingest and notification paths."""

    def __init__(self, collector: MetricsCollector | None = None) -> None:
        self._collector = collector or MetricsCollector()

        self._webhook_events = self._collector.counter(
            f"{_PREFIX}_webhook_events",
            "Inbound webhook events by reconciliation action",
            ("action",),
        )
        self._push_deliveries = self._collector.counter(
            f"{_PREFIX}_push_deliveries",
            "Push delivery attempts by outcome",
            ("outcome",),
        )
        self._push_pruned = self._collector.counter(
            f"{_PREFIX}_push_pruned",
            "Push subscriptions removed after a failed delivery",
        )
        self._relay_sends = self._collector.counter(
            f"{_PREFIX}_relay_sends",
            "Secondary relay sends by result",
            ("result",),
        )
        self._dispatch_duration = self._collector.histogram(
            f"{_PREFIX}_dispatch_duration_seconds",
            "Duration of a full notification dispatch",
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Return the underlying Prometheus registry."""
        return self._collector.registry

    def webhook_event(self, action: str) -> None:
        self._webhook_events.labels(action=action).inc()

    def push_delivery(self, outcome: str) -> None:
        self._push_deliveries.labels(outcome=outcome).inc()

    def push_pruned(self, count: int) -> None:
        if count > 0:
            self._push_pruned.inc(count)

    def relay_send(self, result: str) -> None:
        self._relay_sends.labels(result=result).inc()

    @contextmanager
    def track_dispatch(self) -> Iterator[None]:
        """Time a dispatch and record it in the histogram."""
        start = time.monotonic()
        try:
            yield
        finally:
            self._dispatch_duration.observe(time.monotonic() - start)

"""Metrics: Prometheus collection and exposure."""

from payment_relay.metrics.collector import MetricsCollector, RelayMetrics

__all__ = ["MetricsCollector", "RelayMetrics"]

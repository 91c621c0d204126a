"""Gauge registry and the certificate metrics aggregator."""

from cert_exporter.metrics.aggregator import MetricsAggregator
from cert_exporter.metrics.registry import GaugeRegistry

__all__ = ["GaugeRegistry", "MetricsAggregator"]

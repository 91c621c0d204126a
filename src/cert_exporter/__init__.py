"""cert-exporter: publish certificate validity windows as Prometheus gauges."""

__version__ = "0.1.0"

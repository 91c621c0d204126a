"""Command-line interface for cert-exporter."""

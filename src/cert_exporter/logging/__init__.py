"""Logging subsystem for cert-exporter.

Public API::

    from cert_exporter.logging import configure_logging

    configure_logging(settings.logging)
"""

from cert_exporter.logging.setup import configure_logging, cycle_context

__all__ = ["configure_logging", "cycle_context"]

"""HTTP exposition surface."""

from cert_exporter.server.app import create_app
from cert_exporter.server.runner import ExporterServer, ServerStartError

__all__ = ["ExporterServer", "ServerStartError", "create_app"]

"""Serve the exporter's Flask app from a background thread.

The refresh loop owns the main thread, so the HTTP side runs werkzeug's
threaded server in a daemon thread instead of taking over the process.

Usage::

    server = ExporterServer(app, settings.server)
    server.start()
    ...
    server.stop()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from werkzeug.serving import make_server

if TYPE_CHECKING:
    from flask import Flask
    from werkzeug.serving import BaseWSGIServer

    from cert_exporter.config.settings import ServerSettings

log = logging.getLogger(__name__)


class ServerStartError(RuntimeError):
    """The exposition endpoint could not be bound."""


class ExporterServer:
    """Threaded werkzeug server bound to the configured address."""

    def __init__(self, app: Flask, settings: ServerSettings) -> None:
        self._app = app
        self._settings = settings
        self._server: BaseWSGIServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        """Port actually bound (useful when configured with port 0)."""
        if self._server is None:
            return self._settings.port
        return self._server.server_port

    def start(self) -> None:
        """Bind the socket and start serving in a daemon thread."""
        s = self._settings
        # werkzeug prints the bind error and calls sys.exit(1) itself
        try:
            self._server = make_server(s.bind, s.port, self._app, threaded=True)
        except (OSError, SystemExit) as exc:
            msg = f"can not start exporter on {s.bind}:{s.port}"
            raise ServerStartError(msg) from exc

        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="exporter-http",
            daemon=True,
        )
        self._thread.start()
        log.info("Listening on http://%s:%d", s.bind, self.port)

    def stop(self) -> None:
        """Stop serving and wait for the server thread."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        log.info("HTTP server stopped")

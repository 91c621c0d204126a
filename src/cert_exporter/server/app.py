"""Flask application exposing the gauge registry.

Usage::

    from cert_exporter.server import create_app

    app = create_app(registry, trigger, settings.metrics)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flask import Flask, jsonify, make_response

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

    from cert_exporter.config.settings import MetricsSettings
    from cert_exporter.cycle.trigger import ScrapeTrigger
    from cert_exporter.metrics.registry import GaugeRegistry

log = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def create_app(
    registry: GaugeRegistry,
    trigger: ScrapeTrigger,
    settings: MetricsSettings,
) -> Flask:
    """Create the exporter's WSGI application.

    Every request to ``settings.path`` waits for the refresh loop to finish
    a cycle before the registry is rendered.
    """
    app = Flask("cert_exporter")
    app.extensions["gauge_registry"] = registry
    app.extensions["scrape_trigger"] = trigger

    def metrics() -> ResponseReturnValue:
        """Return metrics in Prometheus text exposition format."""
        trigger.request()
        response = make_response(registry.export())
        response.headers["Content-Type"] = CONTENT_TYPE
        return response

    app.add_url_rule(settings.path, "metrics", metrics, methods=["GET"])
    _register_health(app)

    log.debug("Metrics served at %s", settings.path)
    return app


def _register_health(app: Flask) -> None:
    """Register the ``/healthz`` probe."""
    from cert_exporter import __version__  # noqa: PLC0415

    @app.route("/healthz")
    def healthz() -> ResponseReturnValue:
        """Return liveness and version; never triggers a refresh."""
        return jsonify({"status": "ok", "version": __version__}), 200

"""cert-exporter command-line entry point.

Usage::

    cert-exporter --cert-glob '/etc/ssl/private/*.pem'
    cert-exporter -g '/etc/letsencrypt/live/**/fullchain.pem' -b 0.0.0.0:9811
    cert-exporter -c /etc/cert-exporter/config.yaml
    cert-exporter -c config.yaml --validate-only
    python -m cert_exporter -g '/etc/ssl/*.crt' -l debug
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

log = logging.getLogger(__name__)

_LOG_LEVELS = ("trace", "debug", "info", "warn", "error")


def _get_version() -> str:
    from cert_exporter import __version__

    return __version__


def parse_binding(value: str) -> tuple[str, int]:
    """Split ``host:port`` (``[::1]:9811`` for IPv6) into its parts."""
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        msg = f"expected HOST:PORT, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_num = int(port)
    except ValueError:
        msg = f"invalid port in {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    if not 0 <= port_num <= 65535:  # noqa: PLR2004
        msg = f"port out of range in {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return host, port_num


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cert-exporter",
        description="Expose certificate validity windows as Prometheus gauges.",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="PATH",
        help="Path to a configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "-g",
        "--cert-glob",
        metavar="GLOB",
        help="Where to read the certificates from as a glob. Example: /etc/ssl/*.crt",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        choices=_LOG_LEVELS,
        help="Log level to run under (default: info).",
    )
    parser.add_argument(
        "-b",
        "--binding",
        type=parse_binding,
        metavar="HOST:PORT",
        help="Address and port to expose the metrics to (default: 127.0.0.1:9811).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    """Translate command-line flags into a nested config mapping."""
    overrides: dict = {}
    if args.cert_glob is not None:
        overrides["certificates"] = {"glob": args.cert_glob}
    if args.log_level is not None:
        overrides["logging"] = {"level": args.log_level}
    if args.binding is not None:
        host, port = args.binding
        overrides["server"] = {"bind": host, "port": port}
    return overrides


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"cert-exporter: error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs the exporter."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.config is None and args.cert_glob is None:
        parser.error("one of --config or --cert-glob is required")

    if args.config is not None and not Path(args.config).is_file():
        _print_error(f"configuration file not found: {args.config}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    from cert_exporter.config import ConfigValidationError, ExporterConfig

    try:
        config = ExporterConfig(config_file=args.config, overrides=_overrides(args))
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)

    # -- replace bootstrap logging with structured logging ---
    from cert_exporter.logging import configure_logging

    configure_logging(config.settings.logging)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    _run(config)


def _run(config) -> None:
    """Wire the components together and serve until interrupted."""
    from cert_exporter.certificates import CertificateReader
    from cert_exporter.cycle import CertificateGlob, CycleOrchestrator, ScrapeTrigger
    from cert_exporter.metrics import GaugeRegistry, MetricsAggregator
    from cert_exporter.server import ExporterServer, ServerStartError, create_app

    settings = config.settings

    registry = GaugeRegistry()
    trigger = ScrapeTrigger()
    aggregator = MetricsAggregator(registry, settings.metrics)
    orchestrator = CycleOrchestrator(
        CertificateGlob(settings.certificates.glob),
        CertificateReader(),
        aggregator,
        trigger,
    )

    server = ExporterServer(create_app(registry, trigger, settings.metrics), settings.server)
    try:
        server.start()
    except ServerStartError as exc:
        _print_error(str(exc))
        sys.exit(1)

    stop = threading.Event()
    _install_signal_handlers(stop)
    try:
        orchestrator.run(stop)
    finally:
        server.stop()


def _install_signal_handlers(stop: threading.Event) -> None:
    def _handle(signum: int, _frame: object) -> None:
        log.info("Received %s, shutting down", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    print(f"certificates: {s.certificates.glob}")  # noqa: T201
    print(f"listen:       {s.server.bind}:{s.server.port}{s.metrics.path}")  # noqa: T201
    print(f"namespace:    {s.metrics.namespace}")  # noqa: T201
    print(f"log level:    {s.logging.level} ({s.logging.format})")  # noqa: T201

"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
JSON Schema defaults exist only for documentation; these builders
are what the exporter actually reads.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerSettings:
    """Exposition endpoint bind address."""

    bind: str
    port: int


def _build_server(data: dict | None) -> ServerSettings:
    d = data or {}
    return ServerSettings(
        bind=d.get("bind", "127.0.0.1"),
        port=d.get("port", 9811),
    )


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CertificateSettings:
    """Where certificate files are discovered."""

    glob: str


def _build_certificates(data: dict | None) -> CertificateSettings:
    d = data or {}
    return CertificateSettings(glob=d["glob"])


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetricsSettings:
    namespace: str
    path: str
    has_expired: bool


def _build_metrics(data: dict | None) -> MetricsSettings:
    d = data or {}
    return MetricsSettings(
        namespace=d.get("namespace", "cert_exporter"),
        path=d.get("path", "/metrics"),
        has_expired=d.get("has_expired", True),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    """Application logging configuration (level, format)."""

    level: str
    format: str


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExporterSettings:
    server: ServerSettings
    certificates: CertificateSettings
    metrics: MetricsSettings
    logging: LoggingSettings


def build_settings(data: dict) -> ExporterSettings:
    """Build the full typed settings tree from raw config data.

    Called once during :class:`ExporterConfig` initialization after
    schema validation and environment-variable resolution.
    """
    return ExporterSettings(
        server=_build_server(data.get("server")),
        certificates=_build_certificates(data.get("certificates")),
        metrics=_build_metrics(data.get("metrics")),
        logging=_build_logging(data.get("logging")),
    )

"""Configuration subsystem for cert-exporter.

Public API::

    from cert_exporter.config import ExporterConfig

    config = ExporterConfig(config_file="config.yaml")
    pattern = config.settings.certificates.glob
"""

from cert_exporter.config.exporter_config import (
    ConfigValidationError,
    ExporterConfig,
)
from cert_exporter.config.settings import (
    CertificateSettings,
    ExporterSettings,
    LoggingSettings,
    MetricsSettings,
    ServerSettings,
)

__all__ = [
    "CertificateSettings",
    "ConfigValidationError",
    "ExporterConfig",
    "ExporterSettings",
    "LoggingSettings",
    "MetricsSettings",
    "ServerSettings",
]

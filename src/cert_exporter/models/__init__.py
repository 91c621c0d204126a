"""Domain entities."""

from cert_exporter.models.certificate import Certificate

__all__ = ["Certificate"]

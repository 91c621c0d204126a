"""Certificate extraction: PEM framing, X.509 decoding and deduplication.

Public API::

    from cert_exporter.certificates import CertificateReader, build_certificate_set

    reader = CertificateReader()
    certs = build_certificate_set(reader.read(path))
"""

from cert_exporter.certificates.certificate_set import build_certificate_set
from cert_exporter.certificates.errors import (
    AttributeParseError,
    CertificateIOError,
    CertParseError,
    PEMParseError,
    ReadError,
)
from cert_exporter.certificates.reader import CertificateReader

__all__ = [
    "AttributeParseError",
    "CertParseError",
    "CertificateIOError",
    "CertificateReader",
    "PEMParseError",
    "ReadError",
    "build_certificate_set",
]

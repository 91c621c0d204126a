"""Errors raised while reading certificates from disk.

Every error carries the offending ``path`` so the cycle can report it and
move on to the next file.  The underlying library error is kept as
``__cause__``.
"""

from __future__ import annotations

from pathlib import Path


class ReadError(Exception):
    """Base class for per-file certificate read failures."""

    reason = "can not read certificates"

    def __init__(self, path: str | Path, detail: str) -> None:
        self.path = Path(path)
        self.detail = detail
        super().__init__(f"{self.reason} from {self.path}: {detail}")


class CertificateIOError(ReadError):
    """The file could not be opened or read."""

    reason = "can not open certificate file"


class PEMParseError(ReadError):
    """The file content is not well-formed PEM."""

    reason = "can not parse pem"


class CertParseError(ReadError):
    """A certificate block does not hold a valid DER X.509 structure."""

    reason = "can not parse x509 from pem"


class AttributeParseError(ReadError):
    """A subject commonName value could not be decoded as text."""

    reason = "can not parse common names"

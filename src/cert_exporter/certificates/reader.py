"""Turn certificate files on disk into :class:`Certificate` records.

Usage::

    reader = CertificateReader()
    for cert in reader.read("/etc/ssl/certs/chain.pem"):
        print(cert.common_names, cert.not_after)

Any failure aborts the whole file with a :class:`ReadError` subclass; the
caller decides whether to skip the file or give up.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.x509.oid import NameOID

from cert_exporter.certificates.errors import (
    AttributeParseError,
    CertificateIOError,
    CertParseError,
    PEMParseError,
)
from cert_exporter.certificates.pem import PemFramingError, iter_pem_blocks
from cert_exporter.models.certificate import Certificate

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)

_ZERO = timedelta(0)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _attribute_text(value: str | bytes) -> str:
    if isinstance(value, str):
        return value
    return value.decode("utf-8")


class CertificateReader:
    """Parse PEM bundles into certificate records.

    Parameters
    ----------
    clock:
        Returns the current time as an aware UTC datetime.  Called once
        per :meth:`read`.

    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock

    def read(self, path: str | Path) -> list[Certificate]:
        """Return every certificate stored in *path*, in file order.

        Blocks that are not certificates (private keys, CSRs, parameters)
        are skipped.  A file without any PEM block yields an empty list.
        """
        path = Path(path)
        now = self._clock()

        try:
            data = path.read_bytes()
        except OSError as exc:
            raise CertificateIOError(path, str(exc)) from exc

        try:
            blocks = [block for block in iter_pem_blocks(data) if block.is_certificate]
        except PemFramingError as exc:
            raise PEMParseError(path, str(exc)) from exc

        decoded = []
        for block in blocks:
            try:
                decoded.append(x509.load_der_x509_certificate(block.der))
            except (ValueError, x509.InvalidVersion) as exc:
                raise CertParseError(path, str(exc)) from exc

        certificates = [self._to_certificate(path, cert, now) for cert in decoded]
        log.debug("Read %d certificate(s) from %s", len(certificates), path)
        return certificates

    @staticmethod
    def _to_certificate(
        path: Path,
        cert: x509.Certificate,
        now: datetime,
    ) -> Certificate:
        try:
            subject = cert.subject
            common_names = tuple(
                _attribute_text(attr.value)
                for attr in subject.get_attributes_for_oid(NameOID.COMMON_NAME)
            )
            subject_str = subject.rfc4514_string()
        except ValueError as exc:
            raise AttributeParseError(path, str(exc)) from exc

        try:
            issuer_str = cert.issuer.rfc4514_string()
            not_before = cert.not_valid_before_utc.replace(microsecond=0)
            not_after = cert.not_valid_after_utc.replace(microsecond=0)
        except ValueError as exc:
            raise CertParseError(path, str(exc)) from exc

        return Certificate(
            subject=subject_str,
            issuer=issuer_str,
            common_names=common_names,
            not_before=not_before,
            not_after=not_after,
            time_to_expiration=max(_ZERO, not_after - now),
        )

"""Root conftest for the cert-exporter test suite."""

from __future__ import annotations

import base64
import logging
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Helpers: generate real crypto material for testing
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def signing_key() -> ec.EllipticCurvePrivateKey:
    """One P-256 key shared by every generated certificate."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture()
def make_cert(signing_key):
    """Return a factory producing self-issued test certificates.

    ``common_names`` become separate CN attributes in the subject;
    ``organization`` is added first when given.
    """

    def _make(
        common_names: tuple[str, ...] = ("example.com",),
        *,
        not_before: datetime | None = None,
        not_after: datetime | None = None,
        organization: str | None = None,
    ) -> x509.Certificate:
        now = datetime.now(UTC).replace(microsecond=0)
        attrs = []
        if organization is not None:
            attrs.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
        attrs.extend(x509.NameAttribute(NameOID.COMMON_NAME, cn) for cn in common_names)

        builder = (
            x509.CertificateBuilder()
            .subject_name(x509.Name(attrs))
            .issuer_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test CA")]))
            .public_key(signing_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(not_before or now - timedelta(days=1))
            .not_valid_after(not_after or now + timedelta(days=90))
        )
        return builder.sign(signing_key, hashes.SHA256())

    return _make


def cert_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


@pytest.fixture()
def private_key_pem(signing_key) -> bytes:
    """The shared signing key as an unencrypted PKCS#8 PEM block."""
    return signing_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture()
def write_bundle(tmp_path: Path):
    """Write PEM chunks (certificates or raw bytes) into a file under tmp_path."""

    def _write(name: str, *parts: x509.Certificate | bytes) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            b"".join(p if isinstance(p, bytes) else cert_pem(p) for p in parts),
        )
        return path

    return _write


@pytest.fixture()
def tampered_pem():
    """Return a factory that rewrites one byte run inside a certificate's DER.

    The signature is left stale; only structure matters to the reader.
    """

    def _tamper(cert: x509.Certificate, old: bytes, new: bytes) -> bytes:
        der = cert.public_bytes(serialization.Encoding.DER)
        assert der.count(old) == 1
        body = base64.encodebytes(der.replace(old, new))
        return b"-----BEGIN CERTIFICATE-----\n" + body + b"-----END CERTIFICATE-----\n"

    return _tamper


@pytest.fixture()
def malformed_pem() -> bytes:
    """A certificate block with no END line."""
    return b"-----BEGIN CERTIFICATE-----\nMIIBszCCAVmgAwIBAgIU\n"


# ---------------------------------------------------------------------------
# Logger cleanup: configure_logging() detaches the package logger from the
# root logger, which would hide records from caplog in later tests.
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("cert_exporter")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

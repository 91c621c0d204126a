"""Minimal PEM envelope splitter.

Only the framing is handled here (``-----BEGIN X-----`` / ``-----END X-----``
pairs and the base64 body).  Decoding the DER payload is left to the caller.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

_BEGIN_RE = re.compile(rb"-----BEGIN ([^-\r\n]+)-----")
_ANY_MARKER = b"-----"

CERTIFICATE_LABELS = frozenset(
    {
        "CERTIFICATE",
        "X509 CERTIFICATE",
    }
)


class PemFramingError(ValueError):
    """Raised on a malformed PEM envelope."""


@dataclass(frozen=True)
class PemBlock:
    label: str
    der: bytes

    @property
    def is_certificate(self) -> bool:
        return self.label in CERTIFICATE_LABELS


def _strip_headers(lines: list[bytes]) -> list[bytes]:
    """Drop RFC 1421 encapsulated headers (``Proc-Type:`` and friends)."""
    if not lines or b":" not in lines[0]:
        return lines
    for idx, line in enumerate(lines):
        if not line:
            return lines[idx + 1 :]
    msg = "encapsulated headers are not terminated by a blank line"
    raise PemFramingError(msg)


def iter_pem_blocks(data: bytes) -> Iterator[PemBlock]:
    """Yield every PEM block found in *data*, in file order.

    Text between blocks is ignored.  Raises :class:`PemFramingError` when a
    block has no matching END line, when another marker appears inside a
    block, or when the body is not valid base64.
    """
    pos = 0
    while True:
        begin = _BEGIN_RE.search(data, pos)
        if begin is None:
            return

        raw_label = begin.group(1)
        label = raw_label.decode("ascii", errors="replace")
        end_marker = b"-----END " + raw_label + b"-----"
        end = data.find(end_marker, begin.end())
        if end == -1:
            msg = f"missing END line for {label!r} block"
            raise PemFramingError(msg)

        body = data[begin.end() : end]
        if _ANY_MARKER in body:
            msg = f"unexpected marker inside {label!r} block"
            raise PemFramingError(msg)

        lines = _strip_headers([line.strip() for line in body.strip().splitlines()])
        try:
            der = base64.b64decode(b"".join(lines), validate=True)
        except binascii.Error as exc:
            msg = f"invalid base64 in {label!r} block: {exc}"
            raise PemFramingError(msg) from exc

        yield PemBlock(label=label, der=der)
        pos = end + len(end_marker)

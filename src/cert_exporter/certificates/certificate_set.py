"""Deduplication of certificates collected across one cycle."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cert_exporter.models.certificate import Certificate


def build_certificate_set(certificates: Iterable[Certificate]) -> frozenset[Certificate]:
    """Collapse structurally equal certificates into one member.

    Overlapping globs (a full-chain bundle next to a leaf-only file) would
    otherwise publish the same certificate twice per cycle.
    """
    return frozenset(certificates)

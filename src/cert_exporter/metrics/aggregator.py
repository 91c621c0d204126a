"""Republish a set of certificates as ``common_name``-labelled gauges.

Usage::

    registry = GaugeRegistry()
    aggregator = MetricsAggregator(registry, settings.metrics)
    aggregator.update(build_certificate_set(certs))
    body = registry.export()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cert_exporter import __version__

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cert_exporter.config.settings import MetricsSettings
    from cert_exporter.metrics.registry import GaugeRegistry
    from cert_exporter.models.certificate import Certificate

log = logging.getLogger(__name__)

LABEL = "common_name"


class MetricsAggregator:
    """Owns the certificate gauges of a :class:`GaugeRegistry`.

    Every :meth:`update` replaces the whole snapshot: common names that are
    no longer on disk disappear instead of publishing their last value.
    """

    def __init__(
        self,
        registry: GaugeRegistry,
        settings: MetricsSettings,
        version: str = __version__,
    ) -> None:
        self._registry = registry
        ns = settings.namespace

        self.not_before = f"{ns}_not_before_timestamp"
        self.not_after = f"{ns}_not_after_timestamp"
        self.time_to_expiration = f"{ns}_time_to_expiration_seconds"
        self.has_expired = f"{ns}_has_expired" if settings.has_expired else None
        self.version = f"{ns}_version"

        registry.register(self.not_before, "unix time before which the certificate is invalid")
        registry.register(self.not_after, "unix time after which the certificate is invalid")
        registry.register(
            self.time_to_expiration,
            "time in seconds until when the certificate expires",
        )
        if self.has_expired is not None:
            registry.register(self.has_expired, "if the certificate has expired or not")

        registry.register(self.version, "version of the running cert-exporter instance")
        registry.set(self.version, 1, {"version": version})

    @property
    def gauge_names(self) -> tuple[str, ...]:
        """Names of the gauges rebuilt on every update."""
        names = [self.not_before, self.not_after, self.time_to_expiration]
        if self.has_expired is not None:
            names.append(self.has_expired)
        return tuple(names)

    def update(self, certificates: Iterable[Certificate]) -> None:
        """Replace every certificate gauge with values from *certificates*.

        When several certificates share a common name the one expiring
        soonest wins, then the lowest subject and issuer.
        """
        ordered = sorted(
            certificates,
            key=lambda c: (c.not_after, c.subject, c.issuer, c.common_names),
            reverse=True,
        )

        with self._registry.batch():
            for name in self.gauge_names:
                self._registry.reset(name)

            for cert in ordered:
                for common_name in cert.common_names:
                    self._publish(cert, {LABEL: common_name})

        log.debug(
            "Published %d certificate(s) under %d common name(s)",
            len(ordered),
            len(self._registry.series(self.not_after)),
        )

    def _publish(self, cert: Certificate, labels: dict[str, str]) -> None:
        self._registry.set(self.not_before, int(cert.not_before.timestamp()), labels)
        self._registry.set(self.not_after, int(cert.not_after.timestamp()), labels)
        self._registry.set(
            self.time_to_expiration,
            int(cert.time_to_expiration.total_seconds()),
            labels,
        )
        if self.has_expired is not None:
            self._registry.set(self.has_expired, int(cert.has_expired), labels)

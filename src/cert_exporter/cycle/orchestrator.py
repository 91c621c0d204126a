"""Refresh loop driving one read-dedupe-publish cycle per scrape.

Usage::

    orchestrator = CycleOrchestrator(discovery, reader, aggregator, trigger)
    orchestrator.run(stop_event)     # blocks until stop_event is set
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cert_exporter.certificates import ReadError, build_certificate_set
from cert_exporter.logging import cycle_context

if TYPE_CHECKING:
    from pathlib import Path

    from cert_exporter.certificates import CertificateReader
    from cert_exporter.cycle.discovery import CertificateGlob
    from cert_exporter.cycle.trigger import ScrapeTrigger
    from cert_exporter.metrics import MetricsAggregator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleResult:
    """Outcome of one refresh."""

    number: int
    files: tuple[Path, ...] = ()
    certificates: int = 0
    errors: tuple[ReadError, ...] = field(default=())
    skipped: bool = False


class CycleOrchestrator:
    """Waits for scrapes and refreshes the gauges before releasing them.

    Parameters
    ----------
    discovery:
        Source of the certificate file list for each cycle.
    reader:
        Parses one file into certificate records.
    aggregator:
        Owner of the published gauges.
    trigger:
        Scrape hand-off shared with the HTTP server.
    poll_interval:
        Seconds between checks of the stop event while idle.

    """

    def __init__(
        self,
        discovery: CertificateGlob,
        reader: CertificateReader,
        aggregator: MetricsAggregator,
        trigger: ScrapeTrigger,
        poll_interval: float = 1.0,
    ) -> None:
        self._discovery = discovery
        self._reader = reader
        self._aggregator = aggregator
        self._trigger = trigger
        self._poll_interval = poll_interval
        self._cycles = 0

    @property
    def cycles(self) -> int:
        """Number of refreshes started so far."""
        return self._cycles

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Serve scrapes until *stop_event* is set."""
        stop = stop_event or threading.Event()
        log.info("Waiting for scrapes (pattern=%s)", self._discovery.pattern)

        while not stop.is_set():
            guard = self._trigger.wait_request(timeout=self._poll_interval)
            if guard is None:
                continue
            with guard:
                self.refresh()

        log.info("Refresh loop stopped after %d cycle(s)", self._cycles)

    def refresh(self) -> CycleResult:
        """Run one full cycle and publish its certificates."""
        self._cycles += 1
        number = self._cycles

        with cycle_context(number):
            try:
                paths = self._discovery.paths()
            except OSError:
                log.exception(
                    "Can not enumerate %s; keeping the previous snapshot",
                    self._discovery.pattern,
                )
                return CycleResult(number=number, skipped=True)

            certificates = []
            errors: list[ReadError] = []
            for path in paths:
                try:
                    certificates.extend(self._reader.read(path))
                except ReadError as exc:
                    log.error("%s", exc)  # noqa: TRY400
                    errors.append(exc)

            certificate_set = build_certificate_set(certificates)
            self._aggregator.update(certificate_set)

            log.debug(
                "Cycle complete: %d file(s), %d unique certificate(s), %d error(s)",
                len(paths),
                len(certificate_set),
                len(errors),
            )
            return CycleResult(
                number=number,
                files=tuple(paths),
                certificates=len(certificate_set),
                errors=tuple(errors),
            )

"""Certificate discovery, scrape hand-off and the refresh loop."""

from cert_exporter.cycle.discovery import (
    CertificateGlob,
    InvalidGlobError,
    validate_glob_pattern,
)
from cert_exporter.cycle.orchestrator import CycleOrchestrator, CycleResult
from cert_exporter.cycle.trigger import ScrapeGuard, ScrapeTrigger

__all__ = [
    "CertificateGlob",
    "CycleOrchestrator",
    "CycleResult",
    "InvalidGlobError",
    "ScrapeGuard",
    "ScrapeTrigger",
    "validate_glob_pattern",
]

"""Unit tests for cert_exporter.cycle.orchestrator.CycleOrchestrator."""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from cert_exporter.certificates import CertificateReader, CertParseError, PEMParseError
from cert_exporter.config.settings import MetricsSettings
from cert_exporter.cycle import CertificateGlob, CycleOrchestrator, ScrapeTrigger
from cert_exporter.metrics import GaugeRegistry, MetricsAggregator


@pytest.fixture()
def registry() -> GaugeRegistry:
    return GaugeRegistry()


@pytest.fixture()
def aggregator(registry) -> MetricsAggregator:
    settings = MetricsSettings(namespace="cert_exporter", path="/metrics", has_expired=True)
    return MetricsAggregator(registry, settings)


@pytest.fixture()
def orchestrator(tmp_path, aggregator) -> CycleOrchestrator:
    return CycleOrchestrator(
        CertificateGlob(str(tmp_path / "*.pem")),
        CertificateReader(),
        aggregator,
        ScrapeTrigger(),
        poll_interval=0.01,
    )


def _published(registry: GaugeRegistry, aggregator: MetricsAggregator) -> set[str]:
    return {dict(key)["common_name"] for key in registry.series(aggregator.not_after)}


class TestRefresh:
    def test_publishes_certificates_from_all_files(
        self, orchestrator, registry, aggregator, make_cert, write_bundle
    ):
        write_bundle("a.pem", make_cert(("a.example",)))
        write_bundle("b.pem", make_cert(("b.example", "c.example")))

        result = orchestrator.refresh()

        assert result.number == 1
        assert len(result.files) == 2
        assert result.certificates == 2
        assert result.errors == ()
        assert _published(registry, aggregator) == {"a.example", "b.example", "c.example"}

    def test_no_files(self, orchestrator, registry, aggregator):
        result = orchestrator.refresh()

        assert result.files == ()
        assert result.certificates == 0
        for name in aggregator.gauge_names:
            assert registry.series(name) == {}

    def test_malformed_file_is_skipped(
        self, orchestrator, registry, aggregator, make_cert, write_bundle, malformed_pem, caplog
    ):
        bad = write_bundle("a-broken.pem", malformed_pem)
        write_bundle("b-good.pem", make_cert(("good.example",)))

        with caplog.at_level(logging.ERROR, logger="cert_exporter"):
            result = orchestrator.refresh()

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], PEMParseError)
        assert result.errors[0].path == bad
        assert "a-broken.pem" in caplog.text
        assert _published(registry, aggregator) == {"good.example"}

    def test_invalid_version_file_is_skipped(
        self, orchestrator, registry, aggregator, make_cert, write_bundle, tampered_pem, caplog
    ):
        bad = tampered_pem(make_cert(("v4.example",)), b"\xa0\x03\x02\x01\x02", b"\xa0\x03\x02\x01\x03")
        write_bundle("a-v4.pem", bad)
        write_bundle("b-good.pem", make_cert(("good.example",)))

        with caplog.at_level(logging.ERROR, logger="cert_exporter"):
            result = orchestrator.refresh()

        assert [type(e) for e in result.errors] == [CertParseError]
        assert "a-v4.pem" in caplog.text
        assert _published(registry, aggregator) == {"good.example"}

    def test_duplicate_content_counted_once(self, orchestrator, make_cert, write_bundle):
        leaf = make_cert(("www.example.com",))
        write_bundle("fullchain.pem", leaf, make_cert(("Intermediate",)))
        write_bundle("cert.pem", leaf)

        assert orchestrator.refresh().certificates == 2

    def test_removed_file_disappears_next_cycle(
        self, orchestrator, registry, aggregator, make_cert, write_bundle
    ):
        old = write_bundle("old.pem", make_cert(("old.example",)))
        write_bundle("kept.pem", make_cert(("kept.example",)))
        orchestrator.refresh()

        old.unlink()
        orchestrator.refresh()

        assert _published(registry, aggregator) == {"kept.example"}
        assert orchestrator.cycles == 2

    def test_expired_certificate(self, orchestrator, registry, aggregator, make_cert, write_bundle):
        write_bundle(
            "expired.pem",
            make_cert(
                ("expired.example",),
                not_before=datetime(2019, 1, 1, tzinfo=UTC),
                not_after=datetime(2020, 1, 1, tzinfo=UTC),
            ),
        )

        orchestrator.refresh()

        labels = {"common_name": "expired.example"}
        assert registry.get(aggregator.time_to_expiration, labels) == 0
        assert registry.get(aggregator.has_expired, labels) == 1

    def test_enumeration_failure_keeps_previous_snapshot(self, aggregator, registry, caplog):
        discovery = MagicMock(pattern="/certs/*.pem")
        discovery.paths.side_effect = PermissionError("denied")
        aggregator.update = MagicMock()
        orchestrator = CycleOrchestrator(discovery, CertificateReader(), aggregator, ScrapeTrigger())

        with caplog.at_level(logging.ERROR, logger="cert_exporter"):
            result = orchestrator.refresh()

        assert result.skipped is True
        aggregator.update.assert_not_called()
        assert "Can not enumerate" in caplog.text


class TestRun:
    def test_scrape_sees_completed_cycle(
        self, tmp_path, orchestrator, registry, make_cert, write_bundle
    ):
        trigger = orchestrator._trigger
        write_bundle("a.pem", make_cert(("a.example",)))
        stop = threading.Event()
        loop = threading.Thread(target=orchestrator.run, args=(stop,))
        loop.start()

        try:
            assert trigger.request(timeout=5) is True
            assert 'common_name="a.example"' in registry.export()
            assert orchestrator.cycles == 1
        finally:
            stop.set()
            loop.join(timeout=5)

        assert not loop.is_alive()

    def test_idle_loop_stops_without_cycles(self, orchestrator):
        stop = threading.Event()
        loop = threading.Thread(target=orchestrator.run, args=(stop,))
        loop.start()
        stop.set()
        loop.join(timeout=5)

        assert not loop.is_alive()
        assert orchestrator.cycles == 0

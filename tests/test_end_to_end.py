"""End-to-end: files on disk, refresh loop, and a scrape over the Flask app."""

from __future__ import annotations

import threading
from datetime import UTC, datetime

import pytest

from cert_exporter.certificates import CertificateReader
from cert_exporter.config import ExporterConfig
from cert_exporter.cycle import CertificateGlob, CycleOrchestrator, ScrapeTrigger
from cert_exporter.metrics import GaugeRegistry, MetricsAggregator
from cert_exporter.server import create_app


@pytest.fixture()
def exporter(tmp_path):
    config = ExporterConfig(overrides={"certificates": {"glob": str(tmp_path / "*.pem")}})
    settings = config.settings
    registry = GaugeRegistry()
    trigger = ScrapeTrigger()
    orchestrator = CycleOrchestrator(
        CertificateGlob(settings.certificates.glob),
        CertificateReader(),
        MetricsAggregator(registry, settings.metrics),
        trigger,
        poll_interval=0.01,
    )
    client = create_app(registry, trigger, settings.metrics).test_client()

    stop = threading.Event()
    loop = threading.Thread(target=orchestrator.run, args=(stop,), daemon=True)
    loop.start()
    yield client
    stop.set()
    loop.join(timeout=5)


def _scrape(client) -> str:
    resp = client.get("/metrics")
    assert resp.status_code == 200
    return resp.get_data(as_text=True)


class TestScrape:
    def test_two_common_names(self, exporter, make_cert, write_bundle):
        not_after = datetime(2040, 1, 1, tzinfo=UTC)
        write_bundle("site.pem", make_cert(("a.example", "b.example"), not_after=not_after))

        body = _scrape(exporter)

        ts = int(not_after.timestamp())
        assert f'cert_exporter_not_after_timestamp{{common_name="a.example"}} {ts}' in body
        assert f'cert_exporter_not_after_timestamp{{common_name="b.example"}} {ts}' in body
        assert 'cert_exporter_has_expired{common_name="a.example"} 0' in body
        assert 'cert_exporter_version{version="' in body

    def test_no_files(self, exporter):
        body = _scrape(exporter)

        assert "common_name=" not in body
        assert "# TYPE cert_exporter_not_after_timestamp gauge" in body

    def test_broken_file_does_not_hide_valid_ones(
        self, exporter, make_cert, write_bundle, malformed_pem
    ):
        write_bundle("broken.pem", malformed_pem)
        write_bundle("good.pem", make_cert(("good.example",)))

        body = _scrape(exporter)

        assert 'common_name="good.example"' in body

    def test_each_scrape_rereads_disk(self, exporter, make_cert, write_bundle):
        old = write_bundle("old.pem", make_cert(("old.example",)))
        assert 'common_name="old.example"' in _scrape(exporter)

        old.unlink()
        write_bundle("new.pem", make_cert(("new.example",)))
        body = _scrape(exporter)

        assert 'common_name="old.example"' not in body
        assert 'common_name="new.example"' in body

"""Tests for the scrape driver and its prometheus_client integration."""

import logging

from prometheus_client import generate_latest

from nodestat.collector.base import Collector
from nodestat.collector.netdev import NetDevCollector
from nodestat.collector.registry import CollectorRegistry
from nodestat.config import ExporterConfig
from nodestat.errors import SourceUnavailable
from nodestat.exporter import NodeExporter, build_exporter, exposition_text, prometheus_registry
from nodestat.metrics import MetricSink

NET_DEV = """\
Inter-|   Receive          |  Transmit
 face |bytes packets errs|bytes packets errs
  eth0: 100 1 0 200 2 0
"""


class _FailingCollector(Collector):

    def __init__(self, exc):
        self._exc = exc

    def update(self, sink: MetricSink) -> None:
        raise self._exc

    def name(self) -> str:
        return "failing"


def _procfs(tmp_path):
    (tmp_path / "net").mkdir()
    (tmp_path / "net" / "dev").write_text(NET_DEV)
    return ExporterConfig(procfs=str(tmp_path))


def _status(sink, metric):
    return {s.labels["collector"]: s.value for s in sink.samples() if s.name == metric}


def test_scrape_collects_and_reports_success(tmp_path):
    exporter = NodeExporter({"netdev": NetDevCollector(_procfs(tmp_path))})
    sink = exporter.scrape()

    names = {s.name for s in sink.samples()}
    assert "node_network_receive_bytes" in names
    assert _status(sink, "node_scrape_collector_success") == {"netdev": 1.0}
    assert _status(sink, "node_scrape_collector_duration_seconds")["netdev"] >= 0


def test_failing_collector_is_isolated(tmp_path, caplog):
    exporter = NodeExporter({
        "broken": _FailingCollector(SourceUnavailable("/proc/net/dev", "gone")),
        "netdev": NetDevCollector(_procfs(tmp_path)),
    })

    with caplog.at_level(logging.ERROR, logger="nodestat.exporter"):
        sink = exporter.scrape()

    assert _status(sink, "node_scrape_collector_success") == {"broken": 0.0, "netdev": 1.0}
    assert any(s.labels.get("device") == "eth0" for s in sink.samples())
    assert "Collector broken failed" in caplog.text


def test_unexpected_exception_is_isolated(tmp_path):
    exporter = NodeExporter({
        "broken": _FailingCollector(RuntimeError("boom")),
        "netdev": NetDevCollector(_procfs(tmp_path)),
    })
    sink = exporter.scrape()
    assert _status(sink, "node_scrape_collector_success") == {"broken": 0.0, "netdev": 1.0}


def test_failed_update_publishes_nothing_from_that_collector(tmp_path):
    config = _procfs(tmp_path)
    collector = NetDevCollector(config)
    exporter = NodeExporter({"netdev": collector})
    exporter.scrape()

    (tmp_path / "net" / "dev").write_text(NET_DEV.replace("200", "oops"))
    sink = exporter.scrape()

    assert _status(sink, "node_scrape_collector_success") == {"netdev": 0.0}
    assert not any(s.name.startswith("node_network_") for s in sink.samples())
    # The cache still holds the last good values for the next successful scrape
    assert collector.cache.value("transmit_bytes", "eth0") == 200.0


def test_build_exporter_from_config(tmp_path):
    config = _procfs(tmp_path)
    exporter = build_exporter(config)
    assert exporter.collector_names == ["netdev"]


def test_build_exporter_with_custom_registry(tmp_path):
    registry = CollectorRegistry()
    registry.register("netdev", NetDevCollector)
    registry.register("extra", lambda cfg: _FailingCollector(RuntimeError("x")))
    config = _procfs(tmp_path)
    config.collectors = ["extra", "netdev"]

    exporter = build_exporter(config, registry=registry)
    assert exporter.collector_names == ["extra", "netdev"]
    assert exporter.name() == "extra, netdev"


def test_prometheus_registry_exposition(tmp_path):
    exporter = NodeExporter({"netdev": NetDevCollector(_procfs(tmp_path))})
    text = generate_latest(prometheus_registry(exporter)).decode()

    assert "# TYPE node_network_receive_bytes gauge" in text
    assert 'node_network_receive_bytes{device="eth0"} 100.0' in text
    assert 'node_scrape_collector_success{collector="netdev"} 1.0' in text


def test_exposition_text_from_sink(tmp_path):
    exporter = NodeExporter({"netdev": NetDevCollector(_procfs(tmp_path))})
    text = exposition_text(exporter.scrape())
    assert 'node_network_transmit_packets{device="eth0"} 2.0' in text


def test_no_collectors():
    exporter = NodeExporter({})
    sink = exporter.scrape()
    assert len(sink) == 0
    assert exporter.name() == "no collectors"

"""
Scrape driver.

NodeExporter plugs into prometheus_client as a custom collector. Each
scrape runs every enabled collector's update() into a fresh sink, one
after another. A collector that fails is logged and reported through
scrape_collector_success=0; the rest of the scrape goes ahead.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterator, List, Optional

from prometheus_client import CollectorRegistry as PrometheusRegistry
from prometheus_client import generate_latest, start_http_server
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from nodestat.collector.base import Collector
from nodestat.collector.registry import CollectorRegistry, default_registry
from nodestat.config import ExporterConfig
from nodestat.errors import CollectorError
from nodestat.metrics import MetricSink

log = logging.getLogger(__name__)


class NodeExporter:

    def __init__(self, collectors: Dict[str, Collector], namespace: str = "node"):
        self._collectors = collectors
        self._namespace = namespace

    @property
    def collector_names(self) -> List[str]:
        return list(self._collectors)

    def _run_one(self, name: str, collector: Collector, sink: MetricSink) -> bool:
        try:
            collector.update(sink)
        except CollectorError as e:
            log.error("Collector %s failed: %s", name, e)
            return False
        except Exception:
            log.exception("Collector %s failed unexpectedly", name)
            return False
        return True

    def scrape(self) -> MetricSink:
        """Run every collector once and return everything they published."""
        sink = MetricSink()
        duration = GaugeMetricFamily(
            f"{self._namespace}_scrape_collector_duration_seconds",
            "Duration of a collector scrape.",
            labels=["collector"],
        )
        success = GaugeMetricFamily(
            f"{self._namespace}_scrape_collector_success",
            "Whether a collector succeeded.",
            labels=["collector"],
        )

        for name, collector in self._collectors.items():
            # Collector output goes to a scratch sink so a failed update
            # can't leak half its metrics into the scrape.
            scratch = MetricSink()
            start = time.perf_counter()
            ok = self._run_one(name, collector, scratch)
            elapsed = time.perf_counter() - start

            if ok:
                sink.extend(scratch.families)
            log.debug("Collector %s finished in %.4fs (ok=%s)", name, elapsed, ok)
            duration.add_metric([name], elapsed)
            success.add_metric([name], 1.0 if ok else 0.0)

        sink.emit(duration)
        sink.emit(success)
        return sink

    # prometheus_client collector protocol

    def collect(self) -> Iterator[Metric]:
        yield from self.scrape().families

    def describe(self) -> List[Metric]:
        return []

    def name(self) -> str:
        return ", ".join(self._collectors) or "no collectors"


def build_exporter(config: ExporterConfig, registry: Optional[CollectorRegistry] = None) -> NodeExporter:
    if registry is None:
        registry = default_registry()
    collectors = registry.build(config.collectors, config)
    return NodeExporter(collectors, namespace=config.namespace)


def prometheus_registry(exporter: NodeExporter) -> PrometheusRegistry:
    """A dedicated prometheus_client registry holding only our exporter."""
    registry = PrometheusRegistry()
    registry.register(exporter)
    return registry


def serve(exporter: NodeExporter, address: str, port: int):
    """Start the /metrics endpoint in a background thread."""
    registry = prometheus_registry(exporter)
    start_http_server(port, addr=address, registry=registry)
    log.info("Serving %s on http://%s:%d/metrics", exporter.name(), address, port)
    return registry


class _SinkView:
    """Replays an already-scraped sink as a prometheus_client collector."""

    def __init__(self, sink: MetricSink):
        self._sink = sink

    def collect(self) -> Iterator[Metric]:
        return iter(self._sink.families)


def exposition_text(sink: MetricSink) -> str:
    """Render a sink in the Prometheus text format."""
    registry = PrometheusRegistry()
    registry.register(_SinkView(sink))
    return generate_latest(registry).decode("utf-8")

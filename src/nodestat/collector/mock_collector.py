"""
Collector that reads from a mock procfs tree.
Used for local development on machines without /proc/net/dev.
"""

from __future__ import annotations

from dataclasses import replace

from nodestat.collector.base import Collector
from nodestat.collector.netdev import NetDevCollector
from nodestat.collector.registry import CollectorRegistry
from nodestat.config import ExporterConfig
from nodestat.metrics import MetricSink
from nodestat.mock.generator import MockProcFS


class MockNetDevCollector(Collector):
    """Advances the fake counters, then runs the real netdev collector on them."""

    def __init__(self, config: ExporterConfig, procfs: MockProcFS):
        self._procfs = procfs
        self._inner = NetDevCollector(replace(config, procfs=procfs.root))

    def update(self, sink: MetricSink) -> None:
        self._procfs.refresh()
        self._inner.update(sink)

    def name(self) -> str:
        return "netdev"


def mock_registry(procfs: MockProcFS) -> CollectorRegistry:
    """Registry whose netdev collector reads the mock tree."""
    registry = CollectorRegistry()
    registry.register("netdev", lambda config: MockNetDevCollector(config, procfs))
    return registry

"""
Collector for network device statistics from /proc/net/dev.

Every field in the file becomes one gauge per direction, labeled by
device: node_network_receive_bytes{device="eth0"} and so on. The set of
gauges grows as new field names appear and never shrinks, so a device
that vanishes keeps reporting its last value unless stale_after is set.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from nodestat.collector.base import Collector
from nodestat.collector.metric_cache import GaugeUpdate, MetricCache
from nodestat.collector.netdev_parser import NetDevStats, parse_net_dev
from nodestat.config import ExporterConfig
from nodestat.errors import ParseError, SourceUnavailable, ValueFormatError
from nodestat.metrics import MetricSink

log = logging.getLogger(__name__)

NET_STATS_SUBSYSTEM = "network"


def _parse_float(raw: str) -> Optional[float]:
    # float() also takes digit separators and padding; the kernel never
    # writes either, so treat them as a format change.
    if "_" in raw or raw != raw.strip():
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class NetDevCollector(Collector):

    def __init__(self, config: ExporterConfig, cache: Optional[MetricCache] = None):
        self._path = config.proc_path("net", "dev")
        if cache is None:
            cache = MetricCache(
                namespace=config.namespace,
                subsystem=NET_STATS_SUBSYSTEM,
                label="device",
                stale_after=config.stale_after,
            )
        self._cache = cache

    @property
    def cache(self) -> MetricCache:
        return self._cache

    def read_stats(self) -> NetDevStats:
        try:
            with open(self._path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise SourceUnavailable(self._path, e.strerror or str(e)) from e
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"undecodable bytes in {self._path}: {e}") from e
        return parse_net_dev(text, source=self._path)

    def _to_updates(self, stats: NetDevStats) -> List[GaugeUpdate]:
        # Convert everything up front: one bad value fails the whole cycle
        # and leaves the cache exactly as it was.
        updates = []
        for direction, dev, field, raw in stats.samples():
            value = _parse_float(raw)
            if value is None:
                raise ValueFormatError(field, dev, raw)
            updates.append(GaugeUpdate(
                key=f"{direction.value}_{field}",
                help_text=f"{field} {direction.value} from {self._path}.",
                label_value=dev,
                value=value,
            ))
        return updates

    def update(self, sink: MetricSink) -> None:
        stats = self.read_stats()
        updates = self._to_updates(stats)
        self._cache.apply(updates)
        log.debug("netdev: %d devices, %d values from %s", len(stats), len(updates), self._path)
        sink.extend(self._cache.collect())

    def name(self) -> str:
        return "netdev"


def new_netdev_collector(config: ExporterConfig) -> NetDevCollector:
    return NetDevCollector(config)

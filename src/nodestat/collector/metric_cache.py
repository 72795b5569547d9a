"""
Cache of labeled gauges owned by a single collector.

Gauges are created the first time a metric key shows up and are never
removed, so series identity stays stable across scrapes even as devices
come and go. The cache is the only thing allowed to construct gauges for
its keys, and every read or write goes through its lock -- overlapping
scrapes from the threaded HTTP server are fine.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from prometheus_client import Gauge
from prometheus_client.metrics_core import Metric

log = logging.getLogger(__name__)


class GaugeUpdate(NamedTuple):
    key: str
    help_text: str
    label_value: str
    value: float


class MetricCache:

    def __init__(
        self,
        namespace: str,
        subsystem: str,
        label: str = "device",
        stale_after: Optional[int] = None,
    ):
        if stale_after is not None and stale_after < 1:
            raise ValueError("stale_after must be at least 1")

        self._namespace = namespace
        self._subsystem = subsystem
        self._label = label
        self._stale_after = stale_after
        self._lock = threading.Lock()
        self._gauges: Dict[str, Gauge] = {}
        # (key, label value) -> consecutive cycles it was missing
        self._misses: Dict[Tuple[str, str], int] = {}

    def _gauge(self, key: str, help_text: str) -> Gauge:
        gauge = self._gauges.get(key)
        if gauge is None:
            gauge = Gauge(
                key,
                help_text,
                labelnames=[self._label],
                namespace=self._namespace,
                subsystem=self._subsystem,
                registry=None,
            )
            self._gauges[key] = gauge
            log.debug("Registered gauge %s_%s_%s", self._namespace, self._subsystem, key)
        return gauge

    def apply(self, updates: Iterable[GaugeUpdate]):
        """Set every value in one locked pass, then run the eviction sweep.

        Callers should hand over a fully validated batch; nothing here can
        fail halfway on bad input.
        """
        with self._lock:
            seen = set()
            for update in updates:
                gauge = self._gauge(update.key, update.help_text)
                gauge.labels(update.label_value).set(update.value)
                seen.add((update.key, update.label_value))
            self._sweep(seen)

    def _sweep(self, seen):
        for pair in seen:
            self._misses[pair] = 0

        for pair in list(self._misses):
            if pair in seen:
                continue
            self._misses[pair] += 1
            if self._stale_after is not None and self._misses[pair] >= self._stale_after:
                key, label_value = pair
                self._gauges[key].remove(label_value)
                del self._misses[pair]
                log.info("Evicted stale %s=%s from %s after %d cycles",
                         self._label, label_value, key, self._stale_after)

    def collect(self) -> List[Metric]:
        """Current metric families for every cached gauge."""
        with self._lock:
            families = []
            for gauge in self._gauges.values():
                families.extend(gauge.collect())
            return families

    def value(self, key: str, label_value: str) -> Optional[float]:
        """Last value set for one label, or None if it isn't there."""
        with self._lock:
            gauge = self._gauges.get(key)
            if gauge is None:
                return None
            for family in gauge.collect():
                for sample in family.samples:
                    if sample.labels.get(self._label) == label_value:
                        return sample.value
        return None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._gauges)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._gauges

    def __len__(self) -> int:
        with self._lock:
            return len(self._gauges)

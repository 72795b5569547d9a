"""
Base collector interface.

A collector reads one kernel data source and publishes what it finds
into a MetricSink. This keeps the scrape driver and the CLI decoupled
from where the numbers actually come from (/proc/net/dev, a fake procfs
tree, etc).
"""

from abc import ABC, abstractmethod

from nodestat.metrics import MetricSink


class Collector(ABC):
    """Interface for all kernel statistics sources."""

    @abstractmethod
    def update(self, sink: MetricSink) -> None:
        """Run one full sampling pass, publishing into sink.

        Raises CollectorError if the cycle has to be abandoned.
        """
        ...

    @abstractmethod
    def name(self) -> str:
        """Short name the collector is registered under."""
        ...

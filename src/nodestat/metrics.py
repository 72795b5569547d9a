"""
Metric samples and the sink collectors publish into.

A collector's update() writes prometheus_client metric families into a
MetricSink. The scrape driver hands those families straight to
prometheus_client; the CLI reads them back as flat MetricSamples.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List

from prometheus_client.metrics_core import Metric


@dataclass
class MetricSample:
    """One (name, help, labels, value) reading."""

    name: str
    help_text: str
    labels: Dict[str, str]
    value: float

    def label_str(self) -> str:
        if not self.labels:
            return ""
        inner = ",".join(f'{k}="{v}"' for k, v in sorted(self.labels.items()))
        return "{" + inner + "}"


@dataclass
class MetricSink:
    """Collects metric families emitted during one scrape."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    families: List[Metric] = field(default_factory=list)

    def emit(self, metric: Metric):
        self.families.append(metric)

    def extend(self, metrics: Iterable[Metric]):
        for metric in metrics:
            self.emit(metric)

    def samples(self) -> Iterator[MetricSample]:
        for family in self.families:
            for sample in family.samples:
                yield MetricSample(
                    name=sample.name,
                    help_text=family.documentation,
                    labels=dict(sample.labels),
                    value=sample.value,
                )

    def __len__(self) -> int:
        return sum(len(f.samples) for f in self.families)

    def summary(self) -> dict:
        """Return a plain dict for JSON output."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "samples": [
                {"name": s.name, "labels": s.labels, "value": s.value}
                for s in self.samples()
            ],
        }

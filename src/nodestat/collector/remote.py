"""
Reader for a running exporter's /metrics endpoint. Used by
`nodestat inspect` to look at another host without shell access.
"""

from __future__ import annotations

import logging
from typing import List

import httpx
from prometheus_client.parser import text_string_to_metric_families

from nodestat.metrics import MetricSample

log = logging.getLogger(__name__)


class RemoteExporter:

    def __init__(self, base_url: str, timeout_seconds: float = 5.0):
        self._metrics_url = base_url.rstrip("/")
        if not self._metrics_url.endswith("/metrics"):
            self._metrics_url += "/metrics"

        self._client = httpx.Client(timeout=timeout_seconds)

    def fetch(self, prefix: str = "") -> List[MetricSample]:
        """GET /metrics and return the samples whose names start with prefix."""
        response = self._client.get(self._metrics_url)
        response.raise_for_status()

        samples = []
        for family in text_string_to_metric_families(response.text):
            for sample in family.samples:
                if sample.name.startswith(prefix):
                    samples.append(MetricSample(
                        name=sample.name,
                        help_text=family.documentation,
                        labels=dict(sample.labels),
                        value=sample.value,
                    ))
        log.debug("Fetched %d samples from %s", len(samples), self._metrics_url)
        return samples

    def name(self) -> str:
        return f"remote ({self._metrics_url})"

    def close(self):
        self._client.close()

"""
Exporter configuration.

One ExporterConfig is built by the CLI and handed unchanged to every
collector factory. Collectors pick out the fields they care about.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_NAMESPACE = "node"
DEFAULT_PROCFS = "/proc"
DEFAULT_PORT = 9100


@dataclass
class ExporterConfig:

    namespace: str = DEFAULT_NAMESPACE
    procfs: str = DEFAULT_PROCFS
    listen_address: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    collectors: List[str] = field(default_factory=lambda: ["netdev"])

    # Drop a device label after this many consecutive cycles without it.
    # None keeps last-known values forever.
    stale_after: Optional[int] = None

    def proc_path(self, *parts: str) -> str:
        """Join a path below the configured procfs mount."""
        return os.path.join(self.procfs, *parts)


def parse_collector_list(value: str) -> List[str]:
    """Split a comma-separated --collectors value, dropping blanks."""
    return [name.strip() for name in value.split(",") if name.strip()]

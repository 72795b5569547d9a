"""
Mock /proc/net/dev generator.

Produces a fake but realistic net/dev file under a throwaway procfs
root so we can develop and demo on machines without Linux procfs.
Counters only ever go up; traffic follows a slow sine wave with the
occasional burst, loosely modelled on a small server with one uplink.
"""

from __future__ import annotations

import math
import os
import random
import tempfile
from typing import Dict, List, Optional

HEADER = (
    "Inter-|   Receive                                                |  Transmit\n"
    " face |bytes    packets errs drop fifo frame compressed multicast|"
    "bytes    packets errs drop fifo colls carrier compressed\n"
)

FIELDS = ["bytes", "packets", "errs", "drop", "fifo", "frame", "compressed", "multicast"]

DEFAULT_DEVICES = ["lo", "eth0", "wlan0"]


def render_net_dev(counters: Dict[str, Dict[str, List[int]]]) -> str:
    """Format counters as /proc/net/dev text.

    counters maps device -> {"receive": [...8 ints], "transmit": [...8 ints]}.
    """
    lines = [HEADER]
    for dev, stats in counters.items():
        values = " ".join(f"{v:>8}" for v in stats["receive"] + stats["transmit"])
        lines.append(f"{dev:>6}: {values}\n")
    return "".join(lines)


class MockNetDev:

    def __init__(self, seed: int = 42, devices: Optional[List[str]] = None):
        self._rng = random.Random(seed)
        self._tick = 0
        self.devices = list(devices or DEFAULT_DEVICES)
        self._counters = {
            dev: {"receive": [0] * len(FIELDS), "transmit": [0] * len(FIELDS)}
            for dev in self.devices
        }

    def _advance_device(self, dev: str, load: float):
        if dev == "lo":
            load *= 0.1
        for direction, scale in (("receive", 1.0), ("transmit", 0.4)):
            c = self._counters[dev][direction]
            packets = max(1, int(load * scale * self._rng.uniform(0.8, 1.2)))
            c[0] += packets * self._rng.randint(60, 1500)
            c[1] += packets
            # Errors and drops are rare
            if self._rng.random() > 0.97:
                c[2] += 1
            if self._rng.random() > 0.95:
                c[3] += self._rng.randint(1, 3)
            if direction == "receive" and self._rng.random() > 0.8:
                c[7] += 1

    def snapshot(self) -> str:
        """Advance the simulation one tick and return the file contents."""
        self._tick += 1
        t = self._tick

        base_load = 400 + 300 * math.sin(t * 0.05)
        burst = self._rng.random() * 2000 if self._rng.random() > 0.9 else 0

        for dev in self.devices:
            self._advance_device(dev, base_load + burst)

        return render_net_dev(self._counters)


class MockProcFS:
    """A temporary directory laid out like /proc, holding net/dev.

    Call refresh() before each scrape to advance the counters.
    """

    def __init__(self, seed: int = 42, root: Optional[str] = None):
        self._tmp = None
        if root is None:
            self._tmp = tempfile.TemporaryDirectory(prefix="nodestat-procfs-")
            root = self._tmp.name
        self.root = root
        self._net_dev = MockNetDev(seed=seed)
        os.makedirs(os.path.join(self.root, "net"), exist_ok=True)
        self.refresh()

    @property
    def net_dev_path(self) -> str:
        return os.path.join(self.root, "net", "dev")

    def refresh(self):
        with open(self.net_dev_path, "w") as f:
            f.write(self._net_dev.snapshot())

    def close(self):
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None

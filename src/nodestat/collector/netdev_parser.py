"""
Parser for /proc/net/dev.

The file looks like this (values trimmed):

    Inter-|   Receive                            |  Transmit
     face |bytes    packets errs drop ...        |bytes    packets ...
        lo:  123456     789    0    0 ...          123456     789 ...
      eth0: 9876543   12345    0    2 ...         5432100    6789 ...

The first line is decoration. The second carries the field names, and
the receive half's names are reused for the transmit half. Values stay
as strings here -- the collector decides what counts as a number.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple

from nodestat.errors import ParseError

PROC_NET_DEV = "/proc/net/dev"


class Direction(str, Enum):
    RECEIVE = "receive"
    TRANSMIT = "transmit"


DeviceFields = Dict[str, str]


@dataclass
class NetDevStats:
    """Parsed /proc/net/dev: direction -> device -> field -> raw value."""

    header: List[str]
    by_direction: Dict[Direction, Dict[str, DeviceFields]] = field(
        default_factory=lambda: {d: {} for d in Direction}
    )

    def devices(self) -> List[str]:
        """Device names in file order."""
        return list(self.by_direction[Direction.RECEIVE])

    def device(self, direction: Direction, name: str) -> DeviceFields:
        return self.by_direction[direction][name]

    def samples(self) -> Iterator[Tuple[Direction, str, str, str]]:
        """Yield (direction, device, field, raw_value) for every value."""
        for direction in Direction:
            for dev, stats in self.by_direction[direction].items():
                for name, value in stats.items():
                    yield direction, dev, name, value

    def __len__(self) -> int:
        return len(self.by_direction[Direction.RECEIVE])


def parse_header(line: str, source: str = PROC_NET_DEV) -> List[str]:
    """Pull the field names out of the second header line.

    The line has three |-separated columns: the interface placeholder,
    the receive field names and the transmit field names.
    """
    parts = line.split("|")
    if len(parts) != 3:
        raise ParseError(f"malformed header in {source}: {line}", line=line)
    return parts[1].split()


def parse_row(line: str, header: List[str], source: str = PROC_NET_DEV) -> Tuple[str, DeviceFields, DeviceFields]:
    """Split one device row into (device, receive, transmit)."""
    parts = line.split()
    n = len(header)
    if len(parts) != 2 * n + 1 or not parts[0].endswith(":"):
        raise ParseError(f"malformed row in {source}: {line}", line=line)

    dev = parts[0][:-1]
    receive = dict(zip(header, parts[1:n + 1]))
    transmit = dict(zip(header, parts[n + 1:]))
    return dev, receive, transmit


def parse_net_dev(text: str, source: str = PROC_NET_DEV) -> NetDevStats:
    """Parse the full contents of /proc/net/dev.

    Raises ParseError on a bad header or on any row whose token count
    doesn't match the header. Nothing partial is ever returned.
    """
    lines = text.splitlines()
    if len(lines) < 2:
        raise ParseError(f"malformed header in {source}: file too short")

    # lines[0] is decoration
    header = parse_header(lines[1], source)
    stats = NetDevStats(header=header)

    for line in lines[2:]:
        if not line.strip():
            continue
        dev, receive, transmit = parse_row(line, header, source)
        stats.by_direction[Direction.RECEIVE][dev] = receive
        stats.by_direction[Direction.TRANSMIT][dev] = transmit

    return stats

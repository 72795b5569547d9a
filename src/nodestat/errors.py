"""
Exceptions raised by collectors and the collector registry.

Everything a collector's update() raises is a CollectorError, so the
scrape driver can isolate one failing collector from the rest.
"""

from __future__ import annotations

from typing import Optional


class CollectorError(Exception):
    """A collector could not complete an update cycle."""


class SourceUnavailable(CollectorError):
    """The kernel statistics file could not be opened or read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"couldn't read {path}: {reason}")
        self.path = path


class ParseError(CollectorError, ValueError):
    """The source text doesn't have the expected structure."""

    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line


class ValueFormatError(CollectorError, ValueError):
    """A field value isn't a number."""

    def __init__(self, field: str, device: str, value: str):
        super().__init__(f"invalid value {value!r} for {field} on {device}")
        self.field = field
        self.device = device
        self.value = value


class DuplicateCollectorError(ValueError):
    """A collector name was registered twice."""


class UnknownCollectorError(KeyError):
    """No collector is registered under the requested name."""

    def __str__(self) -> str:
        return f"unknown collector: {self.args[0]}"

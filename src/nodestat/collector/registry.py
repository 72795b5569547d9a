"""
Name -> factory table for collectors.

Registration is explicit: default_registry() lists every built-in
collector in order. Registering a name twice is a programming error and
raises instead of overwriting.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List

from nodestat.collector.base import Collector
from nodestat.collector.netdev import new_netdev_collector
from nodestat.config import ExporterConfig
from nodestat.errors import CollectorError, DuplicateCollectorError, UnknownCollectorError

log = logging.getLogger(__name__)

CollectorFactory = Callable[[ExporterConfig], Collector]


class CollectorRegistry:

    def __init__(self):
        self._factories: Dict[str, CollectorFactory] = {}

    def register(self, name: str, factory: CollectorFactory):
        if name in self._factories:
            raise DuplicateCollectorError(f"collector {name!r} is already registered")
        self._factories[name] = factory

    def lookup(self, name: str) -> CollectorFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownCollectorError(name) from None

    def names(self) -> List[str]:
        return list(self._factories)

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def build(self, names: Iterable[str], config: ExporterConfig) -> Dict[str, Collector]:
        """Instantiate the named collectors, in the order given.

        Unknown names raise UnknownCollectorError before anything is built.
        A factory that blows up is reported as a CollectorError.
        """
        names = list(names)
        factories = [(name, self.lookup(name)) for name in names]

        collectors: Dict[str, Collector] = {}
        for name, factory in factories:
            try:
                collectors[name] = factory(config)
            except CollectorError:
                raise
            except Exception as e:
                raise CollectorError(f"couldn't create collector {name}: {e}") from e
            log.debug("Enabled collector %s", name)
        return collectors


def default_registry() -> CollectorRegistry:
    """Registry with every built-in collector."""
    registry = CollectorRegistry()
    registry.register("netdev", new_netdev_collector)
    return registry

"""Scanner registry - Name to adapter lookup."""

import logging
import threading
from typing import Callable

from netrecon.errors import ExecutableNotFoundError
from netrecon.scanner.base import BaseScanner

logger = logging.getLogger(__name__)


class ScannerRegistry:
    """Holds scanner adapters by name.

    Registering a name twice replaces the earlier adapter. Lookups of
    unknown names return None.
    """

    def __init__(self) -> None:
        self._scanners: dict[str, BaseScanner] = {}
        self._lock = threading.Lock()

    def register(self, scanner: BaseScanner) -> None:
        with self._lock:
            self._scanners[scanner.name] = scanner

    def get(self, name: str) -> BaseScanner | None:
        with self._lock:
            return self._scanners.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._scanners)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._scanners

    def __len__(self) -> int:
        with self._lock:
            return len(self._scanners)


def build_default_registry(
    factories: list[Callable[[], BaseScanner]] | None = None,
) -> ScannerRegistry:
    """Create a registry holding every scanner whose binary is installed.

    Each factory is tried independently; a missing binary is logged and
    skipped so the remaining scanners stay usable.
    """
    if factories is None:
        from netrecon.scanner.masscan import MasscanScanner
        from netrecon.scanner.nmap import NmapScanner

        factories = [NmapScanner, MasscanScanner]

    registry = ScannerRegistry()
    for factory in factories:
        try:
            scanner = factory()
        except ExecutableNotFoundError as e:
            logger.warning("Scanner not available: %s", e)
            continue
        registry.register(scanner)
        logger.debug("Registered scanner %s", scanner.name)
    return registry

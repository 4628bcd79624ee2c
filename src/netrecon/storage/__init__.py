"""SQLite storage layer for netrecon.

Persists targets, scan results and their host/port trees, and scan presets.
DB file: ./data/netrecon.db unless configured otherwise (auto-created).
"""

from netrecon.storage.db import Database
from netrecon.storage.repositories import (
    HostRepository,
    PortRepository,
    ResultStore,
    ScanConfigurationRepository,
    ScanResultRepository,
    TargetRepository,
    VulnerabilityRepository,
)

__all__ = [
    "Database",
    "HostRepository",
    "PortRepository",
    "ResultStore",
    "ScanConfigurationRepository",
    "ScanResultRepository",
    "TargetRepository",
    "VulnerabilityRepository",
]

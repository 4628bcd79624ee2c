"""Scanner package - Adapters around external port scanners.

Scanners run a binary and turn its output into Host objects.
They do NOT persist or render anything - that's storage's and output's job.
"""

from netrecon.scanner.base import BaseScanner, validate_port_spec
from netrecon.scanner.masscan import MasscanScanner
from netrecon.scanner.nmap import NmapScanner
from netrecon.scanner.registry import ScannerRegistry, build_default_registry

__all__ = [
    "BaseScanner",
    "MasscanScanner",
    "NmapScanner",
    "ScannerRegistry",
    "build_default_registry",
    "validate_port_spec",
]

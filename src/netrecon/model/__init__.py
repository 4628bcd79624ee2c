"""Model package - Core data structures for netrecon."""

from netrecon.model.scan import (
    Host,
    Port,
    ScanConfig,
    ScanPreset,
    ScanResult,
    ScanStatus,
    ScanTarget,
    TargetType,
    Vulnerability,
    classify_target,
    split_arguments,
)

__all__ = [
    "Host",
    "Port",
    "ScanConfig",
    "ScanPreset",
    "ScanResult",
    "ScanStatus",
    "ScanTarget",
    "TargetType",
    "Vulnerability",
    "classify_target",
    "split_arguments",
]

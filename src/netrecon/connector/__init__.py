"""Connector package - Execution of external scanner processes."""

from netrecon.connector.process import CommandResult, ProcessRunner, ScanContext

__all__ = ["CommandResult", "ProcessRunner", "ScanContext"]

"""Exception hierarchy for netrecon."""


class NetReconError(Exception):
    """Base class for all errors raised by netrecon."""


class ConfigError(NetReconError):
    """The configuration file could not be read or parsed."""


class InvalidConfigError(NetReconError, ValueError):
    """A scan configuration was rejected before any process was started."""


class ExecutableNotFoundError(NetReconError):
    """The scanner binary is not installed or not on PATH."""


class ScanExecutionError(NetReconError):
    """The scanner process failed, timed out or was cancelled.

    The finalized ``failed`` result is attached so callers can still
    report or persist it.
    """

    def __init__(self, message: str, result=None) -> None:
        super().__init__(message)
        self.result = result


class OutputParseError(NetReconError):
    """Scanner output could not be interpreted."""


class StorageError(NetReconError):
    """A database operation failed."""

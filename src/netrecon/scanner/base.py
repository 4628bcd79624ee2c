"""Base scanner - The capability contract every scanner adapter implements.

A scanner wraps one external binary. It builds an argument vector from a
ScanConfig, runs the binary through a ProcessRunner and parses the captured
output into Host objects. The run/parse/finalize sequence lives here so both
adapters classify failures the same way:

- invalid config      -> InvalidConfigError, nothing spawned
- process failure     -> result.status=failed, ScanExecutionError raised
- unparseable output  -> result.status=completed_with_errors, no exception
"""

import logging
import re
from abc import ABC, abstractmethod

from netrecon.connector.process import ProcessRunner, ScanContext
from netrecon.errors import InvalidConfigError, OutputParseError, ScanExecutionError
from netrecon.model.scan import Host, ScanConfig, ScanResult, ScanStatus

logger = logging.getLogger(__name__)

PORT_SPEC_RE = re.compile(r"^\d+(-\d+)?(,\d+(-\d+)?)*$")

# Scanners report ambiguous states; the model only knows open/closed/filtered.
PORT_STATE_MAP: dict[str, str] = {
    "open": "open",
    "closed": "closed",
    "filtered": "filtered",
    "open|filtered": "filtered",
    "closed|filtered": "filtered",
    "unfiltered": "closed",
}


def validate_port_spec(ports: str) -> None:
    """Raise InvalidConfigError unless ``ports`` matches ``22,80,8000-8100``."""
    if not PORT_SPEC_RE.match(ports):
        raise InvalidConfigError(f"invalid port format: {ports!r}")


def normalize_port_state(raw: str) -> str:
    """Map a scanner's port state onto open, closed or filtered."""
    return PORT_STATE_MAP.get(raw.strip().lower(), "filtered")


class BaseScanner(ABC):
    """Abstract base class for scanner adapters."""

    name: str = ""
    executable: str = ""

    def __init__(self, runner: ProcessRunner | None = None) -> None:
        # Raises ExecutableNotFoundError when the binary is missing.
        self.runner = runner or ProcessRunner(self.executable)

    @abstractmethod
    def validate_config(self, config: ScanConfig) -> None:
        """Check the config without side effects. Raises InvalidConfigError."""

    @abstractmethod
    def build_args(self, target: str, config: ScanConfig) -> list[str]:
        """Build the argument vector. User arguments must come last."""

    @abstractmethod
    def parse_output(self, raw: str) -> list[Host]:
        """Parse raw scanner output. Raises OutputParseError."""

    def scan(self, target: str, config: ScanConfig, context: ScanContext | None = None) -> ScanResult:
        """Run the scanner against ``target`` and return a finalized result.

        Raises:
            InvalidConfigError: The config was rejected; no process was started.
            ScanExecutionError: The process failed. ``e.result`` holds the
                finalized ``failed`` result.
        """
        self.validate_config(config)
        if not target or not target.strip():
            raise InvalidConfigError("target must not be empty")

        context = (context or ScanContext()).with_timeout(config.timeout)
        result = ScanResult.start(target, self.name)
        args = self.build_args(target, config)

        if context.cancelled:
            message = f"{self.name} scan cancelled before start"
            result.finish(ScanStatus.FAILED, error=message)
            raise ScanExecutionError(message, result)

        command = self.runner.run(args, context)
        if not command.success:
            message = command.describe_failure()
            logger.error("%s scan of %s failed: %s", self.name, target, message)
            result.finish(ScanStatus.FAILED, raw_output=command.stdout, error=message)
            raise ScanExecutionError(message, result)

        try:
            hosts = self.parse_output(command.stdout)
        except OutputParseError as e:
            logger.warning("%s output for %s could not be parsed: %s", self.name, target, e)
            return result.finish(ScanStatus.COMPLETED_WITH_ERRORS, raw_output=command.stdout, error=str(e))

        result.finish(ScanStatus.COMPLETED, hosts=hosts, raw_output=command.stdout)
        logger.info(
            "%s scan of %s completed in %.2fs: %d hosts, %d ports",
            self.name, target, result.duration or 0.0, len(result.hosts), result.port_count,
        )
        return result

"""Process Connector - Runs scanner binaries on the local machine.

Every run is bounded by a ScanContext. When the context is cancelled or its
deadline passes the child is killed and its pipes drained before ``run``
returns, so no scanner process outlives the call that started it.
"""

import logging
import shlex
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass, field

from netrecon.errors import ExecutableNotFoundError

logger = logging.getLogger(__name__)


class ScanContext:
    """Cancellation flag plus optional deadline shared with a running scan.

    Example:
        >>> ctx = ScanContext(timeout=300)
        >>> threading.Timer(5, ctx.cancel).start()
        >>> scanner.scan("10.0.0.0/24", config, ctx)
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._cancelled = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout else None

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None if unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def with_timeout(self, timeout: float | None) -> "ScanContext":
        """Return a child context whose deadline is at most ``timeout`` away.

        The child shares this context's cancellation flag; this context's
        own deadline is left untouched.
        """
        child = ScanContext()
        child._cancelled = self._cancelled
        child.deadline = self.deadline
        if timeout:
            candidate = time.monotonic() + timeout
            if child.deadline is None or candidate < child.deadline:
                child.deadline = candidate
        return child


@dataclass
class CommandResult:
    """Result of a command execution."""

    command: str
    stdout: str
    stderr: str
    exit_code: int
    error: str | None = None
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.exit_code == 0 and self.error is None

    def describe_failure(self) -> str:
        """Human readable reason for a failed run."""
        if self.error:
            return self.error
        reason = f"exit status {self.exit_code}"
        stderr = self.stderr.strip()
        if stderr:
            reason += f": {stderr.splitlines()[-1]}"
        return reason


class ProcessRunner:
    """Executes one scanner binary with captured output.

    The executable is resolved on PATH at construction time so that a
    missing tool is reported once, at registration, rather than per scan.
    """

    poll_interval = 0.2

    def __init__(self, executable: str) -> None:
        path = shutil.which(executable)
        if path is None:
            raise ExecutableNotFoundError(f"{executable} not found in PATH")
        self.executable = executable
        self.path = path

    def run(self, args: list[str], context: ScanContext | None = None) -> CommandResult:
        """Run the executable with ``args`` until it exits or the context ends.

        Args:
            args: Argument vector, excluding the executable itself.
            context: Cancellation/deadline. Unbounded when omitted.

        Returns:
            CommandResult. ``error`` is set when the process could not be
            started, was cancelled or timed out.
        """
        context = context or ScanContext()
        argv = [self.path, *args]
        command = shlex.join([self.executable, *args])
        logger.debug("Running: %s", command)

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            return CommandResult(command=command, stdout="", stderr="", exit_code=-1, error=f"failed to start {self.executable}: {e}")

        error: str | None = None
        try:
            while True:
                wait = self.poll_interval
                remaining = context.remaining()
                if remaining is not None:
                    wait = min(wait, remaining)
                try:
                    stdout, stderr = proc.communicate(timeout=wait)
                    break
                except subprocess.TimeoutExpired:
                    if context.cancelled:
                        error = f"{self.executable} cancelled"
                    elif context.expired:
                        error = f"{self.executable} timed out"
                    if error:
                        proc.kill()
                        stdout, stderr = proc.communicate()
                        break
        finally:
            if proc.poll() is None:
                # Interrupted by an exception (e.g. KeyboardInterrupt).
                proc.kill()
                proc.communicate()

        return CommandResult(
            command=command,
            stdout=stdout or "",
            stderr=stderr or "",
            exit_code=proc.returncode,
            error=error,
        )

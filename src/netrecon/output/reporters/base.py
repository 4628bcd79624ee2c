"""Base Reporter Interface."""

from abc import ABC, abstractmethod

from rich.console import Console

from netrecon.model.scan import ScanResult, ScanTarget


class BaseReporter(ABC):
    """Abstract base class for terminal reporters."""

    def __init__(self, console: Console, show_raw: bool = False) -> None:
        self.console = console
        self.show_raw = show_raw

    @abstractmethod
    def report_result(self, result: ScanResult) -> None:
        """Display one scan result with its hosts and ports."""
        pass

    @abstractmethod
    def report_history(self, results: list[ScanResult]) -> None:
        """Display a listing of stored results."""
        pass

    @abstractmethod
    def report_targets(self, targets: list[ScanTarget]) -> None:
        """Display stored targets."""
        pass

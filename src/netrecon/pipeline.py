"""Shared scan pipeline.

Scan, persist, export. Kept out of cli.py so it can be driven and tested
without click.

Public API:
    run_scan(registry, target, scanner_name, config, ...) -> ScanOutcome
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from netrecon.connector.process import ScanContext
from netrecon.errors import InvalidConfigError, ScanExecutionError
from netrecon.model.scan import ScanConfig, ScanResult
from netrecon.output.formatters import FormatterRegistry
from netrecon.scanner.registry import ScannerRegistry
from netrecon.storage.repositories import ResultStore, TargetRepository

logger = logging.getLogger(__name__)


@dataclass
class ScanOutcome:
    """Result from run_scan()."""

    result: ScanResult
    execution_error: ScanExecutionError | None = None
    saved_id: str | None = None
    report_path: Path | None = None

    @property
    def failed(self) -> bool:
        return self.execution_error is not None


def run_scan(
    registry: ScannerRegistry,
    target: str,
    scanner_name: str,
    config: ScanConfig,
    *,
    context: ScanContext | None = None,
    store: ResultStore | None = None,
    targets: TargetRepository | None = None,
    formatters: FormatterRegistry | None = None,
    output_path: str | Path | None = None,
    output_format: str = "json",
) -> ScanOutcome:
    """Run one scan and hand the finalized result to storage and export.

    A failed scan is still stored and exported; its ScanExecutionError is
    returned on the outcome instead of being raised.

    Raises:
        InvalidConfigError: Unknown scanner or rejected config.
        StorageError: The result could not be saved.
    """
    scanner = registry.get(scanner_name)
    if scanner is None:
        available = ", ".join(sorted(registry.names())) or "none"
        raise InvalidConfigError(f"scanner {scanner_name!r} not available (available: {available})")

    outcome: ScanOutcome
    try:
        result = scanner.scan(target, config, context)
        outcome = ScanOutcome(result=result)
    except ScanExecutionError as e:
        if e.result is None:
            raise
        outcome = ScanOutcome(result=e.result, execution_error=e)

    if store is not None:
        target_id = targets.get_or_create(target).id if targets is not None else None
        outcome.saved_id = store.save(outcome.result, target_id)
        logger.info("Saved scan result %s", outcome.saved_id)

    if output_path:
        formatters = formatters or FormatterRegistry()
        outcome.report_path = formatters.format_and_save(outcome.result, output_format, output_path)
        logger.info("Wrote %s report to %s", output_format, outcome.report_path)

    return outcome

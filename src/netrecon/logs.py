"""Logging setup for the command-line entry point."""

import logging

from rich.console import Console
from rich.logging import RichHandler

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "info", fmt: str = "rich", file: str = "", verbose: bool = False) -> None:
    """Attach handlers to the ``netrecon`` logger.

    Logs go to stderr so they never mix with report output on stdout.
    """
    logger = logging.getLogger("netrecon")
    resolved = logging.DEBUG if verbose else logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logger.setLevel(resolved)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if fmt == "text":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=verbose, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    if file:
        file_handler = logging.FileHandler(file)
        file_handler.setFormatter(logging.Formatter(TEXT_FORMAT))
        logger.addHandler(file_handler)

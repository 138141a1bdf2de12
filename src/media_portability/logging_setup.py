"""Logging configuration for processes embedding the importer."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from media_portability.config import ImporterSettings

console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
        force=True,
    )


def configure_logging(settings: ImporterSettings) -> None:
    """Configure logging at the verbosity chosen in the importer settings."""
    setup_logging(settings.verbose)

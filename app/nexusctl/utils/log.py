"""Logging setup for the command line tools."""

import logging

from rich.logging import RichHandler

from nexusctl.utils.formatting import err_console


def resolve_level(verbose: bool = False, quiet: bool = False) -> int:
    """Map the global CLI flags to a log level.

    --quiet wins over --verbose.
    """
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Show INFO records.
        quiet: Only show ERROR records.
    """
    logging.basicConfig(
        level=resolve_level(verbose, quiet),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )

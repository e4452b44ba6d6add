"""CLI package for nexusctl.

This package contains the Typer application and all subcommands.
"""

from nexusctl.cli.main import app

__all__ = ["app"]

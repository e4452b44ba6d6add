"""CLI commands for nexusctl.

This package contains all subcommand implementations.
"""

from nexusctl.cli.commands import clean, components, config, monitor, zipper

__all__ = ["clean", "components", "config", "monitor", "zipper"]

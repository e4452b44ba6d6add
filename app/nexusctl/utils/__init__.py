"""Utility modules for nexusctl.

This module exports commonly used utility functions.
"""

from nexusctl.utils.formatting import (
    console,
    create_table,
    err_console,
    format_mib,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from nexusctl.utils.log import configure_logging

__all__ = [
    "configure_logging",
    "console",
    "create_table",
    "err_console",
    "format_mib",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]

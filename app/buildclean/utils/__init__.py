"""Utility modules for buildclean.

This module exports commonly used utility functions.
"""

from buildclean.utils.formatting import (
    console,
    create_plan_table,
    create_result_table,
    err_console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_plan_table",
    "create_result_table",
    "err_console",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]

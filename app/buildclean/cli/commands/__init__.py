"""CLI commands for buildclean.

This package contains all subcommand implementations.
"""

from buildclean.cli.commands import clean, init

__all__ = ["clean", "init"]

"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from buildclean.cleanup.models import DeletionPlan, DeletionResult

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "header": "#69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "bold #f53263",
        "info": "#0ec1c8",
        "removed": "#f53263",
        "bold_header": "bold #69B9A1",
        "dim": "#b2bec3",
    }
)


def _detect_color_system() -> str | None:
    """Use truecolor on interactive terminals, let Rich decide otherwise."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_plan_table(plan: DeletionPlan, title: str = "Deletion Plan") -> Table:
    """Create a table listing plan entries in execution order.

    Args:
        plan: Plan to display.
        title: Table title.

    Returns:
        Rich Table with one row per entry.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("#", style="muted", justify="right")
    table.add_column("Path", style="bold")
    table.add_column("Kind", width=10)
    table.add_column("Mode", style="dim")

    for index, entry in enumerate(plan, start=1):
        table.add_row(str(index), str(entry.path), entry.kind.value, entry.mode.value)

    return table


def create_result_table(result: DeletionResult, title: str = "Deletion Results") -> Table:
    """Create a table listing every deleted, skipped and failed path.

    Args:
        result: Result to display.
        title: Table title.

    Returns:
        Rich Table with one row per path.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Path", style="bold")
    table.add_column("Status", width=10)
    table.add_column("Details", style="dim")

    for path in result.deleted:
        table.add_row(str(path), "[success]deleted[/]", "")
    for path in result.skipped:
        table.add_row(str(path), "[muted]skipped[/]", "Already removed")
    for failure in result.failures:
        detail = f"{failure.cause.value} after {failure.attempts} attempt(s)"
        if failure.message:
            detail = f"{detail}: {failure.message}"
        table.add_row(str(failure.path), "[error]failed[/]", detail)

    return table


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")

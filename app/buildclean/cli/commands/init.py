"""Init command implementation.

Creates a starter buildclean.toml in the current directory.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from buildclean.core.config import (
    CleanupConfig,
    ConfigError,
    config_to_dict,
    default_config,
    save_config,
)
from buildclean.core.paths import get_config_path
from buildclean.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Create a starter buildclean.toml.",
    invoke_without_command=True,
)


def _show_config_summary(config: CleanupConfig, output_path: Path) -> None:
    """Display a summary of the configuration about to be written.

    Args:
        config: The configuration to summarize.
        output_path: Path where the configuration will be saved.
    """
    console.print()
    console.print("[bold]Configuration Summary[/bold]")
    console.print(f"  Output: [muted]{output_path}[/muted]")
    targets = ", ".join(config.clean.default_targets) or "none"
    console.print(f"  Default targets: [info]{targets}[/info]")
    for fileset in config.filesets:
        includes = ", ".join(fileset.includes) or "everything"
        console.print(f"  Fileset [info]{fileset.directory}[/info]: [muted]{includes}[/muted]")
    console.print()


@app.callback(invoke_without_command=True)
def init_config(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the configuration file.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing configuration.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Print the configuration without writing it.",
        ),
    ] = False,
) -> None:
    """Create a starter configuration.

    The starter configuration deletes ``build`` and ``dist`` wholesale and
    removes Python bytecode caches below the project directory.

    Examples:
        buildclean init                    # Write ./buildclean.toml
        buildclean init --output ci.toml   # Write to a custom path
        buildclean init --force            # Overwrite existing file
        buildclean init --dry-run          # Print instead of writing
    """
    if ctx.invoked_subcommand is not None:
        return

    output_path = output or get_config_path()
    config = default_config()

    if dry_run:
        if output_path.exists():
            print_warning(f"Configuration already exists: {output_path}")
        typer.echo(tomli_w.dumps(config_to_dict(config)))
        print_info("[DRY-RUN] No files were written.")
        return

    if output_path.exists():
        if not force:
            print_error(f"Configuration already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=1)
        print_warning(f"Overwriting existing configuration: {output_path}")

    _show_config_summary(config, output_path)

    try:
        saved_path = save_config(config, output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Configuration saved to {saved_path}")

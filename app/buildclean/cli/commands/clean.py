"""Clean command implementation.

Loads the cleanup configuration, applies command-line overrides and runs
the cleanup engine, or shows the deletion plan in dry-run mode.
"""

import json
from dataclasses import replace
from pathlib import Path
from typing import Annotated, Any

import typer

from buildclean.cleanup.deleter import Deleter
from buildclean.cleanup.engine import CleanupEngine
from buildclean.cleanup.errors import CleanupError, DeletionFailedError
from buildclean.cleanup.models import CleanupRequest, DeletionPlan, DeletionResult
from buildclean.core.config import ConfigError, load_config
from buildclean.core.paths import get_config_path
from buildclean.utils.formatting import (
    console,
    create_plan_table,
    create_result_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="clean",
    help="Delete build output directories and filesets.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def clean(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to buildclean.toml.",
        ),
    ] = None,
    targets: Annotated[
        list[Path] | None,
        typer.Option(
            "--target",
            "-t",
            help="Extra directory to delete wholesale (repeatable).",
        ),
    ] = None,
    skip_defaults: Annotated[
        bool,
        typer.Option(
            "--skip-defaults",
            help="Ignore default targets and only clean filesets.",
        ),
    ] = False,
    fail_on_error: Annotated[
        bool | None,
        typer.Option(
            "--fail-on-error/--no-fail-on-error",
            help="Exit with an error if any path could not be deleted.",
        ),
    ] = None,
    retry: Annotated[
        bool | None,
        typer.Option(
            "--retry/--no-retry",
            help="Retry locked or busy paths.",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            min=1,
            help="Number of subtrees deleted in parallel.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be deleted without deleting.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Delete build output before a fresh build.

    Default targets are removed entirely. Filesets only lose the paths
    selected by their include/exclude patterns; directories emptied along
    the way are removed too.

    Examples:
        buildclean clean                  # Use ./buildclean.toml
        buildclean clean -t build -t dist # Delete extra directories
        buildclean clean --dry-run        # Show the deletion plan
        buildclean clean --no-fail-on-error
    """
    if ctx.invoked_subcommand is not None:
        return

    request, config_workers = _build_request(config, targets or [])

    if skip_defaults:
        request = replace(request, exclude_default_directories=True)
    if fail_on_error is not None:
        request = replace(request, fail_on_error=fail_on_error)
    if retry is not None:
        request = replace(request, retry_on_error=retry)

    if request.skip:
        print_info("Clean is skipped.")
        return

    engine = CleanupEngine(deleter=Deleter(max_workers=workers or config_workers))

    if dry_run:
        try:
            plan = engine.plan(request)
        except CleanupError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        _show_plan(plan, json_output)
        return

    try:
        result = engine.run(request)
    except DeletionFailedError as e:
        _show_result(e.result, json_output)
        print_error(str(e))
        raise typer.Exit(code=1) from e
    except CleanupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    _show_result(result, json_output)


# === Private helper functions ===


def _build_request(config: Path | None, targets: list[Path]) -> tuple[CleanupRequest, int | None]:
    """Load the configuration (if any) and add command-line targets.

    Returns:
        Tuple of (request, max_workers from the configuration).
    """
    config_path = config or get_config_path()

    if config is None and not config_path.exists():
        if not targets:
            print_error(f"No configuration found at {config_path} and no --target given.")
            raise typer.Exit(code=1)
        return CleanupRequest(default_targets=tuple(targets)), None

    try:
        loaded = load_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    request = loaded.to_request(config_path.absolute().parent)
    if targets:
        request = replace(request, default_targets=(*request.default_targets, *targets))
    return request, loaded.clean.max_workers


def _show_plan(plan: DeletionPlan, json_output: bool) -> None:
    """Display a deletion plan."""
    if json_output:
        data = [
            {"path": str(e.path), "kind": e.kind.value, "mode": e.mode.value} for e in plan
        ]
        typer.echo(json.dumps(data, indent=2))
        return

    if not len(plan):
        print_success("Nothing to clean.")
        return

    console.print(create_plan_table(plan, title="Deletion Plan (dry-run)"))
    print_info(f"Dry-run: {len(plan)} path(s) would be deleted.")


def _show_result(result: DeletionResult, json_output: bool) -> None:
    """Display a deletion result and summary."""
    if json_output:
        typer.echo(json.dumps(_result_to_dict(result), indent=2))
        return

    if result.is_empty:
        print_success("Nothing to clean.")
        return

    console.print(create_result_table(result))

    if result.failures:
        print_warning(
            f"{len(result.deleted)} deleted, {len(result.failures)} could not be deleted"
        )
    else:
        print_success(f"Deleted {len(result.deleted)} path(s), {len(result.skipped)} skipped.")


def _result_to_dict(result: DeletionResult) -> dict[str, Any]:
    return {
        "deleted": [str(p) for p in result.deleted],
        "skipped": [str(p) for p in result.skipped],
        "failures": [
            {
                "path": str(f.path),
                "cause": f.cause.value,
                "attempts": f.attempts,
                "message": f.message,
            }
            for f in result.failures
        ],
    }

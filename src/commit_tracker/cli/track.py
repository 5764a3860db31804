"""Main command: record the current revision in the history log."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import CommitTrackerError
from ..ingest import track_commit
from ..logging_config import setup_logging
from . import app
from ._common import err_console, report_merge, resolve_config


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Repository root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    sha: Optional[str] = typer.Option(
        None,
        "--sha",
        help="Revision to record (default: HEAD)",
    ),
    history_file: Optional[str] = typer.Option(
        None,
        "-o",
        "--history-file",
        help="History document (default: commit-history.json in the repository root)",
    ),
    no_tests: bool = typer.Option(
        False,
        "--no-tests",
        help="Skip the test run; record 0 tests and 0% coverage",
    ),
    keep_earliest: bool = typer.Option(
        False,
        "--keep-earliest",
        help="Let an earlier-dated content duplicate replace the logged entry",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Record the current revision in the commit history log.

    Collects the revision's identity, diff stats and test outcome, then
    updates, rejects as duplicate, or appends it in the history document.

    [bold cyan]Examples:[/bold cyan]

      commit-tracker

      commit-tracker --no-tests -o docs/commit-history.json

      commit-tracker -C /path/to/repo --sha abc123
    """
    # Options shared with subcommands
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["overrides"] = {
        "repo_path": str(path) if path else None,
        "history_file": history_file,
        "duplicate_policy": "keep-earliest" if keep_earliest else None,
        "verbose": verbose,
        "quiet": quiet,
    }

    if version:
        from .. import __version__

        err_console.print(
            f"[bold cyan]Commit Tracker[/bold cyan] version [green]{__version__}[/green]"
        )
        raise typer.Exit(0)

    logger = setup_logging(verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is not None:
        return

    try:
        settings = resolve_config(ctx, run_tests=False if no_tests else None)
        result = track_commit(settings, sha=sha)
        report_merge(result, settings.history_path)

    except CommitTrackerError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        err_console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error while tracking commit")
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)

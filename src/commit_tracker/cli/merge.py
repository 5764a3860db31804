"""Merge command: reconcile a record produced by an external collector."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import CommitTrackerError
from ..ingest import merge_record_file
from ..logging_config import get_logger
from . import app
from ._common import err_console, report_merge, resolve_config

logger = get_logger(__name__)


@app.command()
def merge(
    ctx: typer.Context,
    record_file: Path = typer.Argument(
        ...,
        help="JSON object in the history entry format",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    keep_earliest: bool = typer.Option(
        False,
        "--keep-earliest",
        help="Let an earlier-dated content duplicate replace the logged entry",
    ),
):
    """
    Merge one pre-built commit record into the history log.

    [bold cyan]Examples:[/bold cyan]

      commit-tracker merge build/commit.json

      commit-tracker -o docs/history.json merge build/commit.json
    """
    try:
        settings = resolve_config(
            ctx, duplicate_policy="keep-earliest" if keep_earliest else None
        )
        result = merge_record_file(settings, record_file)
        report_merge(result, settings.history_path)
    except CommitTrackerError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

"""History CLI command -- list recorded commits."""

import json

import typer

from ..exceptions import CommitTrackerError
from ..history import HistoryStore
from ..models import sort_key
from . import app
from ._common import console, err_console, resolve_config

_CONCLUSION_STYLE = {
    "success": "green",
    "failure": "red",
    "neutral": "dim",
}


@app.command()
def history(
    ctx: typer.Context,
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of commits to list",
        min=1,
        max=10000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List recorded commits, newest first.

    [bold cyan]Examples:[/bold cyan]

      commit-tracker history

      commit-tracker history --json

      commit-tracker -o docs/commit-history.json history --limit 5
    """
    try:
        settings = resolve_config(ctx)
        store = HistoryStore(settings.history_path, indent=settings.indent)
        if not store.path.exists():
            err_console.print(
                "[yellow]No history found.[/yellow] "
                "Run [bold]commit-tracker[/bold] first to record a commit."
            )
            raise typer.Exit(0)
        records = store.read()
    except CommitTrackerError as e:
        err_console.print(f"[red]Error reading history:[/red] {e}")
        raise typer.Exit(1)

    if not records:
        err_console.print("[yellow]No commits recorded yet.[/yellow]")
        raise typer.Exit(0)

    records.sort(key=lambda r: sort_key(r.date), reverse=True)
    records = records[:limit]

    if json_output:
        _output_json(records)
    else:
        _output_rich(records)


def _output_json(records):
    """Machine-readable JSON output."""
    print(json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False))


def _output_rich(records):
    """Human-readable Rich table output."""
    from rich.table import Table

    table = Table(
        title="Commit History",
        show_lines=False,
        pad_edge=True,
    )
    table.add_column("Commit", style="cyan")
    table.add_column("Date", style="green")
    table.add_column("Author")
    table.add_column("Message")
    table.add_column("+/-", justify="right")
    table.add_column("Tests", justify="right")
    table.add_column("Coverage", justify="right")
    table.add_column("Result")

    for r in records:
        subject = r.commit.message.splitlines()[0] if r.commit.message else ""
        if len(subject) > 50:
            subject = subject[:47] + "..."
        style = _CONCLUSION_STYLE.get(r.conclusion.value, "white")

        table.add_row(
            r.sha[:8],
            r.stats.date or "-",
            r.author or "-",
            subject,
            f"+{r.stats.additions}/-{r.stats.deletions}",
            str(r.test_count),
            f"{r.coverage:.1f}%",
            f"[{style}]{r.conclusion.value}[/{style}]",
        )

    console.print()
    console.print(table)
    console.print()

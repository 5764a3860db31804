"""CLI entry point: registers all subcommands."""

import typer

from ._common import console

app = typer.Typer(
    name="commit-tracker",
    help="Commit Tracker - per-revision CI history log",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .track import main as _main_callback  # noqa: F401, E402
from .history import history as _history  # noqa: F401, E402
from .merge import merge as _merge  # noqa: F401, E402

__all__ = ["app", "console"]

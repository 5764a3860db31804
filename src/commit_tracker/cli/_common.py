"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import TrackerConfig, load_config
from ..history import MergeAction, MergeResult

console = Console()
err_console = Console(stderr=True)

_ACTION_STYLE = {
    MergeAction.INSERTED: "green",
    MergeAction.UPDATED: "cyan",
    MergeAction.REPLACED: "yellow",
    MergeAction.REJECTED: "yellow",
}


def resolve_config(ctx: typer.Context, config: Optional[Path] = None, **overrides) -> TrackerConfig:
    """Build config from CLI options and the options stored by the main callback."""
    obj = ctx.obj or {}
    merged = dict(obj.get("overrides", {}))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return load_config(config_file=config or obj.get("config"), **merged)


def report_merge(result: MergeResult, history_path: Path) -> None:
    """One-line summary of a merge on stderr."""
    style = _ACTION_STYLE.get(result.action, "white")
    sha = result.candidate.sha[:10]
    line = f"[{style}]{result.action.value}[/{style}] {sha}"
    if result.action in (MergeAction.REJECTED, MergeAction.REPLACED) and result.matched_sha:
        line += f" (duplicate of {result.matched_sha[:10]})"
    if result.backfilled:
        line += f", backfilled {result.backfilled} URL(s)"
    line += f" -> {history_path} ({len(result.records)} entries)"
    err_console.print(line)

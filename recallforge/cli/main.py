"""RecallForge CLI - Main application entry point.

A thin inspection surface over the study core:

    recallforge stats                     Level, streak and SRS overview
    recallforge queue --catalog ids.txt   Preview the next study queue
    recallforge reset --yes               Delete stored progress

Global options --data-dir and --config select where progress lives and which
configuration file is read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import Any, Callable, List, Optional

import typer
from rich.table import Table

from recallforge.cli.console import get_console, render_error, success, tip, warning
from recallforge.core.clock import Clock, clock_for
from recallforge.core.config import Config, load_config
from recallforge.core.exceptions import RecallForgeError, ValidationError
from recallforge.core.logging import configure_logging
from recallforge.storage.factory import create_repository
from recallforge.storage.repository import ProgressRepository
from recallforge.study.gamification import level_progress
from recallforge.study.queue_builder import build_study_queue
from recallforge.study.scheduler import next_review_text
from recallforge.study.stats import progress_summary, srs_overview


@dataclass
class CliState:
    """Objects shared by all commands of one invocation."""

    config: Config
    clock: Clock

    def repository(self) -> ProgressRepository:
        return create_repository(self.config)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Render RecallForgeError with fix hints and exit with code 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except RecallForgeError as e:
            render_error(e)
            raise typer.Exit(code=1)

    return wrapper


def load_catalog(path: Path) -> List[str]:
    """Read item ids from a catalog file.

    ``.json`` files hold a list of ids or of objects with an "id" field.
    Other files hold one id per line; blank lines and lines starting with
    "#" are skipped.

    Raises:
        ValidationError: If the file cannot be read or has the wrong shape
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Cannot read catalog {path}: {e}") from e

    if path.suffix.lower() != ".json":
        lines = (line.strip() for line in text.splitlines())
        return [line for line in lines if line and not line.startswith("#")]

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Catalog {path} is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ValidationError(f"Catalog {path} must contain a JSON list")

    ids = []
    for entry in data:
        if isinstance(entry, dict) and "id" in entry:
            ids.append(str(entry["id"]))
        elif isinstance(entry, (str, int)):
            ids.append(str(entry))
        else:
            raise ValidationError(f"Catalog entry has no id: {entry!r}")
    return ids


# Create main Typer application
app = typer.Typer(
    name="recallforge",
    help="Spaced-repetition progress inspection",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        from recallforge import __version__

        typer.echo(f"RecallForge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", "-d", help="Directory holding progress data"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to recallforge.yaml"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """RecallForge - spaced-repetition study progress."""
    try:
        config = load_config(config_path, base_path=Path.cwd())
        if data_dir is not None:
            config.storage.data_dir = str(data_dir)
            config.validate()
        clock = clock_for(config.timezone)
    except RecallForgeError as e:
        render_error(e)
        raise typer.Exit(code=1)

    configure_logging(level="DEBUG" if verbose else config.log_level)
    ctx.obj = CliState(config=config, clock=clock)


@app.command("stats")
@handle_errors
def stats_command(
    ctx: typer.Context,
    catalog: Optional[Path] = typer.Option(
        None, "--catalog", help="Catalog file for per-catalog progress"
    ),
) -> None:
    """Show level, streak, today's progress and review forecast."""
    state: CliState = ctx.obj
    repository = state.repository()
    store = repository.load()
    if repository.last_load_recovered:
        warning("Stored progress was unreadable; showing empty progress")

    now = state.clock.now()
    user = store.user_stats
    game = state.config.gamification
    progress = level_progress(user.total_xp, game.base_xp_per_level, game.level_multiplier)
    overview = srs_overview(store, now)

    table = Table(title="Study Progress", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Level", str(user.level))
    table.add_row("Total XP", str(user.total_xp))
    table.add_row(
        "Next level", f"{progress.current}/{progress.required} XP ({progress.percent}%)"
    )
    table.add_row("Today", f"{user.today_xp}/{user.daily_goal} XP")
    table.add_row("Current streak", f"{user.current_streak} days")
    table.add_row("Longest streak", f"{user.longest_streak} days")
    table.add_section()
    table.add_row("Due now", str(overview.due_now))
    table.add_row("Due tomorrow", str(overview.due_tomorrow))
    table.add_row("Due this week", str(overview.due_this_week))
    table.add_row("Mastered", str(overview.mastered))
    table.add_row("Learning", str(overview.learning))
    table.add_row("New", str(overview.new))

    if catalog is not None:
        summary = progress_summary(load_catalog(catalog), store, state.clock.today())
        table.add_section()
        table.add_row("Catalog items", str(summary.total_items))
        table.add_row("Reviewed", str(summary.reviewed_items))
        table.add_row("Overall accuracy", f"{summary.overall_accuracy:.1f}%")
        table.add_row("Studied today", str(summary.today.items_studied))

    get_console().print(table)


@app.command("queue")
@handle_errors
def queue_command(
    ctx: typer.Context,
    catalog: Path = typer.Option(..., "--catalog", help="Catalog file of item ids"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Queue size"),
    min_new: Optional[int] = typer.Option(
        None, "--min-new", help="New-item slots reserved in the queue"
    ),
) -> None:
    """Preview the next study queue for a catalog."""
    state: CliState = ctx.obj
    queue_config = state.config.queue
    store = state.repository().load()
    now = state.clock.now()

    queue = build_study_queue(
        load_catalog(catalog),
        store,
        queue_config.default_limit if limit is None else limit,
        now,
        queue_config.min_new if min_new is None else min_new,
    )
    if not len(queue):
        get_console().print("Nothing to study right now.")
        tip("Add items to the catalog or come back when reviews are due")
        return

    table = Table(title=f"Study Queue ({len(queue)} items)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Item", style="cyan")
    table.add_column("Kind")
    table.add_column("Scheduled")
    for index, item_id in enumerate(queue.due_items, start=1):
        table.add_row(str(index), item_id, "review", next_review_text(store.items[item_id], now))
    for index, item_id in enumerate(queue.new_items, start=len(queue.due_items) + 1):
        table.add_row(str(index), item_id, "new", "-")
    get_console().print(table)


@app.command("reset")
@handle_errors
def reset_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all stored progress and any saved session."""
    state: CliState = ctx.obj
    if not yes and not typer.confirm("Delete all study progress?"):
        get_console().print("Aborted.")
        raise typer.Exit(code=1)

    state.repository().clear()
    success(f"Progress cleared in {state.config.data_path}")


def cli_main() -> None:
    """Console script entry point."""
    app()

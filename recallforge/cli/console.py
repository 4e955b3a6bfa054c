"""Console output helpers.

Provides consistent formatting for CLI output messages.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from recallforge.core.exceptions import RecallForgeError

# Shared console instance
_console: Console | None = None


def get_console() -> Console:
    """Get shared console instance (lazy-loaded)."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def tip(message: str) -> None:
    """Display a dimmed tip line."""
    get_console().print(f"  [dim]Tip: {message}[/dim]")


def success(message: str) -> None:
    get_console().print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    get_console().print(f"[yellow]![/yellow] {message}")


def render_error(error: RecallForgeError) -> None:
    """Show an error with its explanation and fix hints."""
    get_console().print(
        Panel(
            Text(error.format_help()),
            title=f"[red]Error {error.error_code}[/red]",
            border_style="red",
            expand=False,
        )
    )

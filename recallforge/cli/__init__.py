"""Command-line interface for inspecting and resetting study progress."""

from recallforge.cli.main import app, cli_main

__all__ = ["app", "cli_main"]

"""
Logging for RecallForge.

Every module logs through get_logger(__name__). Messages carry their
details as trailing key=value fields so a saved log can be grepped by
item or session id:

    logger = get_logger(__name__)
    logger.info("Progress saved", key="progress", items=42)
    # Progress saved | key=progress | items=42

Console output goes through rich; configure_logging() adds an optional
plain-text log file and changes the level of every logger handed out so
far. SessionLogger wraps the session coordinator's start/answer/finish
lines and adds the session duration.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler


@dataclass
class LogConfig:
    """Handler settings shared by all RecallForge loggers."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    date_format: str = "%Y-%m-%dT%H:%M:%S"
    file_path: Optional[Path] = None
    console: bool = True


_default_config = LogConfig()
_loggers: dict[str, "StructuredLogger"] = {}


class StructuredLogger:
    """A std-lib logger whose messages take key=value fields."""

    def __init__(self, name: str, config: Optional[LogConfig] = None) -> None:
        self.logger = logging.getLogger(name)
        self.apply(config or _default_config)

    def apply(self, config: LogConfig) -> None:
        """Replace this logger's handlers with ones built from ``config``."""
        self.config = config
        level = getattr(logging, config.level.upper(), logging.INFO)
        self.logger.setLevel(level)
        self.logger.handlers.clear()

        if config.console:
            console = RichHandler(show_path=False, markup=False, rich_tracebacks=True)
            console.setLevel(level)
            self.logger.addHandler(console)

        if config.file_path:
            config.file_path.parent.mkdir(parents=True, exist_ok=True)
            to_file = logging.FileHandler(config.file_path)
            to_file.setLevel(level)
            to_file.setFormatter(logging.Formatter(config.format, datefmt=config.date_format))
            self.logger.addHandler(to_file)

    def _format_message(self, message: str, **fields: Any) -> str:
        if not fields:
            return message
        return " | ".join([message] + [f"{k}={v}" for k, v in fields.items()])

    def debug(self, message: str, **fields: Any) -> None:
        self.logger.debug(self._format_message(message, **fields))

    def info(self, message: str, **fields: Any) -> None:
        self.logger.info(self._format_message(message, **fields))

    def warning(self, message: str, **fields: Any) -> None:
        self.logger.warning(self._format_message(message, **fields))

    def error(self, message: str, **fields: Any) -> None:
        self.logger.error(self._format_message(message, **fields))


def get_logger(name: str, config: Optional[LogConfig] = None) -> StructuredLogger:
    """
    Return the logger for ``name``, creating it on first use.

    ``config`` only matters for the first call with a given name.
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, config)
    return _loggers[name]


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: bool = True,
) -> None:
    """
    Set the level and handlers for all RecallForge loggers.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Also append plain-text lines to this file.
        console: Print to the terminal through rich.
    """
    global _default_config
    _default_config = LogConfig(level=level, file_path=log_file, console=console)
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    for structured in _loggers.values():
        structured.apply(_default_config)


class SessionLogger:
    """Log lines for one study session, tagged with its id."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.logger = get_logger("recallforge.session")
        self._started: Optional[float] = None

    def start(self, **fields: Any) -> None:
        self._started = time.monotonic()
        self.logger.info("Session started", session_id=self.session_id, **fields)

    def answer(self, item_id: str, quality: int, **fields: Any) -> None:
        self.logger.debug(
            "Answer recorded",
            session_id=self.session_id,
            item_id=item_id,
            quality=quality,
            **fields,
        )

    def finish(self, **fields: Any) -> None:
        elapsed = 0.0 if self._started is None else time.monotonic() - self._started
        self.logger.info(
            "Session finished",
            session_id=self.session_id,
            duration_sec=f"{elapsed:.2f}",
            **fields,
        )

"""Logging setup for the Hue backup tool."""
from __future__ import annotations

import logging
import sys
from typing import IO, Optional

import click

ROOT_LOGGER = "hue_backup"


class _MaxLevelFilter(logging.Filter):
    """Let through records below ``level`` only."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._level


# Colours per level; INFO keeps the terminal default.
_LEVEL_COLOURS = {
    logging.DEBUG: "bright_black",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class _PrefixFormatter(logging.Formatter):
    def __init__(self, timestamps: bool, colour: bool = False) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self._timestamps = timestamps
        self._colour = colour

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        if name.startswith(ROOT_LOGGER + "."):
            name = name[len(ROOT_LOGGER) + 1 :]

        message = super().format(record)
        prefix = f"[{name}]"
        stamp = f"[{self.formatTime(record, self.datefmt)}] " if self._timestamps else ""
        if self._colour:
            level_colour = _LEVEL_COLOURS.get(record.levelno)
            if level_colour:
                message = click.style(message, fg=level_colour)
            prefix = click.style(prefix, fg="cyan")
            if stamp:
                stamp = click.style(stamp, fg="white")
        return f"{stamp}{prefix} {message}"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the shared logger for ``name`` below the package logger.

    Loggers are cached process-wide by :mod:`logging`, so every module asking
    for the same name gets the same instance.
    """

    if not name:
        return logging.getLogger(ROOT_LOGGER)
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    verbose: bool = False,
    *,
    timestamps: bool = True,
    force_colour: bool = False,
) -> logging.Logger:
    """Configure the package logger once at startup.

    INFO and DEBUG go to stdout, WARNING and above to stderr. DEBUG records
    are only emitted when ``verbose`` is set. Output is coloured per level
    when the stream is a terminal or ``force_colour`` is set. Repeated calls
    replace the handlers installed by the previous call.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(_formatter_for(sys.stdout, timestamps, force_colour))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(_formatter_for(sys.stderr, timestamps, force_colour))

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


def _formatter_for(stream: IO[str], timestamps: bool, force_colour: bool) -> _PrefixFormatter:
    isatty = getattr(stream, "isatty", None)
    colour = force_colour or bool(isatty and isatty())
    return _PrefixFormatter(timestamps, colour)


__all__ = ["ROOT_LOGGER", "get_logger", "setup_logging"]

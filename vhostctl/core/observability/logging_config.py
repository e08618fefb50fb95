"""
Process-wide logging for vhostctl.

``vhostctl.main`` configures the root logger once per invocation; the
rest of the package just uses ``logging.getLogger(__name__)``.

Console level, highest priority first:
    --debug / -v / -q  >  VHOSTCTL_LOG_LEVEL  >  WARNING

Skip reasons are WARNING records, so they show at the default level;
on a terminal warnings print yellow and errors red.

VHOSTCTL_LOG_FILE adds a file handler at VHOSTCTL_LOG_FILE_LEVEL
(defaults to the console level).
"""

from __future__ import annotations

import logging
import sys

import click

_CLOCK = "%H:%M:%S"
_DETAILED = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"

# (upper bound, format, datefmt); levels past the last bound use the last row
_CONSOLE_LAYOUTS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, _DETAILED, _CLOCK),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", _CLOCK),
    (logging.CRITICAL, "%(message)s", None),
]

_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLORS = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


class ConsoleFormatter(logging.Formatter):
    """Plain formatter that paints warnings and errors when ``color`` is set."""

    def __init__(self, fmt: str, datefmt: str | None = None, color: bool = False):
        super().__init__(fmt, datefmt=datefmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fg = _LEVEL_COLORS.get(record.levelno) if self.color else None
        return click.style(text, fg=fg) if fg else text


def _console_handler(level: int) -> logging.Handler:
    for bound, fmt, datefmt in _CONSOLE_LAYOUTS:
        if level <= bound:
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter(fmt, datefmt=datefmt, color=sys.stderr.isatty()))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_DETAILED, datefmt=_FILE_DATEFMT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Replace the root logger's handlers with vhostctl's.

    The root level is the lowest of the console and file levels so a
    verbose log file still receives records the console filters out.
    """
    console_level = _parse_level(level)
    handlers = [_console_handler(console_level)]

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    # a closed stderr (piped into head, etc.) must not spew tracebacks
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    numeric = getattr(logging, level.upper(), None) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING

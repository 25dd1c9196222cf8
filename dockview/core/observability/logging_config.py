"""
Logging configuration — one setup call shared by the CLI and the web server.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config.  Discovery logs strategy fallbacks at DEBUG, unverified
paths at INFO and unexpected tool output at WARNING, so the default
console stays quiet while ``--debug`` shows the whole strategy chain.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  DVW_LOG_LEVEL  >  WARNING

A log file is added when ``log_file`` (the setting) or DVW_LOG_FILE is
set; it records at DVW_LOG_FILE_LEVEL, else at the console level.
"""

from __future__ import annotations

import logging
import os
import sys

# Console layout per level: the quieter the level, the terser the line
_CONSOLE_LAYOUTS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_DEFAULT = "%(message)s"

_FILE_LAYOUT = ("%(asctime)s %(levelname)-5s %(name)s — %(message)s", "%Y-%m-%d %H:%M:%S")

# Loggers held at WARNING unless --debug
_NOISY_LOGGERS = ("werkzeug", "urllib3", "asyncio")


def resolve_level(*, debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, then DVW_LOG_LEVEL."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get("DVW_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """(Re)configure the root logger.

    Safe to call more than once: handlers from a previous call are
    closed and replaced.

    Args:
        level: Console level name.
        log_file: Log file path (falls back to DVW_LOG_FILE).
        log_file_level: File level name (falls back to
            DVW_LOG_FILE_LEVEL, then ``level``).
        quiet_third_party: Hold ``_NOISY_LOGGERS`` at WARNING unless
            the console is at DEBUG.
    """
    console_level = _parse_level(level)
    handlers: list[logging.Handler] = [_console_handler(console_level)]

    log_file = log_file or os.environ.get("DVW_LOG_FILE")
    if log_file:
        file_level_name = log_file_level or os.environ.get("DVW_LOG_FILE_LEVEL")
        file_level = _parse_level(file_level_name) if file_level_name else console_level
        handlers.append(_file_handler(log_file, file_level))

    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(min(h.level for h in handlers))

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # A closed stream (e.g. after CliRunner) must not print tracebacks
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = _CONSOLE_DEFAULT, None
    for threshold, layout, layout_datefmt in _CONSOLE_LAYOUTS:
        if level <= threshold:
            fmt, datefmt = layout, layout_datefmt
            break
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(*_FILE_LAYOUT))
    return handler


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; WARNING for anything unknown."""
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING

"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)`` and
inherits this config. Progress lines meant for the user
("Installing rbenv...") are echoed by the CLI on stdout; log records
go to stderr so they never mix with them.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  DEVBOOTSTRAP_LOG_LEVEL  >  WARNING

A log file is written when DEVBOOTSTRAP_LOG_FILE is set, at
DEVBOOTSTRAP_LOG_FILE_LEVEL (default: the console level).
"""

from __future__ import annotations

import logging
import sys

_FMT_DETAIL = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

# (threshold, format, datefmt); the first threshold at or above the level wins
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, _FMT_DETAIL, "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
]
_FMT_MINIMAL = "%(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


def resolve_level(
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Console level name from CLI flags, falling back to ``env_level``."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return env_level or "WARNING"


def _console_formatter(level: int) -> logging.Formatter:
    for threshold, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= threshold:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_FMT_MINIMAL)


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the stderr handler and, optionally, a file handler.

    Unknown level names mean WARNING.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(console_level)

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_FILE))
        root.addHandler(handler)
        root.setLevel(min(console_level, file_level))

    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    numeric = logging.getLevelName(level.upper()) if level else None
    return numeric if isinstance(numeric, int) else logging.WARNING

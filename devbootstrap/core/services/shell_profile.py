"""
Shell profile writer — idempotent line appends.

A profile is treated as an ordered list of distinct lines. A line is
appended only when no existing line matches it exactly (whole line,
fixed string), so repeated runs never duplicate configuration.

Profiles are compared as bytes: a ``.zshrc`` may hold text in any
encoding, and lines this tool did not write are never decoded.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _lines(path: Path) -> list[bytes]:
    return path.read_bytes().split(b"\n")


def has_line(line: str, path: Path) -> bool:
    """Whether ``path`` contains ``line`` as a complete line."""
    if not path.is_file():
        return False
    return line.encode("utf-8") in _lines(path)


def append_once(line: str, path: Path) -> bool:
    """Append ``line`` to ``path`` unless it is already present.

    Creates the file (and parent directories) if needed. When the file
    does not end with a newline, one is written first so the new line
    stands on its own.

    Returns:
        True if the line was written, False if it was already there.

    Raises:
        ValueError: If ``line`` spans several lines.
        OSError: If the file cannot be read or written.
    """
    if "\n" in line:
        raise ValueError(f"Refusing to append a multi-line entry to {path}")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)

    encoded = line.encode("utf-8")
    content = path.read_bytes()
    if encoded in content.split(b"\n"):
        logger.debug("Already present in %s: %s", path, line)
        return False

    with path.open("ab") as f:
        if content and not content.endswith(b"\n"):
            f.write(b"\n")
        f.write(encoded + b"\n")

    logger.info("Appended to %s: %s", path, line)
    return True

"""
Host detection — platform tag and zsh startup file.

Read-only except for ``ensure_zshrc``, which creates an empty
``.zshrc`` when none exists.
"""

from __future__ import annotations

import platform
from pathlib import Path

from devbootstrap.core.models.environment import BootstrapEnv, OsTag

_KERNEL_TAGS: dict[str, OsTag] = {
    "Darwin": "mac",
    "Linux": "linux",
}


def detect_os(kernel: str | None = None) -> OsTag:
    """Classify the kernel name as ``mac``, ``linux`` or ``unsupported``.

    Args:
        kernel: Kernel name as reported by ``uname -s``. Defaults to
            ``platform.system()``.
    """
    if kernel is None:
        kernel = platform.system()
    return _KERNEL_TAGS.get(kernel.strip(), "unsupported")


def zshrc_path(env: BootstrapEnv) -> Path:
    """``$ZDOTDIR/.zshrc``, with ZDOTDIR falling back to HOME."""
    zdotdir = env.get("ZDOTDIR") or str(env.home)
    return Path(zdotdir) / ".zshrc"


def ensure_zshrc(env: BootstrapEnv) -> Path:
    """Create the zsh startup file if missing and return its path."""
    path = zshrc_path(env)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(exist_ok=True)
    return path

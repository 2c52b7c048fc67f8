"""
BootstrapEnv — the environment every step runs in.

Steps never touch ``os.environ``. They read variables from the
context, return the variables they changed, and the runner merges
those into a new context for the next step. Subprocesses are always
started with ``BootstrapEnv.env``.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Literal, Mapping

from pydantic import BaseModel, Field

OsTag = Literal["mac", "linux", "unsupported"]


class BootstrapEnv(BaseModel):
    """Host identity plus the environment variables seen by child processes."""

    os_tag: OsTag = "unsupported"
    zshrc: str = ""
    env: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_process(
        cls,
        os_tag: OsTag,
        environ: Mapping[str, str] | None = None,
    ) -> BootstrapEnv:
        """Snapshot the current process environment."""
        source = dict(os.environ if environ is None else environ)
        source.setdefault("HOME", str(Path.home()))
        return cls(os_tag=os_tag, env=source)

    @property
    def home(self) -> Path:
        return Path(self.env.get("HOME") or Path.home())

    def get(self, name: str, default: str = "") -> str:
        return self.env.get(name, default)

    def merged(self, updates: Mapping[str, str] | None) -> BootstrapEnv:
        """Return a new context with ``updates`` applied."""
        if not updates:
            return self
        env = dict(self.env)
        env.update(updates)
        return self.model_copy(update={"env": env})

    def which(self, command: str) -> str | None:
        """Resolve ``command`` against this context's PATH."""
        return shutil.which(command, path=self.env.get("PATH", ""))

"""
Action and Receipt models — what a step asks for, what it got back.

An Action names an adapter and its params (run a command, append a
line, clone a repository). The adapter answers with a Receipt, never
an exception. Receipts for commands keep the process exit status so a
failed step can hand it on as the bootstrap's own.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Status = Literal["ok", "skipped", "failed"]


class Action(BaseModel):
    """A requested operation for one adapter."""

    id: str                         # unique action identifier
    name: str = ""                  # human-readable name
    adapter: str                    # "shell", "filesystem" or "git"
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Outcome of one action."""

    adapter: str
    action_id: str
    status: Status = "ok"
    output: str = ""
    error: str | None = None
    return_code: int | None = None  # exit status, when a process ran
    duration_ms: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, adapter: str, action_id: str, reason: str = "", **kwargs: Any) -> Receipt:
        """A receipt for work that was not needed; ``reason`` becomes the output."""
        return cls(adapter=adapter, action_id=action_id, status="skipped", output=reason, **kwargs)

"""
Filesystem adapter — idempotent profile and list-file appends.

Every file the bootstrap writes (``.zshrc``, ``~/.rbenv/default-gems``)
is a list of distinct lines, so a single receipt-returning
``append_once`` operation covers them all and can be dry-run like any
other action.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.adapters.base import Adapter, ExecutionContext
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.services.shell_profile import append_once

logger = logging.getLogger(__name__)


class FilesystemAdapter(Adapter):
    """Append-once writes with receipts.

    Action params:
        operation (str): Must be 'append_once'.
        path (str): Target path (absolute).
        line (str): Line to add.
    """

    @property
    def name(self) -> str:
        return "filesystem"

    def is_available(self) -> bool:
        return True

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation != "append_once":
            return False, f"Unknown operation '{operation}'. Valid: append_once"

        path = context.params.get("path", "")
        if not path:
            return False, "Missing required param: 'path'"
        if not Path(path).is_absolute():
            return False, f"Path must be absolute: {path}"

        if not context.params.get("line"):
            return False, "Missing required param: 'line'"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        target = Path(context.params["path"])
        line = context.params["line"]

        try:
            written = append_once(line, target)
        except (OSError, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Filesystem error: {e}",
                metadata={"path": str(target)},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=f"Appended to {target}" if written else f"Already present in {target}",
            metadata={"path": str(target), "line": line, "written": written},
        )

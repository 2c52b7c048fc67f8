"""
Git adapter — fetch and update version-manager checkouts.

rbenv and its plugins are plain git checkouts. This adapter clones
them when absent and fast-forwards them when present. Uses the git
CLI with the step's environment.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from devbootstrap.adapters.base import Adapter, ExecutionContext
from devbootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)


class _GitError(RuntimeError):
    def __init__(self, message: str, return_code: int):
        super().__init__(message)
        self.return_code = return_code


class GitAdapter(Adapter):
    """Git checkout operations.

    Action params:
        operation (str): One of 'clone', 'pull'.
        url (str): Repository URL (for 'clone').
        dest (str): Checkout directory.
        timeout (int): Timeout in seconds (default: 600).
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.params.get("operation", "")
        if operation not in {"clone", "pull"}:
            return False, f"Unknown operation '{operation}'. Valid: clone, pull"

        dest = context.params.get("dest", "")
        if not dest:
            return False, "Missing required param: 'dest'"

        if operation == "clone":
            if not context.params.get("url"):
                return False, "Missing required param: 'url' for clone operation"
            if Path(dest).exists():
                return False, f"Destination already exists: {dest}"
        elif not Path(dest, ".git").exists():
            return False, f"Not a git checkout: {dest}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        operation = context.params["operation"]
        dest = context.params["dest"]
        timeout = context.params.get("timeout", 600)
        start = time.monotonic()

        try:
            if operation == "clone":
                output = self._git(
                    ["clone", context.params["url"], dest],
                    context, cwd=None, timeout=timeout,
                )
            else:
                output = self._git(
                    ["pull", "--ff-only"],
                    context, cwd=dest, timeout=timeout,
                )
        except _GitError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
                return_code=e.return_code,
                metadata={"operation": operation, "dest": dest},
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"git {operation} timed out after {timeout}s",
                metadata={"operation": operation, "dest": dest},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Git error: {e}",
                metadata={"operation": operation, "dest": dest},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=context.action.id,
            output=output.strip(),
            return_code=0,
            duration_ms=int((time.monotonic() - start) * 1000),
            metadata={"operation": operation, "dest": dest},
        )

    # ── Helpers ─────────────────────────────────────────────────

    def _git(
        self,
        args: list[str],
        ctx: ExecutionContext,
        cwd: str | None,
        timeout: int,
    ) -> str:
        """Run a git command and return stdout."""
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=ctx.env.env or None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        if result.returncode != 0:
            raise _GitError(
                result.stderr.strip() or f"git {args[0]} failed",
                result.returncode,
            )
        return result.stdout

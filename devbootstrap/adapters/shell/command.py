"""
Shell command adapter — run installers and manager commands.

This is the SINGLE PLACE where ``subprocess.run`` is called for
bootstrap operations. Commands run with the step's BootstrapEnv,
never with the parent process environment.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
import time

from devbootstrap.adapters.base import Adapter, ExecutionContext
from devbootstrap.core.models.action import Receipt

logger = logging.getLogger(__name__)

_TAIL = 2000


class ShellCommandAdapter(Adapter):
    """Execute commands and report their exit status.

    Action params:
        argv (list[str]): Command to execute.
        sudo (bool): Prefix with ``sudo`` unless already root (default: False).
        capture (bool): Capture stdout instead of streaming it to the
            terminal (default: False). Installers stream so interactive
            prompts reach the user.

    Args:
        stream_to_stderr: Send streamed (uncaptured) output to stderr,
            keeping stdout free for machine-readable output.
    """

    def __init__(self, stream_to_stderr: bool = False):
        self._stream_to_stderr = stream_to_stderr

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("bash") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.params.get("argv")
        if not argv or not isinstance(argv, list):
            return False, "Missing required param: 'argv'"
        return True, ""

    def _stdout(self, capture: bool):
        if capture:
            return subprocess.PIPE
        if self._stream_to_stderr:
            return sys.stderr.fileno()
        return None

    def execute(self, context: ExecutionContext) -> Receipt:
        argv = list(context.params["argv"])
        capture = context.params.get("capture", False)

        if context.params.get("sudo") and os.geteuid() != 0:
            argv = ["sudo"] + argv

        command = shlex.join(argv)
        logger.debug("Executing: %s", command)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                env=context.env.env or None,
                stdout=self._stdout(capture),
                stderr=subprocess.PIPE if capture else None,
                text=True,
            )
        except FileNotFoundError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command not found: {e.filename or argv[0]}",
                return_code=127,
                metadata={"command": command},
            )
        except (OSError, ValueError) as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        stdout = (result.stdout or "") if capture else ""
        stderr = (result.stderr or "")[-_TAIL:] if capture else ""

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=stdout,
                return_code=0,
                duration_ms=elapsed_ms,
                metadata={"command": command, "stderr": stderr},
            )

        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=stderr.strip() or f"Command exited with code {result.returncode}",
            output=stdout,
            return_code=result.returncode,
            duration_ms=elapsed_ms,
            metadata={"command": command},
        )

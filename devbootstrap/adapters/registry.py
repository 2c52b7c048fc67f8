"""
Adapter registry — the only way steps reach a tool.

Steps hand the registry an Action and the current BootstrapEnv and get
a Receipt back. Mock mode reroutes every action to one test double,
dry-run stops after validation, and any exception an adapter lets
slip is folded into a failed receipt.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from devbootstrap.adapters.base import Adapter, ExecutionContext
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.environment import BootstrapEnv

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Adapters by name, plus mock and dry-run dispatch."""

    def __init__(self, mock_mode: bool = False):
        self._adapters: dict[str, Adapter] = {}
        self._mock_mode = mock_mode
        self._mock_adapter: Adapter | None = None

    @property
    def mock_mode(self) -> bool:
        return self._mock_mode

    def set_mock_mode(self, enabled: bool, mock_adapter: Adapter | None = None) -> None:
        """Route every action to ``mock_adapter`` (or a built-in stub)."""
        self._mock_mode = enabled
        self._mock_adapter = mock_adapter

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", adapter.name)
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of each registered adapter, for ``detect``."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception:
                logger.debug("is_available raised for %s", name, exc_info=True)
                available = False
            status[name] = {
                "available": available,
                "type": type(adapter).__name__,
            }
        return status

    def _resolve(self, action: Action) -> Adapter | Receipt:
        if self._mock_mode:
            if self._mock_adapter is not None:
                return self._mock_adapter
            return Receipt.success(
                adapter=action.adapter,
                action_id=action.id,
                output=f"[mock] {action.adapter}:{action.id} executed",
                return_code=0,
                metadata={"mock": True},
            )

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )
        return adapter

    def execute_action(
        self,
        action: Action,
        env: BootstrapEnv | None = None,
        dry_run: bool = False,
    ) -> Receipt:
        """Validate and run ``action``; never raises."""
        resolved = self._resolve(action)
        if isinstance(resolved, Receipt):
            return resolved
        adapter = resolved

        context = ExecutionContext(action=action, env=env or BootstrapEnv(), dry_run=dry_run)
        start = time.monotonic()

        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            is_valid, error_msg = False, f"validator raised {e}"
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
            )

        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would execute {action.adapter}:{action.id}",
                metadata={"dry_run": True},
            )

        try:
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised during %s: %s", action.adapter, action.id, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        receipt.duration_ms = int((time.monotonic() - start) * 1000)
        return receipt


def default_registry(mock_mode: bool = False, stream_to_stderr: bool = False) -> AdapterRegistry:
    """Registry with the shell, filesystem and git adapters registered.

    ``stream_to_stderr`` sends installer output to stderr, for callers
    that print a JSON document on stdout.
    """
    from devbootstrap.adapters.shell.command import ShellCommandAdapter
    from devbootstrap.adapters.shell.filesystem import FilesystemAdapter
    from devbootstrap.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter(stream_to_stderr=stream_to_stderr))
    registry.register(FilesystemAdapter())
    registry.register(GitAdapter())
    return registry

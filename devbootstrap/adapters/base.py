"""
Adapter base — the protocol contract between the step runner and tools.

This defines the abstract interface that every adapter must implement.
Bootstrap steps only talk to adapters through this protocol, never
directly to subprocess or the filesystem.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.environment import BootstrapEnv


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute an action.

    This is the adapter's view of the world: the action to perform
    and the environment the step was handed.
    """

    action: Action
    env: BootstrapEnv = Field(default_factory=BootstrapEnv)
    dry_run: bool = False

    @property
    def params(self) -> dict:
        return self.action.params


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'shell', 'filesystem', 'git')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this adapter's underlying tool is available.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Execute the action and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"

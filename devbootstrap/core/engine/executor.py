"""
Engine executor — the step runner.

The bootstrap is a declarative list of steps. Each step names what it
does, how its failure is treated, and optionally how to tell that it
is already done. The runner evaluates that predicate, performs the
step through the adapter registry, applies the step's failure policy
and threads the environment from one step to the next.

Flow:
    step → satisfied? → execute → receipt → policy → next step
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable

from devbootstrap.adapters.registry import AdapterRegistry
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.environment import BootstrapEnv

logger = logging.getLogger(__name__)


class StepPolicy(str, enum.Enum):
    """What a failed step does to the run."""

    FATAL = "fatal"              # abort with a remediation hint
    BEST_EFFORT = "best_effort"  # log and continue
    PROPAGATE = "propagate"      # abort with the command's exit status


class BootstrapError(Exception):
    """Base class for errors that abort the bootstrap."""

    exit_code: int = 1


class StepFailed(BootstrapError):
    """A PROPAGATE step failed."""

    def __init__(self, step: str, receipt: Receipt):
        self.step = step
        self.receipt = receipt
        self.exit_code = receipt.return_code or 1
        message = f"Step '{step}' failed: {receipt.error or 'unknown error'}"
        command = receipt.metadata.get("command")
        if command:
            message += f"\n  command: {command}"
        super().__init__(message)


class SanityCheckError(BootstrapError):
    """A FATAL step failed — a manager loaded but its command is missing."""

    def __init__(self, step: str, message: str, hint: str = ""):
        self.step = step
        self.hint = hint
        super().__init__(message)


@dataclass
class Step:
    """One unit of bootstrap work.

    Exactly one of ``action`` (dispatched through the registry) or
    ``func`` (called with the runner, for composite work such as
    fallback chains or polling) must be set.
    """

    name: str
    action: Action | None = None
    func: Callable[[StepRunner], Receipt] | None = None
    policy: StepPolicy = StepPolicy.PROPAGATE
    satisfied: Callable[[BootstrapEnv], bool] | None = None
    announce: str = ""
    # FATAL only
    error: str = ""
    hint: str = ""

    def __post_init__(self) -> None:
        if (self.action is None) == (self.func is None):
            raise ValueError(f"Step '{self.name}' needs exactly one of action or func")


@dataclass
class BootstrapReport:
    """Receipts of every step the runner has seen."""

    receipts: list[Receipt] = field(default_factory=list)
    step_receipts: dict[str, Receipt] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def failed_steps(self) -> list[str]:
        return [name for name, r in self.step_receipts.items() if r.failed]

    def record(self, step: str, receipt: Receipt) -> None:
        self.receipts.append(receipt)
        self.step_receipts[step] = receipt

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "steps": {
                name: r.model_dump(mode="json")
                for name, r in self.step_receipts.items()
            },
        }


class StepRunner:
    """Runs steps in order against an evolving BootstrapEnv."""

    def __init__(
        self,
        registry: AdapterRegistry,
        env: BootstrapEnv,
        dry_run: bool = False,
        announce: Callable[[str], None] | None = None,
    ):
        self.registry = registry
        self.env = env
        self.dry_run = dry_run
        self.report = BootstrapReport()
        self._announce = announce or logger.info

    def dispatch(self, action: Action) -> Receipt:
        """Execute one action with the current environment."""
        return self.registry.execute_action(action, env=self.env, dry_run=self.dry_run)

    def update_env(self, updates: dict[str, str] | None) -> None:
        """Merge variable updates into the environment for later steps."""
        if updates:
            logger.debug("Environment updates: %s", sorted(updates))
            self.env = self.env.merged(updates)

    def say(self, message: str) -> None:
        self._announce(message)

    def run(self, step: Step) -> Receipt:
        """Run a single step and apply its failure policy.

        Raises:
            StepFailed: A PROPAGATE step failed.
            SanityCheckError: A FATAL step failed.
        """
        if step.satisfied is not None and step.satisfied(self.env):
            logger.debug("⊘ %s already satisfied", step.name)
            receipt = Receipt.skip(
                adapter="runner",
                action_id=step.name,
                reason="already satisfied",
            )
            self.report.record(step.name, receipt)
            return receipt

        if step.announce:
            self.say(step.announce)

        if step.func is not None:
            receipt = step.func(self)
        elif step.action is not None:
            receipt = self.dispatch(step.action)
        else:
            raise ValueError(f"Step '{step.name}' has nothing to run")

        self.report.record(step.name, receipt)

        if not receipt.failed:
            logger.info("%s %s → %s", "✓" if receipt.ok else "⊘", step.name, receipt.status)
            return receipt

        if step.policy is StepPolicy.BEST_EFFORT:
            logger.warning("✗ %s failed (continuing): %s", step.name, receipt.error)
            return receipt

        logger.error("✗ %s failed: %s", step.name, receipt.error)
        if step.policy is StepPolicy.FATAL:
            raise SanityCheckError(step.name, step.error or receipt.error or step.name, step.hint)
        raise StepFailed(step.name, receipt)

    def run_all(self, steps: list[Step]) -> BootstrapReport:
        for step in steps:
            self.run(step)
        return self.report

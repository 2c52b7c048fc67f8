"""
Version manager base — the shared install/activate flow.

Every manager goes through the same states:

    ABSENT → FETCHED → ACTIVATED → VERSIONS_INSTALLED → DEFAULT_SET

``steps()`` turns that into a declarative step list:

    exports → fetch → register profile lines → activate → sanity check
            → manager-specific version/default steps

Subclasses provide the paths, profile lines, activation snippet and
the fetch/version steps. The sanity check is FATAL: a manager whose
init script loaded but whose command does not resolve stops the run
before any runtime is installed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from devbootstrap.core.engine.executor import Step, StepPolicy, StepRunner
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.config import BootstrapConfig
from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.activation import activate, manager_action, profile_action
from devbootstrap.core.services.strict_mode import bash_argv, build_script, relaxed

logger = logging.getLogger(__name__)


def nonempty_file(path: Path) -> bool:
    """``[[ -s path ]]``."""
    try:
        return path.is_file() and path.stat().st_size > 0
    except OSError:
        return False


class VersionManager(ABC):
    """Base class for rbenv, SDKMAN and nvm."""

    #: identifier used in step names ("rbenv", "sdkman", "nvm")
    name: str = ""
    #: display name used in diagnostics
    label: str = ""
    #: the command that must resolve after activation
    command: str = ""

    def __init__(self, config: BootstrapConfig, env: BootstrapEnv):
        self.config = config
        self.home = env.home
        self.zshrc = env.zshrc
        self.os_tag = env.os_tag

    # ── Subclass contract ───────────────────────────────────────

    @property
    @abstractmethod
    def init_script(self) -> Path:
        """The file users are told to source when activation fails."""

    @abstractmethod
    def profile_lines(self) -> list[str]:
        """Lines registered once in ``.zshrc``."""

    @abstractmethod
    def activation(self) -> str:
        """Bash snippet that makes the manager usable in a shell."""

    @abstractmethod
    def fetch_steps(self) -> list[Step]:
        """Steps that download the manager when absent."""

    @abstractmethod
    def version_steps(self) -> list[Step]:
        """Steps that install runtimes and pick the default."""

    def exports(self) -> dict[str, str]:
        """Variables always set for the rest of the run."""
        return {}

    def env_defaults(self, env: BootstrapEnv) -> dict[str, str]:
        """Variables set only when the environment lacks them."""
        return {}

    def remediation(self) -> str:
        return f'Tip: open a new shell or run: source "{self.init_script}"'

    # ── Shared helpers ──────────────────────────────────────────

    def call(self, action_id: str, call: str, *, capture: bool = False) -> Action:
        """A manager command run after this manager's activation."""
        return manager_action(action_id, self.activation(), call, capture=capture)

    # ── Step list ───────────────────────────────────────────────

    def steps(self) -> list[Step]:
        return [
            self._exports_step(),
            *self.fetch_steps(),
            *self._register_steps(),
            Step(name=f"{self.name}:activate", func=self._activate),
            self._sanity_step(),
            *self.version_steps(),
        ]

    def _exports_step(self) -> Step:
        def _run(runner: StepRunner) -> Receipt:
            updates = dict(self.exports())
            for key, value in self.env_defaults(runner.env).items():
                if key not in runner.env.env:
                    updates[key] = value
            runner.update_env(updates)
            return Receipt.success(
                adapter="runner",
                action_id=f"{self.name}:exports",
                output=", ".join(sorted(updates)),
                metadata={"env": updates},
            )

        return Step(name=f"{self.name}:exports", func=_run)

    def _register_steps(self) -> list[Step]:
        return [
            Step(
                name=f"{self.name}:profile:{index}",
                action=profile_action(f"{self.name}:profile:{index}", line, self.zshrc),
            )
            for index, line in enumerate(self.profile_lines())
        ]

    def _activate(self, runner: StepRunner) -> Receipt:
        return activate(runner, f"{self.name}:activate", self.activation())

    def _sanity_step(self) -> Step:
        script = build_script(
            relaxed(self.activation()),
            f"type {self.command} >/dev/null 2>&1",
        )
        return Step(
            name=f"{self.name}:sanity",
            action=Action(
                id=f"{self.name}:sanity",
                name=f"type {self.command}",
                adapter="shell",
                params={"argv": bash_argv(script), "capture": True},
            ),
            policy=StepPolicy.FATAL,
            error=f"ERROR: {self.label} didn't load '{self.command}'. Check {self.init_script}",
            hint=self.remediation(),
        )

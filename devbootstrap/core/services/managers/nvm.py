"""
nvm — Node versions.

nvm is a shell function defined by ``$NVM_DIR/nvm.sh``; like SDKMAN it
is sourced and called with ``nounset`` relaxed.
"""

from __future__ import annotations

from pathlib import Path

from devbootstrap.core.engine.executor import Step, StepPolicy, StepRunner
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.services.activation import shell_action
from devbootstrap.core.services.managers.base import VersionManager, nonempty_file


class NvmManager(VersionManager):
    name = "nvm"
    label = "nvm"
    command = "nvm"

    @property
    def root(self) -> Path:
        return self.home / ".nvm"

    @property
    def init_script(self) -> Path:
        return self.root / "nvm.sh"

    def exports(self) -> dict[str, str]:
        return {"NVM_DIR": str(self.root)}

    def profile_lines(self) -> list[str]:
        return [
            'export NVM_DIR="$HOME/.nvm"',
            '[[ -s "$NVM_DIR/nvm.sh" ]] && source "$NVM_DIR/nvm.sh"',
            '[[ -s "$NVM_DIR/bash_completion" ]] && source "$NVM_DIR/bash_completion"',
        ]

    def activation(self) -> str:
        completion = self.root / "bash_completion"
        return "\n".join([
            f'[[ -s "{self.init_script}" ]] && . "{self.init_script}"',
            f'[[ -s "{completion}" ]] && . "{completion}" || true',
        ])

    def fetch_steps(self) -> list[Step]:
        script = f"curl -o- {self.config.urls.nvm} | bash"
        return [
            Step(
                name="nvm:install-nvm",
                action=shell_action("nvm:install-nvm", ["/bin/bash", "-c", script]),
                satisfied=lambda env: nonempty_file(self.init_script),
                announce="Installing nvm...",
            ),
        ]

    def default_alias(self) -> str:
        alias_file = self.root / "alias" / "default"
        try:
            return alias_file.read_text(encoding="utf-8").strip()
        except OSError:
            return ""

    def version_steps(self) -> list[Step]:
        node = self.config.node
        steps = [
            Step(
                name="nvm:install",
                action=self.call("nvm:install", f"nvm install {node.install}"),
                policy=StepPolicy.BEST_EFFORT,
                announce="Installing latest LTS Node (includes npm)...",
            ),
            Step(
                name="nvm:alias-default",
                action=self.call("nvm:alias-default", f"nvm alias default '{node.default_alias}'"),
                satisfied=lambda env: self.default_alias() == node.default_alias,
            ),
        ]
        if node.enable_corepack:
            steps.append(Step(
                name="nvm:corepack",
                func=self._corepack,
                policy=StepPolicy.BEST_EFFORT,
            ))
        return steps

    def _corepack(self, runner: StepRunner) -> Receipt:
        # corepack ships with the Node that nvm just activated
        return runner.dispatch(self.call(
            "nvm:corepack",
            "if command -v corepack >/dev/null 2>&1; then corepack enable; fi",
        ))

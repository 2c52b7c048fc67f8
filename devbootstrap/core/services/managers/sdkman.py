"""
SDKMAN — Java versions.

SDKMAN is installed by its own bootstrap script and used through the
``sdk`` shell function, which only exists after sourcing
``sdkman-init.sh``. That script is not ``nounset``-clean, so every
call runs relaxed (see ``strict_mode``).

Default selection prefers SDKMAN's candidate directory (one directory
per installed identifier) over scraping ``sdk list java``; the listing
is parsed only when the directory yields nothing.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from devbootstrap.core.engine.executor import Step, StepPolicy, StepRunner
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.config import JavaCandidate
from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.activation import shell_action
from devbootstrap.core.services.managers.base import VersionManager, nonempty_file

logger = logging.getLogger(__name__)


def _matches(identifier: str, major: int, vendor: str) -> bool:
    return identifier.startswith(f"{major}.") and identifier.endswith(f"-{vendor}")


def _version_key(identifier: str) -> list[tuple[int, int, str]]:
    """Sort key that orders ``21.0.10-tem`` after ``21.0.9-tem``."""
    version = identifier.rsplit("-", 1)[0]
    return [
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in re.split(r"[.+]", version)
    ]


def select_from_listing(listing: str, major: int, vendor: str = "tem") -> str | None:
    """Pick the default Java from ``sdk list java`` output.

    Considers rows marked ``installed`` whose identifier (the last
    field) belongs to ``major`` and ``vendor``; the last such row wins.
    """
    chosen = None
    for row in listing.splitlines():
        if "installed" not in row:
            continue
        fields = row.split()
        if not fields:
            continue
        identifier = fields[-1]
        if _matches(identifier, major, vendor):
            chosen = identifier
    return chosen


def installed_identifiers(candidates_dir: Path) -> list[str]:
    """Identifiers installed under ``<candidates>/java``, in version order."""
    java_dir = candidates_dir / "java"
    if not java_dir.is_dir():
        return []
    names = [
        entry.name
        for entry in java_dir.iterdir()
        if entry.is_dir() and not entry.is_symlink() and entry.name != "current"
    ]
    return sorted(names, key=_version_key)


def select_installed(identifiers: list[str], major: int, vendor: str = "tem") -> str | None:
    """The newest identifier for ``major`` and ``vendor``, if any."""
    matching = [ident for ident in identifiers if _matches(ident, major, vendor)]
    return matching[-1] if matching else None


class SdkmanManager(VersionManager):
    name = "sdkman"
    label = "SDKMAN"
    command = "sdk"

    @property
    def root(self) -> Path:
        return self.home / ".sdkman"

    @property
    def init_script(self) -> Path:
        return self.root / "bin" / "sdkman-init.sh"

    @property
    def candidates_dir(self) -> Path:
        return self.root / "candidates"

    def exports(self) -> dict[str, str]:
        return {"SDKMAN_DIR": str(self.root)}

    def env_defaults(self, env: BootstrapEnv) -> dict[str, str]:
        return {
            "ZSH_VERSION": "",
            "SDKMAN_OFFLINE_MODE": "false",
            "SDKMAN_CANDIDATES_DIR": str(self.candidates_dir),
        }

    def profile_lines(self) -> list[str]:
        return [
            'export SDKMAN_DIR="$HOME/.sdkman"',
            '[[ -s "$HOME/.sdkman/bin/sdkman-init.sh" ]] && source "$HOME/.sdkman/bin/sdkman-init.sh"',
        ]

    def activation(self) -> str:
        return f'[[ -s "{self.init_script}" ]] && source "{self.init_script}"'

    def fetch_steps(self) -> list[Step]:
        script = f'curl -s "{self.config.urls.sdkman}" | bash'
        return [
            Step(
                name="sdkman:install",
                action=shell_action("sdkman:install", ["/bin/bash", "-c", script]),
                satisfied=lambda env: nonempty_file(self.init_script),
                announce="Installing SDKMAN!...",
            ),
        ]

    def version_steps(self) -> list[Step]:
        java = self.config.java
        majors = ", ".join(str(c.major) for c in java.candidates)
        steps = [
            Step(
                name=f"sdkman:java:{candidate.major}",
                func=self._install_chain(candidate),
                policy=StepPolicy.BEST_EFFORT,
                satisfied=lambda env, c=candidate: self._chain_installed(c),
                announce=f"Installing Java JDKs (Temurin {majors})..." if index == 0 else "",
            )
            for index, candidate in enumerate(java.candidates)
        ]
        steps.append(Step(name="sdkman:default", func=self._set_default))
        return steps

    def _chain_installed(self, candidate: JavaCandidate) -> bool:
        java_dir = self.candidates_dir / "java"
        return any((java_dir / ident).is_dir() for ident in candidate.identifiers)

    def _install_chain(self, candidate: JavaCandidate):
        def _run(runner: StepRunner) -> Receipt:
            receipt: Receipt | None = None
            for ident in candidate.identifiers:
                receipt = runner.dispatch(
                    self.call(f"sdkman:install:{ident}", f"sdk install java {ident}")
                )
                if not receipt.failed:
                    return receipt
                logger.info("sdk install java %s failed, trying next", ident)
            if receipt is None:
                return Receipt.failure(
                    adapter="runner",
                    action_id=f"sdkman:install:{candidate.major}",
                    error=f"No Java {candidate.major} identifiers configured",
                )
            return receipt

        return _run

    def current_default(self) -> str:
        current = self.candidates_dir / "java" / "current"
        if not current.is_symlink():
            return ""
        return Path(current.resolve()).name

    def choose_default(self, runner: StepRunner) -> str | None:
        java = self.config.java
        chosen = select_installed(
            installed_identifiers(self.candidates_dir), java.default_major, java.vendor,
        )
        if chosen:
            return chosen

        listing = runner.dispatch(self.call("sdkman:list-java", "sdk list java", capture=True))
        if not listing.ok:
            logger.warning("sdk list java failed: %s", listing.error)
            return None
        return select_from_listing(listing.output, java.default_major, java.vendor)

    def _set_default(self, runner: StepRunner) -> Receipt:
        chosen = self.choose_default(runner)
        if not chosen:
            return Receipt.skip(adapter="runner", action_id="sdkman:default",
                                reason=f"no installed Java {self.config.java.default_major}")

        if self.current_default() == chosen:
            return Receipt.skip(adapter="runner", action_id="sdkman:default",
                                reason=f"default already {chosen}")

        return runner.dispatch(self.call("sdkman:default", f"sdk default java {chosen}"))

"""
rbenv — Ruby versions.

rbenv and its plugins (ruby-build, rbenv-default-gems) are git
checkouts under ``~/.rbenv``. Gems listed in ``~/.rbenv/default-gems``
are installed automatically into every Ruby built afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path

from devbootstrap.core.engine.executor import Step, StepPolicy, StepRunner
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.services.activation import profile_action, shell_action
from devbootstrap.core.services.managers.base import VersionManager

logger = logging.getLogger(__name__)


def _git_action(action_id: str, operation: str, dest: Path, url: str = "") -> Action:
    params = {"operation": operation, "dest": str(dest)}
    if url:
        params["url"] = url
    return Action(id=action_id, name=f"git {operation} {dest.name}", adapter="git", params=params)


def _capture(runner: StepRunner, action_id: str, argv: list[str]) -> str:
    """stdout of a best-effort command, or "" on failure."""
    receipt = runner.dispatch(shell_action(action_id, argv, capture=True))
    if not receipt.ok or receipt.metadata.get("mock"):
        return ""
    return receipt.output.strip()


def compile_flags(
    env: dict[str, str],
    sdkroot: str,
    openssl: str,
    readline: str,
    libyaml: str,
) -> dict[str, str]:
    """Native library search paths for building Ruby on macOS.

    Empty prefixes contribute nothing. Existing values of
    ``RUBY_CONFIGURE_OPTS`` and ``PKG_CONFIG_PATH`` are kept.
    """
    opts = [env.get("RUBY_CONFIGURE_OPTS", "")]
    if openssl:
        opts.append(f"--with-openssl-dir={openssl}")
    if readline:
        opts.append(f"--with-readline-dir={readline}")

    pkg_config = [
        f"{prefix}/lib/pkgconfig"
        for prefix in (libyaml, openssl, readline)
        if prefix
    ]
    pkg_config.append(env.get("PKG_CONFIG_PATH", ""))

    updates = {
        "RUBY_CONFIGURE_OPTS": " ".join(o for o in opts if o),
        "PKG_CONFIG_PATH": ":".join(p for p in pkg_config if p),
    }
    if sdkroot:
        updates["SDKROOT"] = sdkroot
    return updates


class RbenvManager(VersionManager):
    name = "rbenv"
    label = "rbenv"
    command = "rbenv"

    @property
    def root(self) -> Path:
        return self.home / ".rbenv"

    @property
    def init_script(self) -> Path:
        return self.root / "bin" / "rbenv"

    @property
    def default_gems_file(self) -> Path:
        return self.root / "default-gems"

    def remediation(self) -> str:
        return f'Tip: open a new shell or run: eval "$({self.init_script} init - zsh)"'

    def profile_lines(self) -> list[str]:
        return [
            'export PATH="$HOME/.rbenv/bin:$PATH"',
            'eval "$(rbenv init - zsh)"',
        ]

    def activation(self) -> str:
        return f'export PATH="{self.root}/bin:$PATH"\neval "$(rbenv init - bash)"'

    def plugins(self) -> list[tuple[str, str]]:
        urls = self.config.urls
        return [
            ("ruby-build", urls.ruby_build),
            ("rbenv-default-gems", urls.rbenv_default_gems),
        ]

    # ── Fetch ───────────────────────────────────────────────────

    def fetch_steps(self) -> list[Step]:
        return [
            Step(
                name="rbenv:clone",
                action=_git_action("rbenv:clone", "clone", self.root, self.config.urls.rbenv),
                satisfied=lambda env: self.root.is_dir(),
                announce="Installing rbenv...",
            ),
        ]

    # ── Versions ────────────────────────────────────────────────

    def version_steps(self) -> list[Step]:
        steps = [
            Step(name=f"rbenv:plugin:{plugin}", func=self._plugin(plugin, url))
            for plugin, url in self.plugins()
        ]

        steps.extend(
            Step(
                name=f"rbenv:default-gem:{gem}",
                action=profile_action(
                    f"rbenv:default-gem:{gem}", gem, str(self.default_gems_file),
                ),
            )
            for gem in self.config.ruby.default_gems
        )

        if self.os_tag == "mac":
            steps.append(Step(
                name="rbenv:compile-flags",
                func=self._compile_flags,
                policy=StepPolicy.BEST_EFFORT,
            ))

        versions = self.config.ruby.versions
        for index, version in enumerate(versions):
            steps.append(Step(
                name=f"rbenv:install:{version}",
                action=shell_action(
                    f"rbenv:install:{version}", ["rbenv", "install", "-s", version],
                ),
                policy=StepPolicy.BEST_EFFORT,
                satisfied=lambda env, v=version: self._is_installed(v),
                announce=(
                    f"Installing Ruby versions ({', '.join(versions)})..." if index == 0 else ""
                ),
            ))

        if versions:
            steps.append(Step(name="rbenv:global", func=self._set_global))
            steps.append(Step(
                name="rbenv:rehash",
                action=shell_action("rbenv:rehash", ["rbenv", "rehash"]),
            ))

        if "bundler" in self.config.ruby.default_gems:
            steps.append(Step(
                name="rbenv:bundler",
                action=shell_action("rbenv:bundler", ["gem", "install", "bundler"]),
                policy=StepPolicy.BEST_EFFORT,
                satisfied=lambda env: env.which("bundle") is not None,
                announce="Installing bundler for current Ruby...",
            ))

        return steps

    def _plugin(self, plugin: str, url: str):
        dest = self.root / "plugins" / plugin

        def _run(runner: StepRunner) -> Receipt:
            if dest.is_dir():
                return runner.dispatch(_git_action(f"rbenv:plugin:{plugin}:pull", "pull", dest))
            runner.say(f"Installing {plugin}...")
            return runner.dispatch(_git_action(f"rbenv:plugin:{plugin}:clone", "clone", dest, url))

        return _run

    def _compile_flags(self, runner: StepRunner) -> Receipt:
        sdkroot = _capture(runner, "rbenv:sdkroot", ["xcrun", "--sdk", "macosx", "--show-sdk-path"])
        prefixes = {
            formula: _capture(runner, f"rbenv:prefix:{formula}", ["brew", "--prefix", formula])
            for formula in ("openssl@3", "readline", "libyaml")
        }
        updates = compile_flags(
            runner.env.env,
            sdkroot=sdkroot,
            openssl=prefixes["openssl@3"],
            readline=prefixes["readline"],
            libyaml=prefixes["libyaml"],
        )
        runner.update_env(updates)
        return Receipt.success(
            adapter="runner",
            action_id="rbenv:compile-flags",
            output=updates["RUBY_CONFIGURE_OPTS"],
            metadata={"env": updates},
        )

    def _is_installed(self, version: str) -> bool:
        return (self.root / "versions" / version).is_dir()

    def current_global(self) -> str:
        version_file = self.root / "version"
        try:
            return version_file.read_text(encoding="utf-8").strip()
        except OSError:
            return ""

    def _set_global(self, runner: StepRunner) -> Receipt:
        chosen = None
        for version in self.config.ruby.versions:
            installed = runner.report.step_receipts.get(f"rbenv:install:{version}")
            if self._is_installed(version) or (installed is not None and installed.ok):
                chosen = version
                break

        if chosen is None:
            logger.warning("No configured Ruby version is installed; leaving rbenv global alone")
            return Receipt.skip(adapter="runner", action_id="rbenv:global",
                                reason="no Ruby version installed")

        if self.current_global() == chosen:
            return Receipt.skip(adapter="runner", action_id="rbenv:global",
                                reason=f"global already {chosen}")

        return runner.dispatch(shell_action("rbenv:global", ["rbenv", "global", chosen]))

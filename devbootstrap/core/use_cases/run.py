"""
Run use case — the whole bootstrap, start to finish.

Loads config, detects the host, builds the step list (platform
packages, then rbenv, SDKMAN and nvm) and runs it. Abort conditions
come back as data on the RunResult; the CLI turns them into exit
codes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from devbootstrap.adapters.registry import AdapterRegistry, default_registry
from devbootstrap.core.config.loader import ConfigError, load_config
from devbootstrap.core.engine.executor import (
    BootstrapReport,
    SanityCheckError,
    Step,
    StepFailed,
    StepRunner,
)
from devbootstrap.core.models.config import BootstrapConfig
from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.host import detect_os, ensure_zshrc, zshrc_path
from devbootstrap.core.services.managers import MANAGERS
from devbootstrap.core.services.packages import platform_steps

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a bootstrap run."""

    report: BootstrapReport | None = None
    env: BootstrapEnv | None = None
    error: str | None = None
    hint: str = ""
    failed_step: str | None = None
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok, "exit_code": self.exit_code}
        if self.error:
            result["error"] = self.error
            result["failed_step"] = self.failed_step
            if self.hint:
                result["hint"] = self.hint
        if self.env:
            result["os"] = self.env.os_tag
            result["zshrc"] = self.env.zshrc
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def build_steps(config: BootstrapConfig, env: BootstrapEnv) -> list[Step]:
    """The full ordered step list for this host."""
    steps = platform_steps(config, env)
    for manager_cls in MANAGERS:
        steps.extend(manager_cls(config, env).steps())
    return steps


def run_bootstrap(
    config_path: Path | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    registry: AdapterRegistry | None = None,
    environ: Mapping[str, str] | None = None,
    kernel: str | None = None,
    announce: Callable[[str], None] | None = None,
) -> RunResult:
    """Provision the development environment.

    Args:
        config_path: Optional explicit path to bootstrap.yml.
        dry_run: Validate every action but execute none.
        mock_mode: Route every action to the mock adapter.
        registry: Optional pre-configured adapter registry.
        environ: Environment to start from (default: ``os.environ``).
        kernel: Kernel name override (default: ``platform.system()``).
        announce: Callback for user-facing progress lines.

    Returns:
        RunResult with the step report, final environment and any
        abort reason.
    """
    result = RunResult()
    say = announce or logger.info

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        result.exit_code = 1
        return result

    env = BootstrapEnv.from_process(detect_os(kernel), environ)
    if dry_run or mock_mode:
        zshrc = zshrc_path(env)
    else:
        zshrc = ensure_zshrc(env)
    env = env.model_copy(update={"zshrc": str(zshrc)})

    say(f"Detected OS: {env.os_tag}")
    say(f"Using zsh config: {zshrc}")

    if registry is None:
        registry = default_registry(mock_mode=mock_mode)
    runner = StepRunner(registry, env, dry_run=dry_run, announce=say)

    try:
        runner.run_all(build_steps(config, env))
    except SanityCheckError as e:
        result.error = str(e)
        result.hint = e.hint
        result.failed_step = e.step
        result.exit_code = 1
    except StepFailed as e:
        result.error = str(e)
        result.failed_step = e.step
        result.exit_code = e.exit_code

    result.report = runner.report
    result.env = runner.env
    return result

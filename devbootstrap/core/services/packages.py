"""
Platform packages — compiler toolchain and native build dependencies.

mac:   Xcode Command Line Tools, Homebrew, brew packages.
linux: apt index refresh and apt packages (via sudo).

Anything else gets no steps at all.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from devbootstrap.core.engine.executor import Step, StepPolicy, StepRunner
from devbootstrap.core.models.action import Receipt
from devbootstrap.core.models.config import BootstrapConfig
from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.activation import activate, profile_action, shell_action

logger = logging.getLogger(__name__)

CLT_PATH = "/Library/Developer/CommandLineTools"

# Apple Silicon first, then Intel
BREW_BIN_DIRS = ("/opt/homebrew/bin", "/usr/local/bin")


# ── mac ──────────────────────────────────────────────────────────


def _wait_for_clt(config: BootstrapConfig):
    """Trigger the CLT installer and poll until ``xcode-select -p`` succeeds.

    The installer is a GUI prompt, so the trigger returns immediately.
    After ``toolchain_poll_attempts`` probes the step gives up waiting
    and lets the run continue.
    """

    def _run(runner: StepRunner) -> Receipt:
        probe = shell_action("clt:probe", ["xcode-select", "-p"], capture=True)
        first = runner.dispatch(probe)
        if first.ok or first.skipped:
            return first

        runner.say("Installing Xcode Command Line Tools...")
        trigger = runner.dispatch(shell_action("clt:install", ["xcode-select", "--install"]))
        if trigger.failed:
            logger.warning("xcode-select --install failed: %s", trigger.error)

        for attempt in range(config.toolchain_poll_attempts):
            if runner.dispatch(probe).ok:
                return Receipt.success(
                    adapter="shell",
                    action_id="clt:wait",
                    output="Command Line Tools installed",
                    metadata={"attempts": attempt + 1},
                )
            time.sleep(config.toolchain_poll_interval)

        logger.warning(
            "Command Line Tools still missing after %d checks; continuing",
            config.toolchain_poll_attempts,
        )
        return Receipt.success(
            adapter="shell",
            action_id="clt:wait",
            output="gave up waiting for Command Line Tools",
            metadata={"timed_out": True},
        )

    return _run


def _brew_shellenv(zshrc: str):
    """Register and evaluate ``brew shellenv`` for whichever prefix exists."""

    def _run(runner: StepRunner) -> Receipt:
        for bin_dir in BREW_BIN_DIRS:
            if Path(bin_dir).is_dir():
                break
        else:
            return Receipt.skip(adapter="runner", action_id="brew:shellenv",
                                reason="no Homebrew bin directory")

        activation = f'eval "$({bin_dir}/brew shellenv)"'
        written = runner.dispatch(profile_action("profile:brew", activation, zshrc))
        if written.failed:
            return written
        return activate(runner, "brew:shellenv", activation)

    return _run


def mac_steps(config: BootstrapConfig, zshrc: str) -> list[Step]:
    brew_script = f'/bin/bash -c "$(curl -fsSL {config.urls.homebrew})"'
    return [
        Step(
            name="clt:ensure",
            func=_wait_for_clt(config),
            policy=StepPolicy.BEST_EFFORT,
        ),
        Step(
            name="clt:select",
            action=shell_action("clt:select", ["xcode-select", "-s", CLT_PATH], sudo=True),
            policy=StepPolicy.BEST_EFFORT,
        ),
        Step(
            name="brew:install",
            action=shell_action("brew:install", ["/bin/bash", "-c", brew_script]),
            satisfied=lambda env: env.which("brew") is not None,
            announce="Installing Homebrew...",
        ),
        Step(name="brew:shellenv", func=_brew_shellenv(zshrc)),
        Step(
            name="brew:update",
            action=shell_action("brew:update", ["brew", "update"]),
            announce="Updating Homebrew and installing build deps...",
        ),
        Step(
            name="brew:packages",
            action=shell_action("brew:packages", ["brew", "install", *config.brew_packages]),
        ),
    ]


# ── linux ────────────────────────────────────────────────────────


def linux_steps(config: BootstrapConfig) -> list[Step]:
    return [
        Step(
            name="apt:update",
            action=shell_action("apt:update", ["apt", "update"], sudo=True),
            announce="Installing Linux build deps...",
        ),
        Step(
            name="apt:packages",
            action=shell_action(
                "apt:packages",
                ["apt", "install", "-y", *config.apt_packages],
                sudo=True,
            ),
        ),
    ]


def platform_steps(config: BootstrapConfig, env: BootstrapEnv) -> list[Step]:
    """Package steps for the host platform (empty when unsupported)."""
    if env.os_tag == "mac":
        return mac_steps(config, env.zshrc)
    if env.os_tag == "linux":
        return linux_steps(config)
    logger.info("No platform package steps for os=%s", env.os_tag)
    return []

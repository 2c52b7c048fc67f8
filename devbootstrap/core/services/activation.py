"""
Activation helpers — build manager actions and capture sourced env.

Shell functions such as ``sdk`` and ``nvm`` only exist inside a shell
that sourced their init script, so every manager command is a small
strict-mode bash script: source the activation (relaxed), then run
the call (relaxed, checked). Activation itself is run once per manager
with its resulting environment captured and merged into the runner's
BootstrapEnv, so plain executables (``ruby``, ``java``, ``node``)
resolve for later steps.
"""

from __future__ import annotations

import logging

from devbootstrap.core.engine.executor import StepRunner
from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.services.strict_mode import (
    bash_argv,
    build_script,
    capture_env_script,
    env_changes,
    parse_env_dump,
    relaxed,
)

logger = logging.getLogger(__name__)


def shell_action(
    action_id: str,
    argv: list[str],
    *,
    sudo: bool = False,
    capture: bool = False,
) -> Action:
    """A shell adapter action for ``argv``."""
    return Action(
        id=action_id,
        name=" ".join(argv),
        adapter="shell",
        params={"argv": argv, "sudo": sudo, "capture": capture},
    )


def profile_action(action_id: str, line: str, path: str) -> Action:
    """A filesystem action that appends ``line`` to ``path`` once."""
    return Action(
        id=action_id,
        name=f"append_once {path}",
        adapter="filesystem",
        params={"operation": "append_once", "path": path, "line": line},
    )


def manager_action(
    action_id: str,
    activation: str,
    call: str,
    *,
    capture: bool = False,
) -> Action:
    """Run ``call`` after sourcing ``activation``, both relaxed."""
    script = build_script(
        relaxed(activation),
        relaxed(call, check=True),
    )
    return Action(
        id=action_id,
        name=call,
        adapter="shell",
        params={"argv": bash_argv(script), "capture": capture},
    )


def activate(runner: StepRunner, action_id: str, activation: str) -> Receipt:
    """Source ``activation`` in bash and merge the resulting env changes."""
    receipt = runner.dispatch(Action(
        id=action_id,
        name="activate",
        adapter="shell",
        params={"argv": bash_argv(capture_env_script(activation)), "capture": True},
    ))
    if not receipt.ok or receipt.metadata.get("mock"):
        return receipt

    try:
        after = parse_env_dump(receipt.output)
    except ValueError as e:
        return Receipt.failure(
            adapter="shell",
            action_id=action_id,
            error=f"Could not read environment after activation: {e}",
        )

    updates = env_changes(runner.env.env, after)
    runner.update_env(updates)
    receipt.metadata["env_updates"] = sorted(updates)
    return receipt

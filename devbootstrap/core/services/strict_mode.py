"""
Strict-mode bash scripts with scoped relaxation.

Manager commands run as ``bash -c`` scripts that start in strict mode
(``set -euo pipefail``). SDKMAN's and nvm's init scripts reference
unset variables, so every call into them is wrapped: ``nounset`` is
turned off for the call and turned back on right after it, whether
the call succeeded or not. The call's exit status is kept in
``__rc`` and, for checked calls, becomes the script's exit status.
"""

from __future__ import annotations

import json
import shlex
import sys

STRICT_PRELUDE = "set -euo pipefail"

# Variables that change on every shell invocation and carry no state
_VOLATILE_VARS = frozenset({"_", "SHLVL", "PWD", "OLDPWD", "__rc"})

_DUMP_ENV = "import json, os; print(json.dumps(dict(os.environ)))"


def relaxed(call: str, *, check: bool = False) -> str:
    """Wrap ``call`` so it runs with ``nounset`` disabled.

    The call runs as a ``{ ...; }`` group inside an ``&& ... ||`` list,
    which keeps ``errexit`` from firing anywhere in it, so ``set -u`` is
    always restored before anything else runs.

    Args:
        call: Shell snippet, possibly several lines (a ``source``, a
            function call, a command).
        check: Exit the script with the call's status when it fails.
    """
    lines = [
        "set +u",
        f"{{ {call}\n}} && __rc=0 || __rc=$?",
        "set -u",
    ]
    if check:
        lines.append('if [ "$__rc" -ne 0 ]; then exit "$__rc"; fi')
    return "\n".join(lines)


def build_script(*fragments: str) -> str:
    """Join fragments into one strict-mode script."""
    return "\n".join([STRICT_PRELUDE, *(f for f in fragments if f)])


def bash_argv(script: str) -> list[str]:
    return ["bash", "-c", script]


def capture_env_script(activation: str) -> str:
    """Script that runs ``activation`` and prints the resulting env as JSON.

    Activation output goes to stderr so stdout carries only the JSON
    document.
    """
    return build_script(
        relaxed(f"{{ {activation}\n}} >&2"),
        f"{shlex.quote(sys.executable)} -c {shlex.quote(_DUMP_ENV)}",
    )


def parse_env_dump(output: str) -> dict[str, str]:
    """Parse the JSON printed by ``capture_env_script``.

    Raises:
        ValueError: If the output holds no JSON object.
    """
    text = output.strip()
    start = text.rfind("\n{")
    payload = text[start + 1:] if start != -1 else text
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
    return {str(k): str(v) for k, v in data.items()}


def env_changes(before: dict[str, str], after: dict[str, str]) -> dict[str, str]:
    """Variables that ``after`` adds or changes relative to ``before``."""
    return {
        key: value
        for key, value in after.items()
        if key not in _VOLATILE_VARS and before.get(key) != value
    }

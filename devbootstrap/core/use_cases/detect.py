"""
Detect use case — what is already on this machine.

Read-only: reports the platform tag, the zsh startup file and, for
each version manager, whether it is installed, which runtimes it has
and which one is the default.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from devbootstrap.adapters.registry import default_registry
from devbootstrap.core.models.config import BootstrapConfig
from devbootstrap.core.models.environment import BootstrapEnv
from devbootstrap.core.services.host import detect_os, zshrc_path
from devbootstrap.core.services.managers import NvmManager, RbenvManager, SdkmanManager
from devbootstrap.core.services.managers.base import nonempty_file
from devbootstrap.core.services.managers.sdkman import installed_identifiers
from devbootstrap.core.services.shell_profile import has_line


@dataclass
class ManagerStatus:
    name: str
    installed: bool = False
    root: str = ""
    versions: list[str] = field(default_factory=list)
    default: str = ""
    profile_registered: bool = False

    def to_dict(self) -> dict:
        return {
            "installed": self.installed,
            "root": self.root,
            "versions": self.versions,
            "default": self.default,
            "profile_registered": self.profile_registered,
        }


@dataclass
class HostReport:
    kernel: str = ""
    os_tag: str = "unsupported"
    zshrc: str = ""
    zshrc_exists: bool = False
    managers: list[ManagerStatus] = field(default_factory=list)
    tools: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "kernel": self.kernel,
            "os": self.os_tag,
            "zshrc": self.zshrc,
            "zshrc_exists": self.zshrc_exists,
            "managers": {m.name: m.to_dict() for m in self.managers},
            "tools": self.tools,
        }


def _subdirs(path: Path) -> list[str]:
    if not path.is_dir():
        return []
    return sorted(p.name for p in path.iterdir() if p.is_dir() and not p.is_symlink())


def _registered(lines: list[str], zshrc: Path) -> bool:
    return all(has_line(line, zshrc) for line in lines)


def detect_host(
    environ: Mapping[str, str] | None = None,
    kernel: str | None = None,
) -> HostReport:
    """Inspect the host without changing anything."""
    kernel = kernel if kernel is not None else platform.system()
    env = BootstrapEnv.from_process(detect_os(kernel), environ)
    zshrc = zshrc_path(env)
    env = env.model_copy(update={"zshrc": str(zshrc)})
    config = BootstrapConfig()

    report = HostReport(
        kernel=kernel,
        os_tag=env.os_tag,
        zshrc=str(zshrc),
        zshrc_exists=zshrc.is_file(),
    )

    report.tools = {
        name: status["available"]
        for name, status in default_registry().adapter_status().items()
    }

    rbenv = RbenvManager(config, env)
    report.managers.append(ManagerStatus(
        name="rbenv",
        installed=rbenv.root.is_dir(),
        root=str(rbenv.root),
        versions=_subdirs(rbenv.root / "versions"),
        default=rbenv.current_global(),
        profile_registered=_registered(rbenv.profile_lines(), zshrc),
    ))

    sdkman = SdkmanManager(config, env)
    report.managers.append(ManagerStatus(
        name="sdkman",
        installed=nonempty_file(sdkman.init_script),
        root=str(sdkman.root),
        versions=installed_identifiers(sdkman.candidates_dir),
        default=sdkman.current_default(),
        profile_registered=_registered(sdkman.profile_lines(), zshrc),
    ))

    nvm = NvmManager(config, env)
    report.managers.append(ManagerStatus(
        name="nvm",
        installed=nonempty_file(nvm.init_script),
        root=str(nvm.root),
        versions=sorted(
            (v for v in _subdirs(nvm.root / "versions" / "node") if v.startswith("v")),
            reverse=True,
        ),
        default=nvm.default_alias(),
        profile_registered=_registered(nvm.profile_lines(), zshrc),
    ))

    return report

"""
Config check use case — validate bootstrap.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from devbootstrap.core.config.loader import ConfigError, find_config_file, load_config
from devbootstrap.core.models.config import BootstrapConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: BootstrapConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "ruby_versions": self.config.ruby.versions if self.config else [],
            "java_majors": (
                [c.major for c in self.config.java.candidates] if self.config else []
            ),
        }


def _duplicates(items: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for item in items:
        if item in seen and item not in dupes:
            dupes.append(item)
        seen.add(item)
    return dupes


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate bootstrap configuration and report issues.

    A missing config file is not an error: the defaults apply.

    Args:
        config_path: Optional explicit path to bootstrap.yml.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
    result.config_path = config_path

    try:
        config = load_config(config_path, search=False)
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    result.config = config
    result.valid = True

    if config_path is None:
        result.warnings.append("No bootstrap.yml found — using defaults")

    if not config.ruby.versions:
        result.warnings.append("No Ruby versions configured — rbenv global will not be set")

    majors = [c.major for c in config.java.candidates]
    if config.java.default_major not in majors:
        result.warnings.append(
            f"Java default major {config.java.default_major} is not among the "
            f"configured majors {majors}"
        )

    for label, packages in (
        ("brew_packages", config.brew_packages),
        ("apt_packages", config.apt_packages),
    ):
        for name in _duplicates(packages):
            result.warnings.append(f"Duplicate entry in {label}: {name}")

    return result

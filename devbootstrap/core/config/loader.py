"""
Configuration loader — reads bootstrap.yml into a BootstrapConfig.

The file is optional. Without one the bootstrap uses the stock
defaults baked into ``BootstrapConfig``.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from devbootstrap.core.models.config import BootstrapConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "bootstrap.yml"


class ConfigError(Exception):
    """Raised when bootstrap configuration is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for bootstrap.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to bootstrap.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None, search: bool = True) -> BootstrapConfig:
    """Load and validate bootstrap configuration.

    Args:
        path: Explicit path to bootstrap.yml. Must exist when given.
        search: When ``path`` is None, look upward from the cwd.

    Returns:
        Validated BootstrapConfig (defaults when no file is found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found, using defaults", CONFIG_FILE)
        return BootstrapConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading bootstrap config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = BootstrapConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid bootstrap configuration: {e}") from e

    logger.info("Loaded bootstrap config from %s", path)
    return config

"""
Domain models — Pydantic types for the bootstrap.

All models are re-exported here for convenient access:

    from devbootstrap.core.models import Action, Receipt, BootstrapEnv, BootstrapConfig
"""

from devbootstrap.core.models.action import Action, Receipt
from devbootstrap.core.models.config import (
    BootstrapConfig,
    InstallerUrls,
    JavaCandidate,
    JavaSettings,
    NodeSettings,
    RubySettings,
)
from devbootstrap.core.models.environment import BootstrapEnv

__all__ = [
    # action.py
    "Action",
    # config.py
    "BootstrapConfig",
    # environment.py
    "BootstrapEnv",
    "InstallerUrls",
    "JavaCandidate",
    "JavaSettings",
    "NodeSettings",
    "Receipt",
    "RubySettings",
]

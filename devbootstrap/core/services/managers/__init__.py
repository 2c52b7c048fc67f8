"""
Version managers — rbenv (Ruby), SDKMAN (Java), nvm (Node).

Managers run in this order; each one's steps see the environment
left behind by the ones before it.
"""

from devbootstrap.core.services.managers.base import VersionManager
from devbootstrap.core.services.managers.nvm import NvmManager
from devbootstrap.core.services.managers.rbenv import RbenvManager
from devbootstrap.core.services.managers.sdkman import SdkmanManager

MANAGERS: tuple[type[VersionManager], ...] = (RbenvManager, SdkmanManager, NvmManager)

__all__ = [
    "MANAGERS",
    "NvmManager",
    "RbenvManager",
    "SdkmanManager",
    "VersionManager",
]

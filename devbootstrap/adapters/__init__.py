"""Adapters — bindings to the external tools the bootstrap drives.

Public re-exports for convenient access.
"""

from devbootstrap.adapters.base import Adapter, ExecutionContext
from devbootstrap.adapters.mock import MockAdapter
from devbootstrap.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]

"""Adapters — bindings to the host's user database and filesystem.

Public re-exports for convenient access.
"""

from lapdev_bootstrap.adapters.base import Adapter, ExecutionContext
from lapdev_bootstrap.adapters.mock import MockAdapter
from lapdev_bootstrap.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]

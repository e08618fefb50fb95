"""Adapters: bindings for process execution and the filesystem.

Public re-exports for convenient access.
"""

from vhostctl.adapters.base import Adapter, ExecutionContext
from vhostctl.adapters.mock import MockAdapter
from vhostctl.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]

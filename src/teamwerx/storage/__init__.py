"""Persistence for specs and changes.

Exports
-------
SpecStore, ChangeStore
    Capability protocols the engine depends on.
FileSpecStore, FileChangeStore
    Directory-backed implementations.
MemorySpecStore
    Dict-backed spec store for tests and staging.
"""

from .changes import FileChangeStore
from .memory import MemorySpecStore
from .protocols import ChangeStore, SpecStore
from .specs import FileSpecStore

__all__ = [
    "ChangeStore",
    "FileChangeStore",
    "FileSpecStore",
    "MemorySpecStore",
    "SpecStore",
]

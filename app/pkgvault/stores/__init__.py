"""Target stores that package content is installed into.

This module exports the store interface and implementations.
"""

from pkgvault.stores.base import InstallOptions, TargetStore
from pkgvault.stores.filesystem import FilesystemStore
from pkgvault.stores.memory import MemoryStore

__all__ = ["FilesystemStore", "InstallOptions", "MemoryStore", "TargetStore"]

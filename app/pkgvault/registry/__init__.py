"""Package registry and its storage backends."""

from pkgvault.registry.registry import PackageRegistry
from pkgvault.registry.storage import FilesystemPackageStorage, MemoryPackageStorage, PackageStorage
from pkgvault.registry.stored import PackageRecord, StoredPackage

__all__ = [
    "FilesystemPackageStorage",
    "MemoryPackageStorage",
    "PackageRecord",
    "PackageRegistry",
    "PackageStorage",
    "StoredPackage",
]

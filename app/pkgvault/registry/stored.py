"""Registry records and open package handles."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from pkgvault.core.errors import PackageError

if TYPE_CHECKING:
    from types import TracebackType

    from pkgvault.archive.reader import PackageArchive
    from pkgvault.models.filter import WorkspaceFilter
    from pkgvault.models.package import Dependency, PackageId, PackageType
    from pkgvault.registry.registry import PackageRegistry


@dataclass(frozen=True, slots=True)
class PackageRecord:
    """Immutable registry record of one package.

    Attributes:
        id: Package identity (registry key).
        package_type: Declared package type.
        filter: Declared workspace filter.
        dependencies: Declared dependencies, in declaration order.
        description: Optional description.
        size: Archive size in bytes.
        installed: Whether the package is installed.
        registered_at: When the package was (last) registered.
        installed_at: When the package was last installed (None if not installed).
        sequence: Registration sequence number (higher = later).
    """

    id: PackageId
    package_type: PackageType
    filter: WorkspaceFilter
    dependencies: tuple[Dependency, ...]
    description: str | None
    size: int
    installed: bool
    registered_at: datetime
    installed_at: datetime | None
    sequence: int


class StoredPackage:
    """Open handle on a registered package.

    Metadata is fixed when the handle is opened; the installed state is read
    live from the registry. Archive bytes are loaded on first access. A
    handle becomes invalid when its package is removed or replaced, and
    unusable once closed.

    Example:
        >>> with registry.open(pid) as pkg:
        ...     print(pkg.id, pkg.is_installed)
    """

    def __init__(self, registry: PackageRegistry, record: PackageRecord) -> None:
        self._registry = registry
        self._record = record
        self._archive: PackageArchive | None = None
        self._closed = False
        self._invalidated = False

    @property
    def id(self) -> PackageId:
        return self._record.id

    @property
    def package_type(self) -> PackageType:
        return self._record.package_type

    @property
    def filter(self) -> WorkspaceFilter:
        return self._record.filter

    @property
    def dependencies(self) -> tuple[Dependency, ...]:
        return self._record.dependencies

    @property
    def description(self) -> str | None:
        return self._record.description

    @property
    def size(self) -> int:
        return self._record.size

    @property
    def registered_at(self) -> datetime:
        return self._record.registered_at

    @property
    def is_installed(self) -> bool:
        """Check if the package is currently installed."""
        record = self._registry.record(self.id)
        return record is not None and record.installed

    @property
    def installed_at(self) -> datetime | None:
        """When the package was last installed, or None."""
        record = self._registry.record(self.id)
        return record.installed_at if record is not None else None

    @property
    def is_valid(self) -> bool:
        """Check if the handle can still be used."""
        return not (self._closed or self._invalidated)

    @property
    def archive(self) -> PackageArchive:
        """The package archive, loaded on first access.

        Raises:
            PackageError: If the handle was closed or invalidated, or the
                archive cannot be loaded.
        """
        if self._closed:
            raise PackageError(f"Package handle is closed: {self.id}")
        if self._invalidated:
            raise PackageError(f"Package was removed from the registry: {self.id}")
        if self._archive is None:
            self._archive = self._registry.load_archive(self.id)
        return self._archive

    def invalidate(self) -> None:
        """Mark the handle invalid (called by the registry)."""
        self._invalidated = True
        self._archive = None

    def close(self) -> None:
        """Release the handle."""
        self._closed = True
        self._archive = None

    def __enter__(self) -> StoredPackage:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"StoredPackage({self.id}, installed={self.is_installed})"

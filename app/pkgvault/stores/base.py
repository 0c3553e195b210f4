"""Abstract base class for target stores.

A target store is the content system packages are installed into. This
module defines the TargetStore interface and the immutable options value
passed to every install and uninstall call.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pkgvault.core.errors import StoreError
from pkgvault.core.listener import Mode, ProgressListener
from pkgvault.models.task import TaskType

if TYPE_CHECKING:
    from pkgvault.archive.reader import PackageArchive
    from pkgvault.models.filter import WorkspaceFilter

logger = logging.getLogger(__name__)

# Progress actions reported to listeners
ACTION_ADDED = "A"
ACTION_UPDATED = "U"
ACTION_DELETED = "D"
ACTION_SKIPPED = "-"


@dataclass(frozen=True, slots=True)
class InstallOptions:
    """Options for one install or uninstall call.

    Options are immutable; derive a modified copy with
    ``dataclasses.replace`` instead of changing a shared instance.

    Attributes:
        filter: Effective workspace filter (None = the package's own filter).
        listener: Progress listener, if any.
        dry_run: Report what would change without writing.
    """

    filter: WorkspaceFilter | None = None
    listener: ProgressListener | None = None
    dry_run: bool = False


class TargetStore(ABC):
    """Abstract base class for all target stores.

    Subclasses implement path-level primitives; this class walks package
    archives, applies the workspace filter and reports progress.

    Example:
        >>> store = MemoryStore()
        >>> store.install(archive, InstallOptions(filter=archive.filter))
        >>> store.exists("/libs/foo/a.txt")
        True
    """

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a store path holds content."""

    @abstractmethod
    def read(self, path: str) -> bytes | None:
        """Read the content at a store path, or None if absent."""

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Write content to a store path, creating or replacing it.

        Raises:
            OSError: If the content cannot be written.
        """

    @abstractmethod
    def delete(self, path: str) -> None:
        """Delete the content at a store path.

        Raises:
            OSError: If the content cannot be deleted.
        """

    @abstractmethod
    def paths(self) -> list[str]:
        """Return every store path holding content, sorted."""

    def install(self, archive: PackageArchive, options: InstallOptions) -> None:
        """Write an archive's content entries covered by the filter.

        Entries outside the filter are reported with action ``-`` and not
        written.

        Raises:
            StoreError: If an entry cannot be written.
        """
        workspace_filter = options.filter if options.filter is not None else archive.filter
        logger.info("Installing %s (dry_run=%s)", archive.id, options.dry_run)

        for entry in archive.entries():
            if not workspace_filter.contains(entry.path):
                self._notify(options, ACTION_SKIPPED, entry.path)
                continue

            action = ACTION_UPDATED if self.exists(entry.path) else ACTION_ADDED
            if not options.dry_run:
                try:
                    self.write(entry.path, archive.read_entry(entry))
                except OSError as e:
                    self._fail(options, entry.path, e, f"Failed to write {entry.path}")
            self._notify(options, action, entry.path)

    def uninstall(self, archive: PackageArchive, options: InstallOptions) -> None:
        """Delete an archive's content entries covered by the filter.

        Raises:
            StoreError: If an entry cannot be deleted.
        """
        workspace_filter = options.filter if options.filter is not None else archive.filter
        logger.info("Uninstalling %s (dry_run=%s)", archive.id, options.dry_run)

        for entry in archive.entries():
            if not workspace_filter.contains(entry.path) or not self.exists(entry.path):
                continue
            if not options.dry_run:
                try:
                    self.delete(entry.path)
                except OSError as e:
                    self._fail(options, entry.path, e, f"Failed to delete {entry.path}")
            self._notify(options, ACTION_DELETED, entry.path)

    def execute(self, task_type: TaskType, archive: PackageArchive, options: InstallOptions) -> None:
        """Dispatch to :meth:`install` or :meth:`uninstall` by task type."""
        if task_type == TaskType.INSTALL:
            self.install(archive, options)
        else:
            self.uninstall(archive, options)

    @staticmethod
    def _notify(options: InstallOptions, action: str, path: str) -> None:
        if options.listener is not None:
            options.listener.on_message(Mode.PATHS, action, path)

    @staticmethod
    def _fail(options: InstallOptions, path: str, error: OSError, message: str) -> None:
        if options.listener is not None:
            options.listener.on_error(Mode.PATHS, path, error)
        raise StoreError(f"{message}: {error}") from error

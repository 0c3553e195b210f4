"""Package registry.

The registry is the keyed store of package archives. It answers dependency
questions against the registered package set and applies install and
uninstall operations on behalf of execution plans.

Concurrency: reads take no lock. The record map is never mutated in
place; writers build a new map under ``_lock`` and swap the reference, so a
reader always iterates one consistent snapshot. Writers are serialized
against each other. There is no coordination with other processes.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import weakref
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, TYPE_CHECKING

from pkgvault.archive.reader import PackageArchive, read_archive
from pkgvault.core.errors import NoSuchPackageError, PackageError, PackageExistsError, PackageValidationError
from pkgvault.models.package import Dependency, PackageId
from pkgvault.models.report import DependencyReport
from pkgvault.models.task import TaskType
from pkgvault.registry.storage import (
    FilesystemPackageStorage,
    MemoryPackageStorage,
    PackageStateEntry,
    PackageStorage,
    RegistryState,
)
from pkgvault.registry.stored import PackageRecord, StoredPackage
from pkgvault.validation.base import Severity
from pkgvault.validation.executor import errors_of

if TYPE_CHECKING:
    from pkgvault.plan.builder import ExecutionPlanBuilder
    from pkgvault.stores.base import InstallOptions, TargetStore
    from pkgvault.validation.executor import ValidationExecutor

logger = logging.getLogger(__name__)

PackageContent = bytes | Path | IO[bytes]


class PackageRegistry:
    """Keyed store of registered packages.

    Attributes:
        storage: Backend persisting archives and registry state.

    Example:
        >>> registry = PackageRegistry()
        >>> pid = registry.register(archive_bytes)
        >>> report = registry.analyze_dependencies(pid)
        >>> report.unresolved
        ()
    """

    def __init__(
        self,
        storage: PackageStorage | None = None,
        validator: ValidationExecutor | None = None,
    ) -> None:
        """Initialize the registry and load previously persisted packages.

        Args:
            storage: Storage backend (default: in-memory).
            validator: Optional executor run on every archive before it is registered.
        """
        self.storage = storage if storage is not None else MemoryPackageStorage()
        self._validator = validator
        self._lock = threading.Lock()
        self._validation_lock = threading.Lock()
        self._handles_lock = threading.Lock()
        self._records: dict[PackageId, PackageRecord] = {}
        self._handles: dict[PackageId, weakref.WeakSet[StoredPackage]] = {}
        self._sequence = 0
        self._load()

    @classmethod
    def open_directory(cls, home: Path, validator: ValidationExecutor | None = None) -> PackageRegistry:
        """Create a registry backed by a directory.

        Args:
            home: Registry home directory (created on first write).
            validator: Optional archive validation executor.
        """
        return cls(FilesystemPackageStorage(home), validator=validator)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def contains(self, pid: PackageId) -> bool:
        """Check whether a package id is registered."""
        return pid in self._records

    def packages(self) -> frozenset[PackageId]:
        """Return all registered package ids."""
        return frozenset(self._records)

    def record(self, pid: PackageId) -> PackageRecord | None:
        """Return the current record of a package, or None if absent."""
        return self._records.get(pid)

    def records(self) -> list[PackageRecord]:
        """Return all records in registry order."""
        return list(self._records.values())

    def open(self, pid: PackageId) -> StoredPackage | None:
        """Open a handle on a registered package.

        Returns:
            StoredPackage, or None if the id is not registered.
        """
        record = self._records.get(pid)
        if record is None:
            return None
        handle = StoredPackage(self, record)
        with self._handles_lock:
            self._handles.setdefault(pid, weakref.WeakSet()).add(handle)
        return handle

    def load_archive(self, pid: PackageId) -> PackageArchive:
        """Load and parse the stored archive of a package.

        Raises:
            NoSuchPackageError: If the id is not registered.
            PackageError: If the archive cannot be loaded.
        """
        record = self._records.get(pid)
        if record is None:
            raise NoSuchPackageError(pid)
        # storage keys use the id as registered
        return read_archive(self.storage.get(record.id))

    def analyze_dependencies(self, pid: PackageId, only_installed: bool = False) -> DependencyReport:
        """Resolve a package's declared dependencies against the registry.

        For each declared dependency the highest registered version inside
        the range is chosen; equal versions resolve to the latest
        registration.

        Args:
            pid: Package to analyze.
            only_installed: Only consider installed packages as candidates.

        Returns:
            DependencyReport partitioning the declared dependencies.

        Raises:
            NoSuchPackageError: If the id is not registered.
        """
        records = self._records
        record = records.get(pid)
        if record is None:
            raise NoSuchPackageError(pid)

        resolved: list[PackageId] = []
        unresolved: list[Dependency] = []
        for dependency in record.dependencies:
            candidates = [
                candidate
                for candidate in records.values()
                if dependency.matches(candidate.id) and (candidate.installed or not only_installed)
            ]
            if candidates:
                best = max(candidates, key=lambda candidate: (candidate.id.version, candidate.sequence))
                resolved.append(best.id)
            else:
                unresolved.append(dependency)

        return DependencyReport(id=pid, resolved=tuple(resolved), unresolved=tuple(unresolved))

    def usage(self, pid: PackageId, only_installed: bool = False) -> list[PackageId]:
        """Return the packages declaring a dependency that matches ``pid``.

        Args:
            pid: Package whose users are wanted (need not be registered).
            only_installed: Only report installed users.

        Returns:
            Matching package ids in registry order.
        """
        return [
            record.id
            for record in self._records.values()
            if (record.installed or not only_installed)
            and any(dependency.matches(pid) for dependency in record.dependencies)
        ]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def register(self, content: PackageContent, replace: bool = False) -> PackageId:
        """Register a package archive.

        Args:
            content: Archive bytes, a path to an archive file, or a binary stream.
            replace: Overwrite an already registered package with the same id.

        Returns:
            The id read from the archive metadata.

        Raises:
            PackageError: If the archive cannot be read or parsed.
            PackageValidationError: If validation reports errors.
            PackageExistsError: If the id is registered and ``replace`` is False.
        """
        data = _read_content(content)
        archive = read_archive(data)
        self._validate(archive)

        with self._lock:
            existing = self._records.get(archive.id)
            if existing is not None and not replace:
                raise PackageExistsError(archive.id)

            self.storage.put(archive.id, data)
            self._sequence += 1
            record = PackageRecord(
                id=archive.id,
                package_type=archive.package_type,
                filter=archive.filter,
                dependencies=archive.dependencies,
                description=archive.description,
                size=archive.size,
                installed=False,
                registered_at=datetime.now(UTC),
                installed_at=None,
                sequence=self._sequence,
            )
            if existing is None:
                records = dict(self._records)
                records[archive.id] = record
            else:
                # rebuild so the key is the new id ("1.0.0" replacing an equal "1.0") in the same position
                records = {
                    (archive.id if key == archive.id else key): (record if key == archive.id else value)
                    for key, value in self._records.items()
                }
            self._commit(records)
            if existing is not None and existing.id.download_name != archive.id.download_name:
                self.storage.delete(existing.id)

        if existing is not None:
            self._invalidate_handles(archive.id)
            logger.info("Replaced package %s", archive.id)
        else:
            logger.info("Registered package %s", archive.id)
        return archive.id

    def remove(self, pid: PackageId) -> None:
        """Remove a registered package and invalidate its open handles.

        Raises:
            NoSuchPackageError: If the id is not registered.
        """
        with self._lock:
            record = self._records.get(pid)
            if record is None:
                raise NoSuchPackageError(pid)
            self.storage.delete(record.id)
            records = {key: value for key, value in self._records.items() if key != pid}
            self._commit(records)

        self._invalidate_handles(pid)
        logger.info("Removed package %s", pid)

    def install_package(self, store: TargetStore, package: StoredPackage, options: InstallOptions) -> None:
        """Install a package into a target store and mark it installed.

        The package's own filter is used unless ``options`` carries one.
        In dry-run mode the installed flag is left unchanged.

        Raises:
            PackageError: If the archive cannot be loaded.
            StoreError: If the store fails.
        """
        self._apply(store, package, options, TaskType.INSTALL)

    def uninstall_package(self, store: TargetStore, package: StoredPackage, options: InstallOptions) -> None:
        """Uninstall a package from a target store and clear its installed flag.

        Raises:
            PackageError: If the archive cannot be loaded.
            StoreError: If the store fails.
        """
        self._apply(store, package, options, TaskType.UNINSTALL)

    def create_execution_plan(self) -> ExecutionPlanBuilder:
        """Create a builder for an execution plan against this registry."""
        from pkgvault.plan.builder import ExecutionPlanBuilder

        return ExecutionPlanBuilder(self)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply(
        self, store: TargetStore, package: StoredPackage, options: InstallOptions, task_type: TaskType
    ) -> None:
        archive = package.archive
        effective = options if options.filter is not None else dataclasses.replace(options, filter=archive.filter)
        store.execute(task_type, archive, effective)
        if not options.dry_run:
            self._set_installed(package.id, installed=task_type == TaskType.INSTALL)

    def _validate(self, archive: PackageArchive) -> None:
        if self._validator is None:
            return
        with self._validation_lock:
            violations = self._validator.validate_archive(archive)
        for violation in violations:
            if Severity.WARN <= violation.severity < Severity.ERROR:
                logger.warning("%s: %s", archive.id, violation)
        errors = errors_of(violations)
        if errors:
            raise PackageValidationError(errors)

    def _set_installed(self, pid: PackageId, installed: bool) -> None:
        with self._lock:
            record = self._records.get(pid)
            if record is None:
                raise NoSuchPackageError(pid)
            updated = dataclasses.replace(
                record,
                installed=installed,
                installed_at=datetime.now(UTC) if installed else None,
            )
            records = dict(self._records)
            records[pid] = updated
            self._commit(records)
        logger.debug("Package %s installed=%s", pid, installed)

    def _commit(self, records: dict[PackageId, PackageRecord]) -> None:
        """Persist and publish a new record map. Caller holds ``_lock``."""
        state = RegistryState(
            packages=[
                PackageStateEntry(
                    id=str(record.id),
                    installed=record.installed,
                    registered_at=record.registered_at,
                    installed_at=record.installed_at,
                    sequence=record.sequence,
                )
                for record in records.values()
            ]
        )
        self.storage.save_state(state)
        self._records = records

    def _invalidate_handles(self, pid: PackageId) -> None:
        with self._handles_lock:
            handles = self._handles.pop(pid, None)
        for handle in list(handles or ()):
            handle.invalidate()

    def _load(self) -> None:
        state = self.storage.load_state()
        records: dict[PackageId, PackageRecord] = {}
        for entry in state.packages:
            pid = PackageId.parse(entry.id)
            try:
                archive = read_archive(self.storage.get(pid))
            except PackageError as e:
                logger.warning("Skipping unreadable registered package %s: %s", pid, e)
                continue
            records[pid] = PackageRecord(
                id=pid,
                package_type=archive.package_type,
                filter=archive.filter,
                dependencies=archive.dependencies,
                description=archive.description,
                size=archive.size,
                installed=entry.installed,
                registered_at=entry.registered_at,
                installed_at=entry.installed_at,
                sequence=entry.sequence,
            )
            self._sequence = max(self._sequence, entry.sequence)
        self._records = records
        if records:
            logger.debug("Loaded %d registered package(s)", len(records))
        for pid in self.storage.ids():
            if pid not in records:
                logger.warning("Stored archive without registry entry: %s", pid)


def _read_content(content: PackageContent) -> bytes:
    """Read archive bytes from bytes, a path or a binary stream.

    Raises:
        PackageError: If the content cannot be read.
    """
    if isinstance(content, bytes):
        return content
    try:
        if isinstance(content, Path):
            return content.read_bytes()
        return content.read()
    except OSError as e:
        raise PackageError(f"Failed to read package content: {e}") from e

"""Package storage backends for the registry.

Storage persists raw archive bytes and the registry's per-package state
(installed flag, timestamps, registration order). The registry owns the
semantics; storage only reads and writes.
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pkgvault.core.errors import PackageError
from pkgvault.models.package import PackageId

logger = logging.getLogger(__name__)

# <name>-<version>, where the version starts with a digit
_ARCHIVE_NAME = re.compile(r"^(?P<name>.+?)(?:-(?P<version>\d+(?:\.\d+)*(?:-.+)?))?$")


class PackageStateEntry(BaseModel):
    """Persisted registry state of one package.

    Attributes:
        id: Package id string.
        installed: Whether the package is installed in the target store.
        registered_at: When the package was (last) registered.
        installed_at: When the package was last installed.
        sequence: Registration sequence number (higher = later).
    """

    model_config = ConfigDict(extra="forbid")

    id: Annotated[str, Field(description="Package id")]
    installed: Annotated[bool, Field(description="Installed flag")] = False
    registered_at: Annotated[datetime, Field(description="Registration time")]
    installed_at: Annotated[datetime | None, Field(description="Installation time")] = None
    sequence: Annotated[int, Field(ge=0, description="Registration sequence")] = 0


class RegistryState(BaseModel):
    """Persisted registry state document."""

    model_config = ConfigDict(extra="forbid")

    version: Annotated[str, Field(description="State schema version")] = "1.0"
    packages: Annotated[
        list[PackageStateEntry],
        Field(default_factory=list, description="Package states in registry order"),
    ]


class PackageStorage(ABC):
    """Abstract base class for archive and state persistence."""

    @abstractmethod
    def put(self, pid: PackageId, data: bytes) -> None:
        """Store archive bytes for a package, overwriting any previous bytes."""

    @abstractmethod
    def get(self, pid: PackageId) -> bytes:
        """Load archive bytes for a package.

        Raises:
            PackageError: If no archive is stored for the id.
        """

    @abstractmethod
    def delete(self, pid: PackageId) -> None:
        """Delete the archive bytes of a package (no-op if absent)."""

    @abstractmethod
    def ids(self) -> list[PackageId]:
        """Return the ids of all stored archives."""

    @abstractmethod
    def load_state(self) -> RegistryState:
        """Load the persisted registry state (empty if none)."""

    @abstractmethod
    def save_state(self, state: RegistryState) -> None:
        """Persist the registry state."""


class MemoryPackageStorage(PackageStorage):
    """In-process storage; nothing survives the process.

    Archives are keyed by the id as written, like file names on disk, so
    ``g:a:1.0`` and ``g:a:1.0.0`` occupy separate slots.
    """

    def __init__(self) -> None:
        self._archives: dict[str, tuple[PackageId, bytes]] = {}
        self._state = RegistryState()

    def put(self, pid: PackageId, data: bytes) -> None:
        self._archives[str(pid)] = (pid, data)

    def get(self, pid: PackageId) -> bytes:
        try:
            return self._archives[str(pid)][1]
        except KeyError:
            raise PackageError(f"No archive stored for {pid}") from None

    def delete(self, pid: PackageId) -> None:
        self._archives.pop(str(pid), None)

    def ids(self) -> list[PackageId]:
        return [pid for pid, _ in self._archives.values()]

    def load_state(self) -> RegistryState:
        return self._state.model_copy(deep=True)

    def save_state(self, state: RegistryState) -> None:
        self._state = state.model_copy(deep=True)


class FilesystemPackageStorage(PackageStorage):
    """Directory-backed storage.

    Layout below ``home``::

        registry.json                  persisted RegistryState
        <group>/<name>-<version>.zip   archive bytes

    Writes go through a temporary file and ``os.replace`` so readers never
    see partial files. There is no locking against other processes.
    """

    STATE_FILENAME = "registry.json"

    def __init__(self, home: Path) -> None:
        self._home = home

    @property
    def home(self) -> Path:
        """Storage root directory."""
        return self._home

    @property
    def state_path(self) -> Path:
        """Path to the persisted state file."""
        return self._home / self.STATE_FILENAME

    def archive_path(self, pid: PackageId) -> Path:
        """Path of the archive file for a package.

        Raises:
            PackageError: If the path would lie outside the storage home.
        """
        group_dir = pid.group or "_"
        path = self._home / group_dir / pid.download_name
        if not path.resolve().is_relative_to(self._home.resolve()):
            raise PackageError(f"Archive path escapes the registry directory: {pid}")
        return path

    def put(self, pid: PackageId, data: bytes) -> None:
        self._write_atomic(self.archive_path(pid), data)
        logger.debug("Stored archive for %s at %s", pid, self.archive_path(pid))

    def get(self, pid: PackageId) -> bytes:
        path = self.archive_path(pid)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise PackageError(f"No archive stored for {pid}: {path}") from None
        except OSError as e:
            raise PackageError(f"Failed to read archive {path}: {e}") from e

    def delete(self, pid: PackageId) -> None:
        path = self.archive_path(pid)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PackageError(f"Failed to delete archive {path}: {e}") from e

    def ids(self) -> list[PackageId]:
        """Return the ids recovered from archive file names.

        Files whose names do not form a valid id are skipped.
        """
        if not self._home.is_dir():
            return []
        ids: list[PackageId] = []
        for path in sorted(self._home.glob("*/*.zip")):
            match = _ARCHIVE_NAME.match(path.stem)
            if match is None:
                continue
            group = "" if path.parent.name == "_" else path.parent.name
            try:
                ids.append(PackageId.of(group, match["name"], match["version"] or ""))
            except ValueError:
                logger.debug("Ignoring unrecognized archive file %s", path)
        return ids

    def load_state(self) -> RegistryState:
        if not self.state_path.exists():
            return RegistryState()
        try:
            return RegistryState.model_validate_json(self.state_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise PackageError(f"Failed to read registry state: {e}") from e
        except ValidationError as e:
            raise PackageError(f"Invalid registry state {self.state_path}: {e}") from e

    def save_state(self, state: RegistryState) -> None:
        self._write_atomic(self.state_path, state.model_dump_json(indent=2).encode("utf-8"))

    def _write_atomic(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(mode="wb", dir=path.parent, delete=False, suffix=".tmp") as f:
                tmp_path = Path(f.name)
                f.write(data)
            os.replace(str(tmp_path), str(path))
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PackageError(f"Failed to write {path}: {e}") from e

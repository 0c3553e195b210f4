"""Filesystem target store.

Maps store paths below a root directory: the store path ``/libs/foo/a.txt``
is the file ``<root>/libs/foo/a.txt``.
"""

import logging
from pathlib import Path

from pkgvault.core.errors import StoreError
from pkgvault.models.filter import normalize_path
from pkgvault.stores.base import TargetStore

logger = logging.getLogger(__name__)


class FilesystemStore(TargetStore):
    """Target store writing package content below a directory.

    Attributes:
        root: Directory holding the store content.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the store.

        Args:
            root: Store root directory (created on first write).
        """
        self.root = root

    def resolve(self, path: str) -> Path:
        """Map a store path to a filesystem path below the root.

        Raises:
            StoreError: If the path is not absolute or escapes the root.
        """
        try:
            normalized = normalize_path(path)
        except ValueError as e:
            raise StoreError(str(e)) from e
        if ".." in normalized.split("/"):
            raise StoreError(f"Store path escapes the store root: {path}")
        return self.root / normalized.lstrip("/")

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()

    def read(self, path: str) -> bytes | None:
        target = self.resolve(path)
        if not target.is_file():
            return None
        return target.read_bytes()

    def write(self, path: str, data: bytes) -> None:
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Wrote %s (%d bytes)", target, len(data))

    def delete(self, path: str) -> None:
        target = self.resolve(path)
        if target.is_symlink() or target.exists():
            target.unlink()
            self._prune_empty_parents(target.parent)

    def paths(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(
            "/" + file.relative_to(self.root).as_posix() for file in self.root.rglob("*") if file.is_file()
        )

    def _prune_empty_parents(self, directory: Path) -> None:
        """Remove empty directories up to (not including) the root."""
        while directory != self.root and self.root in directory.parents:
            try:
                directory.rmdir()
            except OSError:
                # not empty
                return
            directory = directory.parent

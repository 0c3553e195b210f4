"""In-memory target store."""

from pkgvault.models.filter import normalize_path
from pkgvault.stores.base import TargetStore


class MemoryStore(TargetStore):
    """Target store keeping content in a dictionary.

    Not safe for concurrent mutation; bind one store to one plan at a time.
    """

    def __init__(self) -> None:
        self._content: dict[str, bytes] = {}

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._content

    def read(self, path: str) -> bytes | None:
        return self._content.get(normalize_path(path))

    def write(self, path: str, data: bytes) -> None:
        self._content[normalize_path(path)] = data

    def delete(self, path: str) -> None:
        self._content.pop(normalize_path(path), None)

    def paths(self) -> list[str]:
        return sorted(self._content)

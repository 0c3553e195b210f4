"""Workspace filter models.

A workspace filter declares which target-store paths a package is allowed
to write. It is an ordered set of roots, each with optional excluded
sub-trees.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


def normalize_path(path: str) -> str:
    """Normalize an absolute store path.

    Collapses repeated slashes and strips the trailing slash (except for
    the root path).

    Raises:
        ValueError: If the path is not absolute.
    """
    if not path.startswith("/"):
        msg = f"Store path must be absolute: {path!r}"
        raise ValueError(msg)
    parts = [part for part in path.split("/") if part]
    return "/" + "/".join(parts)


def is_ancestor_or_self(ancestor: str, path: str) -> bool:
    """Check whether ``path`` equals ``ancestor`` or lies below it."""
    if ancestor == "/":
        return True
    return path == ancestor or path.startswith(ancestor + "/")


@dataclass(frozen=True, slots=True)
class FilterRoot:
    """One root of a workspace filter.

    Attributes:
        root: Absolute path of the covered sub-tree.
        excludes: Absolute paths of sub-trees below ``root`` that are not covered.
    """

    root: str
    excludes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Normalize paths after initialization."""
        object.__setattr__(self, "root", normalize_path(self.root))
        object.__setattr__(self, "excludes", tuple(normalize_path(e) for e in self.excludes))

    def contains(self, path: str) -> bool:
        """Check whether a path is covered by this root."""
        if not is_ancestor_or_self(self.root, path):
            return False
        return not any(is_ancestor_or_self(exclude, path) for exclude in self.excludes)


@dataclass(frozen=True, slots=True)
class WorkspaceFilter:
    """Ordered set of filter roots describing a package's write scope.

    Attributes:
        roots: The filter roots, in declaration order.
    """

    roots: tuple[FilterRoot, ...] = ()

    @classmethod
    def of(cls, *paths: str) -> WorkspaceFilter:
        """Create a filter from plain root paths without excludes."""
        return cls(roots=tuple(FilterRoot(root=path) for path in paths))

    @classmethod
    def from_roots(cls, roots: Iterable[FilterRoot]) -> WorkspaceFilter:
        """Create a filter from filter roots."""
        return cls(roots=tuple(roots))

    @property
    def is_empty(self) -> bool:
        """Check if the filter covers nothing."""
        return not self.roots

    def contains(self, path: str) -> bool:
        """Check whether a path is covered by any root of this filter."""
        normalized = normalize_path(path)
        return any(root.contains(normalized) for root in self.roots)

    def root_paths(self) -> list[str]:
        """Return the plain root paths."""
        return [root.root for root in self.roots]

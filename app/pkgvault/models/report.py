"""Dependency report model."""

from __future__ import annotations

from dataclasses import dataclass

from pkgvault.models.package import Dependency, PackageId


@dataclass(frozen=True, slots=True)
class DependencyReport:
    """Result of analyzing a package's declared dependencies.

    ``resolved`` and ``unresolved`` together partition the declared
    dependencies, each preserving declaration order.

    Attributes:
        id: The analyzed package.
        resolved: Registered package chosen for each matched dependency.
        unresolved: Declared dependencies with no matching package.
    """

    id: PackageId
    resolved: tuple[PackageId, ...] = ()
    unresolved: tuple[Dependency, ...] = ()

    @property
    def is_satisfied(self) -> bool:
        """Check if every declared dependency was resolved."""
        return not self.unresolved

"""Exception hierarchy for package registry and execution plan errors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from pkgvault.models.package import Dependency, PackageId
    from pkgvault.validation.base import ValidationViolation


class PackageError(Exception):
    """Base exception for package-level failures.

    Raised directly for malformed archives, unreadable metadata and
    invalid plan requests.
    """


class PackageExistsError(PackageError):
    """Raised when registering a package whose id is already registered."""

    def __init__(self, pid: PackageId) -> None:
        super().__init__(f"Package already registered: {pid}")
        self.id = pid


class NoSuchPackageError(PackageError):
    """Raised when an operation targets an unregistered package id."""

    def __init__(self, pid: PackageId) -> None:
        super().__init__(f"No such package: {pid}")
        self.id = pid


class DependencyError(PackageError):
    """Raised when plan validation finds unsatisfiable dependencies.

    Attributes:
        unresolved: Unsatisfied dependencies keyed by the package declaring them.
    """

    def __init__(self, unresolved: Mapping[PackageId, Sequence[Dependency]]) -> None:
        self.unresolved = {pid: tuple(deps) for pid, deps in unresolved.items()}
        details = "; ".join(
            f"{pid} requires {', '.join(str(dep) for dep in deps)}"
            for pid, deps in self.unresolved.items()
        )
        super().__init__(f"Unresolved dependencies: {details}")


class CyclicDependencyError(PackageError):
    """Raised when plan validation finds a dependency cycle.

    Attributes:
        cycle: Package ids along the cycle, first id repeated at the end.
    """

    def __init__(self, cycle: Sequence[PackageId]) -> None:
        self.cycle = tuple(cycle)
        super().__init__(f"Cyclic dependency: {' -> '.join(str(pid) for pid in self.cycle)}")


class PackageValidationError(PackageError):
    """Raised when archive validation reports error-level violations."""

    def __init__(self, violations: Sequence[ValidationViolation]) -> None:
        self.violations = tuple(violations)
        lines = "; ".join(str(violation) for violation in self.violations)
        super().__init__(f"Package validation failed: {lines}")


class PlanStateError(PackageError):
    """Raised when an execution plan is executed more than once."""


class StoreError(Exception):
    """Raised by target stores when content cannot be written or removed."""

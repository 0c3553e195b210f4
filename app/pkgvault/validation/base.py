"""Validator interface and validation message models.

Validators declare which capabilities they implement. The executor
dispatches by capability tag instead of inspecting validator types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from pkgvault.models.filter import WorkspaceFilter


class Capability(str, Enum):
    """Validation capability tags.

    Attributes:
        FILTER: Validates the declared workspace filter.
        PATH: Validates content entry paths.
        DATA: Validates content entry bytes.
    """

    FILTER = "filter"
    PATH = "path"
    DATA = "data"


class Severity(str, Enum):
    """Severity of a validation message, ordered DEBUG < INFO < WARN < ERROR."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


@dataclass(frozen=True, slots=True)
class ValidationMessage:
    """A message emitted by a single validator.

    Attributes:
        severity: Message severity.
        message: Human-readable text.
        path: Store path the message refers to, if any.
    """

    severity: Severity
    message: str
    path: str | None = None


@dataclass(frozen=True, slots=True)
class ValidationViolation:
    """A validation message attributed to the validator that emitted it."""

    validator_id: str
    severity: Severity
    message: str
    path: str | None = None

    @classmethod
    def wrap(cls, validator_id: str, message: ValidationMessage) -> ValidationViolation:
        return cls(
            validator_id=validator_id,
            severity=message.severity,
            message=message.message,
            path=message.path,
        )

    def __str__(self) -> str:
        location = f" ({self.path})" if self.path else ""
        return f"[{self.severity.value}] {self.validator_id}: {self.message}{location}"


class Validator:
    """Base class for validators.

    Subclasses list the capabilities they implement in ``capabilities`` and
    override the matching hook methods. Hooks of undeclared capabilities
    are never called.
    """

    capabilities: frozenset[Capability] = frozenset()

    def validate_filter(self, workspace_filter: WorkspaceFilter) -> list[ValidationMessage]:
        """Validate the declared workspace filter (FILTER)."""
        return []

    def validate_path(self, path: str) -> list[ValidationMessage]:
        """Validate one content entry path (PATH)."""
        return []

    def should_validate_data(self, path: str) -> bool:
        """Check if this validator wants the bytes of an entry (DATA)."""
        return False

    def validate_data(self, stream: BinaryIO, path: str) -> list[ValidationMessage]:
        """Validate one content entry's bytes (DATA)."""
        return []

    def done(self) -> list[ValidationMessage]:
        """Emit messages deferred until every entry has been seen."""
        return []

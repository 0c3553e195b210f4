"""Validation executor.

Runs registered validators over a package archive. Validators are indexed
by capability tag once, at construction; each archive walk then queries
the index by tag.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from pkgvault.archive.stream import ReplayableStream
from pkgvault.validation.base import Capability, Severity, ValidationViolation, Validator

if TYPE_CHECKING:
    from pkgvault.archive.reader import ArchiveEntry, PackageArchive

logger = logging.getLogger(__name__)


class ValidationExecutor:
    """Dispatches archive content to validators by capability.

    The executor is bound to one validator set; validators may keep state
    across entries and report it from :meth:`Validator.done`.

    Attributes:
        validators_by_id: All bound validators keyed by id.
    """

    def __init__(self, validators_by_id: Mapping[str, Validator]) -> None:
        self.validators_by_id: dict[str, Validator] = dict(validators_by_id)
        self._by_capability: dict[Capability, dict[str, Validator]] = {
            capability: {} for capability in Capability
        }
        for validator_id, validator in self.validators_by_id.items():
            for capability in validator.capabilities:
                self._by_capability[capability][validator_id] = validator

    def validators_for(self, capability: Capability) -> dict[str, Validator]:
        """Return the validators declaring a capability, in registration order."""
        return self._by_capability[capability]

    def unused_validators(self) -> dict[str, Validator]:
        """Return validators that declare no capability this executor understands."""
        return {
            validator_id: validator
            for validator_id, validator in self.validators_by_id.items()
            if not validator.capabilities
        }

    def validate_archive(self, archive: PackageArchive) -> list[ValidationViolation]:
        """Validate an archive's filter and every content entry.

        Returns:
            All violations, including those reported by :meth:`done`.
        """
        violations: list[ValidationViolation] = []

        for validator_id, validator in self.validators_for(Capability.FILTER).items():
            for message in validator.validate_filter(archive.filter):
                violations.append(ValidationViolation.wrap(validator_id, message))

        for entry in archive.entries():
            violations.extend(self._validate_entry(archive, entry))

        violations.extend(self.done())
        logger.debug("Validated %s: %d violation(s)", archive.id, len(violations))
        return violations

    def _validate_entry(self, archive: PackageArchive, entry: ArchiveEntry) -> list[ValidationViolation]:
        violations: list[ValidationViolation] = []
        for validator_id, validator in self.validators_for(Capability.PATH).items():
            for message in validator.validate_path(entry.path):
                violations.append(ValidationViolation.wrap(validator_id, message))

        interested = {
            validator_id: validator
            for validator_id, validator in self.validators_for(Capability.DATA).items()
            if validator.should_validate_data(entry.path)
        }
        if not interested:
            return violations

        source = archive.open_entry(entry)
        # buffering is only needed when several validators read the same bytes
        stream = ReplayableStream(source) if len(interested) > 1 else source
        try:
            for validator_id, validator in interested.items():
                if isinstance(stream, ReplayableStream):
                    stream.reset()
                for message in validator.validate_data(stream, entry.path):
                    violations.append(ValidationViolation.wrap(validator_id, message))
        finally:
            source.close()
        return violations

    def done(self) -> list[ValidationViolation]:
        """Collect messages deferred by validators until the end of a run."""
        violations: list[ValidationViolation] = []
        for validator_id, validator in self.validators_by_id.items():
            for message in validator.done():
                violations.append(ValidationViolation.wrap(validator_id, message))
        return violations


def errors_of(violations: list[ValidationViolation], threshold: Severity = Severity.ERROR) -> list[ValidationViolation]:
    """Return violations at or above a severity threshold."""
    return [violation for violation in violations if violation.severity >= threshold]

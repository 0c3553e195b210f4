"""Built-in archive validators."""

from __future__ import annotations

import tomllib
from typing import TYPE_CHECKING, BinaryIO

from pkgvault.validation.base import Capability, Severity, ValidationMessage, Validator

if TYPE_CHECKING:
    from pkgvault.models.filter import WorkspaceFilter

TEXT_SUFFIXES: tuple[str, ...] = (".toml", ".json", ".txt", ".xml", ".md", ".properties")


class ContentPathValidator(Validator):
    """Rejects content paths with empty, ``.`` or ``..`` segments."""

    capabilities = frozenset({Capability.PATH})

    def validate_path(self, path: str) -> list[ValidationMessage]:
        segments = path.split("/")[1:]
        if any(segment in ("", ".", "..") for segment in segments):
            return [ValidationMessage(Severity.ERROR, "Invalid path segment", path)]
        return []


class FilterCoverageValidator(Validator):
    """Warns about content the package's own filter does not cover.

    Uncovered entries are never installed, which usually means the filter
    or the content layout is wrong. Messages are reported from :meth:`done`.
    """

    capabilities = frozenset({Capability.FILTER, Capability.PATH})

    def __init__(self) -> None:
        self._filter: WorkspaceFilter | None = None
        self._uncovered: list[str] = []

    def validate_filter(self, workspace_filter: WorkspaceFilter) -> list[ValidationMessage]:
        self._filter = workspace_filter
        self._uncovered = []
        if workspace_filter.is_empty:
            return [ValidationMessage(Severity.WARN, "Package declares an empty filter")]
        return []

    def validate_path(self, path: str) -> list[ValidationMessage]:
        if self._filter is not None and not self._filter.contains(path):
            self._uncovered.append(path)
        return []

    def done(self) -> list[ValidationMessage]:
        messages = [
            ValidationMessage(Severity.WARN, "Content not covered by filter", path)
            for path in self._uncovered
        ]
        self._uncovered = []
        return messages


class Utf8TextValidator(Validator):
    """Requires text-like entries to be valid UTF-8."""

    capabilities = frozenset({Capability.DATA})

    def should_validate_data(self, path: str) -> bool:
        return path.endswith(TEXT_SUFFIXES)

    def validate_data(self, stream: BinaryIO, path: str) -> list[ValidationMessage]:
        try:
            stream.read().decode("utf-8")
        except UnicodeDecodeError as e:
            return [ValidationMessage(Severity.ERROR, f"Not valid UTF-8: {e.reason}", path)]
        return []


class TomlSyntaxValidator(Validator):
    """Requires ``.toml`` entries to parse."""

    capabilities = frozenset({Capability.DATA})

    def should_validate_data(self, path: str) -> bool:
        return path.endswith(".toml")

    def validate_data(self, stream: BinaryIO, path: str) -> list[ValidationMessage]:
        try:
            tomllib.load(stream)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            return [ValidationMessage(Severity.ERROR, f"Invalid TOML: {e}", path)]
        return []


def default_validators() -> dict[str, Validator]:
    """Create the built-in validator set, keyed by validator id."""
    return {
        "pkgvault:content-path": ContentPathValidator(),
        "pkgvault:filter-coverage": FilterCoverageValidator(),
        "pkgvault:utf8-text": Utf8TextValidator(),
        "pkgvault:toml-syntax": TomlSyntaxValidator(),
    }

"""Package identity and dependency models.

This module defines the immutable value types used to identify packages
in the registry and to express version-range constraints between them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering

_VERSION_PATTERN = re.compile(r"^(?P<numbers>\d+(?:\.\d+)*)(?:-(?P<qualifier>[A-Za-z0-9][A-Za-z0-9._-]*))?$")


class MalformedVersionError(ValueError):
    """Raised when a version or version range string cannot be parsed."""


class PackageType(str, Enum):
    """Declared type of a package, also used as installation scope.

    Attributes:
        APPLICATION: Package only touches application roots (e.g. /apps, /libs).
        CONTENT: Package only touches content outside the application roots.
        CONTAINER: Package only wraps other packages.
        MIXED: Package touches both regions (unrestricted scope).
    """

    APPLICATION = "application"
    CONTENT = "content"
    CONTAINER = "container"
    MIXED = "mixed"


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    """Dot-separated numeric version with an optional qualifier.

    Components are compared numerically (``2.0 > 1.9``) and trailing zero
    components are insignificant (``1.0 == 1.0.0``). A release sorts above
    the same numbers with a qualifier (``1.0 > 1.0-SNAPSHOT``). The empty
    version sorts below every other version.

    Attributes:
        raw: The original version string.
        numbers: Parsed numeric components.
        qualifier: Text after the first ``-`` (empty for releases).
    """

    raw: str
    numbers: tuple[int, ...] = field(default=())
    qualifier: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string.

        Args:
            text: Version string such as ``1.0``, ``2.1.3`` or ``1.0-SNAPSHOT``.

        Returns:
            Parsed Version.

        Raises:
            MalformedVersionError: If the text is not a valid version.
        """
        text = text.strip()
        if not text:
            return EMPTY_VERSION
        match = _VERSION_PATTERN.match(text)
        if match is None:
            msg = f"Malformed version: {text!r}"
            raise MalformedVersionError(msg)
        numbers = tuple(int(part) for part in match.group("numbers").split("."))
        return cls(raw=text, numbers=numbers, qualifier=match.group("qualifier") or "")

    @property
    def is_empty(self) -> bool:
        """Check if this is the empty version."""
        return not self.raw

    def _key(self) -> tuple[int, tuple[int, ...], int, str]:
        numbers = self.numbers
        while numbers and numbers[-1] == 0:
            numbers = numbers[:-1]
        # releases (no qualifier) rank above qualified builds of the same numbers
        return (0 if self.is_empty else 1, numbers, 0 if self.qualifier else 1, self.qualifier)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.raw


EMPTY_VERSION = Version(raw="")


@dataclass(frozen=True, slots=True)
class VersionRange:
    """Version interval constraint.

    A range with no bounds matches any version. An exact range has equal,
    inclusive bounds and is written as a bare version.

    Attributes:
        low: Lower bound (None for open).
        low_inclusive: Whether the lower bound is included.
        high: Upper bound (None for open).
        high_inclusive: Whether the upper bound is included.
    """

    low: Version | None = None
    low_inclusive: bool = False
    high: Version | None = None
    high_inclusive: bool = False

    @classmethod
    def parse(cls, text: str) -> VersionRange:
        """Parse a range string.

        Supported forms: ``[a,b)``, ``[a,b]``, ``(a,b]``, ``(a,b)`` with
        either bound optionally omitted, a bare version for an exact match,
        and the empty string for any version.

        Raises:
            MalformedVersionError: If the text is not a valid range.
        """
        text = text.strip()
        if not text:
            return ANY_VERSION

        if text[0] not in "[(":
            version = Version.parse(text)
            return cls.exact(version)

        if text[-1] not in "])" or "," not in text:
            msg = f"Malformed version range: {text!r}"
            raise MalformedVersionError(msg)

        body = text[1:-1]
        if body.count(",") != 1:
            msg = f"Malformed version range: {text!r}"
            raise MalformedVersionError(msg)
        low_text, high_text = (part.strip() for part in body.split(","))
        low = Version.parse(low_text) if low_text else None
        high = Version.parse(high_text) if high_text else None
        if low is not None and high is not None and high < low:
            msg = f"Version range upper bound is below lower bound: {text!r}"
            raise MalformedVersionError(msg)
        return cls(
            low=low,
            low_inclusive=text[0] == "[" and low is not None,
            high=high,
            high_inclusive=text[-1] == "]" and high is not None,
        )

    @classmethod
    def exact(cls, version: Version) -> VersionRange:
        """Create a range matching exactly one version."""
        return cls(low=version, low_inclusive=True, high=version, high_inclusive=True)

    @property
    def is_any(self) -> bool:
        """Check if this range matches any version."""
        return self.low is None and self.high is None

    @property
    def is_exact(self) -> bool:
        """Check if this range matches exactly one version."""
        return (
            self.low is not None
            and self.low == self.high
            and self.low_inclusive
            and self.high_inclusive
        )

    def contains(self, version: Version) -> bool:
        """Check whether a version lies inside this range."""
        if self.low is not None:
            if version < self.low or (version == self.low and not self.low_inclusive):
                return False
        if self.high is not None:
            if version > self.high or (version == self.high and not self.high_inclusive):
                return False
        return True

    def __str__(self) -> str:
        if self.is_any:
            return ""
        if self.is_exact:
            return str(self.low)
        low = "" if self.low is None else str(self.low)
        high = "" if self.high is None else str(self.high)
        return f"{'[' if self.low_inclusive else '('}{low},{high}{']' if self.high_inclusive else ')'}"


ANY_VERSION = VersionRange()


@dataclass(frozen=True, slots=True, order=True)
class PackageId:
    """Unique identity of a package: group, name and version.

    Ordering is by group, then name, then version. PackageId is used as the
    registry key and as node identity in dependency resolution.

    Attributes:
        group: Package group (may be empty).
        name: Package name.
        version: Package version (may be the empty version).
    """

    group: str
    name: str
    version: Version = EMPTY_VERSION

    def __post_init__(self) -> None:
        """Validate identity data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if ":" in self.group or ":" in self.name:
            msg = f"Package group and name cannot contain ':' ({self.group}:{self.name})"
            raise ValueError(msg)
        # group and name become directory and file names in registry storage
        for part in (self.group, self.name):
            if "/" in part or "\\" in part or part in (".", ".."):
                msg = f"Package group and name cannot be path segments ({self.group}:{self.name})"
                raise ValueError(msg)

    @classmethod
    def of(cls, group: str, name: str, version: str = "") -> PackageId:
        """Create a PackageId from plain strings."""
        return cls(group=group, name=name, version=Version.parse(version))

    @classmethod
    def parse(cls, text: str) -> PackageId:
        """Parse ``group:name`` or ``group:name:version``.

        Raises:
            ValueError: If the text has no group separator or an empty name.
            MalformedVersionError: If the version part is malformed.
        """
        parts = text.strip().split(":")
        if len(parts) not in (2, 3):
            msg = f"Package id must be 'group:name[:version]', got {text!r}"
            raise ValueError(msg)
        version = parts[2] if len(parts) == 3 else ""
        return cls.of(parts[0], parts[1], version)

    @property
    def download_name(self) -> str:
        """File name used when the package archive is stored on disk."""
        suffix = f"-{self.version}" if not self.version.is_empty else ""
        return f"{self.name}{suffix}.zip"

    def __str__(self) -> str:
        base = f"{self.group}:{self.name}"
        return base if self.version.is_empty else f"{base}:{self.version}"

    @staticmethod
    def join(ids: list[PackageId] | tuple[PackageId, ...]) -> str:
        """Format a sequence of ids as a comma-separated string."""
        return ",".join(str(pid) for pid in ids)


@dataclass(frozen=True, slots=True)
class Dependency:
    """Version-range constraint on another package.

    Attributes:
        group: Group of the required package.
        name: Name of the required package.
        range: Accepted version range.
    """

    group: str
    name: str
    range: VersionRange = ANY_VERSION

    def __post_init__(self) -> None:
        """Validate dependency data after initialization."""
        if not self.name:
            msg = "Dependency name cannot be empty"
            raise ValueError(msg)

    @classmethod
    def parse(cls, text: str) -> Dependency:
        """Parse ``group:name`` or ``group:name:range``.

        Raises:
            ValueError: If the text has no group separator or an empty name.
            MalformedVersionError: If the range part is malformed.
        """
        parts = text.strip().split(":", 2)
        if len(parts) < 2:
            msg = f"Dependency must be 'group:name[:range]', got {text!r}"
            raise ValueError(msg)
        range_text = parts[2] if len(parts) == 3 else ""
        return cls(group=parts[0], name=parts[1], range=VersionRange.parse(range_text))

    @classmethod
    def parse_list(cls, text: str) -> list[Dependency]:
        """Parse a comma-separated dependency list.

        Commas inside range brackets do not split entries.
        """
        entries: list[str] = []
        depth = 0
        current: list[str] = []
        for char in text:
            if char in "[(":
                depth += 1
            elif char in "])":
                depth -= 1
            if char == "," and depth == 0:
                entries.append("".join(current))
                current = []
                continue
            current.append(char)
        entries.append("".join(current))
        return [cls.parse(entry) for entry in entries if entry.strip()]

    def matches(self, pid: PackageId) -> bool:
        """Check whether a package id satisfies this dependency."""
        return pid.group == self.group and pid.name == self.name and self.range.contains(pid.version)

    def __str__(self) -> str:
        base = f"{self.group}:{self.name}"
        range_text = str(self.range)
        return f"{base}:{range_text}" if range_text else base

    @staticmethod
    def join(dependencies: list[Dependency] | tuple[Dependency, ...]) -> str:
        """Format a sequence of dependencies as a comma-separated string."""
        return ",".join(str(dep) for dep in dependencies)

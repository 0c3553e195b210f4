"""Package archive reading and writing.

A package archive is a zip file with a ``META-INF/package.toml`` metadata
file and the package content below ``content/``. The content entry
``content/libs/foo/a.txt`` installs to the store path ``/libs/foo/a.txt``.
"""

from __future__ import annotations

import io
import logging
import tomllib
import zipfile
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Annotated, BinaryIO

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pkgvault.core.errors import PackageError
from pkgvault.models.filter import FilterRoot, WorkspaceFilter
from pkgvault.models.package import Dependency, PackageId, PackageType

logger = logging.getLogger(__name__)

METADATA_PATH = "META-INF/package.toml"
CONTENT_PREFIX = "content/"


class PackageSection(BaseModel):
    """The [package] table of package.toml."""

    model_config = ConfigDict(extra="forbid")

    group: Annotated[str, Field(description="Package group")] = ""
    name: Annotated[str, Field(min_length=1, description="Package name")]
    version: Annotated[str, Field(description="Package version")] = ""
    type: Annotated[PackageType, Field(description="Declared package type")] = PackageType.MIXED
    description: Annotated[str | None, Field(description="Package description")] = None
    dependencies: Annotated[
        list[str],
        Field(default_factory=list, description="Declared dependencies"),
    ]


class FilterSection(BaseModel):
    """One [[filter]] entry of package.toml."""

    model_config = ConfigDict(extra="forbid")

    root: Annotated[str, Field(description="Filter root path")]
    excludes: Annotated[
        list[str],
        Field(default_factory=list, description="Excluded sub-trees"),
    ]


class PackageMetadata(BaseModel):
    """Complete package.toml document."""

    model_config = ConfigDict(extra="forbid")

    package: Annotated[PackageSection, Field(description="Package identity")]
    filter: Annotated[
        list[FilterSection],
        Field(default_factory=list, description="Workspace filter roots"),
    ]


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A content entry of a package archive.

    Attributes:
        path: Absolute store path the entry installs to.
        name: Name of the entry inside the zip file.
    """

    path: str
    name: str


@dataclass(frozen=True, slots=True)
class PackageArchive:
    """Parsed package archive.

    Attributes:
        id: Package identity.
        package_type: Declared package type.
        filter: Declared workspace filter.
        dependencies: Declared dependencies, in declaration order.
        description: Optional description.
        data: Raw archive bytes.
    """

    id: PackageId
    package_type: PackageType
    filter: WorkspaceFilter
    dependencies: tuple[Dependency, ...]
    description: str | None
    data: bytes

    @property
    def size(self) -> int:
        """Archive size in bytes."""
        return len(self.data)

    def entries(self) -> Iterator[ArchiveEntry]:
        """Iterate content entries in archive order (directories skipped)."""
        with zipfile.ZipFile(io.BytesIO(self.data)) as zf:
            for info in zf.infolist():
                if info.is_dir() or not info.filename.startswith(CONTENT_PREFIX):
                    continue
                relative = info.filename[len(CONTENT_PREFIX) :]
                if not relative:
                    continue
                yield ArchiveEntry(path="/" + relative, name=info.filename)

    def open_entry(self, entry: ArchiveEntry) -> BinaryIO:
        """Open a content entry as a forward-only stream decompressed on read.

        The stream stays usable after the zip file is closed and must be
        closed by the caller.
        """
        with zipfile.ZipFile(io.BytesIO(self.data)) as zf:
            return zf.open(entry.name)

    def read_entry(self, entry: ArchiveEntry) -> bytes:
        """Read a content entry's bytes."""
        with zipfile.ZipFile(io.BytesIO(self.data)) as zf:
            return zf.read(entry.name)


def read_archive(data: bytes) -> PackageArchive:
    """Parse package archive bytes.

    Args:
        data: Raw zip archive bytes.

    Returns:
        PackageArchive with parsed metadata.

    Raises:
        PackageError: If the archive or its metadata is malformed.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            raw = zf.read(METADATA_PATH)
    except KeyError as e:
        raise PackageError(f"Archive has no {METADATA_PATH}") from e
    except zipfile.BadZipFile as e:
        raise PackageError(f"Invalid package archive: {e}") from e

    try:
        document = tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise PackageError(f"Invalid package metadata: {e}") from e

    try:
        metadata = PackageMetadata.model_validate(document)
        section = metadata.package
        pid = PackageId.of(section.group, section.name, section.version)
        dependencies = tuple(Dependency.parse(text) for text in section.dependencies)
        workspace_filter = WorkspaceFilter.from_roots(
            FilterRoot(root=entry.root, excludes=tuple(entry.excludes)) for entry in metadata.filter
        )
    except (ValidationError, ValueError) as e:
        raise PackageError(f"Invalid package metadata: {e}") from e

    logger.debug("Read archive %s (%d bytes)", pid, len(data))
    return PackageArchive(
        id=pid,
        package_type=section.type,
        filter=workspace_filter,
        dependencies=dependencies,
        description=section.description,
        data=data,
    )


def build_archive(
    pid: PackageId | str,
    *,
    files: Mapping[str, bytes | str] | None = None,
    dependencies: Sequence[Dependency | str] = (),
    filter_roots: Sequence[FilterRoot | str] = (),
    package_type: PackageType = PackageType.MIXED,
    description: str | None = None,
) -> bytes:
    """Build package archive bytes.

    Args:
        pid: Package id (or its string form).
        files: Content keyed by absolute store path.
        dependencies: Declared dependencies.
        filter_roots: Workspace filter roots.
        package_type: Declared package type.
        description: Optional description.

    Returns:
        Zip archive bytes.
    """
    package_id = PackageId.parse(pid) if isinstance(pid, str) else pid
    package: dict[str, object] = {
        "group": package_id.group,
        "name": package_id.name,
        "version": str(package_id.version),
        "type": package_type.value,
        "dependencies": [str(dep) for dep in dependencies],
    }
    if description is not None:
        package["description"] = description

    roots = [FilterRoot(root=root) if isinstance(root, str) else root for root in filter_roots]
    document: dict[str, object] = {
        "package": package,
        "filter": [{"root": root.root, "excludes": list(root.excludes)} for root in roots],
    }

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(METADATA_PATH, tomli_w.dumps(document))
        for path, content in (files or {}).items():
            payload = content.encode("utf-8") if isinstance(content, str) else content
            zf.writestr(CONTENT_PREFIX + path.lstrip("/"), payload)
    return buffer.getvalue()

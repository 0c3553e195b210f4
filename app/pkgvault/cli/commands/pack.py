"""Pack command implementation.

Builds a package archive from a directory tree laid out like the target
store: ``<source>/libs/foo/a.txt`` is packed as ``/libs/foo/a.txt``.
"""

from pathlib import Path
from typing import Annotated

import typer

from pkgvault.archive.reader import build_archive
from pkgvault.cli.types import parse_package_id
from pkgvault.models.package import Dependency, PackageType
from pkgvault.utils.formatting import print_error, print_success


def _collect_files(source: Path) -> dict[str, bytes]:
    """Map every file below ``source`` to its store path."""
    return {
        "/" + file.relative_to(source).as_posix(): file.read_bytes()
        for file in sorted(source.rglob("*"))
        if file.is_file()
    }


def _default_filter_roots(paths: list[str]) -> list[str]:
    """Derive filter roots from the top-level directories of the content."""
    roots: list[str] = []
    for path in paths:
        segments = path.strip("/").split("/")
        root = "/" + "/".join(segments[:2]) if len(segments) > 2 else "/" + segments[0]
        if root not in roots:
            roots.append(root)
    return roots


def pack(
    package_id: Annotated[str, typer.Argument(help="Package id (group:name:version).")],
    source: Annotated[
        Path,
        typer.Option("--source", "-s", help="Directory holding the package content."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Archive file to write (default: <name>-<version>.zip)."),
    ] = None,
    dependencies: Annotated[
        list[str] | None,
        typer.Option("--dep", "-d", help="Declared dependency (group:name[:range]); repeatable."),
    ] = None,
    filter_roots: Annotated[
        list[str] | None,
        typer.Option("--filter", "-f", help="Filter root path; repeatable (default: derived from content)."),
    ] = None,
    package_type: Annotated[
        PackageType,
        typer.Option("--type", "-t", help="Declared package type.", case_sensitive=False),
    ] = PackageType.MIXED,
    description: Annotated[
        str | None,
        typer.Option("--description", help="Package description."),
    ] = None,
) -> None:
    """Build a package archive from a directory.

    Examples:
        pkgvault pack my_packages:test_b:1.0 -s ./content
        pkgvault pack my_packages:test_a:1.0 -s ./a -d "my_packages:test_c:[1.0,2.0)"
    """
    pid = parse_package_id(package_id)

    if not source.is_dir():
        print_error(f"Source directory not found: {source}")
        raise typer.Exit(code=1)

    try:
        deps = [Dependency.parse(text) for text in dependencies or []]
    except ValueError as e:
        print_error(f"Invalid dependency: {e}")
        raise typer.Exit(code=1) from e

    files = _collect_files(source)
    if not files:
        print_error(f"No files found below {source}")
        raise typer.Exit(code=1)

    roots = filter_roots or _default_filter_roots(list(files))
    try:
        data = build_archive(
            pid,
            files=files,
            dependencies=deps,
            filter_roots=roots,
            package_type=package_type,
            description=description,
        )
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    target = output or Path(pid.download_name)
    try:
        target.write_bytes(data)
    except OSError as e:
        print_error(f"Failed to write {target}: {e}")
        raise typer.Exit(code=1) from e

    print_success(f"Packed {pid} ({len(files)} file(s)) into {target}")

"""List command implementation.

Shows registered packages and their installed state.
"""

import json
from typing import Annotated

import typer

from pkgvault.cli.types import load_settings, open_registry
from pkgvault.registry.stored import PackageRecord
from pkgvault.utils.formatting import console, create_package_table, format_package_row, print_info


def _record_to_dict(record: PackageRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "type": record.package_type.value,
        "installed": record.installed,
        "installed_at": record.installed_at.isoformat() if record.installed_at else None,
        "registered_at": record.registered_at.isoformat(),
        "size": record.size,
        "description": record.description,
        "dependencies": [str(dep) for dep in record.dependencies],
        "filter": [{"root": root.root, "excludes": list(root.excludes)} for root in record.filter.roots],
    }


def list_packages(
    installed_only: Annotated[
        bool,
        typer.Option("--installed", "-i", help="Only show installed packages."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List registered packages.

    Examples:
        pkgvault list
        pkgvault list --installed
        pkgvault list --json
    """
    registry = open_registry(load_settings(), validate=False)
    records = sorted(registry.records(), key=lambda record: record.id)
    if installed_only:
        records = [record for record in records if record.installed]

    if json_output:
        console.print_json(json.dumps([_record_to_dict(record) for record in records]))
        return

    if not records:
        print_info("No packages registered.")
        return

    table = create_package_table()
    for record in records:
        table.add_row(*format_package_row(record))
    console.print(table)

    installed = sum(1 for record in records if record.installed)
    print_info(f"{len(records)} package(s), {installed} installed.")

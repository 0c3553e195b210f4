"""Deps and usage command implementations.

``deps`` resolves a package's declared dependencies against the registry;
``usage`` lists the registered packages depending on a package.
"""

import json
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from pkgvault.cli.types import load_settings, open_registry, parse_package_id
from pkgvault.core.errors import NoSuchPackageError
from pkgvault.models.report import DependencyReport
from pkgvault.utils.formatting import console, print_error, print_info, print_success, print_warning


def _print_report(report: DependencyReport) -> None:
    table = Table(
        title=f"Dependencies of {escape(str(report.id))}",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=10, justify="center")
    table.add_column("Package")

    for pid in report.resolved:
        table.add_row("[success]resolved[/success]", escape(str(pid)))
    for dependency in report.unresolved:
        table.add_row("[error]missing[/error]", escape(str(dependency)))

    console.print(table)


def deps(
    package_id: Annotated[str, typer.Argument(help="Package id (group:name:version).")],
    installed_only: Annotated[
        bool,
        typer.Option("--installed", "-i", help="Only resolve against installed packages."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Resolve a package's dependencies against the registry.

    Exits with code 1 if any dependency is unresolved.

    Examples:
        pkgvault deps my_packages:test_a:1.0
        pkgvault deps my_packages:test_a:1.0 --installed
    """
    pid = parse_package_id(package_id)
    registry = open_registry(load_settings(), validate=False)

    try:
        report = registry.analyze_dependencies(pid, only_installed=installed_only)
    except NoSuchPackageError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        output = {
            "id": str(report.id),
            "resolved": [str(resolved) for resolved in report.resolved],
            "unresolved": [str(dependency) for dependency in report.unresolved],
        }
        console.print_json(json.dumps(output))
    elif not report.resolved and not report.unresolved:
        print_info(f"{pid} declares no dependencies.")
    else:
        _print_report(report)
        if report.is_satisfied:
            print_success("All dependencies resolved.")
        else:
            print_warning(f"{len(report.unresolved)} unresolved dependency(ies).")

    if not report.is_satisfied:
        raise typer.Exit(code=1)


def usage(
    package_id: Annotated[str, typer.Argument(help="Package id (group:name:version).")],
    installed_only: Annotated[
        bool,
        typer.Option("--installed", "-i", help="Only report installed users."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List registered packages that depend on a package.

    Examples:
        pkgvault usage my_packages:test_c:1.0
    """
    pid = parse_package_id(package_id)
    registry = open_registry(load_settings(), validate=False)
    users = registry.usage(pid, only_installed=installed_only)

    if json_output:
        console.print_json(json.dumps([str(user) for user in users]))
        return

    if not users:
        print_info(f"No packages depend on {pid}.")
        return

    for user in users:
        console.print(escape(str(user)))

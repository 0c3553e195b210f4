"""Register command implementation.

Adds package archive files to the registry.
"""

from pathlib import Path
from typing import Annotated

import typer

from pkgvault.cli.types import load_settings, open_registry, record_history
from pkgvault.core.errors import PackageError, PackageExistsError, PackageValidationError
from pkgvault.models.history import HistoryActionType, HistoryItem
from pkgvault.utils.formatting import print_error, print_success, print_warning


def register(
    archives: Annotated[list[Path], typer.Argument(help="Package archive files.")],
    replace: Annotated[
        bool,
        typer.Option("--replace", "-r", help="Replace packages that are already registered."),
    ] = False,
    no_validate: Annotated[
        bool,
        typer.Option("--no-validate", help="Skip archive validation."),
    ] = False,
) -> None:
    """Register package archives.

    Every archive is attempted; the command fails if any of them could not
    be registered.

    Examples:
        pkgvault register test_a-1.0.zip test_b-1.0.zip
        pkgvault register --replace test_a-1.0.zip
    """
    settings = load_settings()
    registry = open_registry(settings, validate=False if no_validate else None)

    items: list[HistoryItem] = []
    failures = 0
    for archive in archives:
        try:
            pid = registry.register(archive, replace=replace)
        except PackageExistsError as e:
            print_warning(f"{archive}: {e} (use --replace to overwrite)")
            failures += 1
            continue
        except PackageValidationError as e:
            print_error(f"{archive}: validation failed")
            for violation in e.violations:
                print_error(f"  {violation}")
            failures += 1
            continue
        except PackageError as e:
            print_error(f"{archive}: {e}")
            failures += 1
            continue

        items.append(HistoryItem(package_id=str(pid)))
        print_success(f"Registered {pid}")

    record_history(HistoryActionType.REGISTER, items, {"command": "register", "replace": replace})

    if failures:
        raise typer.Exit(code=1)

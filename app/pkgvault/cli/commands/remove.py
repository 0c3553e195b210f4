"""Remove command implementation.

Removes packages from the registry. Installed content is left in the
target store; uninstall first to remove it.
"""

from typing import Annotated

import typer

from pkgvault.cli.types import load_settings, open_registry, parse_package_id, record_history
from pkgvault.core.errors import NoSuchPackageError, PackageError
from pkgvault.models.history import HistoryActionType, HistoryItem
from pkgvault.utils.formatting import print_error, print_success, print_warning


def remove(
    package_ids: Annotated[list[str], typer.Argument(help="Package ids (group:name:version).")],
) -> None:
    """Remove packages from the registry.

    Examples:
        pkgvault remove my_packages:test_a:1.0
    """
    registry = open_registry(load_settings(), validate=False)

    items: list[HistoryItem] = []
    failures = 0
    for text in package_ids:
        pid = parse_package_id(text)
        record = registry.record(pid)
        if record is not None and record.installed:
            print_warning(f"{pid} is still installed; its content stays in the store")
        try:
            registry.remove(pid)
        except NoSuchPackageError as e:
            print_error(str(e))
            failures += 1
            continue
        except PackageError as e:
            print_error(f"{pid}: {e}")
            items.append(HistoryItem(package_id=str(pid), error=str(e)))
            failures += 1
            continue
        items.append(HistoryItem(package_id=str(pid)))
        print_success(f"Removed {pid}")

    record_history(HistoryActionType.REMOVE, items, {"command": "remove"})

    if failures:
        raise typer.Exit(code=1)

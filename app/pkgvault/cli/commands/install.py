"""Install and uninstall command implementations.

Both commands build one execution plan from the given package ids, run it
against the filesystem target store and record the outcome in history.
"""

from pathlib import Path
from typing import Annotated

import typer

from pkgvault.cli.display import ConsoleListener, create_plan_table, create_results_table, print_results_summary
from pkgvault.cli.types import items_from_results, load_settings, open_registry, parse_package_id, record_history
from pkgvault.core.config import Settings
from pkgvault.core.errors import CyclicDependencyError, DependencyError, PackageError
from pkgvault.models.history import HistoryActionType
from pkgvault.models.package import PackageType
from pkgvault.models.task import TaskType
from pkgvault.stores.filesystem import FilesystemStore
from pkgvault.utils.formatting import console, print_error, print_info


def _run_plan(
    settings: Settings,
    package_ids: list[str],
    task_type: TaskType,
    *,
    scope: PackageType,
    store_dir: Path | None,
    dry_run: bool,
    quiet: bool,
) -> None:
    """Build, validate and execute a plan of one task type.

    Raises:
        typer.Exit: On validation failure (code 1) or failed tasks (code 1).
    """
    registry = open_registry(settings, validate=False)
    store = FilesystemStore(store_dir or settings.effective_store_dir)

    builder = registry.create_execution_plan()
    for text in package_ids:
        builder.add_task(parse_package_id(text), task_type)
    builder.with_store(store).with_listener(ConsoleListener(quiet=quiet)).with_dry_run(dry_run)
    scope_handler = builder.set_scope(scope, settings.application_roots)

    try:
        plan = builder.validate()
    except DependencyError as e:
        print_error("Unresolved dependencies:")
        for pid, dependencies in e.unresolved.items():
            print_error(f"  {pid} requires {', '.join(str(dep) for dep in dependencies)}")
        raise typer.Exit(code=1) from e
    except CyclicDependencyError as e:
        print_error(f"Dependency cycle: {' -> '.join(str(pid) for pid in e.cycle)}")
        raise typer.Exit(code=1) from e
    except PackageError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not quiet:
        console.print(create_plan_table(plan.tasks, dry_run=dry_run))
        if scope_handler.is_restricting:
            print_info(f"Installing with scope '{scope.value}'")

    plan.execute()

    if not quiet:
        console.print(create_results_table(plan.results))
    print_results_summary(plan.results, [str(pid) for pid in scope_handler.packages_leaving_scope()])

    if not dry_run:
        action = HistoryActionType.INSTALL if task_type == TaskType.INSTALL else HistoryActionType.UNINSTALL
        record_history(
            action,
            items_from_results(plan.results),
            {"command": task_type.value, "scope": scope.value, "store": str(store.root)},
        )

    if plan.has_errors:
        raise typer.Exit(code=1)


def install(
    ctx: typer.Context,
    package_ids: Annotated[list[str], typer.Argument(help="Package ids (group:name:version).")],
    scope: Annotated[
        PackageType | None,
        typer.Option(
            "--scope",
            "-s",
            help="Restrict what packages may write (default from settings).",
            case_sensitive=False,
        ),
    ] = None,
    store_dir: Annotated[
        Path | None,
        typer.Option("--store", help="Target store directory (default from settings)."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would change without writing."),
    ] = False,
) -> None:
    """Install registered packages into the target store.

    Packages are installed after their in-plan dependencies. Dependencies
    must be installed already or be part of the same command.

    Examples:
        pkgvault install my_packages:test_c:1.0 my_packages:test_b:1.0
        pkgvault install my_packages:test_a:1.0 --scope application
        pkgvault install my_packages:test_a:1.0 --dry-run
    """
    settings = load_settings()
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    _run_plan(
        settings,
        package_ids,
        TaskType.INSTALL,
        scope=scope or settings.default_scope,
        store_dir=store_dir,
        dry_run=dry_run,
        quiet=quiet,
    )


def uninstall(
    ctx: typer.Context,
    package_ids: Annotated[list[str], typer.Argument(help="Package ids (group:name:version).")],
    store_dir: Annotated[
        Path | None,
        typer.Option("--store", help="Target store directory (default from settings)."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show what would change without writing."),
    ] = False,
) -> None:
    """Uninstall packages from the target store.

    Packages are uninstalled before the in-plan packages they depend on.

    Examples:
        pkgvault uninstall my_packages:test_a:1.0
    """
    settings = load_settings()
    quiet = bool(ctx.obj and ctx.obj.get("quiet"))
    _run_plan(
        settings,
        package_ids,
        TaskType.UNINSTALL,
        scope=PackageType.MIXED,
        store_dir=store_dir,
        dry_run=dry_run,
        quiet=quiet,
    )

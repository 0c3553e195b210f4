"""Init command implementation.

Creates a config.toml settings file with default values.
"""

from pathlib import Path
from typing import Annotated

import typer

from pkgvault.core.config import ConfigError, Settings, save_settings
from pkgvault.core.paths import get_config_path
from pkgvault.models.package import PackageType
from pkgvault.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Initialize a settings file with default values.",
    invoke_without_command=True,
)


def _show_settings_summary(settings: Settings, output_path: Path) -> None:
    """Display the settings that will be written."""
    console.print()
    console.print("[bold]Settings Summary[/bold]")
    console.print(f"  Output: [muted]{output_path}[/muted]")
    console.print(f"  Registry: [info]{settings.effective_registry_dir}[/info]")
    console.print(f"  Store: [info]{settings.effective_store_dir}[/info]")
    console.print(f"  Application roots: [info]{', '.join(settings.application_roots)}[/info]")
    console.print(f"  Default scope: [muted]{settings.default_scope.value}[/muted]")
    console.print()


@app.callback(invoke_without_command=True)
def init_settings(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path for the settings file.",
        ),
    ] = None,
    registry_dir: Annotated[
        Path | None,
        typer.Option("--registry", help="Registry directory to store in the settings."),
    ] = None,
    store_dir: Annotated[
        Path | None,
        typer.Option("--store", help="Target store directory to store in the settings."),
    ] = None,
    scope: Annotated[
        PackageType,
        typer.Option("--scope", "-s", help="Default install scope.", case_sensitive=False),
    ] = PackageType.MIXED,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing settings file.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be created without writing files.",
        ),
    ] = False,
) -> None:
    """Initialize a settings file.

    Examples:
        pkgvault init                          # Create config.toml in the default location
        pkgvault init --store /srv/content     # Install into /srv/content by default
        pkgvault init --scope application      # Restrict installs to application roots
        pkgvault init --dry-run                # Preview without writing
    """
    if ctx.invoked_subcommand is not None:
        return

    output_path = output or get_config_path()

    if output_path.exists():
        if dry_run:
            print_warning(f"Settings file already exists: {output_path}")
            print_info("Would be overwritten with --force.")
        elif not force:
            print_error(f"Settings file already exists: {output_path}")
            print_info("Use --force to overwrite or specify a different path with --output.")
            raise typer.Exit(code=1)
        else:
            print_warning(f"Overwriting existing settings file: {output_path}")

    settings = Settings(registry_dir=registry_dir, store_dir=store_dir, default_scope=scope)
    _show_settings_summary(settings, output_path)

    if dry_run:
        print_info("[DRY-RUN] No files were written.")
        return

    try:
        saved_path = save_settings(settings, output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Settings created: {saved_path}")

"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from pkgvault.registry.stored import PackageRecord

THEME = Theme(
    {
        "text": "#ffffff",
        "muted": "#b2bec3",
        "bold_header": "bold #69B9A1",
        "border": "#29526d",
        "success": "#03b971",
        "warning": "#f5b332",
        "error": "#f53263",
        "info": "#0ec1c8",
        "added": "#c1ff62",
        "removed": "#f53263",
        "changed": "#0e8ac8",
        "installed": "bold #69B9A1",
        "registered": "#226666",
    }
)


def _detect_color_system() -> str | None:
    """Use truecolor for interactive terminals, let Rich auto-detect otherwise."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances
console = Console(theme=THEME, color_system=_detect_color_system())
err_console = Console(theme=THEME, stderr=True, color_system=_detect_color_system())


def create_package_table(title: str = "Registered Packages") -> Table:
    """Create a pre-configured table for displaying registry records.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for package display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    # Status column: icon only
    table.add_column("", width=2, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("Type", style="muted")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Dependencies", style="text", overflow="ellipsis")
    return table


def format_package_row(record: PackageRecord) -> tuple[str, str, str, str, str]:
    """Format a registry record as a table row.

    Installed packages get a filled circle, registered-only packages an
    empty one.

    Returns:
        Tuple of (icon, id, type, size, dependencies) with Rich markup.
    """
    if record.installed:
        icon = "[installed]●[/]"
        name = f"[installed]{record.id}[/]"
    else:
        icon = "[registered]○[/]"
        name = f"[registered]{record.id}[/]"

    deps = escape(", ".join(str(dep) for dep in record.dependencies)) or "-"
    return (icon, name, f"[muted]{record.package_type.value}[/]", f"[info]{format_size(record.size)}[/]", deps)


def format_size(size: int) -> str:
    """Format a byte count for humans (e.g. ``1.5 KB``)."""
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")

"""History command for viewing past actions.

This module provides the `pkgvault history` command for viewing the
history of registry changes and plan executions.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from pkgvault.core.state import StateManager
from pkgvault.models.history import HistoryActionType, HistoryEntry
from pkgvault.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of registry and store changes.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    action: Annotated[
        HistoryActionType | None,
        typer.Option(
            "--action",
            "-a",
            help="Only show entries of this action type.",
            case_sensitive=False,
        ),
    ] = None,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of registry and store changes.

    Each entry shows the action type, affected packages, timestamp and
    whether every package succeeded.

    Examples:
        pkgvault history              # Show last 20 entries
        pkgvault history -n 50        # Show last 50 entries
        pkgvault history -a install   # Only install runs
        pkgvault history --since 2026-01-01
        pkgvault history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    state = StateManager()
    entries = state.get_history(limit=limit, action_type=action)

    if since:
        try:
            since_parsed = datetime.fromisoformat(since)
        except ValueError:
            typer.echo(f"Invalid date format: {since}. Use YYYY-MM-DD.", err=True)
            raise typer.Exit(code=1) from None
        # Without timezone info, compare by date
        if since_parsed.tzinfo is None:
            since_date = since_parsed.strftime("%Y-%m-%d")
            entries = [e for e in entries if e.timestamp[:10] >= since_date]
        else:
            entries = [e for e in entries if datetime.fromisoformat(e.timestamp) >= since_parsed]

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(entries)
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as Rich table.

    Args:
        entries: List of history entries to display.
    """
    table = Table(title="Package History")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Action", style="green")
    table.add_column("Packages", style="white")
    table.add_column("OK?", style="yellow")

    for entry in entries:
        pkg_count = len(entry.items)
        pkg_names = ", ".join(item.package_id for item in entry.items[:3])
        if pkg_count > 3:
            pkg_names += f" (+{pkg_count - 3} more)"

        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.action_type.value,
            escape(pkg_names),
            "[green]Yes[/]" if entry.success else "[red]No[/]",
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp as ``YYYY-MM-DD HH:MM``."""
    dt = datetime.fromisoformat(iso_timestamp)
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(entries: list[HistoryEntry]) -> None:
    """Print history entries as JSON for scripting."""
    output = [entry.to_dict() for entry in entries]
    console.print_json(json.dumps(output))

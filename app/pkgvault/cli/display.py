"""Shared Rich display functions for plans and results.

Provides the console progress listener and the table builders used by the
install and uninstall commands.
"""

from rich.markup import escape
from rich.table import Table

from pkgvault.core.listener import Mode
from pkgvault.models.task import PackageTask, TaskResult
from pkgvault.utils.formatting import console, print_error, print_success, print_warning

ACTION_STYLES = {"A": "added", "U": "changed", "D": "removed", "-": "muted"}


class ConsoleListener:
    """Progress listener printing store changes to the console."""

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def on_message(self, mode: Mode, action: str, path: str) -> None:
        if self.quiet or mode != Mode.PATHS:
            return
        style = ACTION_STYLES.get(action, "text")
        console.print(f"  [{style}]{escape(action)}[/{style}] {escape(path)}")

    def on_error(self, mode: Mode, path: str, error: Exception) -> None:
        print_error(f"{path}: {error}")


def create_plan_table(tasks: tuple[PackageTask, ...], dry_run: bool = False) -> Table:
    """Create a Rich table displaying planned tasks in execution order.

    Args:
        tasks: Ordered plan tasks.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for task display.
    """
    title = "Execution Plan (Dry Run)" if dry_run else "Execution Plan"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("#", justify="right", style="muted")
    table.add_column("Task", width=10, justify="center")
    table.add_column("Package", no_wrap=True)

    for index, task in enumerate(tasks, start=1):
        if task.is_install:
            task_text = "[added]+install[/added]"
        else:
            task_text = "[removed]-uninstall[/removed]"
        table.add_row(str(index), task_text, escape(str(task.id)))

    return table


def create_results_table(results: list[TaskResult]) -> Table:
    """Create a Rich table displaying task results.

    Args:
        results: Task results in execution order.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=6, justify="center")
    table.add_column("Task", width=10)
    table.add_column("Package", no_wrap=True)
    table.add_column("Message")

    for result in results:
        if result.success:
            status = "[success]OK[/success]"
            message = ""
        else:
            status = "[error]FAIL[/error]"
            message = f"[error]{escape(str(result.error))}[/error]"
        table.add_row(status, result.task.type.value, escape(str(result.task.id)), message)

    return table


def print_results_summary(results: list[TaskResult], leaving_scope: list[str] | None = None) -> None:
    """Print a summary line for executed tasks.

    Args:
        results: Task results in execution order.
        leaving_scope: Package ids that reported content outside the scope.
    """
    successful = sum(1 for result in results if result.success)
    failed = len(results) - successful

    for pid in leaving_scope or []:
        print_warning(f"{pid} declares content outside the install scope")

    if failed == 0:
        print_success(f"All {successful} task(s) completed successfully.")
    else:
        print_warning(f"{successful} task(s) succeeded, {failed} failed.")

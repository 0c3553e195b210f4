"""Unit tests for cli/display.py.

Tests for shared Rich display functions used by install and uninstall.
"""

import io

import pytest
from pkgvault.cli.display import (
    ConsoleListener,
    create_plan_table,
    create_results_table,
    print_results_summary,
)
from pkgvault.core.listener import Mode
from pkgvault.models.package import PackageId
from pkgvault.models.task import PackageTask, TaskResult, TaskState, TaskType
from pkgvault.utils.formatting import THEME
from rich.console import Console

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def install_task() -> PackageTask:
    """An install task."""
    return PackageTask(id=PackageId.of("my_packages", "test_c", "1.0"), type=TaskType.INSTALL)


@pytest.fixture
def uninstall_task() -> PackageTask:
    """An uninstall task."""
    return PackageTask(id=PackageId.of("my_packages", "test_b", "1.0"), type=TaskType.UNINSTALL)


def _render(renderable: object) -> str:
    buffer = io.StringIO()
    Console(file=buffer, theme=THEME, width=120).print(renderable)
    return buffer.getvalue()


class TestCreatePlanTable:
    """Tests for create_plan_table."""

    def test_rows_in_order(self, install_task: PackageTask, uninstall_task: PackageTask) -> None:
        output = _render(create_plan_table((install_task, uninstall_task)))

        assert "Execution Plan" in output
        assert "+install" in output
        assert "-uninstall" in output
        assert output.index("test_c") < output.index("test_b")

    def test_dry_run_title(self, install_task: PackageTask) -> None:
        assert "Dry Run" in _render(create_plan_table((install_task,), dry_run=True))


class TestCreateResultsTable:
    """Tests for create_results_table."""

    def test_success_and_failure(self, install_task: PackageTask, uninstall_task: PackageTask) -> None:
        results = [
            TaskResult(task=install_task, state=TaskState.SUCCESS),
            TaskResult(task=uninstall_task, state=TaskState.FAILED, error=OSError("[denied]")),
        ]

        output = _render(create_results_table(results))

        assert "OK" in output
        assert "FAIL" in output
        assert "[denied]" in output


class TestPrintResultsSummary:
    """Tests for print_results_summary."""

    def test_all_success(self, install_task: PackageTask, capsys: pytest.CaptureFixture[str]) -> None:
        print_results_summary([TaskResult(task=install_task, state=TaskState.SUCCESS)])
        assert "All 1 task(s) completed successfully" in capsys.readouterr().out

    def test_failures_and_scope(self, install_task: PackageTask, capsys: pytest.CaptureFixture[str]) -> None:
        print_results_summary(
            [TaskResult(task=install_task, state=TaskState.FAILED, error=OSError("x"))],
            leaving_scope=["g:mixed"],
        )
        err = capsys.readouterr().err
        assert "0 task(s) succeeded, 1 failed" in err
        assert "g:mixed declares content outside the install scope" in err


class TestConsoleListener:
    """Tests for ConsoleListener."""

    def test_prints_paths(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleListener().on_message(Mode.PATHS, "A", "/libs/a.txt")
        assert "A /libs/a.txt" in capsys.readouterr().out

    def test_quiet_and_text_suppressed(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleListener(quiet=True).on_message(Mode.PATHS, "A", "/libs/a.txt")
        ConsoleListener().on_message(Mode.TEXT, "", "hello")
        assert capsys.readouterr().out == ""

    def test_errors_always_printed(self, capsys: pytest.CaptureFixture[str]) -> None:
        ConsoleListener(quiet=True).on_error(Mode.PATHS, "/libs/a.txt", OSError("boom"))
        assert "/libs/a.txt: boom" in capsys.readouterr().err

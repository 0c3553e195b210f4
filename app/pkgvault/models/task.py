"""Task models for execution plans.

This module defines data structures for representing package tasks
(install, uninstall) and their execution results.
"""

from dataclasses import dataclass
from enum import Enum

from pkgvault.models.package import PackageId


class TaskType(str, Enum):
    """Type of package task.

    Attributes:
        INSTALL: Extract a registered package into the target store.
        UNINSTALL: Remove a package's content from the target store.
    """

    INSTALL = "install"
    UNINSTALL = "uninstall"


class TaskState(str, Enum):
    """Outcome of an executed task."""

    SUCCESS = "success"
    FAILED = "failed"


class PlanState(str, Enum):
    """Lifecycle state of an execution plan."""

    NOT_EXECUTED = "not_executed"
    EXECUTING = "executing"
    EXECUTED = "executed"


@dataclass(frozen=True, slots=True)
class PackageTask:
    """A single install or uninstall request for a registered package.

    Attributes:
        id: Target package.
        type: Task type.
    """

    id: PackageId
    type: TaskType

    @property
    def is_install(self) -> bool:
        """Check if this is an install task."""
        return self.type == TaskType.INSTALL

    @property
    def is_uninstall(self) -> bool:
        """Check if this is an uninstall task."""
        return self.type == TaskType.UNINSTALL

    def __str__(self) -> str:
        return f"{self.type.value} {self.id}"


@dataclass(frozen=True, slots=True)
class TaskResult:
    """Result of executing a package task.

    Attributes:
        task: The task that was executed.
        state: Whether the task succeeded or failed.
        error: The exception raised by the task, if it failed.
    """

    task: PackageTask
    state: TaskState
    error: Exception | None = None

    @property
    def success(self) -> bool:
        """Check if the task succeeded."""
        return self.state == TaskState.SUCCESS

    @property
    def failed(self) -> bool:
        """Check if the task failed."""
        return self.state == TaskState.FAILED

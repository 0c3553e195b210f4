"""Data models for pkgvault.

This module exports the core data structures used throughout the application.
"""

from pkgvault.models.filter import FilterRoot, WorkspaceFilter
from pkgvault.models.history import (
    HistoryActionType,
    HistoryEntry,
    HistoryItem,
    create_history_entry,
)
from pkgvault.models.package import (
    ANY_VERSION,
    EMPTY_VERSION,
    Dependency,
    MalformedVersionError,
    PackageId,
    PackageType,
    Version,
    VersionRange,
)
from pkgvault.models.report import DependencyReport
from pkgvault.models.task import PackageTask, PlanState, TaskResult, TaskState, TaskType

__all__ = [
    "ANY_VERSION",
    "EMPTY_VERSION",
    "Dependency",
    "DependencyReport",
    "FilterRoot",
    "HistoryActionType",
    "HistoryEntry",
    "HistoryItem",
    "MalformedVersionError",
    "PackageId",
    "PackageTask",
    "PackageType",
    "PlanState",
    "TaskResult",
    "TaskState",
    "TaskType",
    "Version",
    "VersionRange",
    "WorkspaceFilter",
    "create_history_entry",
]

"""Execution plan builder.

The builder collects install and uninstall tasks, validates them against
the registry and orders them so every package is installed after its
in-plan dependencies and uninstalled before them. Validation performs no
mutation: a plan that fails validation leaves registry and store untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pkgvault.core.errors import CyclicDependencyError, DependencyError, NoSuchPackageError, PackageError
from pkgvault.core.listener import LoggingListener
from pkgvault.models.package import Dependency, PackageId, PackageType
from pkgvault.models.task import PackageTask, TaskType
from pkgvault.plan.graph import find_cycle, topological_order
from pkgvault.plan.plan import ExecutionPlan
from pkgvault.scope.filters import DEFAULT_APPLICATION_ROOTS
from pkgvault.scope.handler import ScopeHandler

if TYPE_CHECKING:
    from pkgvault.core.listener import ProgressListener
    from pkgvault.registry.registry import PackageRegistry
    from pkgvault.registry.stored import PackageRecord
    from pkgvault.stores.base import TargetStore

logger = logging.getLogger(__name__)


class ExecutionPlanBuilder:
    """Collects package tasks and turns them into an ExecutionPlan.

    Example:
        >>> builder = registry.create_execution_plan()
        >>> builder.add_task(pid_a, TaskType.INSTALL).add_task(pid_b, TaskType.INSTALL)
        >>> builder.with_store(store)
        >>> plan = builder.execute()
        >>> plan.has_errors
        False
    """

    def __init__(self, registry: PackageRegistry) -> None:
        self._registry = registry
        self._tasks: list[PackageTask] = []
        self._store: TargetStore | None = None
        self._listener: ProgressListener | None = None
        self._scope_handler: ScopeHandler | None = None
        self._dry_run = False

    @property
    def tasks(self) -> list[PackageTask]:
        """Collected tasks in insertion order."""
        return list(self._tasks)

    def add_task(self, pid: PackageId, task_type: TaskType) -> ExecutionPlanBuilder:
        """Append a task. Exact duplicates are ignored."""
        task = PackageTask(id=pid, type=task_type)
        if task not in self._tasks:
            self._tasks.append(task)
        return self

    def set_scope(self, scope: PackageType, application_roots: Sequence[str] | None = None) -> ScopeHandler:
        """Restrict install tasks to a scope.

        Args:
            scope: Scope to install with (``MIXED`` = unrestricted).
            application_roots: Paths forming the application region
                (default: ``/apps`` and ``/libs``).

        Returns:
            The scope handler, for inspecting packages leaving scope
            after execution.
        """
        roots = application_roots if application_roots is not None else DEFAULT_APPLICATION_ROOTS
        self._scope_handler = ScopeHandler(scope, roots)
        return self._scope_handler

    def with_store(self, store: TargetStore) -> ExecutionPlanBuilder:
        self._store = store
        return self

    def with_listener(self, listener: ProgressListener) -> ExecutionPlanBuilder:
        self._listener = listener
        return self

    def with_dry_run(self, dry_run: bool = True) -> ExecutionPlanBuilder:
        """Only report what the plan would change."""
        self._dry_run = dry_run
        return self

    def validate(self) -> ExecutionPlan:
        """Validate and order the collected tasks.

        Returns:
            An unexecuted ExecutionPlan with tasks in execution order.

        Raises:
            PackageError: If no store is attached or a package is both
                installed and uninstalled.
            NoSuchPackageError: If a task targets an unregistered package.
            DependencyError: If install dependencies cannot be satisfied.
            CyclicDependencyError: If in-plan dependencies form a cycle.
        """
        if self._store is None:
            msg = "No target store attached to the execution plan"
            raise PackageError(msg)

        tasks = list(self._tasks)
        records = self._records_of(tasks)
        self._check_conflicts(tasks)
        self._check_dependencies(tasks, records)

        requires = self._build_graph(tasks, records)
        cycle = find_cycle(requires)
        if cycle is not None:
            raise CyclicDependencyError([tasks[index].id for index in cycle])

        ordered = tuple(tasks[index] for index in topological_order(requires))
        self._warn_about_remaining_users(ordered)
        logger.debug("Plan order: %s", ", ".join(str(task) for task in ordered))

        return ExecutionPlan(
            registry=self._registry,
            tasks=ordered,
            store=self._store,
            listener=self._listener if self._listener is not None else LoggingListener(),
            scope_handler=self._scope_handler,
            dry_run=self._dry_run,
        )

    def execute(self) -> ExecutionPlan:
        """Validate, order and execute the collected tasks.

        Returns:
            The executed plan.

        Raises:
            Same as :meth:`validate`; nothing is executed if validation fails.
        """
        return self.validate().execute()

    def _records_of(self, tasks: list[PackageTask]) -> list[PackageRecord]:
        records = []
        for task in tasks:
            record = self._registry.record(task.id)
            if record is None:
                raise NoSuchPackageError(task.id)
            records.append(record)
        return records

    @staticmethod
    def _check_conflicts(tasks: list[PackageTask]) -> None:
        installs = {task.id for task in tasks if task.is_install}
        for task in tasks:
            if task.is_uninstall and task.id in installs:
                msg = f"Package is both installed and uninstalled in one plan: {task.id}"
                raise PackageError(msg)

    def _check_dependencies(self, tasks: list[PackageTask], records: list[PackageRecord]) -> None:
        """Check that every install task's dependencies will be present.

        A dependency is satisfied by an in-plan install task or by an
        installed package that this plan does not uninstall.
        """
        planned = [task.id for task in tasks if task.is_install]
        leaving = {task.id for task in tasks if task.is_uninstall}
        installed = [
            record.id for record in self._registry.records() if record.installed and record.id not in leaving
        ]

        unresolved: dict[PackageId, list[Dependency]] = {}
        for task, record in zip(tasks, records, strict=True):
            if not task.is_install:
                continue
            report = self._registry.analyze_dependencies(task.id, only_installed=True)
            if report.is_satisfied and not leaving.intersection(report.resolved):
                continue
            for dependency in record.dependencies:
                if any(dependency.matches(pid) for pid in planned if pid != task.id):
                    continue
                if any(dependency.matches(pid) for pid in installed):
                    continue
                unresolved.setdefault(task.id, []).append(dependency)

        if unresolved:
            raise DependencyError(unresolved)

    @staticmethod
    def _build_graph(tasks: list[PackageTask], records: list[PackageRecord]) -> list[list[int]]:
        """Build predecessor lists over task indices.

        An install task follows the in-plan install tasks it depends on.
        An uninstall task precedes the in-plan uninstall tasks it depends on.
        """
        requires: list[list[int]] = [[] for _ in tasks]
        for i, (task, record) in enumerate(zip(tasks, records, strict=True)):
            for j, other in enumerate(tasks):
                if i == j or task.type != other.type:
                    continue
                if not any(dependency.matches(other.id) for dependency in record.dependencies):
                    continue
                if task.type == TaskType.INSTALL:
                    requires[i].append(j)
                else:
                    requires[j].append(i)
        return requires

    def _warn_about_remaining_users(self, tasks: tuple[PackageTask, ...]) -> None:
        leaving = {task.id for task in tasks if task.is_uninstall}
        for task in tasks:
            if not task.is_uninstall:
                continue
            users = [pid for pid in self._registry.usage(task.id, only_installed=True) if pid not in leaving]
            if users:
                logger.warning(
                    "Uninstalling %s which is still used by %s",
                    task.id,
                    ", ".join(str(pid) for pid in users),
                )

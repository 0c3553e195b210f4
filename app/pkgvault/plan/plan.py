"""Execution plans.

An ExecutionPlan is the validated, ordered result of an
ExecutionPlanBuilder. Executing it runs each task against the target store
through the registry, recording a result per task.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pkgvault.core.errors import NoSuchPackageError, PackageError, PlanStateError, StoreError
from pkgvault.models.task import PackageTask, PlanState, TaskResult, TaskState
from pkgvault.stores.base import InstallOptions

if TYPE_CHECKING:
    from pkgvault.core.listener import ProgressListener
    from pkgvault.registry.registry import PackageRegistry
    from pkgvault.scope.handler import ScopeHandler
    from pkgvault.stores.base import TargetStore

logger = logging.getLogger(__name__)


class ExecutionPlan:
    """Ordered, validated batch of package tasks.

    Attributes:
        tasks: Tasks in execution order.
        scope_handler: Scope handler applied to install tasks, if any.
        dry_run: Whether tasks only report what they would change.
    """

    def __init__(
        self,
        registry: PackageRegistry,
        tasks: tuple[PackageTask, ...],
        store: TargetStore,
        listener: ProgressListener | None = None,
        scope_handler: ScopeHandler | None = None,
        dry_run: bool = False,
    ) -> None:
        self.tasks = tasks
        self.scope_handler = scope_handler
        self.dry_run = dry_run
        self._registry = registry
        self._store = store
        self._listener = listener
        self._state = PlanState.NOT_EXECUTED
        self._results: list[TaskResult] = []

    @property
    def state(self) -> PlanState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_executed(self) -> bool:
        return self._state == PlanState.EXECUTED

    @property
    def has_errors(self) -> bool:
        """Check if any executed task failed."""
        return any(result.failed for result in self._results)

    @property
    def results(self) -> list[TaskResult]:
        """Task results in execution order."""
        return list(self._results)

    @property
    def failed_tasks(self) -> list[PackageTask]:
        return [result.task for result in self._results if result.failed]

    def execute(self) -> ExecutionPlan:
        """Run every task in order.

        Task failures are recorded on that task and the remaining tasks
        still run.

        Returns:
            This plan, for chaining.

        Raises:
            PlanStateError: If the plan was already executed.
        """
        if self._state != PlanState.NOT_EXECUTED:
            msg = f"Execution plan is already {self._state.value}"
            raise PlanStateError(msg)

        self._state = PlanState.EXECUTING
        logger.info("Executing plan with %d task(s)", len(self.tasks))
        for task in self.tasks:
            self._results.append(self._run(task))
        self._state = PlanState.EXECUTED

        if self.has_errors:
            logger.warning("Plan finished with %d failed task(s)", len(self.failed_tasks))
        else:
            logger.info("Plan finished successfully")
        return self

    def _run(self, task: PackageTask) -> TaskResult:
        package = self._registry.open(task.id)
        try:
            if package is None:
                raise NoSuchPackageError(task.id)

            options = InstallOptions(listener=self._listener, dry_run=self.dry_run)
            if task.is_install:
                if self.scope_handler is not None:
                    options = self.scope_handler.decorate_opts(options, package)
                self._registry.install_package(self._store, package, options)
            else:
                self._registry.uninstall_package(self._store, package, options)
        except (PackageError, StoreError, OSError) as e:
            logger.error("Task failed: %s: %s", task, e)
            return TaskResult(task=task, state=TaskState.FAILED, error=e)
        finally:
            if package is not None:
                package.close()

        logger.debug("Task succeeded: %s", task)
        return TaskResult(task=task, state=TaskState.SUCCESS)

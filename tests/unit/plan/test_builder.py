"""Unit tests for ExecutionPlanBuilder and ExecutionPlan."""

import logging

import pytest
from pkgvault.archive.reader import build_archive
from pkgvault.core.errors import (
    CyclicDependencyError,
    DependencyError,
    NoSuchPackageError,
    PackageError,
    PlanStateError,
)
from pkgvault.core.listener import RecordingListener
from pkgvault.models.package import Dependency, PackageId, PackageType
from pkgvault.models.task import PlanState, TaskType
from pkgvault.registry.registry import PackageRegistry
from pkgvault.stores.memory import MemoryStore


class PathFailingStore(MemoryStore):
    """MemoryStore failing writes below one path prefix."""

    def __init__(self, prefix: str) -> None:
        super().__init__()
        self.prefix = prefix

    def write(self, path: str, data: bytes) -> None:
        if path.startswith(self.prefix):
            raise OSError("read-only")
        super().write(path, data)


@pytest.fixture
def full_registry(
    registry: PackageRegistry, archive_a: bytes, archive_b: bytes, archive_c: bytes
) -> PackageRegistry:
    """Registry holding A, B and C."""
    registry.register(archive_a)
    registry.register(archive_b)
    registry.register(archive_c)
    return registry


def _installed(registry: PackageRegistry, pid: PackageId) -> bool:
    record = registry.record(pid)
    return record is not None and record.installed


class TestValidation:
    """Tests for plan validation."""

    def test_missing_dependencies_fail(
        self, registry: PackageRegistry, store: MemoryStore, archive_a: bytes, id_a: PackageId, id_b: PackageId
    ) -> None:
        """Installing A without its dependencies fails and changes nothing."""
        registry.register(archive_a)
        builder = registry.create_execution_plan().with_store(store).add_task(id_a, TaskType.INSTALL)

        with pytest.raises(DependencyError) as exc_info:
            builder.execute()

        assert exc_info.value.unresolved == {
            id_a: (
                Dependency.parse("my_packages:test_b"),
                Dependency.parse("my_packages:test_c:[1.0,2.0)"),
            )
        }
        assert not _installed(registry, id_a)
        assert not _installed(registry, id_b)
        assert store.paths() == []

    def test_missing_dependency_blocks_whole_plan(
        self,
        registry: PackageRegistry,
        store: MemoryStore,
        archive_a: bytes,
        archive_b: bytes,
        id_a: PackageId,
        id_b: PackageId,
    ) -> None:
        """An unregistered C keeps both A and B uninstalled."""
        registry.register(archive_a)
        registry.register(archive_b)
        builder = (
            registry.create_execution_plan()
            .with_store(store)
            .add_task(id_a, TaskType.INSTALL)
            .add_task(id_b, TaskType.INSTALL)
        )

        with pytest.raises(DependencyError) as exc_info:
            builder.execute()

        assert exc_info.value.unresolved == {
            id_a: (Dependency.parse("my_packages:test_c:[1.0,2.0)"),),
            id_b: (Dependency.parse("my_packages:test_c"),),
        }
        assert not _installed(registry, id_a)
        assert not _installed(registry, id_b)
        assert store.paths() == []

    def test_no_store(self, full_registry: PackageRegistry, id_c: PackageId) -> None:
        builder = full_registry.create_execution_plan().add_task(id_c, TaskType.INSTALL)
        with pytest.raises(PackageError, match="No target store"):
            builder.validate()

    def test_unknown_package(self, registry: PackageRegistry, store: MemoryStore, id_a: PackageId) -> None:
        builder = registry.create_execution_plan().with_store(store).add_task(id_a, TaskType.INSTALL)
        with pytest.raises(NoSuchPackageError):
            builder.validate()

    def test_install_and_uninstall_conflict(
        self, full_registry: PackageRegistry, store: MemoryStore, id_c: PackageId
    ) -> None:
        builder = (
            full_registry.create_execution_plan()
            .with_store(store)
            .add_task(id_c, TaskType.INSTALL)
            .add_task(id_c, TaskType.UNINSTALL)
        )
        with pytest.raises(PackageError, match="both installed and uninstalled"):
            builder.validate()

    def test_duplicate_tasks_ignored(self, full_registry: PackageRegistry, id_c: PackageId) -> None:
        builder = full_registry.create_execution_plan()
        builder.add_task(id_c, TaskType.INSTALL).add_task(id_c, TaskType.INSTALL)
        assert len(builder.tasks) == 1

    def test_cycle_detected(self, registry: PackageRegistry, store: MemoryStore) -> None:
        """Mutually dependent packages cannot be planned."""
        registry.register(build_archive("g:x:1.0", dependencies=["g:y"]))
        registry.register(build_archive("g:y:1.0", dependencies=["g:x"]))
        x = PackageId.parse("g:x:1.0")
        y = PackageId.parse("g:y:1.0")

        builder = (
            registry.create_execution_plan()
            .with_store(store)
            .add_task(x, TaskType.INSTALL)
            .add_task(y, TaskType.INSTALL)
        )

        with pytest.raises(CyclicDependencyError) as exc_info:
            builder.validate()

        assert exc_info.value.cycle == (x, y, x)
        assert not _installed(registry, x)

    def test_installed_dependency_satisfies(
        self, full_registry: PackageRegistry, store: MemoryStore, id_b: PackageId, id_c: PackageId
    ) -> None:
        """A dependency installed earlier satisfies a later plan."""
        full_registry.create_execution_plan().with_store(store).add_task(id_c, TaskType.INSTALL).execute()

        plan = full_registry.create_execution_plan().with_store(store).add_task(id_b, TaskType.INSTALL).execute()

        assert not plan.has_errors
        assert _installed(full_registry, id_b)

    def test_dependency_being_uninstalled_fails(
        self, full_registry: PackageRegistry, store: MemoryStore, id_b: PackageId, id_c: PackageId
    ) -> None:
        """An installed dependency removed by the same plan does not count."""
        full_registry.create_execution_plan().with_store(store).add_task(id_c, TaskType.INSTALL).execute()

        builder = (
            full_registry.create_execution_plan()
            .with_store(store)
            .add_task(id_b, TaskType.INSTALL)
            .add_task(id_c, TaskType.UNINSTALL)
        )

        with pytest.raises(DependencyError):
            builder.validate()


class TestOrdering:
    """Tests for task ordering."""

    def test_install_order_follows_dependencies(
        self,
        full_registry: PackageRegistry,
        store: MemoryStore,
        id_a: PackageId,
        id_b: PackageId,
        id_c: PackageId,
    ) -> None:
        """Dependencies are installed first regardless of insertion order."""
        plan = (
            full_registry.create_execution_plan()
            .with_store(store)
            .add_task(id_a, TaskType.INSTALL)
            .add_task(id_b, TaskType.INSTALL)
            .add_task(id_c, TaskType.INSTALL)
            .execute()
        )

        assert [task.id for task in plan.tasks] == [id_c, id_b, id_a]
        assert plan.is_executed
        assert not plan.has_errors
        assert all(_installed(full_registry, pid) for pid in (id_a, id_b, id_c))
        assert store.paths() == ["/libs/test_a/a.txt", "/libs/test_b/b.txt", "/libs/test_c/c.txt"]

    def test_uninstall_order_reversed(
        self,
        full_registry: PackageRegistry,
        store: MemoryStore,
        id_a: PackageId,
        id_b: PackageId,
        id_c: PackageId,
    ) -> None:
        """Dependents are uninstalled before their dependencies."""
        builder = full_registry.create_execution_plan().with_store(store)
        for pid in (id_a, id_b, id_c):
            builder.add_task(pid, TaskType.INSTALL)
        builder.execute()

        plan = (
            full_registry.create_execution_plan()
            .with_store(store)
            .add_task(id_c, TaskType.UNINSTALL)
            .add_task(id_b, TaskType.UNINSTALL)
            .add_task(id_a, TaskType.UNINSTALL)
            .execute()
        )

        assert [task.id for task in plan.tasks] == [id_a, id_b, id_c]
        assert store.paths() == []
        assert not any(_installed(full_registry, pid) for pid in (id_a, id_b, id_c))

    def test_independent_tasks_keep_insertion_order(self, registry: PackageRegistry, store: MemoryStore) -> None:
        ids = [PackageId.parse(f"g:p{i}:1.0") for i in (3, 1, 2)]
        for pid in ids:
            registry.register(build_archive(pid))
        builder = registry.create_execution_plan().with_store(store)
        for pid in ids:
            builder.add_task(pid, TaskType.INSTALL)

        assert [task.id for task in builder.validate().tasks] == ids

    def test_uninstall_warns_about_users(
        self,
        full_registry: PackageRegistry,
        store: MemoryStore,
        id_b: PackageId,
        id_c: PackageId,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Uninstalling a package still used by an installed one logs a warning."""
        installer = full_registry.create_execution_plan().with_store(store)
        installer.add_task(id_c, TaskType.INSTALL).add_task(id_b, TaskType.INSTALL)
        installer.execute()

        remover = full_registry.create_execution_plan().with_store(store)
        remover.add_task(id_c, TaskType.UNINSTALL)
        with caplog.at_level(logging.WARNING):
            remover.validate()

        assert "still used by my_packages:test_b:1.0" in caplog.text


class TestExecution:
    """Tests for plan execution."""

    def test_failure_does_not_abort(self, registry: PackageRegistry, archive_c: bytes, id_c: PackageId) -> None:
        """A failing task is recorded and later tasks still run."""
        registry.register(archive_c)
        other = PackageId.parse("g:other:1.0")
        registry.register(build_archive(other, files={"/apps/o.txt": "o"}, filter_roots=["/apps"]))
        store = PathFailingStore("/libs/test_c")
        listener = RecordingListener()

        plan = (
            registry.create_execution_plan()
            .with_store(store)
            .with_listener(listener)
            .add_task(id_c, TaskType.INSTALL)
            .add_task(other, TaskType.INSTALL)
            .execute()
        )

        assert plan.has_errors
        assert plan.failed_tasks == [plan.tasks[0]]
        assert plan.results[0].error is not None
        assert plan.results[1].success
        assert not _installed(registry, id_c)
        assert _installed(registry, other)
        assert listener.errors[0][1] == "/libs/test_c/c.txt"

    def test_execute_twice_fails(self, full_registry: PackageRegistry, store: MemoryStore, id_c: PackageId) -> None:
        plan = full_registry.create_execution_plan().with_store(store).add_task(id_c, TaskType.INSTALL).validate()
        assert plan.state == PlanState.NOT_EXECUTED

        plan.execute()

        assert plan.state == PlanState.EXECUTED
        with pytest.raises(PlanStateError):
            plan.execute()

    def test_package_removed_before_execution(
        self, full_registry: PackageRegistry, store: MemoryStore, id_c: PackageId
    ) -> None:
        """A package removed after validation fails its task."""
        plan = full_registry.create_execution_plan().with_store(store).add_task(id_c, TaskType.INSTALL).validate()
        full_registry.remove(id_c)

        plan.execute()

        assert isinstance(plan.results[0].error, NoSuchPackageError)

    def test_dry_run(self, full_registry: PackageRegistry, store: MemoryStore, id_c: PackageId) -> None:
        """Dry runs report paths but leave store and registry unchanged."""
        listener = RecordingListener()

        plan = (
            full_registry.create_execution_plan()
            .with_store(store)
            .with_listener(listener)
            .with_dry_run()
            .add_task(id_c, TaskType.INSTALL)
            .execute()
        )

        assert plan.dry_run
        assert listener.paths("A") == ["/libs/test_c/c.txt"]
        assert store.paths() == []
        assert not _installed(full_registry, id_c)

    def test_scope_applied_to_installs(
        self, registry: PackageRegistry, store: MemoryStore, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        """The builder's scope handler narrows install tasks."""
        registry.register(archive_mixed)
        builder = registry.create_execution_plan().with_store(store).add_task(id_mixed, TaskType.INSTALL)
        handler = builder.set_scope(PackageType.APPLICATION)

        builder.execute()

        assert store.paths() == ["/libs/foo/a.txt"]
        assert handler.packages_leaving_scope() == [id_mixed]

    def test_scope_with_custom_roots(
        self, registry: PackageRegistry, store: MemoryStore, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        registry.register(archive_mixed)
        builder = registry.create_execution_plan().with_store(store).add_task(id_mixed, TaskType.INSTALL)
        builder.set_scope(PackageType.APPLICATION, application_roots=["/tmp"])

        builder.execute()

        assert store.paths() == ["/tmp/foo/b.txt"]

"""Unit tests for ScopeHandler and ScopeTracker."""

from pkgvault.core.listener import Mode, RecordingListener
from pkgvault.models.filter import WorkspaceFilter
from pkgvault.models.package import PackageId, PackageType
from pkgvault.registry.registry import PackageRegistry
from pkgvault.scope.filters import in_application_region
from pkgvault.scope.handler import ScopeHandler, ScopeTracker
from pkgvault.stores.base import InstallOptions
from pkgvault.stores.memory import MemoryStore


def _install(
    registry: PackageRegistry,
    store: MemoryStore,
    handler: ScopeHandler,
    pid: PackageId,
) -> None:
    pkg = registry.open(pid)
    assert pkg is not None
    options = handler.decorate_opts(InstallOptions(), pkg)
    registry.install_package(store, pkg, options)


class TestScopeTracker:
    """Tests for ScopeTracker."""

    def test_counts_misses_and_forwards(self) -> None:
        """Path messages outside the region count as misses; all are forwarded."""
        delegate = RecordingListener()
        tracker = ScopeTracker(
            PackageId.of("g", "a"), delegate, lambda path: in_application_region(path, ["/libs"])
        )

        tracker.on_message(Mode.PATHS, "A", "/libs/a")
        tracker.on_message(Mode.PATHS, "-", "/tmp/b")
        tracker.on_message(Mode.TEXT, "", "/tmp/c")
        tracker.on_error(Mode.PATHS, "/tmp/d", OSError("x"))

        assert tracker.num_misses == 1
        assert len(delegate.messages) == 3
        assert len(delegate.errors) == 1

    def test_without_delegate(self) -> None:
        tracker = ScopeTracker(PackageId.of("g", "a"), None, lambda path: False)
        tracker.on_message(Mode.PATHS, "A", "/x")
        assert tracker.num_misses == 1


class TestDecorateOpts:
    """Tests for ScopeHandler.decorate_opts."""

    def test_mixed_scope_is_identity(
        self, registry: PackageRegistry, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        """Non-restricting scopes return the options unchanged."""
        registry.register(archive_mixed)
        options = InstallOptions()

        for scope in (PackageType.MIXED, PackageType.CONTAINER):
            handler = ScopeHandler(scope)
            assert not handler.is_restricting
            assert handler.decorate_opts(options, registry.open(id_mixed)) is options  # type: ignore[arg-type]

    def test_options_not_mutated(
        self, registry: PackageRegistry, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        """Scoping derives new options and keeps the original intact."""
        registry.register(archive_mixed)
        listener = RecordingListener()
        options = InstallOptions(listener=listener)

        scoped = ScopeHandler(PackageType.APPLICATION).decorate_opts(options, registry.open(id_mixed))  # type: ignore[arg-type]

        assert options.filter is None
        assert options.listener is listener
        assert scoped.filter == WorkspaceFilter.of("/libs/foo")
        assert isinstance(scoped.listener, ScopeTracker)
        assert scoped.listener.delegate is listener

    def test_carried_filter_is_narrowed(
        self, registry: PackageRegistry, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        registry.register(archive_mixed)
        options = InstallOptions(filter=WorkspaceFilter.of("/tmp/foo"))

        scoped = ScopeHandler(PackageType.APPLICATION).decorate_opts(options, registry.open(id_mixed))  # type: ignore[arg-type]

        assert scoped.filter is not None
        assert scoped.filter.is_empty

    def test_tracker_reused_per_package(
        self, registry: PackageRegistry, archive_mixed: bytes, id_mixed: PackageId
    ) -> None:
        registry.register(archive_mixed)
        handler = ScopeHandler(PackageType.CONTENT)

        first = handler.decorate_opts(InstallOptions(), registry.open(id_mixed))  # type: ignore[arg-type]
        second = handler.decorate_opts(InstallOptions(), registry.open(id_mixed))  # type: ignore[arg-type]

        assert first.listener is second.listener
        assert len(handler.trackers()) == 1


class TestScopedInstall:
    """End-to-end installation of the mixed package under each scope."""

    def test_application_scope(
        self,
        registry: PackageRegistry,
        store: MemoryStore,
        archive_mixed: bytes,
        id_mixed: PackageId,
    ) -> None:
        """Application scope installs /libs only and flags the package."""
        registry.register(archive_mixed)
        handler = ScopeHandler(PackageType.APPLICATION)

        _install(registry, store, handler, id_mixed)

        assert store.exists("/libs/foo/a.txt")
        assert not store.exists("/tmp/foo/b.txt")
        assert handler.packages_leaving_scope() == [id_mixed]

    def test_content_scope(
        self,
        registry: PackageRegistry,
        store: MemoryStore,
        archive_mixed: bytes,
        id_mixed: PackageId,
    ) -> None:
        """Content scope installs /tmp only and flags the package."""
        registry.register(archive_mixed)
        handler = ScopeHandler(PackageType.CONTENT)

        _install(registry, store, handler, id_mixed)

        assert store.paths() == ["/tmp/foo/b.txt"]
        assert handler.packages_leaving_scope() == [id_mixed]

    def test_mixed_scope(
        self,
        registry: PackageRegistry,
        store: MemoryStore,
        archive_mixed: bytes,
        id_mixed: PackageId,
    ) -> None:
        """Mixed scope installs everything and tracks nothing."""
        registry.register(archive_mixed)
        handler = ScopeHandler()

        _install(registry, store, handler, id_mixed)

        assert store.paths() == ["/libs/foo/a.txt", "/tmp/foo/b.txt"]
        assert handler.packages_leaving_scope() == []

    def test_in_scope_package_not_flagged(
        self,
        registry: PackageRegistry,
        store: MemoryStore,
        archive_c: bytes,
        id_c: PackageId,
    ) -> None:
        registry.register(archive_c)
        handler = ScopeHandler(PackageType.APPLICATION)

        _install(registry, store, handler, id_c)

        assert handler.packages_leaving_scope() == []
        assert [t.package_id for t in handler.trackers()] == [id_c]

    def test_set_scope(self) -> None:
        handler = ScopeHandler()
        handler.set_scope(PackageType.APPLICATION)
        assert handler.scope == PackageType.APPLICATION
        assert handler.is_restricting

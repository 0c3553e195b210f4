"""Scope handler and tracker.

The scope handler narrows the filter a package installs with when the
operator declares an application or content scope. Each package installed
under such a scope gets a ScopeTracker that counts reported paths outside
the scope region, to surface packages declaring more than they are granted.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from pkgvault.core.listener import Mode
from pkgvault.models.package import PackageType
from pkgvault.scope.filters import (
    DEFAULT_APPLICATION_ROOTS,
    create_application_scoped,
    create_content_scoped,
    in_application_region,
    in_content_region,
)

if TYPE_CHECKING:
    from pkgvault.core.listener import ProgressListener
    from pkgvault.models.package import PackageId
    from pkgvault.registry.stored import StoredPackage
    from pkgvault.stores.base import InstallOptions

logger = logging.getLogger(__name__)

RESTRICTING_SCOPES = frozenset({PackageType.APPLICATION, PackageType.CONTENT})


class ScopeTracker:
    """Listener wrapper counting reported paths outside the scope region.

    Every event is forwarded to the wrapped listener unchanged.

    Attributes:
        package_id: Package being tracked.
        delegate: Wrapped listener (may be None).
        num_misses: Number of reported paths outside the region.
    """

    def __init__(
        self,
        package_id: PackageId,
        delegate: ProgressListener | None,
        in_region: Callable[[str], bool],
    ) -> None:
        self.package_id = package_id
        self.delegate = delegate
        self.num_misses = 0
        self._in_region = in_region

    def on_message(self, mode: Mode, action: str, path: str) -> None:
        if mode == Mode.PATHS and not self._in_region(path):
            self.num_misses += 1
            logger.debug("%s: %s is outside the install scope", self.package_id, path)
        if self.delegate is not None:
            self.delegate.on_message(mode, action, path)

    def on_error(self, mode: Mode, path: str, error: Exception) -> None:
        if self.delegate is not None:
            self.delegate.on_error(mode, path, error)


class ScopeHandler:
    """Narrows install options to a declared scope and tracks misses.

    Scope ``MIXED`` (the default) and ``CONTAINER`` leave options unchanged.

    Example:
        >>> handler = ScopeHandler(PackageType.APPLICATION)
        >>> scoped = handler.decorate_opts(options, package)
        >>> handler.packages_leaving_scope()
        [PackageId(...)]
    """

    def __init__(
        self,
        scope: PackageType = PackageType.MIXED,
        application_roots: Sequence[str] = DEFAULT_APPLICATION_ROOTS,
    ) -> None:
        """Initialize the handler.

        Args:
            scope: Active scope.
            application_roots: Paths forming the application region.
        """
        self._scope = scope
        self.application_roots = tuple(application_roots)
        self._trackers: dict[PackageId, ScopeTracker] = {}

    @property
    def scope(self) -> PackageType:
        """The active scope."""
        return self._scope

    def set_scope(self, scope: PackageType) -> None:
        """Change the active scope."""
        self._scope = scope

    @property
    def is_restricting(self) -> bool:
        """Check if the active scope narrows install filters."""
        return self._scope in RESTRICTING_SCOPES

    def decorate_opts(self, options: InstallOptions, package: StoredPackage) -> InstallOptions:
        """Derive scope-restricted install options for a package.

        The package's own filter (or the filter already carried by
        ``options``) is intersected with the scope region and the listener
        is wrapped with the package's tracker.

        Args:
            options: Options the task would install with.
            package: Package about to be installed.

        Returns:
            New options; ``options`` itself is never modified.
        """
        if not self.is_restricting:
            return options

        base_filter = options.filter if options.filter is not None else package.filter
        if self._scope == PackageType.APPLICATION:
            narrowed = create_application_scoped(base_filter, self.application_roots)
        else:
            narrowed = create_content_scoped(base_filter, self.application_roots)

        tracker = self._trackers.get(package.id)
        if tracker is None:
            tracker = ScopeTracker(package.id, options.listener, self._region_predicate())
            self._trackers[package.id] = tracker
        else:
            tracker.delegate = options.listener

        logger.debug(
            "Scoped %s to %s: %s",
            package.id,
            self._scope.value,
            ", ".join(root.root for root in narrowed.roots) or "<nothing>",
        )
        return dataclasses.replace(options, filter=narrowed, listener=tracker)

    def trackers(self) -> list[ScopeTracker]:
        """Return all trackers in creation order."""
        return list(self._trackers.values())

    def packages_leaving_scope(self) -> list[PackageId]:
        """Return tracked packages with at least one miss, in creation order."""
        return [tracker.package_id for tracker in self._trackers.values() if tracker.num_misses > 0]

    def _region_predicate(self) -> Callable[[str], bool]:
        roots = self.application_roots
        if self._scope == PackageType.APPLICATION:
            return lambda path: in_application_region(path, roots)
        return lambda path: in_content_region(path, roots)

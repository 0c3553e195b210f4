"""Scope-restricted workspace filters.

The application region is the set of paths at or below one of the
application roots; the content region is everything else. The functions
here intersect a package's own filter with one of the two regions and never
widen it.
"""

from __future__ import annotations

from collections.abc import Sequence

from pkgvault.models.filter import FilterRoot, WorkspaceFilter, is_ancestor_or_self, normalize_path

DEFAULT_APPLICATION_ROOTS = ("/apps", "/libs")


def in_application_region(path: str, roots: Sequence[str]) -> bool:
    """Check whether a path lies at or below an application root."""
    normalized = normalize_path(path)
    return any(is_ancestor_or_self(normalize_path(root), normalized) for root in roots)


def in_content_region(path: str, roots: Sequence[str]) -> bool:
    """Check whether a path lies outside every application root."""
    return not in_application_region(path, roots)


def create_application_scoped(workspace_filter: WorkspaceFilter, roots: Sequence[str]) -> WorkspaceFilter:
    """Intersect a filter with the application region.

    A filter root inside an application root is kept as is. A filter root
    above an application root is narrowed to that application root, keeping
    the excludes that fall below it. Filter roots disjoint from every
    application root are dropped.

    Args:
        workspace_filter: The package's declared filter.
        roots: Application root paths.

    Returns:
        New filter covering only application-region paths.
    """
    app_roots = [normalize_path(root) for root in roots]
    result: list[FilterRoot] = []

    for filter_root in workspace_filter.roots:
        if any(is_ancestor_or_self(app_root, filter_root.root) for app_root in app_roots):
            _append_unique(result, filter_root)
            continue

        for app_root in app_roots:
            if not is_ancestor_or_self(filter_root.root, app_root):
                continue
            if any(is_ancestor_or_self(exclude, app_root) for exclude in filter_root.excludes):
                # whole application root is excluded
                continue
            excludes = tuple(e for e in filter_root.excludes if is_ancestor_or_self(app_root, e))
            _append_unique(result, FilterRoot(root=app_root, excludes=excludes))

    return WorkspaceFilter.from_roots(result)


def create_content_scoped(workspace_filter: WorkspaceFilter, roots: Sequence[str]) -> WorkspaceFilter:
    """Intersect a filter with the content region.

    Filter roots inside an application root are dropped. A filter root
    above an application root gains it as an additional exclude.

    Args:
        workspace_filter: The package's declared filter.
        roots: Application root paths.

    Returns:
        New filter covering only content-region paths.
    """
    app_roots = [normalize_path(root) for root in roots]
    result: list[FilterRoot] = []

    for filter_root in workspace_filter.roots:
        if any(is_ancestor_or_self(app_root, filter_root.root) for app_root in app_roots):
            continue
        excludes = list(filter_root.excludes)
        for app_root in app_roots:
            if is_ancestor_or_self(filter_root.root, app_root) and app_root not in excludes:
                excludes.append(app_root)
        _append_unique(result, FilterRoot(root=filter_root.root, excludes=tuple(excludes)))

    return WorkspaceFilter.from_roots(result)


def _append_unique(roots: list[FilterRoot], root: FilterRoot) -> None:
    if root not in roots:
        roots.append(root)

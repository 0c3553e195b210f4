"""Install scope narrowing and tracking."""

from pkgvault.scope.filters import create_application_scoped, create_content_scoped
from pkgvault.scope.handler import ScopeHandler, ScopeTracker

__all__ = ["ScopeHandler", "ScopeTracker", "create_application_scoped", "create_content_scoped"]

"""Package resolution and workspace membership."""

from scan.packages import ResolvedPackage, default_search_paths, resolve_package
from scan.workspace import WorkspaceFilter

__all__ = ["ResolvedPackage", "WorkspaceFilter", "default_search_paths", "resolve_package"]

"""Workspace membership checks for reference locations."""

from __future__ import annotations

from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def _iter_gitignore_files(root: Path) -> list[Path]:
    """Return sorted list of .gitignore files under root (including root)."""
    gitignore_paths = [root / ".gitignore"]
    gitignore_paths.extend(root.rglob(".gitignore"))
    unique_paths = {
        path for path in gitignore_paths if path.is_file() and not path.is_symlink()
    }
    return sorted(unique_paths, key=lambda p: p.relative_to(root).as_posix())


def _build_gitignore_matcher(
    root: Path,
    *,
    nested_gitignore: bool,
) -> Callable[[str], bool] | None:
    if not nested_gitignore:
        gitignore_path = root / ".gitignore"
        if gitignore_path.is_file():
            return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
        return None

    gitignore_paths = _iter_gitignore_files(root)
    if not gitignore_paths:
        return None

    matchers = [parse_gitignore(path) for path in gitignore_paths]

    def matches(path_str: str) -> bool:
        for matcher in matchers:
            try:
                if matcher(path_str):
                    return True
            except ValueError:
                continue
        return False

    return matches


class WorkspaceFilter:
    """Decides whether a file belongs to the workspace being searched.

    A file belongs when it lies under the workspace root, does not match any
    exclude glob (relative POSIX path), and, if enabled, is not ignored by
    ``.gitignore``. Files under an in-tree virtualenv or vendor directory can
    be excluded either way.
    """

    def __init__(
        self,
        root: Path,
        *,
        exclude_patterns: list[str] | None = None,
        respect_gitignore: bool = True,
        nested_gitignore: bool = False,
    ) -> None:
        self.root = root.resolve()
        self._exclude_patterns = list(exclude_patterns or [])
        self._gitignore_matches = (
            _build_gitignore_matcher(self.root, nested_gitignore=nested_gitignore)
            if respect_gitignore
            else None
        )

    def contains(self, path: str | Path) -> bool:
        try:
            resolved = Path(path).resolve()
        except OSError:
            return False

        if not _is_within_root(resolved, self.root):
            return False

        rel_path_str = resolved.relative_to(self.root).as_posix()
        if any(fnmatch(rel_path_str, pat) for pat in self._exclude_patterns):
            return False

        if self._gitignore_matches is not None and self._gitignore_matches(
            str(resolved)
        ):
            return False

        return True


__all__ = ["WorkspaceFilter"]

"""Package identifier resolution without importing."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from importlib.machinery import PathFinder
from pathlib import Path
from typing import TYPE_CHECKING

from errors import ResolutionError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from importlib.machinery import ModuleSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPackage:
    name: str
    directory: Path
    files: tuple[Path, ...]


def _is_test_file(path: Path) -> bool:
    name = path.name
    return name == "conftest.py" or name.startswith("test_") or name.endswith("_test.py")


def _find_spec(identifier: str, search_paths: Sequence[str]) -> ModuleSpec | None:
    """Locate a dotted module one component at a time via ``PathFinder``."""
    parts = identifier.split(".")
    spec: ModuleSpec | None = None
    locations: list[str] = list(search_paths)

    for index in range(len(parts)):
        fullname = ".".join(parts[: index + 1])
        spec = PathFinder.find_spec(fullname, locations)
        if spec is None:
            return None
        if index < len(parts) - 1:
            if spec.submodule_search_locations is None:
                return None
            locations = list(spec.submodule_search_locations)
    return spec


def default_search_paths(root: Path, extra: Sequence[str] = (".", "src")) -> list[str]:
    """Build the module search path: workspace entries first, then ``sys.path``."""
    paths = [str((root / entry).resolve()) for entry in extra]
    paths.extend(entry for entry in sys.path if entry)
    return paths


def resolve_package(identifier: str, search_paths: Sequence[str]) -> ResolvedPackage:
    """Map a dotted package or module name to its source files.

    Args:
        identifier: Dotted name, e.g. ``"pkg_a"`` or ``"pkg_a.core"``
        search_paths: Directories searched for the top-level component

    Returns:
        ResolvedPackage whose files are the non-test ``.py`` files directly in
        the package directory (sorted), or the single module file.

    Raises:
        ResolutionError: If the identifier cannot be located or has no
            Python source.
    """
    if not identifier or any(not part.isidentifier() for part in identifier.split(".")):
        msg = f"invalid package identifier: {identifier!r}"
        raise ResolutionError(msg)

    spec = _find_spec(identifier, search_paths)
    if spec is None:
        msg = f"cannot find package {identifier!r}"
        raise ResolutionError(msg)

    if spec.submodule_search_locations is not None:
        locations = list(spec.submodule_search_locations)
        if not locations:
            msg = f"package {identifier!r} has no directory"
            raise ResolutionError(msg)
        directory = Path(locations[0])
        files = tuple(
            sorted(
                (
                    path
                    for path in directory.glob("*.py")
                    if path.is_file() and not _is_test_file(path)
                ),
                key=lambda p: p.name,
            )
        )
    else:
        origin = spec.origin
        if origin is None or not origin.endswith(".py"):
            msg = f"module {identifier!r} has no Python source"
            raise ResolutionError(msg)
        directory = Path(origin).parent
        files = (Path(origin),)

    if not files:
        msg = f"package {identifier!r} contains no Python source files"
        raise ResolutionError(msg)

    logger.debug("resolved %s -> %s (%d files)", identifier, directory, len(files))
    return ResolvedPackage(
        name=identifier,
        directory=directory.resolve(),
        files=tuple(path.resolve() for path in files),
    )


__all__ = ["ResolvedPackage", "default_search_paths", "resolve_package"]

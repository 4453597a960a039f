from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from scan.workspace import WorkspaceFilter

if TYPE_CHECKING:
    from pathlib import Path


def _touch(root: Path, relative_path: str) -> Path:
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("x = 1\n", encoding="utf-8")
    return path


def test_paths_under_root_are_contained(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    inside = _touch(root, "pkg/module.py")

    assert WorkspaceFilter(root).contains(inside)
    assert WorkspaceFilter(root).contains(str(inside))


def test_sibling_with_common_prefix_is_outside(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    sibling = _touch(tmp_path, "repo-other/module.py")

    assert not WorkspaceFilter(root).contains(sibling)


def test_relative_escape_is_outside(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    outside = _touch(tmp_path, "outside.py")

    assert not WorkspaceFilter(root).contains(root / ".." / outside.name)


def test_exclude_patterns_use_relative_posix_paths(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    kept = _touch(root, "pkg/module.py")
    vendored = _touch(root, "third_party/lib/module.py")

    workspace = WorkspaceFilter(root, exclude_patterns=["third_party/*"])

    assert workspace.contains(kept)
    assert not workspace.contains(vendored)


def test_gitignored_virtualenv_is_outside(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    kept = _touch(root, "pkg/module.py")
    vendored = _touch(root, ".venv/lib/site-packages/dep/core.py")
    (root / ".gitignore").write_text(".venv/\n", encoding="utf-8")

    assert WorkspaceFilter(root).contains(kept)
    assert not WorkspaceFilter(root).contains(vendored)
    assert WorkspaceFilter(root, respect_gitignore=False).contains(vendored)


def test_nested_gitignore_requires_opt_in(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    generated = _touch(root, "pkg/generated/out.py")
    (root / "pkg" / ".gitignore").write_text("generated/\n", encoding="utf-8")

    assert WorkspaceFilter(root).contains(generated)
    assert not WorkspaceFilter(root, nested_gitignore=True).contains(generated)


@pytest.mark.skipif(
    os.name == "nt",
    reason="Symlink semantics vary on Windows test runners.",
)
def test_symlink_escaping_root_is_outside(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    external = tmp_path / "external"
    leak = _touch(external, "leak.py")
    (root / "linked").symlink_to(external, target_is_directory=True)

    assert not WorkspaceFilter(root).contains(root / "linked" / leak.name)

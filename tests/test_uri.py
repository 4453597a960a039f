from __future__ import annotations

import os
from pathlib import Path

import pytest

from utils import path_to_uri, uri_to_path


@pytest.mark.skipif(os.name == "nt", reason="POSIX path layout.")
def test_path_to_uri_percent_encodes() -> None:
    assert path_to_uri("/work/pkg/core.py") == "file:///work/pkg/core.py"
    assert path_to_uri("/work/my pkg/ü#1.py") == "file:///work/my%20pkg/%C3%BC%231.py"


@pytest.mark.skipif(os.name == "nt", reason="POSIX path layout.")
def test_uri_to_path_decodes() -> None:
    assert uri_to_path("file:///work/my%20pkg/%C3%BC%231.py") == "/work/my pkg/ü#1.py"


def test_relative_paths_become_absolute(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    uri = path_to_uri("core.py")

    assert Path(uri_to_path(uri)) == Path(os.path.abspath("core.py"))

"""Shared utilities for callmap."""

from __future__ import annotations

import os
from pathlib import Path
from urllib.parse import quote, unquote, urlparse


def path_to_uri(path: str | Path) -> str:
    """Convert a filesystem path to a ``file://`` URI.

    Args:
        path: File or directory path; relative paths are made absolute.

    Returns:
        URI with forward slashes and percent-encoded special characters.

    Examples:
        >>> path_to_uri("/work/pkg/core.py")
        'file:///work/pkg/core.py'
        >>> path_to_uri("/work/my pkg/core.py")
        'file:///work/my%20pkg/core.py'
    """
    posix = Path(os.path.abspath(path)).as_posix()
    if not posix.startswith("/"):
        # Windows drive paths: file:///C:/...
        posix = "/" + posix
    return "file://" + quote(posix, safe="/:")


def uri_to_path(uri: str) -> str:
    """Convert a ``file://`` URI back to a filesystem path.

    Examples:
        >>> uri_to_path("file:///work/my%20pkg/core.py")
        '/work/my pkg/core.py'
    """
    path = unquote(urlparse(uri).path)
    if os.name == "nt" and len(path) > 2 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return str(Path(path))

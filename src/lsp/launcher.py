"""Language server executable lookup."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from errors import ServerNotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

DEFAULT_SERVER_COMMAND = ("pylsp",)

_INSTALL_HINTS = {
    "pylsp": "pip install python-lsp-server",
    "jedi-language-server": "pip install jedi-language-server",
    "pyright-langserver": "pip install pyright",
}


def resolve_server_command(command: Sequence[str]) -> list[str]:
    """Resolve the server executable on PATH and return the full argv.

    Raises:
        ServerNotFoundError: If no command is configured or the executable
            cannot be found.
    """
    if not command:
        msg = "no language server command configured"
        raise ServerNotFoundError(msg)

    executable, *args = command
    resolved = shutil.which(executable)
    if resolved is None:
        msg = f"language server {executable!r} not found on PATH"
        hint = _INSTALL_HINTS.get(executable)
        if hint:
            msg = f"{msg}; install it with: {hint}"
        raise ServerNotFoundError(msg)

    logger.debug("using language server %s", resolved)
    return [resolved, *args]


__all__ = ["DEFAULT_SERVER_COMMAND", "resolve_server_command"]

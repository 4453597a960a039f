"""Language Server Protocol client.

Drives an external Python language server over stdio to resolve references.
"""

from lsp.client import LanguageServerClient, SessionState
from lsp.launcher import DEFAULT_SERVER_COMMAND, resolve_server_command

__all__ = [
    "DEFAULT_SERVER_COMMAND",
    "LanguageServerClient",
    "SessionState",
    "resolve_server_command",
]

"""Error kinds raised by the callmap core."""

from __future__ import annotations

from typing import Any


class CallmapError(Exception):
    """Base class for every failure surfaced by the core."""


class ParseError(CallmapError):
    """Raised when a source file cannot be read or does not parse."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"error parsing file {path}: {message}")
        self.path = path


class ResolutionError(CallmapError):
    """Raised when a package identifier cannot be located."""


class PositionError(CallmapError):
    """Raised when a (line, column) position lies outside a file."""


class NoCallExpressionError(CallmapError):
    """Raised when no call expression contains a reference position."""


class ProtocolError(CallmapError):
    """Raised on malformed framing or unexpected messages from the server."""


class ResponseTimeoutError(ProtocolError):
    """Raised when the server does not answer a request in time."""


class SessionStateError(ProtocolError):
    """Raised when a request is issued in the wrong session state."""


class ServerError(CallmapError):
    """Raised when the server answers a request with an error payload."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class ServerNotFoundError(CallmapError):
    """Raised when the configured language server executable is missing."""


__all__ = [
    "CallmapError",
    "NoCallExpressionError",
    "ParseError",
    "PositionError",
    "ProtocolError",
    "ResolutionError",
    "ResponseTimeoutError",
    "ServerError",
    "ServerNotFoundError",
    "SessionStateError",
]

"""Content-Length framing for JSON-RPC messages over byte streams.

Each message is a header block terminated by a blank line, followed by
exactly ``Content-Length`` bytes of JSON::

    Content-Length: 52\\r\\n
    \\r\\n
    {"jsonrpc":"2.0","id":1,"method":"initialize","params":{}}
"""

from __future__ import annotations

from typing import IO, Any

import orjson

from errors import ProtocolError

CONTENT_LENGTH = "content-length"
MAX_HEADER_LINE = 8192


def encode_message(payload: dict[str, Any]) -> bytes:
    """Serialize a message with its header block."""
    body = orjson.dumps(payload)
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


def write_message(stream: IO[bytes], payload: dict[str, Any]) -> None:
    stream.write(encode_message(payload))
    stream.flush()


def _read_headers(stream: IO[bytes]) -> dict[str, str] | None:
    headers: dict[str, str] = {}
    first = True
    while True:
        raw = stream.readline(MAX_HEADER_LINE)
        if not raw:
            if first:
                return None
            msg = "stream closed inside a header block"
            raise ProtocolError(msg)
        first = False
        if not raw.endswith(b"\n"):
            msg = f"header line too long or unterminated: {raw[:80]!r}"
            raise ProtocolError(msg)

        line = raw.decode("ascii", errors="replace").strip()
        if not line:
            return headers

        name, sep, value = line.partition(":")
        if not sep:
            msg = f"invalid header line: {line}"
            raise ProtocolError(msg)
        headers[name.strip().lower()] = value.strip()


def read_message(stream: IO[bytes]) -> dict[str, Any] | None:
    """Read one framed JSON object.

    Returns:
        The decoded message, or None if the stream ended cleanly before a
        new message started.

    Raises:
        ProtocolError: On malformed headers, a missing or invalid
            Content-Length, a truncated body, or a body that is not a JSON
            object.
    """
    headers = _read_headers(stream)
    if headers is None:
        return None

    length_str = headers.get(CONTENT_LENGTH)
    if length_str is None:
        msg = "missing Content-Length header"
        raise ProtocolError(msg)
    try:
        length = int(length_str)
    except ValueError as exc:
        msg = f"invalid Content-Length: {length_str}"
        raise ProtocolError(msg) from exc
    if length < 0:
        msg = f"invalid Content-Length: {length_str}"
        raise ProtocolError(msg)

    chunks: list[bytes] = []
    remaining = length
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            msg = f"stream closed after {length - remaining} of {length} body bytes"
            raise ProtocolError(msg)
        chunks.append(chunk)
        remaining -= len(chunk)
    body = b"".join(chunks)

    try:
        message = orjson.loads(body)
    except orjson.JSONDecodeError as exc:
        msg = f"invalid JSON payload: {exc}"
        raise ProtocolError(msg) from exc
    if not isinstance(message, dict):
        msg = f"expected a JSON object, got {type(message).__name__}"
        raise ProtocolError(msg)
    return message


__all__ = ["encode_message", "read_message", "write_message"]

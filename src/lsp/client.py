"""Language server client over a subprocess's stdio.

The client owns one server process for the lifetime of a session and speaks
Content-Length framed JSON-RPC to it. Requests are strictly sequential: each
call blocks until the response bearing its ID arrives. Notifications that
arrive in between are skipped, and server-initiated requests are answered
with an empty result so the server never blocks on the client.
"""

from __future__ import annotations

import logging
import os
import queue
import subprocess
import threading
import time
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from pydantic import ValidationError

from errors import (
    PositionError,
    ProtocolError,
    ResponseTimeoutError,
    ServerError,
    SessionStateError,
)
from lsp.framing import read_message, write_message
from lsp.launcher import DEFAULT_SERVER_COMMAND, resolve_server_command
from lsp.protocol import (
    ClientInfo,
    InitializeParams,
    InitializeResult,
    Location,
    NotificationMessage,
    Position,
    ReferenceContext,
    ReferenceParams,
    ServerRequest,
    TextDocumentIdentifier,
    decode_incoming,
    decode_locations,
    notification,
    request,
    response,
)
from models.references import ReferenceLocation
from utils import path_to_uri, uri_to_path

if TYPE_CHECKING:
    from collections.abc import Sequence

    from parse.positions import PositionEncoding

logger = logging.getLogger(__name__)

CLIENT_NAME = "callmap"
SHUTDOWN_TIMEOUT = 10.0
EXIT_TIMEOUT = 5.0
SUPPORTED_ENCODINGS: tuple[PositionEncoding, ...] = ("utf-32", "utf-16", "utf-8")

_EOF = object()


class SessionState(str, Enum):
    """Lifecycle states of a language server session."""

    UNSTARTED = "unstarted"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    CLOSED = "closed"


def _to_reference(location: Location) -> ReferenceLocation:
    start = location.range.start
    end = location.range.end
    return ReferenceLocation(
        uri=location.uri,
        path=uri_to_path(location.uri),
        start_line=start.line + 1,
        start_column=start.character + 1,
        end_line=end.line + 1,
        end_column=end.character + 1,
    )


class LanguageServerClient:
    """Session with an external language server process.

    Positions passed to and returned from this class are 1-based; columns
    are in the negotiated ``position_encoding`` units.
    """

    def __init__(
        self,
        root: str | Path,
        command: Sequence[str] = DEFAULT_SERVER_COMMAND,
        *,
        request_timeout: float | None = 120.0,
    ) -> None:
        self.root = Path(root).resolve()
        self.command = list(command)
        self.request_timeout = request_timeout
        self.state = SessionState.UNSTARTED
        self.position_encoding: PositionEncoding = "utf-16"

        self._process: subprocess.Popen[bytes] | None = None
        self._reader: threading.Thread | None = None
        self._messages: queue.Queue[object] = queue.Queue()
        self._seq = 0
        self._seq_lock = threading.Lock()
        self._write_lock = threading.Lock()

    def __enter__(self) -> LanguageServerClient:
        self.start()
        return self

    def __exit__(self, exc_type: object, exc: BaseException | None, tb: object) -> None:
        if exc is None:
            self.close()
            return
        try:
            self.close()
        except (ProtocolError, ServerError, OSError) as close_exc:
            logger.warning("error closing language server: %s", close_exc)

    def start(self) -> None:
        """Launch the server and run the ``initialize`` handshake."""
        if self.state is not SessionState.UNSTARTED:
            msg = f"cannot start a session in state {self.state.value}"
            raise SessionStateError(msg)

        argv = resolve_server_command(self.command)
        logger.debug("starting language server: %s", " ".join(argv))
        self._process = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            cwd=self.root,
        )
        self.state = SessionState.INITIALIZING
        if self._process.stdout is None:
            self._release()
            msg = "language server started without a stdout pipe"
            raise ProtocolError(msg)
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(self._process.stdout,),
            daemon=True,
            name="lsp-reader",
        )
        self._reader.start()

        try:
            self._initialize()
        except BaseException:
            self._release()
            raise
        self.state = SessionState.READY

    def references(self, path: str | Path, line: int, column: int) -> list[ReferenceLocation]:
        """Find all references to the symbol at a 1-based position.

        The declaration itself is included. Returned locations are 1-based.

        Raises:
            SessionStateError: If the session is not ready.
            ServerError: If the server answers with an error.
            ProtocolError: If the response is malformed.
        """
        if self.state is not SessionState.READY:
            msg = f"cannot query references in state {self.state.value}"
            raise SessionStateError(msg)
        if line < 1 or column < 1:
            msg = f"invalid position {line}:{column}"
            raise PositionError(msg)

        params = ReferenceParams(
            text_document=TextDocumentIdentifier(uri=path_to_uri(path)),
            position=Position(line=line - 1, character=column - 1),
            context=ReferenceContext(include_declaration=True),
        )
        result = self._call("textDocument/references", params)
        return [_to_reference(location) for location in decode_locations(result)]

    def close(self) -> None:
        """Shut the session down: ``shutdown``, ``exit``, then wait for the process.

        Safe to call more than once; a no-op on an unstarted or closed client.
        """
        if self.state in (SessionState.UNSTARTED, SessionState.CLOSED):
            self.state = SessionState.CLOSED
            return

        if self.state is not SessionState.READY:
            self._release()
            return

        self.state = SessionState.SHUTTING_DOWN
        try:
            self._call("shutdown", timeout=SHUTDOWN_TIMEOUT)
            self._send(notification("exit"))
        finally:
            self._release()

    def _initialize(self) -> None:
        params = InitializeParams(
            process_id=os.getpid(),
            client_info=ClientInfo(name=CLIENT_NAME),
            root_uri=path_to_uri(self.root),
            root_path=str(self.root),
            capabilities={
                "general": {"positionEncodings": list(SUPPORTED_ENCODINGS[:2])},
                "textDocument": {"references": {}},
            },
        )
        result = self._call("initialize", params)
        try:
            init = InitializeResult.model_validate(result or {})
        except ValidationError as exc:
            msg = f"invalid initialize result: {exc}"
            raise ProtocolError(msg) from exc

        encoding = init.position_encoding
        if encoding not in SUPPORTED_ENCODINGS:
            msg = f"server chose unsupported position encoding {encoding!r}"
            raise ProtocolError(msg)
        self.position_encoding = encoding  # type: ignore[assignment]
        logger.debug("server position encoding: %s", encoding)

        self._send(notification("initialized", {}))
        self._send(notification("workspace/didChangeConfiguration", {"settings": {}}))

    def _next_id(self) -> int:
        with self._seq_lock:
            self._seq += 1
            return self._seq

    def _call(
        self, method: str, params: Any = None, *, timeout: float | None = None
    ) -> Any:
        request_id = self._next_id()
        logger.debug("-> request id=%d method=%s", request_id, method)
        self._send(request(request_id, method, params))
        if timeout is None:
            timeout = self.request_timeout
        return self._await_response(request_id, method, timeout)

    def _send(self, payload: dict[str, Any]) -> None:
        if self._process is None or self._process.stdin is None:
            msg = "language server is not running"
            raise SessionStateError(msg)
        with self._write_lock:
            try:
                write_message(self._process.stdin, payload)
            except (OSError, ValueError) as exc:
                msg = f"cannot write to language server: {exc}"
                raise ProtocolError(msg) from exc

    def _await_response(self, request_id: int, method: str, timeout: float | None) -> Any:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait: float | None = None
            if deadline is not None:
                wait = deadline - time.monotonic()
                if wait <= 0:
                    msg = f"no response to {method} (id={request_id}) within {timeout}s"
                    raise ResponseTimeoutError(msg)
            try:
                item = self._messages.get(timeout=wait)
            except queue.Empty as exc:
                msg = f"no response to {method} (id={request_id}) within {timeout}s"
                raise ResponseTimeoutError(msg) from exc

            if item is _EOF:
                self._messages.put(_EOF)
                msg = f"language server closed its output while waiting for {method}"
                raise ProtocolError(msg)
            if isinstance(item, ProtocolError):
                raise item
            if isinstance(item, Exception):
                msg = f"error reading from language server: {item}"
                raise ProtocolError(msg) from item

            message = decode_incoming(item)
            if isinstance(message, ServerRequest):
                self._answer(message)
                continue
            if isinstance(message, NotificationMessage):
                logger.debug("<- notification %s (skipped)", message.method)
                continue
            if message.id != request_id:
                logger.warning("skipping response for unexpected id=%r", message.id)
                continue

            if message.error is not None:
                raise ServerError(
                    message.error.code, message.error.message, message.error.data
                )
            logger.debug("<- response id=%d", request_id)
            return message.result

    def _answer(self, message: ServerRequest) -> None:
        """Reply to a server-initiated request with an empty result."""
        result: Any = None
        if message.method == "workspace/configuration":
            items = []
            if isinstance(message.params, dict):
                items = message.params.get("items") or []
            result = [{} for _ in items]
        logger.debug("<- server request %s id=%r (answered)", message.method, message.id)
        self._send(response(message.id, result))

    def _read_loop(self, stream: IO[bytes]) -> None:
        try:
            while True:
                message = read_message(stream)
                if message is None:
                    break
                self._messages.put(message)
        except (ProtocolError, OSError, ValueError) as exc:
            self._messages.put(exc)
        finally:
            self._messages.put(_EOF)

    def _release(self) -> None:
        """Close pipes and reap the process, escalating to terminate/kill."""
        process = self._process
        self.state = SessionState.CLOSED
        if process is None:
            return

        if process.stdin is not None:
            try:
                process.stdin.close()
            except OSError as exc:
                logger.debug("error closing server stdin: %s", exc)

        try:
            process.wait(timeout=EXIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            logger.warning("language server did not exit; terminating")
            process.terminate()
            try:
                process.wait(timeout=EXIT_TIMEOUT)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()

        if self._reader is not None:
            self._reader.join(timeout=EXIT_TIMEOUT)
        if process.stdout is not None:
            process.stdout.close()
        if process.returncode:
            logger.warning("language server exited with status %s", process.returncode)


__all__ = ["LanguageServerClient", "SessionState"]

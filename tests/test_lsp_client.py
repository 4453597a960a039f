from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from errors import (
    PositionError,
    ProtocolError,
    ResponseTimeoutError,
    ServerError,
    ServerNotFoundError,
    SessionStateError,
)
from lsp.client import LanguageServerClient, SessionState

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_lsp_server.py"
FAKE_COMMAND = [sys.executable, str(FAKE_SERVER)]

LIB_SOURCE = "def Bar():\n    return 1\n"
APP_SOURCE = "from lib import Bar\n\n\ndef Foo():\n    Bar()\n"


def _write_workspace(root: Path) -> Path:
    (root / "lib.py").write_text(LIB_SOURCE, encoding="utf-8")
    (root / "app.py").write_text(APP_SOURCE, encoding="utf-8")
    return root / "lib.py"


def _logged_methods(log_path: Path) -> list[str]:
    return [line.split(" ", 1)[0] for line in log_path.read_text().splitlines()]


def test_session_lifecycle(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lib = _write_workspace(tmp_path)
    log_path = tmp_path / "server.log"
    monkeypatch.setenv("FAKE_LSP_LOG", str(log_path))

    client = LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30)
    assert client.state is SessionState.UNSTARTED

    client.start()
    assert client.state is SessionState.READY
    assert client.position_encoding == "utf-16"

    references = client.references(lib, 1, 5)
    client.close()

    assert client.state is SessionState.CLOSED
    assert [(Path(ref.path).name, ref.start_line, ref.start_column) for ref in references] == [
        ("app.py", 1, 17),
        ("app.py", 5, 5),
        ("lib.py", 1, 5),
    ]
    assert references[0].end_column == 20
    assert references[0].uri.startswith("file://")

    methods = _logged_methods(log_path)
    assert methods == [
        "initialize",
        "initialized",
        "workspace/didChangeConfiguration",
        "textDocument/references",
        "response:1000",
        "shutdown",
        "exit",
    ]


def test_initialize_announces_workspace_and_encodings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_workspace(tmp_path)
    log_path = tmp_path / "server.log"
    monkeypatch.setenv("FAKE_LSP_LOG", str(log_path))

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30):
        pass

    first = log_path.read_text().splitlines()[0]
    params = json.loads(first.split(" ", 1)[1])
    assert params["rootUri"] == tmp_path.resolve().as_uri()
    assert isinstance(params["processId"], int)
    assert params["capabilities"]["general"]["positionEncodings"] == ["utf-32", "utf-16"]


def test_server_request_is_answered(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lib = _write_workspace(tmp_path)
    log_path = tmp_path / "server.log"
    monkeypatch.setenv("FAKE_LSP_LOG", str(log_path))

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        client.references(lib, 1, 5)

    reply = next(line for line in log_path.read_text().splitlines() if line.startswith("response:"))
    assert reply == "response:1000 [{}]"


def test_negotiated_utf32_encoding(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _write_workspace(tmp_path)
    monkeypatch.setenv("FAKE_LSP_ENCODING", "utf-32")

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        assert client.position_encoding == "utf-32"


def test_unsupported_encoding_fails_start(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("FAKE_LSP_ENCODING", "utf-7")
    client = LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30)

    with pytest.raises(ProtocolError, match="unsupported position encoding"):
        client.start()
    assert client.state is SessionState.CLOSED


def test_null_result_means_no_references(tmp_path: Path) -> None:
    (tmp_path / "empty.py").write_text("\n", encoding="utf-8")

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        assert client.references(tmp_path / "empty.py", 1, 1) == []


def test_error_payload_raises_server_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    lib = _write_workspace(tmp_path)
    monkeypatch.setenv("FAKE_LSP_FAIL_REFERENCES", "1")

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        with pytest.raises(ServerError) as excinfo:
            client.references(lib, 1, 5)
        assert client.state is SessionState.READY

    assert excinfo.value.code == -32603
    assert str(excinfo.value) == "references failed"


def test_unanswered_request_times_out(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lib = _write_workspace(tmp_path)
    monkeypatch.setenv("FAKE_LSP_HANG_REFERENCES", "1")

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        client.request_timeout = 0.5
        with pytest.raises(ResponseTimeoutError):
            client.references(lib, 1, 5)


def test_server_exiting_during_handshake_is_a_protocol_error(tmp_path: Path) -> None:
    client = LanguageServerClient(
        tmp_path, [sys.executable, "-c", "import sys; sys.exit(0)"], request_timeout=30
    )

    with pytest.raises(ProtocolError):
        client.start()
    assert client.state is SessionState.CLOSED


def test_missing_server_executable(tmp_path: Path) -> None:
    client = LanguageServerClient(tmp_path, ["callmap-no-such-server"])

    with pytest.raises(ServerNotFoundError, match="not found on PATH"):
        client.start()


def test_requests_require_ready_session(tmp_path: Path) -> None:
    client = LanguageServerClient(tmp_path, FAKE_COMMAND)

    with pytest.raises(SessionStateError):
        client.references(tmp_path / "lib.py", 1, 1)


def test_close_is_idempotent(tmp_path: Path) -> None:
    never_started = LanguageServerClient(tmp_path, FAKE_COMMAND)
    never_started.close()
    never_started.close()
    assert never_started.state is SessionState.CLOSED

    client = LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30)
    client.start()
    client.close()
    client.close()
    assert client.state is SessionState.CLOSED

    with pytest.raises(SessionStateError):
        client.start()


def test_positions_are_one_based(tmp_path: Path) -> None:
    lib = _write_workspace(tmp_path)

    with LanguageServerClient(tmp_path, FAKE_COMMAND, request_timeout=30) as client:
        with pytest.raises(PositionError):
            client.references(lib, 0, 1)
        with pytest.raises(PositionError):
            client.references(lib, 1, 0)

from __future__ import annotations

import pytest

from errors import ProtocolError
from lsp.protocol import (
    ClientInfo,
    InitializeParams,
    InitializeResult,
    NotificationMessage,
    Position,
    ReferenceParams,
    ResponseMessage,
    ServerRequest,
    TextDocumentIdentifier,
    decode_incoming,
    decode_locations,
    notification,
    request,
    response,
)


def test_reference_request_uses_camel_case_fields() -> None:
    params = ReferenceParams(
        text_document=TextDocumentIdentifier(uri="file:///work/core.py"),
        position=Position(line=4, character=8),
    )

    assert request(3, "textDocument/references", params) == {
        "jsonrpc": "2.0",
        "id": 3,
        "method": "textDocument/references",
        "params": {
            "textDocument": {"uri": "file:///work/core.py"},
            "position": {"line": 4, "character": 8},
            "context": {"includeDeclaration": True},
        },
    }


def test_initialize_params_keep_null_process_id() -> None:
    params = InitializeParams(
        process_id=None,
        client_info=ClientInfo(name="callmap"),
        root_uri="file:///work",
        capabilities={},
    )

    wire = params.to_wire()

    assert wire["processId"] is None
    assert wire["rootUri"] == "file:///work"
    assert wire["clientInfo"] == {"name": "callmap"}
    assert "rootPath" not in wire


def test_builders() -> None:
    assert notification("exit") == {"jsonrpc": "2.0", "method": "exit"}
    assert notification("initialized", {}) == {
        "jsonrpc": "2.0",
        "method": "initialized",
        "params": {},
    }
    assert response(9, [{}]) == {"jsonrpc": "2.0", "id": 9, "result": [{}]}


def test_position_encoding_defaults_to_utf16() -> None:
    assert InitializeResult.model_validate({"capabilities": {}}).position_encoding == "utf-16"
    negotiated = InitializeResult.model_validate(
        {"capabilities": {"positionEncoding": "utf-32"}, "serverInfo": {"name": "x"}}
    )
    assert negotiated.position_encoding == "utf-32"


def test_decode_incoming_classifies_messages() -> None:
    reply = decode_incoming({"jsonrpc": "2.0", "id": 1, "result": None})
    note = decode_incoming({"jsonrpc": "2.0", "method": "$/progress", "params": {}})
    server_request = decode_incoming(
        {"jsonrpc": "2.0", "id": "cfg-1", "method": "workspace/configuration"}
    )

    assert isinstance(reply, ResponseMessage)
    assert reply.id == 1
    assert reply.error is None
    assert isinstance(note, NotificationMessage)
    assert isinstance(server_request, ServerRequest)
    assert server_request.id == "cfg-1"


def test_decode_incoming_reads_error_payload() -> None:
    reply = decode_incoming(
        {"jsonrpc": "2.0", "id": 2, "error": {"code": -32601, "message": "nope"}}
    )

    assert isinstance(reply, ResponseMessage)
    assert reply.error is not None
    assert (reply.error.code, reply.error.message) == (-32601, "nope")


@pytest.mark.parametrize(
    "raw",
    [
        {"jsonrpc": "2.0"},
        {"jsonrpc": "2.0", "id": 1},
        {"jsonrpc": "2.0", "id": 1, "error": {"message": "no code"}},
        {"jsonrpc": "2.0", "method": 5},
    ],
)
def test_decode_incoming_rejects_malformed(raw: dict[str, object]) -> None:
    with pytest.raises(ProtocolError):
        decode_incoming(raw)


@pytest.mark.parametrize("raw", [[{"jsonrpc": "2.0", "id": 1, "result": None}], "ok", None])
def test_decode_incoming_rejects_non_objects(raw: object) -> None:
    with pytest.raises(ProtocolError, match="expected a JSON object"):
        decode_incoming(raw)


def test_decode_locations() -> None:
    locations = decode_locations(
        [
            {
                "uri": "file:///work/a.py",
                "range": {
                    "start": {"line": 0, "character": 4},
                    "end": {"line": 0, "character": 7},
                },
            }
        ]
    )

    assert len(locations) == 1
    assert locations[0].range.start.character == 4
    assert decode_locations(None) == []
    with pytest.raises(ProtocolError):
        decode_locations([{"uri": "file:///work/a.py"}])
    with pytest.raises(ProtocolError):
        decode_locations(
            [
                {
                    "uri": "file:///work/a.py",
                    "range": {
                        "start": {"line": -1, "character": 0},
                        "end": {"line": 0, "character": 0},
                    },
                }
            ]
        )

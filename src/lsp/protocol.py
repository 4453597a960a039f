"""Typed Language Server Protocol messages used by the client."""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from errors import ProtocolError

JSONRPC_VERSION = "2.0"

RequestId = Union[int, str]


class _LspModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Position(_LspModel):
    """Zero-based line and character offset."""

    line: int = Field(ge=0)
    character: int = Field(ge=0)


class Range(_LspModel):
    start: Position
    end: Position


class Location(_LspModel):
    uri: str
    range: Range


class TextDocumentIdentifier(_LspModel):
    uri: str


class ReferenceContext(_LspModel):
    include_declaration: bool = True


class ReferenceParams(_LspModel):
    text_document: TextDocumentIdentifier
    position: Position
    context: ReferenceContext = Field(default_factory=ReferenceContext)


class ClientInfo(_LspModel):
    name: str
    version: str | None = None


class InitializeParams(_LspModel):
    process_id: int | None
    client_info: ClientInfo | None = None
    root_uri: str
    root_path: str | None = None
    capabilities: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        payload = super().to_wire()
        payload.setdefault("processId", None)
        return payload


class InitializeResult(_LspModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    capabilities: dict[str, Any] = Field(default_factory=dict)

    @property
    def position_encoding(self) -> str:
        encoding = self.capabilities.get("positionEncoding")
        return encoding if isinstance(encoding, str) else "utf-16"


class ResponseError(_LspModel):
    code: int
    message: str
    data: Any = None


class ResponseMessage(_LspModel):
    kind: Literal["response"] = Field(default="response", exclude=True)
    id: RequestId | None
    result: Any = None
    error: ResponseError | None = None


class NotificationMessage(_LspModel):
    kind: Literal["notification"] = Field(default="notification", exclude=True)
    method: str
    params: Any = None


class ServerRequest(_LspModel):
    """A request initiated by the server that expects a client response."""

    kind: Literal["request"] = Field(default="request", exclude=True)
    id: RequestId
    method: str
    params: Any = None


IncomingMessage = Union[ResponseMessage, NotificationMessage, ServerRequest]

_LOCATIONS = TypeAdapter(Union[list[Location], None])


def request(request_id: int, method: str, params: _LspModel | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": request_id, "method": method}
    if params is not None:
        message["params"] = params.to_wire()
    return message


def notification(method: str, params: dict[str, Any] | _LspModel | None = None) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if isinstance(params, _LspModel):
        message["params"] = params.to_wire()
    elif params is not None:
        message["params"] = params
    return message


def response(request_id: RequestId, result: Any = None) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def decode_incoming(raw: Any) -> IncomingMessage:
    """Classify and validate a decoded JSON-RPC message.

    Raises:
        ProtocolError: If the message is not an object or matches no known
            shape.
    """
    if not isinstance(raw, dict):
        msg = f"expected a JSON object from server, got {type(raw).__name__}"
        raise ProtocolError(msg)
    try:
        if "method" in raw:
            if raw.get("id") is not None:
                return ServerRequest.model_validate(raw)
            return NotificationMessage.model_validate(raw)
        if "id" in raw:
            if "result" not in raw and "error" not in raw:
                msg = f"response {raw.get('id')!r} has neither result nor error"
                raise ProtocolError(msg)
            return ResponseMessage.model_validate(raw)
    except ValidationError as exc:
        msg = f"malformed message from server: {exc}"
        raise ProtocolError(msg) from exc

    msg = f"unrecognized message from server: {sorted(raw)}"
    raise ProtocolError(msg)


def decode_locations(result: Any) -> list[Location]:
    """Validate a ``textDocument/references`` result; null means no references."""
    try:
        locations = _LOCATIONS.validate_python(result)
    except ValidationError as exc:
        msg = f"invalid references result: {exc}"
        raise ProtocolError(msg) from exc
    return locations or []


__all__ = [
    "ClientInfo",
    "IncomingMessage",
    "InitializeParams",
    "InitializeResult",
    "Location",
    "NotificationMessage",
    "Position",
    "Range",
    "ReferenceContext",
    "ReferenceParams",
    "ResponseError",
    "ResponseMessage",
    "ServerRequest",
    "TextDocumentIdentifier",
    "decode_incoming",
    "decode_locations",
    "notification",
    "request",
    "response",
]

"""Definition and enclosing-scope models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

GLOBAL_SCOPE = "<module>"
ANONYMOUS_FUNCTION = "<lambda>"
CLASS_BODY = "<class body>"

ScopeKind = Literal["function", "method", "lambda", "class", "module"]


def _signature(receiver_type: str, receiver_name: str, function_name: str) -> str:
    if receiver_type:
        if receiver_name:
            return f"{receiver_type}.{function_name}({receiver_name}, ...)"
        return f"{receiver_type}.{function_name}(...)"
    return f"{function_name}(...)"


class DefinitionSite(BaseModel):
    """An exported function or method matched by a name pattern.

    ``line``/``column`` are 1-based and point at the identifier after ``def``.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    receiver_type: str = ""
    receiver_name: str = ""
    function_name: str
    file: str
    line: int
    column: int

    def display_name(self) -> str:
        """Return the pretty-printed name of the function or method."""
        return _signature(self.receiver_type, self.receiver_name, self.function_name)


class EnclosingContext(BaseModel):
    """What lexically contains a position."""

    model_config = ConfigDict(frozen=True)

    kind: ScopeKind
    function_name: str
    receiver_type: str = ""
    receiver_name: str = ""

    @classmethod
    def module_scope(cls) -> EnclosingContext:
        return cls(kind="module", function_name=GLOBAL_SCOPE)

    def display_name(self) -> str:
        """Return the header used when grouping call sites."""
        if self.kind in ("module", "lambda"):
            return self.function_name
        if self.kind == "class":
            return f"class {self.receiver_type}"
        return _signature(self.receiver_type, self.receiver_name, self.function_name)


__all__ = [
    "ANONYMOUS_FUNCTION",
    "CLASS_BODY",
    "GLOBAL_SCOPE",
    "DefinitionSite",
    "EnclosingContext",
    "ScopeKind",
]

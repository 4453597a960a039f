"""Reference locations decoded from language-server responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ReferenceLocation(BaseModel):
    """A reference reported by the language server.

    All line and column values are 1-based.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    path: str
    start_line: int
    start_column: int
    end_line: int
    end_column: int


__all__ = ["ReferenceLocation"]

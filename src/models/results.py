"""Result entries accumulated by the reference matcher."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from models.definitions import EnclosingContext


class ResultEntry(BaseModel):
    """One call site of a matched definition."""

    model_config = ConfigDict(frozen=True)

    file: str
    line: int
    column: int
    enclosing: EnclosingContext
    source: str
    pretty_source: str


__all__ = ["ResultEntry"]

"""JSON lines output for result entries."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

import orjson

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.results import ResultEntry


def write_jsonl(stream: IO[str], entries: Iterable[ResultEntry]) -> None:
    """Write one JSON object per entry, keys sorted, newline terminated."""
    for entry in entries:
        payload = entry.model_dump(mode="json")
        stream.write(orjson.dumps(payload, option=orjson.OPT_SORT_KEYS).decode("utf-8"))
        stream.write("\n")


__all__ = ["write_jsonl"]

"""Line/column to offset mapping for a single source file."""

from __future__ import annotations

from bisect import bisect_right
from typing import Literal

from errors import PositionError

PositionEncoding = Literal["utf-8", "utf-16", "utf-32"]


def _unit_width(char: str, encoding: PositionEncoding) -> int:
    if encoding == "utf-32":
        return 1
    if encoding == "utf-16":
        return 2 if ord(char) > 0xFFFF else 1
    return len(char.encode("utf-8"))


class PositionIndex:
    """Maps 1-based (line, column) positions to absolute byte offsets.

    Columns count Unicode code points within a line. Offsets are byte offsets
    into the UTF-8 source, the unit tree-sitter reports node spans in.

    A trailing newline does not start a new line, and an empty file has a
    single (empty) line.
    """

    def __init__(self, source: bytes) -> None:
        self._source = source
        starts = [0]
        for index, byte in enumerate(source):
            if byte == 0x0A and index + 1 < len(source):
                starts.append(index + 1)
        self._line_starts = starts
        self._line_cache: dict[int, str] = {}

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based line without its line terminator."""
        self._check_line(line)
        cached = self._line_cache.get(line)
        if cached is not None:
            return cached

        start = self._line_starts[line - 1]
        end = (
            self._line_starts[line]
            if line < len(self._line_starts)
            else len(self._source)
        )
        raw = self._source[start:end]
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        text = raw.decode("utf-8", errors="replace")
        self._line_cache[line] = text
        return text

    def offset(self, line: int, column: int) -> int:
        """Convert a 1-based (line, column) to an absolute byte offset.

        Raises:
            PositionError: If the line or column lies outside the file.
        """
        text = self.line_text(line)
        self._check_column(line, column, text)
        return self._line_starts[line - 1] + len(text[: column - 1].encode("utf-8"))

    def position(self, offset: int) -> tuple[int, int]:
        """Convert an absolute byte offset back to a 1-based (line, column)."""
        if offset < 0 or offset > len(self._source):
            msg = f"offset {offset} outside file of {len(self._source)} bytes"
            raise PositionError(msg)
        line = bisect_right(self._line_starts, offset)
        start = self._line_starts[line - 1]
        prefix = self._source[start:offset].decode("utf-8", errors="replace")
        return line, len(prefix) + 1

    def to_units(self, line: int, column: int, encoding: PositionEncoding) -> int:
        """Convert a 1-based code-point column to a 1-based column in ``encoding`` units."""
        text = self.line_text(line)
        self._check_column(line, column, text)
        return sum(_unit_width(char, encoding) for char in text[: column - 1]) + 1

    def from_units(self, line: int, units: int, encoding: PositionEncoding) -> int:
        """Convert a 1-based column in ``encoding`` units to a 1-based code-point column.

        A unit column that falls inside a multi-unit character maps to that
        character.
        """
        text = self.line_text(line)
        if units < 1:
            msg = f"column {units} out of range on line {line}"
            raise PositionError(msg)

        consumed = 0
        for index, char in enumerate(text):
            if consumed >= units - 1:
                return index + 1
            consumed += _unit_width(char, encoding)
            if consumed > units - 1:
                return index + 1
        if consumed == units - 1:
            return len(text) + 1

        msg = f"column {units} ({encoding}) out of range on line {line}"
        raise PositionError(msg)

    def _check_line(self, line: int) -> None:
        if line < 1 or line > len(self._line_starts):
            msg = f"line {line} out of range (file has {len(self._line_starts)} lines)"
            raise PositionError(msg)

    @staticmethod
    def _check_column(line: int, column: int, text: str) -> None:
        if column < 1 or column > len(text) + 1:
            msg = f"column {column} out of range on line {line} ({len(text)} characters)"
            raise PositionError(msg)


__all__ = ["PositionEncoding", "PositionIndex"]

"""Parsed source files backed by Tree-sitter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser, Tree
from tree_sitter_python import language as get_python_language

from errors import ParseError
from parse.positions import PositionIndex

if TYPE_CHECKING:
    from pathlib import Path

_PARSER: Parser | None = None


def _get_parser() -> Parser:
    """Initialize and return the Tree-sitter parser with Python language."""
    global _PARSER
    if _PARSER is None:
        lang = Language(get_python_language())
        _PARSER = Parser(lang)

    return _PARSER


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = _first_error(child)
        if found is not None:
            return found
    return None


@dataclass(frozen=True, eq=False)
class SourceFile:
    """A parsed Python file: raw bytes, syntax tree and position index."""

    path: str
    source: bytes
    tree: Tree
    index: PositionIndex

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        """Return the exact source text spanned by ``node``."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8")


def load_source_file(path: Path) -> SourceFile:
    """Read and parse a Python source file.

    Raises:
        ParseError: If the file cannot be read, is not UTF-8, or contains
            syntax errors.
    """
    try:
        source = path.read_bytes()
    except OSError as exc:
        raise ParseError(str(path), f"cannot read file: {exc}") from exc

    try:
        source.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(str(path), f"not valid UTF-8: {exc}") from exc

    tree = _get_parser().parse(source)
    error_node = _first_error(tree.root_node)
    if error_node is not None:
        line = error_node.start_point[0] + 1
        col = error_node.start_point[1] + 1
        msg = f"syntax error at {line}:{col}"
        raise ParseError(str(path), msg)

    return SourceFile(
        path=str(path),
        source=source,
        tree=tree,
        index=PositionIndex(source),
    )


__all__ = ["SourceFile", "load_source_file"]

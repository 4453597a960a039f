"""Tree-sitter based definition lookup and positional queries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from errors import NoCallExpressionError
from models.definitions import (
    ANONYMOUS_FUNCTION,
    CLASS_BODY,
    DefinitionSite,
    EnclosingContext,
)
from parse.patterns import is_exported, matches_any
from parse.source import SourceFile, load_source_file
from scan.packages import resolve_package

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from tree_sitter import Node

    from models.references import ReferenceLocation
    from parse.positions import PositionEncoding

logger = logging.getLogger(__name__)

_SCOPE_TYPES = frozenset({"function_definition", "lambda"})
_IMPORT_TYPES = frozenset(
    {"import_statement", "import_from_statement", "future_import_statement"}
)
_STATIC_DECORATORS = frozenset({"staticmethod"})


def _spans_containing(
    node: Node, offset: int, types: frozenset[str], depth: int = 0
) -> Iterator[tuple[Node, int]]:
    """Yield (node, depth) for every node of ``types`` whose span contains offset.

    Only subtrees that contain the offset are descended into.
    """
    if not (node.start_byte <= offset < node.end_byte):
        return
    if node.is_named and node.type in types:
        yield node, depth
    for child in node.children:
        yield from _spans_containing(child, offset, types, depth + 1)


def _smallest(candidates: Iterator[tuple[Node, int]]) -> Node | None:
    best: tuple[int, int] | None = None
    best_node: Node | None = None
    for node, depth in candidates:
        key = (node.end_byte - node.start_byte, -depth)
        if best is None or key < best:
            best = key
            best_node = node
    return best_node


def _unwrap_decorated(node: Node) -> Node | None:
    if node.type == "decorated_definition":
        return node.child_by_field_name("definition")
    return node


def _decorator_names(definition: Node) -> set[str]:
    parent = definition.parent
    if parent is None or parent.type != "decorated_definition":
        return set()
    names: set[str] = set()
    for child in parent.children:
        if child.type == "decorator" and child.text:
            names.add(child.text.decode("utf8").lstrip("@").strip())
    return names


def _first_parameter_name(function: Node) -> str:
    parameters = function.child_by_field_name("parameters")
    if parameters is None:
        return ""
    for param in parameters.named_children:
        if param.type == "identifier":
            return param.text.decode("utf8") if param.text else ""
        if param.type in ("default_parameter", "typed_default_parameter"):
            name = param.child_by_field_name("name")
            return name.text.decode("utf8") if name and name.text else ""
        if param.type == "typed_parameter":
            for child in param.named_children:
                if child.type == "identifier":
                    return child.text.decode("utf8") if child.text else ""
            return ""
        # *args, **kwargs, bare * or / separators: no named receiver
        return ""
    return ""


def _name_of(node: Node) -> str:
    name = node.child_by_field_name("name")
    if name is None or not name.text:
        return ""
    return name.text.decode("utf8")


def _owning_class(function: Node) -> Node | None:
    """Return the class whose body directly defines ``function``, if any."""
    container = function.parent
    if container is not None and container.type == "decorated_definition":
        container = container.parent
    if container is None or container.type != "block":
        return None
    owner = container.parent
    if owner is not None and owner.type == "class_definition":
        return owner
    return None


def _receiver(function: Node) -> tuple[str, str]:
    """Return (receiver_type, receiver_name) for a function node."""
    owner = _owning_class(function)
    if owner is None:
        return "", ""
    receiver_name = ""
    if not (_decorator_names(function) & _STATIC_DECORATORS):
        receiver_name = _first_parameter_name(function)
    return _name_of(owner), receiver_name


class Analyzer:
    """Parses Python files on demand and answers positional queries.

    Parsed files are cached for the lifetime of the instance; files are
    assumed not to change while it is in use.
    """

    def __init__(self, search_paths: Sequence[str] = ()) -> None:
        self._search_paths = list(search_paths)
        self._files: dict[str, SourceFile] = {}

    def parse_file(self, path: str | Path) -> SourceFile:
        """Parse a file, returning the cached instance on repeat calls."""
        key = str(Path(path).resolve())
        cached = self._files.get(key)
        if cached is not None:
            return cached
        source_file = load_source_file(Path(key))
        self._files[key] = source_file
        return source_file

    def find_definitions(self, package: str, *patterns: str) -> list[DefinitionSite]:
        """Find exported functions and methods in ``package`` matching patterns.

        Module-level functions and methods of module-level classes are
        considered; names starting with an underscore are skipped.

        Args:
            package: Dotted package or module identifier
            patterns: Function globs or ``Class.method`` globs

        Returns:
            DefinitionSite per match, in file then source order.

        Raises:
            ResolutionError: If the package cannot be located.
            ParseError: If one of its files does not parse.
        """
        resolved = resolve_package(package, self._search_paths)
        pattern_list = list(patterns)
        matches: list[DefinitionSite] = []

        for file_path in resolved.files:
            source_file = self.parse_file(file_path)
            for function in self._top_level_functions(source_file.root):
                name_node = function.child_by_field_name("name")
                if name_node is None or not name_node.text:
                    continue
                func_name = name_node.text.decode("utf8")
                if not is_exported(func_name):
                    continue

                recv_type, recv_name = _receiver(function)
                if not matches_any(func_name, recv_type, pattern_list):
                    continue

                line, column = source_file.index.position(name_node.start_byte)
                matches.append(
                    DefinitionSite(
                        package=package,
                        receiver_type=recv_type,
                        receiver_name=recv_name,
                        function_name=func_name,
                        file=source_file.path,
                        line=line,
                        column=column,
                    )
                )
        return matches

    def enclosing_context(
        self, path: str | Path, line: int, column: int
    ) -> EnclosingContext:
        """Describe the innermost function, lambda or scope containing a position.

        Raises:
            PositionError: If the position lies outside the file.
        """
        source_file = self.parse_file(path)
        offset = source_file.index.offset(line, column)

        scope = _smallest(_spans_containing(source_file.root, offset, _SCOPE_TYPES))
        if scope is not None:
            if scope.type == "lambda":
                return EnclosingContext(kind="lambda", function_name=ANONYMOUS_FUNCTION)
            recv_type, recv_name = _receiver(scope)
            return EnclosingContext(
                kind="method" if recv_type else "function",
                function_name=_name_of(scope),
                receiver_type=recv_type,
                receiver_name=recv_name,
            )

        owner = _smallest(
            _spans_containing(source_file.root, offset, frozenset({"class_definition"}))
        )
        if owner is not None:
            return EnclosingContext(
                kind="class",
                function_name=CLASS_BODY,
                receiver_type=_name_of(owner),
            )
        return EnclosingContext.module_scope()

    def call_expression_at(self, path: str | Path, line: int, column: int) -> str:
        """Return the exact source text of the innermost call containing a position.

        Raises:
            PositionError: If the position lies outside the file.
            NoCallExpressionError: If no call expression contains the position.
        """
        source_file = self.parse_file(path)
        offset = source_file.index.offset(line, column)

        call = _smallest(_spans_containing(source_file.root, offset, frozenset({"call"})))
        if call is None:
            msg = f"no call expression found at {source_file.path}:{line}:{column}"
            raise NoCallExpressionError(msg)
        return source_file.text(call)

    def is_binding_site(self, path: str | Path, line: int, column: int) -> bool:
        """Return True if a position names a ``def``/``class`` or sits in an import.

        Language servers report these as references of a function when the
        declaration is included, but they are not call sites.
        """
        source_file = self.parse_file(path)
        offset = source_file.index.offset(line, column)

        node: Node | None = source_file.root.descendant_for_byte_range(offset, offset)
        if node is None:
            return False

        parent = node.parent
        if (
            node.type == "identifier"
            and parent is not None
            and parent.type in ("function_definition", "class_definition")
        ):
            name = parent.child_by_field_name("name")
            if name is not None and name.start_byte == node.start_byte:
                return True

        current: Node | None = node
        while current is not None:
            if current.type in _IMPORT_TYPES:
                return True
            current = current.parent
        return False

    def protocol_column(
        self, path: str | Path, line: int, column: int, encoding: PositionEncoding
    ) -> int:
        """Convert a 1-based code-point column to protocol units."""
        return self.parse_file(path).index.to_units(line, column, encoding)

    def normalize_reference(
        self, reference: ReferenceLocation, encoding: PositionEncoding
    ) -> ReferenceLocation:
        """Convert a reference's protocol-unit columns to code-point columns."""
        if encoding == "utf-32":
            return reference
        index = self.parse_file(reference.path).index
        return reference.model_copy(
            update={
                "start_column": index.from_units(
                    reference.start_line, reference.start_column, encoding
                ),
                "end_column": index.from_units(
                    reference.end_line, reference.end_column, encoding
                ),
            }
        )

    @staticmethod
    def _top_level_functions(root: Node) -> Iterator[Node]:
        """Yield module-level functions and methods of module-level classes."""
        for child in root.children:
            definition = _unwrap_decorated(child)
            if definition is None:
                continue
            if definition.type == "function_definition":
                yield definition
            elif definition.type == "class_definition":
                body = definition.child_by_field_name("body")
                if body is None:
                    continue
                for member in body.children:
                    method = _unwrap_decorated(member)
                    if method is not None and method.type == "function_definition":
                        yield method


__all__ = ["Analyzer"]

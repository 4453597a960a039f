"""Parsing and positional analysis of Python source."""

from parse.analyzer import Analyzer
from parse.formatting import format_snippet
from parse.patterns import is_exported, matches_any
from parse.positions import PositionEncoding, PositionIndex
from parse.source import SourceFile, load_source_file

__all__ = [
    "Analyzer",
    "PositionEncoding",
    "PositionIndex",
    "SourceFile",
    "format_snippet",
    "is_exported",
    "load_source_file",
    "matches_any",
]

"""Grouped, optionally syntax-highlighted listing of result entries."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

from rich.console import Console
from rich.syntax import Syntax
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Iterable

    from models.results import ResultEntry

NO_STYLE = "none"
REPEAT_MARKER = "..."
LINE_NUMBER_WIDTH = 5


def _make_console(stream: IO[str], *, colored: bool) -> Console:
    if colored:
        return Console(
            file=stream,
            force_terminal=True,
            color_system="truecolor",
            no_color=False,
            highlight=False,
            soft_wrap=True,
            emoji=False,
        )
    return Console(
        file=stream,
        force_terminal=False,
        color_system=None,
        highlight=False,
        soft_wrap=True,
        emoji=False,
    )


def _source_lines(source: str, style: str | None) -> list[Text]:
    if style is None:
        return [Text(line) for line in source.split("\n")]
    syntax = Syntax(source, "python", theme=style, background_color="default")
    # Pygments terminates the highlighted text with an extra newline.
    line_count = source.count("\n") + 1
    return list(syntax.highlight(source).split("\n", allow_blank=True))[:line_count]


def print_entries(stream: IO[str], entries: Iterable[ResultEntry], style: str = NO_STYLE) -> None:
    """Print entries grouped by file and enclosing context.

    Each new file starts with a ``+++ file:line`` header and each new
    enclosing context with its display name. A call site under the same
    context as the previous one is introduced by ``...`` instead. Source
    lines carry a right-aligned line number.

    Args:
        stream: Text stream to write to
        entries: Entries in display order (callers sort first)
        style: Pygments style name; ``"none"`` (or empty) disables color.
            Unknown names fall back to the default style.
    """
    theme = style if style and style != NO_STYLE else None
    console = _make_console(stream, colored=theme is not None)

    last_file = ""
    last_context = ""
    for entry in entries:
        if entry.file != last_file:
            console.print()
            console.print(Text(f"+++ {entry.file}:{entry.line}"))
            last_file = entry.file
            last_context = ""

        context = entry.enclosing.display_name()
        if context != last_context:
            console.print()
            console.print(Text(context))
            last_context = context
        else:
            console.print(Text(REPEAT_MARKER))

        for offset, line in enumerate(_source_lines(entry.pretty_source, theme)):
            number = f"{entry.line + offset:{LINE_NUMBER_WIDTH}d}  "
            console.print(Text.assemble(number, line))


__all__ = ["print_entries"]

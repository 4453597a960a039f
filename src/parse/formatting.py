"""Display formatting for extracted call expressions."""

from __future__ import annotations

import ast


def format_snippet(source: str) -> str:
    """Re-render a standalone expression in canonical form.

    Best effort: if the snippet does not parse as an expression on its own,
    it is returned unchanged.

    Examples:
        >>> format_snippet("greeter.greet(  'x',\\n    name = 1 )")
        "greeter.greet('x', name=1)"
        >>> format_snippet("not valid (")
        'not valid ('
    """
    try:
        tree = ast.parse(source, mode="eval")
        return ast.unparse(tree)
    except (SyntaxError, ValueError, RecursionError):
        return source


__all__ = ["format_snippet"]

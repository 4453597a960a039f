"""Name-pattern matching for function and method definitions."""

from __future__ import annotations

from fnmatch import fnmatchcase


def is_exported(name: str) -> bool:
    """Return True for names that are part of a module's public surface."""
    return bool(name) and not name.startswith("_")


def matches_any(function_name: str, receiver_type: str, patterns: list[str]) -> bool:
    """Check a definition against name patterns.

    A pattern is either a glob on the function name (``fetch_*``) or a
    ``ClassGlob.methodGlob`` pair split on the first ``.``. Receiver-qualified
    patterns never match functions without a receiver. Any single matching
    pattern is enough.

    Examples:
        >>> matches_any("greet", "Greeter", ["Greet*.greet"])
        True
        >>> matches_any("greet", "", ["Greeter.greet"])
        False
        >>> matches_any("compute_value", "", ["nope", "compute_*"])
        True
    """
    for pattern in patterns:
        name_pattern = pattern
        class_pattern, sep, method_pattern = pattern.partition(".")
        if sep:
            if not receiver_type or not fnmatchcase(receiver_type, class_pattern):
                continue
            name_pattern = method_pattern

        if fnmatchcase(function_name, name_pattern):
            return True
    return False


__all__ = ["is_exported", "matches_any"]

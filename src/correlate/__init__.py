"""Reference correlation: definitions, server references and call context."""

from correlate.matcher import ReferenceMatcher

__all__ = ["ReferenceMatcher"]

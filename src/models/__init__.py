"""Model namespace for callmap records."""

from models.definitions import (
    ANONYMOUS_FUNCTION,
    CLASS_BODY,
    GLOBAL_SCOPE,
    DefinitionSite,
    EnclosingContext,
)
from models.references import ReferenceLocation
from models.results import ResultEntry

__all__ = [
    "ANONYMOUS_FUNCTION",
    "CLASS_BODY",
    "GLOBAL_SCOPE",
    "DefinitionSite",
    "EnclosingContext",
    "ReferenceLocation",
    "ResultEntry",
]

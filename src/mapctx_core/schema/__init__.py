"""
Configuration document schema.

The document contract is declared as pydantic models (closed world: unknown
fields are rejected) and checked by :func:`validate_document`, which returns
structured ``Violation(path, reason)`` entries instead of raising.
"""

from .document import (
    ConfigDocument,
    ContextDocument,
    ContextEntry,
    GroupDocument,
    GroupEntry,
)
from .validator import (
    document_json_schema,
    format_path,
    parse_document,
    parse_layers,
    validate_document,
)

__all__ = [
    "ConfigDocument",
    "ContextDocument",
    "ContextEntry",
    "GroupDocument",
    "GroupEntry",
    "document_json_schema",
    "format_path",
    "parse_document",
    "parse_layers",
    "validate_document",
]

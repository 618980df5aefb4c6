"""Validate configuration documents into structured violation lists."""

from typing import Any, Dict, Iterable, List, Sequence, Set, Tuple, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from ..errors import SchemaError, Violation
from ..models import Layer, LayerBase
from .document import ConfigDocument, ContextEntry, GroupDocument, GroupEntry


# Containers whose values are tagged unions; pydantic inserts the tag of the
# matched variant into the error location right after the union position.
_UNION_LISTS = frozenset({"layers", "statistics", "items"})
_UNION_FIELDS = frozenset({"legend"})


def _is_union_tag(loc: Sequence[Union[str, int]], index: int) -> bool:
    segment = loc[index]
    if index == 0 or not isinstance(segment, str):
        return False
    previous = loc[index - 1]
    if isinstance(previous, int):
        return index >= 2 and loc[index - 2] in _UNION_LISTS
    return previous in _UNION_FIELDS


def format_path(loc: Iterable[Union[str, int]]) -> str:
    """
    Join a pydantic error location into a dotted document path.

    Union tags (``layers.0.wms.serverUrls``) are dropped so that paths point
    at real document locations (``layers.0.serverUrls``).
    """
    segments = list(loc)
    return ".".join(
        str(segment)
        for index, segment in enumerate(segments)
        if not _is_union_tag(segments, index)
    )


def _shape_violations(exc: PydanticValidationError) -> List[Violation]:
    return [Violation(format_path(err["loc"]), err["msg"]) for err in exc.errors()]


def _duplicate_layer_violations(layers: Iterable[LayerBase]) -> List[Violation]:
    violations: List[Violation] = []
    seen: Set[int] = set()
    for index, layer in enumerate(layers):
        if layer.id in seen:
            violations.append(Violation(f"layers.{index}.id", f"Duplicate layer id {layer.id}"))
        seen.add(layer.id)
    return violations


def _reference_violations(document: ConfigDocument) -> List[Violation]:
    """Checks the model cannot express: unique ids and resolvable tree entries."""
    violations = _duplicate_layer_violations(document.layers)

    # Groups and contexts share one identity space.
    node_ids: Set[int] = set()
    context_ids: Set[int] = set()
    for index, context in enumerate(document.contexts):
        if context.id in node_ids:
            violations.append(
                Violation(f"contexts.{index}.id", f"Duplicate context id {context.id}")
            )
        node_ids.add(context.id)
        context_ids.add(context.id)

    placed: Set[int] = set()
    stack: List[Tuple[str, GroupDocument]] = [("group", document.group)]
    while stack:
        path, group = stack.pop()
        if group.id in node_ids:
            violations.append(Violation(f"{path}.id", f"Duplicate group id {group.id}"))
        node_ids.add(group.id)
        children: List[Tuple[str, GroupDocument]] = []
        for index, entry in enumerate(group.items):
            entry_path = f"{path}.items.{index}"
            if isinstance(entry, ContextEntry):
                if entry.context not in context_ids:
                    violations.append(
                        Violation(f"{entry_path}.context", f"Unknown context id {entry.context}")
                    )
                elif entry.context in placed:
                    violations.append(
                        Violation(
                            f"{entry_path}.context",
                            f"Context {entry.context} appears more than once in the tree",
                        )
                    )
                placed.add(entry.context)
            elif isinstance(entry, GroupEntry):
                children.append((f"{entry_path}.group", entry.group))
        # Reversed so groups are visited in document order.
        stack.extend(reversed(children))

    return violations


def validate_document(raw: Any) -> List[Violation]:
    """
    Validate a candidate configuration document.

    Pure function: never raises for bad input, never mutates ``raw``.

    Args:
        raw: Decoded JSON value

    Returns:
        List of violations (empty if the document is acceptable)
    """
    try:
        document = ConfigDocument.model_validate(raw)
    except PydanticValidationError as exc:
        return _shape_violations(exc)
    return _reference_violations(document)


def parse_document(raw: Any) -> ConfigDocument:
    """
    Validate and parse a configuration document.

    Raises:
        SchemaError: If the document has any violation
    """
    try:
        document = ConfigDocument.model_validate(raw)
    except PydanticValidationError as exc:
        raise SchemaError(_shape_violations(exc)) from None
    violations = _reference_violations(document)
    if violations:
        raise SchemaError(violations)
    return document


def document_json_schema() -> Dict[str, Any]:
    """JSON Schema for configuration documents (usable as ``$schema`` target)."""
    return ConfigDocument.model_json_schema(by_alias=True)


_LAYERS_ADAPTER = TypeAdapter(List[Layer])


def parse_layers(raw: Any) -> List[LayerBase]:
    """
    Validate a replacement layer catalog (the ``layers`` array on its own).

    Raises:
        SchemaError: On shape violations or duplicate layer ids
    """
    try:
        layers = _LAYERS_ADAPTER.validate_python(raw)
    except PydanticValidationError as exc:
        raise SchemaError(
            [Violation(format_path(("layers", *err["loc"])), err["msg"]) for err in exc.errors()]
        ) from None
    violations = _duplicate_layer_violations(layers)
    if violations:
        raise SchemaError(violations)
    return layers

"""In-memory configuration state, document loading and serialization."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .derived import set_contexts_times
from .labels import resolve_label
from .models import Context, Group, LayerBase
from .schema.document import (
    ConfigDocument,
    ContextDocument,
    ContextEntry,
    GroupDocument,
    GroupEntry,
)
from .tree import NodeArena

logger = logging.getLogger(__name__)

DEFAULT_LOCALES = ("en",)


@dataclass
class LayerInfo:
    """Layer information panel request (file to show and its title)."""

    file_name: str
    label: str


@dataclass
class MapConfigState:
    """The single mutable configuration tree plus derived and session state."""

    arena: NodeArena
    layers: List[LayerBase] = field(default_factory=list)
    contexts: List[int] = field(default_factory=list)
    locale: str = DEFAULT_LOCALES[0]
    locales: List[str] = field(default_factory=lambda: list(DEFAULT_LOCALES))

    # Derived
    active_context_ids: List[int] = field(default_factory=list)
    contexts_times: Dict[int, str] = field(default_factory=dict)

    # Editing session
    editing: bool = False
    edit_target: Optional[int] = None
    edit_layers: bool = False
    layer_info: Optional[LayerInfo] = None
    kml_overlay: Optional[str] = None
    feedback_enabled: bool = False

    @property
    def root(self) -> Group:
        return self.arena.root

    @property
    def edit_group(self) -> Optional[Group]:
        if self.edit_target is None:
            return None
        return self.arena.get_group(self.edit_target)

    @property
    def edit_context(self) -> Optional[Context]:
        if self.edit_target is None:
            return None
        return self.arena.get_context(self.edit_target)

    def layer_by_id(self, layer_id: int) -> Optional[LayerBase]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def context_by_id(self, context_id: int) -> Optional[Context]:
        """Context from the flat context list (attached or not)."""
        if context_id not in self.contexts:
            return None
        return self.arena.get_context(context_id)

    def iter_contexts(self) -> List[Context]:
        """Contexts of the flat list, in list order."""
        result = []
        for context_id in self.contexts:
            context = self.arena.get_context(context_id)
            if context is not None:
                result.append(context)
        return result

    def resolve_layer_ids(self, layer_ids: Sequence[int]) -> List[int]:
        """Keep the ids present in the catalog, in the given order; unknown ids are dropped."""
        known = {layer.id for layer in self.layers}
        resolved = [layer_id for layer_id in layer_ids if layer_id in known]
        dropped = len(layer_ids) - len(resolved)
        if dropped:
            logger.debug("Dropped %d unresolved layer reference(s)", dropped)
        return resolved


def _build_group(
    doc: GroupDocument,
    parent: Optional[int],
    arena: NodeArena,
    contexts: Dict[int, Context],
    locale: str,
    locales: Sequence[str],
) -> Group:
    labels = dict(doc.labels or {})
    group = Group(
        id=doc.id,
        label=resolve_label(labels, locale, locales),
        labels=labels,
        info_file=doc.info_file,
        exclusive=bool(doc.exclusive),
        parent=parent,
    )
    arena.add(group)
    for entry in doc.items:
        if isinstance(entry, GroupEntry):
            child = _build_group(entry.group, group.id, arena, contexts, locale, locales)
            group.items.append(child.id)
        elif isinstance(entry, ContextEntry) and entry.context in contexts:
            contexts[entry.context].parent = group.id
            group.items.append(entry.context)
    return group


def _build_context(doc: ContextDocument, locale: str, locales: Sequence[str]) -> Context:
    labels = dict(doc.labels or {})
    return Context(
        id=doc.id,
        label=resolve_label(labels, locale, locales),
        labels=labels,
        info_file=doc.info_file,
        inline_legend_url=doc.inline_legend_url,
        download_url=doc.download_url,
        active=bool(doc.active),
        layers=list(doc.layers),
    )


def build_state(
    document: ConfigDocument,
    locale: str = DEFAULT_LOCALES[0],
    locales: Sequence[str] = DEFAULT_LOCALES,
) -> MapConfigState:
    """
    Construct a fresh state from a validated document.

    Context layer references are resolved against the catalog (unknown ids
    dropped), times are aggregated and the active set is seeded from each
    context's ``active`` flag in flat-list order.
    """
    contexts = {doc.id: _build_context(doc, locale, locales) for doc in document.contexts}
    # The placeholder root is replaced when the real root is built.
    arena = NodeArena(Group(id=document.group.id))
    for context in contexts.values():
        arena.add(context)
    _build_group(document.group, None, arena, contexts, locale, locales)

    state = MapConfigState(
        arena=arena,
        layers=list(document.layers),
        contexts=[doc.id for doc in document.contexts],
        locale=locale,
        locales=list(locales),
    )
    for context in contexts.values():
        context.layers = state.resolve_layer_ids(context.layers)

    set_contexts_times(state)
    state.active_context_ids = [c.id for c in state.iter_contexts() if c.active]

    logger.info(
        "Loaded configuration: %d layers, %d contexts, %d groups",
        len(state.layers),
        len(state.contexts),
        sum(1 for node in arena.walk() if isinstance(node, Group)),
    )
    return state


def _document_labels(labels: Dict[str, str], label: str, locale: str) -> Optional[Dict[str, str]]:
    if labels:
        return dict(labels)
    return {locale: label} if label else None


def _dump_group(state: MapConfigState, group: Group) -> Dict[str, Any]:
    items: List[Dict[str, Any]] = []
    for child in state.arena.children(group.id):
        if isinstance(child, Group):
            items.append({"group": _dump_group(state, child)})
        else:
            items.append({"context": child.id})
    data: Dict[str, Any] = {"id": group.id}
    labels = _document_labels(group.labels, group.label, state.locale)
    if labels:
        data["labels"] = labels
    if group.info_file:
        data["infoFile"] = group.info_file
    if group.exclusive:
        data["exclusive"] = True
    data["items"] = items
    return data


def _dump_context(state: MapConfigState, context: Context) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": context.id}
    labels = _document_labels(context.labels, context.label, state.locale)
    if labels:
        data["labels"] = labels
    optional = {
        "infoFile": context.info_file,
        "inlineLegendUrl": context.inline_legend_url,
        "downloadUrl": context.download_url,
    }
    data.update({key: value for key, value in optional.items() if value})
    if context.active:
        data["active"] = True
    data["layers"] = list(context.layers)
    return data


def to_document(state: MapConfigState, schema_url: Optional[str] = None) -> Dict[str, Any]:
    """
    Serialize the tree back to the document shape accepted on load.

    Only contexts reachable from the root are written (in flat-list order);
    detached nodes never reach a persisted document.
    """
    attached = state.arena.attached_ids()
    document: Dict[str, Any] = {}
    if schema_url:
        document["$schema"] = schema_url
    document["layers"] = [
        layer.model_dump(mode="json", by_alias=True, exclude_none=True, exclude_unset=True)
        for layer in state.layers
    ]
    document["contexts"] = [
        _dump_context(state, context)
        for context in state.iter_contexts()
        if context.id in attached
    ]
    document["group"] = _dump_group(state, state.root)
    return document

"""Operator-driven state transitions.

Every mutation works in place on a :class:`MapConfigState` under a single
writer. Preconditions are checked before anything is written, so a failed
precondition leaves the state untouched; it is logged and reported through
the return value (``False`` / ``None``) instead of raising.

``MUTATIONS`` maps mutation names to functions for name-based dispatch via
:func:`commit`.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .derived import set_contexts_times
from .labels import localized_labels, resolve_label
from .models import Context, Group, LayerBase
from .schema.document import ConfigDocument
from .state import LayerInfo, MapConfigState, build_state

logger = logging.getLogger(__name__)

NEW_GROUP_LABEL = "New group"
NEW_CONTEXT_LABEL = "New context"

_KEEP: Any = object()

_CONFIG_FIELDS = (
    "arena",
    "layers",
    "contexts",
    "active_context_ids",
    "contexts_times",
    "edit_target",
)


# Session flags


def enable_edit(state: MapConfigState, editing: bool) -> bool:
    state.editing = editing
    return True


def edit_layers(state: MapConfigState, edit: bool) -> bool:
    state.edit_layers = edit
    return True


def show_layer_info(state: MapConfigState, file_name: Optional[str], label: str = "") -> bool:
    """Open the layer information panel for ``file_name`` (None closes it)."""
    state.layer_info = LayerInfo(file_name=file_name, label=label) if file_name else None
    return True


def overlay_kml(state: MapConfigState, kml: Optional[str]) -> bool:
    state.kml_overlay = kml
    return True


def enable_feedback(state: MapConfigState, enable: bool) -> bool:
    state.feedback_enabled = enable
    return True


# Tree editing


def add_group(
    state: MapConfigState,
    parent_id: Optional[int] = None,
    labels: Optional[Mapping[str, str]] = None,
) -> Optional[int]:
    """
    Append a new empty group to ``parent_id`` (the root by default).

    Returns:
        The new group id, or None if the parent is not an attached group
    """
    target_id = state.arena.root_id if parent_id is None else parent_id
    parent = state.arena.find_by_id(target_id)
    if not isinstance(parent, Group):
        logger.debug("add_group: parent %s is not a group in the tree", target_id)
        return None

    group_labels = localized_labels(labels, NEW_GROUP_LABEL, state.locales)
    group = Group(
        id=state.arena.next_id(),
        label=resolve_label(group_labels, state.locale, state.locales),
        labels=group_labels,
        parent=parent.id,
    )
    state.arena.add(group)
    parent.items.append(group.id)
    return group.id


def add_context(state: MapConfigState, labels: Optional[Mapping[str, str]] = None) -> int:
    """Append a new context with no layers to the root and to the flat context list."""
    context_labels = localized_labels(labels, NEW_CONTEXT_LABEL, state.locales)
    root = state.root
    context = Context(
        id=state.arena.next_id(),
        label=resolve_label(context_labels, state.locale, state.locales),
        labels=context_labels,
        parent=root.id,
        layers=[],
        times=[],
    )
    state.arena.add(context)
    root.items.append(context.id)
    state.contexts.append(context.id)
    return context.id


def edit_item(state: MapConfigState, id: int) -> bool:
    """Select a group or context for editing; an unknown id clears the selection."""
    node = state.arena.find_by_id(id)
    state.edit_target = node.id if node is not None else None
    return node is not None


def delete_item(state: MapConfigState, id: int) -> bool:
    """
    Detach a node from its parent's items.

    Not recursive: descendants stay in the arena under the detached node and
    contexts stay in the flat list until :func:`prune_orphans` runs.
    """
    node = state.arena.find_by_id(id)
    if node is None:
        logger.debug("delete_item: %s not found", id)
        return False
    parent = state.arena.parent_of(node.id)
    if parent is None:
        logger.debug("delete_item: %s has no parent", id)
        return False

    parent.items = [item_id for item_id in parent.items if item_id != node.id]
    node.parent = None
    if state.edit_target == node.id:
        state.edit_target = None
    return True


def save_group(
    state: MapConfigState,
    id: int,
    label: str,
    labels: Mapping[str, str],
    exclusive: bool,
    info_file: Optional[str],
) -> bool:
    group = state.arena.find_by_id(id)
    if not isinstance(group, Group):
        logger.debug("save_group: %s is not a group in the tree", id)
        return False
    group.label = label
    group.labels = dict(labels)
    group.exclusive = exclusive
    group.info_file = info_file
    return True


def save_context(
    state: MapConfigState,
    id: int,
    label: str,
    labels: Mapping[str, str],
    info_file: Optional[str],
    active: bool,
    inline_legend_url: Optional[str],
    layer_ids: Sequence[int],
    download_url: Optional[str] = _KEEP,
) -> bool:
    """Overwrite a context's fields and re-resolve its layers against the live catalog."""
    context = state.arena.find_by_id(id)
    if not isinstance(context, Context):
        logger.debug("save_context: %s is not a context in the tree", id)
        return False
    context.label = label
    context.labels = dict(labels)
    context.info_file = info_file
    context.active = active
    context.inline_legend_url = inline_legend_url
    if download_url is not _KEEP:
        context.download_url = download_url
    context.layers = state.resolve_layer_ids(list(layer_ids))

    set_contexts_times(state)
    return True


def reparent(state: MapConfigState, changes: Mapping[int, Sequence[int]]) -> bool:
    """
    Replace the ordered ``items`` of one or more groups in a single step.

    Every listed item gets its ``parent`` re-stamped to its new group. Items
    taken from a group that is not part of ``changes`` are removed from that
    group; items dropped from a changed group and not listed elsewhere are
    detached.

    Preconditions: every group exists, every item exists and is listed once,
    the root is never an item and no group ends up inside itself.
    """
    arena = state.arena
    groups: Dict[int, Group] = {}
    for group_id in changes:
        group = arena.get_group(group_id)
        if group is None:
            logger.debug("reparent: group %s not found", group_id)
            return False
        groups[group_id] = group

    new_parent: Dict[int, int] = {}
    for group_id, item_ids in changes.items():
        for item_id in item_ids:
            if item_id == arena.root_id or item_id not in arena.nodes:
                logger.debug("reparent: invalid item %s", item_id)
                return False
            if item_id in new_parent:
                logger.debug("reparent: item %s listed more than once", item_id)
                return False
            new_parent[item_id] = group_id

    def parent_after(node_id: int) -> Optional[int]:
        if node_id in new_parent:
            return new_parent[node_id]
        parent = arena.nodes[node_id].parent
        if parent in changes:
            # Dropped from a changed group without being placed elsewhere.
            return None
        return parent

    for item_id in new_parent:
        if not isinstance(arena.nodes[item_id], Group):
            continue
        seen = {item_id}
        current = parent_after(item_id)
        while current is not None:
            if current in seen:
                logger.debug("reparent: moving group %s would create a cycle", item_id)
                return False
            seen.add(current)
            current = parent_after(current) if current in arena.nodes else None

    for group_id, group in groups.items():
        for old_id in group.items:
            if old_id not in new_parent and old_id in arena.nodes:
                arena.nodes[old_id].parent = None

    for item_id in new_parent:
        old_parent_id = arena.nodes[item_id].parent
        if old_parent_id is None or old_parent_id in changes:
            continue
        old_parent = arena.get_group(old_parent_id)
        if old_parent is not None:
            old_parent.items = [i for i in old_parent.items if i != item_id]

    for group_id, item_ids in changes.items():
        groups[group_id].items = list(item_ids)
        for item_id in item_ids:
            arena.nodes[item_id].parent = group_id
    return True


def update_group(state: MapConfigState, group_id: int, item_ids: Sequence[int]) -> bool:
    """Drag-and-drop handler: replace one group's items and re-stamp their parents."""
    return reparent(state, {group_id: item_ids})


def move_item(
    state: MapConfigState,
    id: int,
    group_id: int,
    position: Optional[int] = None,
) -> bool:
    """Move a node into ``group_id`` at ``position`` (appended by default)."""
    node = state.arena.find_by_id(id)
    target = state.arena.find_by_id(group_id)
    if node is None or not isinstance(target, Group):
        logger.debug("move_item: %s or group %s not found", id, group_id)
        return False

    target_items = [item_id for item_id in target.items if item_id != node.id]
    index = len(target_items) if position is None else max(0, min(position, len(target_items)))
    target_items.insert(index, node.id)
    changes: Dict[int, List[int]] = {target.id: target_items}

    source = state.arena.parent_of(node.id)
    if source is not None and source.id != target.id:
        changes[source.id] = [item_id for item_id in source.items if item_id != node.id]
    return reparent(state, changes)


def prune_orphans(state: MapConfigState) -> List[int]:
    """
    Drop every node that is no longer reachable from the root.

    Detached contexts also leave the flat list, the active set and
    ``contexts_times``.

    Returns:
        Ids of the removed nodes, sorted
    """
    orphans = state.arena.detached_ids()
    if not orphans:
        return []
    for node_id in orphans:
        del state.arena.nodes[node_id]
    state.contexts = [c for c in state.contexts if c not in orphans]
    state.active_context_ids = [c for c in state.active_context_ids if c not in orphans]
    state.contexts_times = {
        c: t for c, t in state.contexts_times.items() if c not in orphans
    }
    if state.edit_target in orphans:
        state.edit_target = None
    logger.info("Pruned %d detached node(s)", len(orphans))
    return sorted(orphans)


# Catalog and derived state


def update_layers(state: MapConfigState, layers: Sequence[LayerBase]) -> bool:
    """
    Replace the layer catalog and re-resolve every context's layers.

    Layers whose id is no longer in the catalog are dropped from contexts.
    Rejected (no-op) if the new catalog repeats an id.
    """
    ids = [layer.id for layer in layers]
    if len(ids) != len(set(ids)):
        logger.debug("update_layers: catalog has duplicate layer ids")
        return False

    state.layers = list(layers)
    for context in state.iter_contexts():
        context.layers = state.resolve_layer_ids(context.layers)
    set_contexts_times(state)
    return True


def receive_config(state: MapConfigState, document: ConfigDocument) -> bool:
    """
    Replace the configuration in place from a validated document (load or restore).

    The tree, catalog, flat context list, times and active set are rebuilt and
    the edit target is cleared. Session flags (edit mode, layer info panel, KML
    overlay, feedback) are kept.
    """
    fresh = build_state(document, state.locale, state.locales)
    for name in _CONFIG_FIELDS:
        setattr(state, name, getattr(fresh, name))
    return True


def toggle_context(state: MapConfigState, context_id: int) -> bool:
    """Flip membership of ``context_id`` in the active set."""
    if state.context_by_id(context_id) is None:
        logger.debug("toggle_context: context %s not found", context_id)
        return False
    if context_id in state.active_context_ids:
        state.active_context_ids.remove(context_id)
    else:
        state.active_context_ids.append(context_id)
    return True


def set_context_time(state: MapConfigState, context_id: int, time: str) -> bool:
    state.contexts_times[context_id] = time
    return True


MUTATIONS: Dict[str, Callable[..., Any]] = {
    "enable_edit": enable_edit,
    "add_group": add_group,
    "add_context": add_context,
    "edit_item": edit_item,
    "delete_item": delete_item,
    "edit_layers": edit_layers,
    "save_group": save_group,
    "save_context": save_context,
    "receive_config": receive_config,
    "toggle_context": toggle_context,
    "show_layer_info": show_layer_info,
    "set_context_time": set_context_time,
    "overlay_kml": overlay_kml,
    "enable_feedback": enable_feedback,
    "update_group": update_group,
    "reparent": reparent,
    "move_item": move_item,
    "update_layers": update_layers,
    "prune_orphans": prune_orphans,
}


def commit(state: MapConfigState, name: str, **payload: Any) -> Any:
    """
    Apply the mutation registered under ``name``.

    Raises:
        KeyError: If no mutation has that name
    """
    try:
        mutation = MUTATIONS[name]
    except KeyError:
        raise KeyError(f"Unknown mutation: {name}") from None
    return mutation(state, **payload)

"""Derived state: per-context times and the active layer set.

Nothing here is cached. Times are recomputed in full by the mutations that
can change them; active and queryable layers are computed on demand.
"""

from typing import TYPE_CHECKING, Dict, List, Set

from .models import LayerBase, WmsLayer, layer_statistics, layer_times
from .times import merge_times

if TYPE_CHECKING:
    from .state import MapConfigState


def context_layers(state: "MapConfigState", context_id: int) -> List[LayerBase]:
    """Layers of a context, in context order (ids missing from the catalog skipped)."""
    context = state.arena.get_context(context_id)
    if context is None:
        return []
    by_id = {layer.id: layer for layer in state.layers}
    return [by_id[layer_id] for layer_id in context.layers if layer_id in by_id]


def set_contexts_times(state: "MapConfigState") -> None:
    """
    Recompute ``times`` of every context and reset ``contexts_times``.

    A context's times are the union of its WMS layers' times (exact-string
    de-duplication, ascending by instant). Its current time defaults to the
    latest instant; contexts without times get no entry.
    """
    contexts_times: Dict[int, str] = {}
    for context in state.iter_contexts():
        sequences = [
            layer_times(layer)
            for layer in context_layers(state, context.id)
            if isinstance(layer, WmsLayer) and layer_times(layer)
        ]
        context.times = merge_times(sequences)
        if context.times:
            contexts_times[context.id] = context.times[-1]
    state.contexts_times = contexts_times


def active_layers(state: "MapConfigState") -> List[LayerBase]:
    """
    Layers of every active context, without duplicates.

    Order: contexts in flat-list order, layers in context order, first
    occurrence wins.
    """
    active = set(state.active_context_ids)
    seen: Set[int] = set()
    result: List[LayerBase] = []
    for context in state.iter_contexts():
        if context.id not in active:
            continue
        for layer in context_layers(state, context.id):
            if layer.id in seen:
                continue
            seen.add(layer.id)
            result.append(layer)
    return result


def queryable_layers(state: "MapConfigState") -> List[LayerBase]:
    """Active layers that declare at least one statistics descriptor."""
    return [layer for layer in active_layers(state) if layer_statistics(layer)]

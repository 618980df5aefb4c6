"""Tests for operator mutations on the configuration state."""

import pytest

from mapctx_core.models import Context, Group, WmsLayer
from mapctx_core.mutations import MUTATIONS, commit
from mapctx_core.schema import parse_document, parse_layers
from mapctx_core.state import to_document


def _items(state, group_id):
    return list(state.arena.get_group(group_id).items)


class TestAddAndEdit:
    def test_add_group_appends_to_root_with_placeholder_labels(self, state):
        group_id = commit(state, "add_group")
        assert _items(state, 100)[-1] == group_id
        group = state.arena.get_group(group_id)
        assert group.parent == 100
        assert group.labels == {"en": "New group", "fr": "New group"}
        assert group.label == "New group"
        assert group.items == []

    def test_add_group_under_subgroup(self, state):
        group_id = commit(state, "add_group", parent_id=102, labels={"fr": "Nouveau"})
        assert _items(state, 102)[-1] == group_id
        assert state.arena.get_group(group_id).labels == {"fr": "Nouveau", "en": "New group"}

    def test_add_group_with_unknown_parent_is_noop(self, state):
        before = to_document(state)
        assert commit(state, "add_group", parent_id=999) is None
        assert commit(state, "add_group", parent_id=10) is None  # a context
        assert to_document(state) == before

    def test_new_ids_never_collide(self, state):
        group_id = commit(state, "add_group")
        context_id = commit(state, "add_context")
        assert group_id not in (10, 11, 12, 100, 101, 102)
        assert context_id != group_id

    def test_add_context(self, state):
        context_id = commit(state, "add_context")
        context = state.arena.get_context(context_id)
        assert context.layers == [] and context.times == []
        assert context.parent == 100
        assert _items(state, 100)[-1] == context_id
        assert state.contexts[-1] == context_id
        assert context.label == "New context"

    def test_edit_item_selects_group_or_context(self, state):
        assert commit(state, "edit_item", id=101)
        assert state.edit_group.id == 101
        assert state.edit_context is None
        assert commit(state, "edit_item", id=12)
        assert state.edit_context.id == 12
        assert state.edit_group is None

    def test_edit_item_unknown_id_clears_selection(self, state):
        commit(state, "edit_item", id=12)
        assert not commit(state, "edit_item", id=999)
        assert state.edit_target is None

    def test_session_flags(self, state):
        commit(state, "enable_edit", editing=True)
        commit(state, "edit_layers", edit=True)
        commit(state, "enable_feedback", enable=True)
        commit(state, "overlay_kml", kml="<kml/>")
        commit(state, "show_layer_info", file_name="roads.html", label="Roads")
        assert state.editing and state.edit_layers and state.feedback_enabled
        assert state.kml_overlay == "<kml/>"
        assert state.layer_info.file_name == "roads.html"
        commit(state, "show_layer_info", file_name=None)
        assert state.layer_info is None

    def test_unknown_mutation_name(self, state):
        with pytest.raises(KeyError):
            commit(state, "explode")

    def test_registry_covers_every_operation(self):
        expected = {
            "enable_edit", "add_group", "add_context", "edit_item", "delete_item",
            "edit_layers", "save_group", "save_context", "receive_config",
            "toggle_context", "show_layer_info", "set_context_time", "overlay_kml",
            "enable_feedback", "update_group", "reparent", "move_item",
            "update_layers", "prune_orphans",
        }
        assert set(MUTATIONS) == expected


class TestSave:
    def test_save_group(self, state):
        assert commit(
            state, "save_group", id=102, label="Deep", labels={"en": "Deep", "fr": "Profond"},
            exclusive=True, info_file="deep.html",
        )
        group = state.arena.get_group(102)
        assert (group.label, group.exclusive, group.info_file) == ("Deep", True, "deep.html")
        assert group.labels["fr"] == "Profond"

    def test_save_group_on_context_is_noop(self, state):
        assert not commit(state, "save_group", id=10, label="x", labels={}, exclusive=False, info_file=None)
        assert state.arena.get_context(10).label == "Transport"

    def test_save_context_re_resolves_layers_and_times(self, state):
        assert commit(
            state, "save_context", id=11, label="Base", labels={"en": "Base"}, info_file=None,
            active=True, inline_legend_url="https://legend", layer_ids=[2, 999, 4],
        )
        context = state.arena.get_context(11)
        assert context.layers == [2, 4]
        assert context.active is True
        assert context.inline_legend_url == "https://legend"
        assert context.times == ["2020-01-02", "2020-01-03"]
        assert state.contexts_times[11] == "2020-01-03"

    def test_save_context_keeps_download_url_unless_given(self, state):
        payload = dict(id=12, label="S", labels={}, info_file=None, active=False, inline_legend_url=None, layer_ids=[5])
        commit(state, "save_context", **payload)
        assert state.arena.get_context(12).download_url == "https://example.org/stats.zip"
        commit(state, "save_context", download_url=None, **payload)
        assert state.arena.get_context(12).download_url is None

    def test_save_context_on_group_is_noop(self, state):
        assert not commit(
            state, "save_context", id=101, label="x", labels={}, info_file=None,
            active=False, inline_legend_url=None, layer_ids=[],
        )


class TestDelete:
    def test_delete_context(self, state):
        assert commit(state, "delete_item", id=10)
        assert 10 not in _items(state, 100)
        assert state.arena.find_by_id(10) is None

    def test_delete_is_not_recursive(self, state):
        assert commit(state, "delete_item", id=101)
        # The subtree is detached but still present; contexts stay in the flat list.
        assert state.arena.get(102) is not None
        assert state.arena.get_group(101).items == [11, 102]
        assert 11 in state.contexts and 12 in state.contexts
        assert state.arena.detached_ids() == {101, 102, 11, 12}

    def test_delete_unknown_or_root_is_noop(self, state):
        before = to_document(state)
        assert not commit(state, "delete_item", id=999)
        assert not commit(state, "delete_item", id=100)
        assert to_document(state) == before

    def test_delete_clears_edit_selection(self, state):
        commit(state, "edit_item", id=12)
        commit(state, "delete_item", id=12)
        assert state.edit_target is None

    def test_prune_orphans_reclaims_detached_subtree(self, state):
        commit(state, "toggle_context", context_id=12)
        commit(state, "delete_item", id=101)
        removed = commit(state, "prune_orphans")
        assert removed == [11, 12, 101, 102]
        assert state.contexts == [10]
        assert state.active_context_ids == [10]
        assert 12 not in state.contexts_times
        assert state.arena.get(101) is None

    def test_prune_orphans_without_orphans(self, state):
        assert commit(state, "prune_orphans") == []


class TestReparent:
    def test_update_group_restamps_parents(self, state):
        assert commit(state, "update_group", group_id=102, item_ids=[12, 10])
        assert _items(state, 102) == [12, 10]
        assert state.arena.get(10).parent == 102
        # Taken from the root, which was not part of the change.
        assert _items(state, 100) == [101]

    def test_reparent_two_groups_atomically(self, state):
        assert commit(state, "reparent", changes={100: [101], 101: [10, 11, 102]})
        assert _items(state, 100) == [101]
        assert _items(state, 101) == [10, 11, 102]
        assert state.arena.get(10).parent == 101

    def test_reordering_within_a_group(self, state):
        assert commit(state, "update_group", group_id=100, item_ids=[101, 10])
        assert _items(state, 100) == [101, 10]

    def test_dropped_items_become_detached(self, state):
        assert commit(state, "update_group", group_id=101, item_ids=[102])
        assert state.arena.get(11).parent is None
        assert 11 in state.arena.detached_ids()

    def test_move_item_between_groups(self, state):
        before_source, before_target = len(_items(state, 101)), len(_items(state, 102))
        assert commit(state, "move_item", id=11, group_id=102, position=0)
        assert len(_items(state, 101)) == before_source - 1
        assert len(_items(state, 102)) == before_target + 1
        assert _items(state, 102) == [11, 12]
        assert state.arena.parent_of(11).id == 102

    def test_cycle_is_rejected(self, state):
        before = to_document(state)
        assert not commit(state, "move_item", id=101, group_id=102)
        assert not commit(state, "update_group", group_id=102, item_ids=[12, 101])
        assert to_document(state) == before

    @pytest.mark.parametrize(
        "changes",
        [
            {999: [10]},
            {100: [10, 10]},
            {100: [10], 101: [10]},
            {100: [100]},
            {100: [999]},
            {10: [11]},
        ],
    )
    def test_invalid_changes_are_noops(self, state, changes):
        before = to_document(state)
        assert not commit(state, "reparent", changes=changes)
        assert to_document(state) == before
        assert [n.id for n in state.arena.walk()] == [100, 10, 101, 11, 102, 12]


class TestLayersAndActiveSet:
    def test_update_layers_drops_stale_references(self, state):
        new_catalog = parse_layers(
            [
                {"id": 2, "serverUrls": ["https://x"], "name": "rivers", "times": ["2021-05-01"]},
                {"id": 3, "type": "osm"},
            ]
        )
        assert commit(state, "update_layers", layers=new_catalog)
        assert state.arena.get_context(10).layers == [2, 3]
        assert state.arena.get_context(12).layers == []
        assert state.arena.get_context(10).times == ["2021-05-01"]
        assert state.contexts_times == {10: "2021-05-01"}

    def test_update_layers_rejects_duplicate_ids(self, state):
        duplicated = [WmsLayer(id=1, serverUrls=["u"], name="a"), WmsLayer(id=1, serverUrls=["u"], name="b")]
        assert not commit(state, "update_layers", layers=duplicated)
        assert len(state.layers) == 5

    def test_toggle_context(self, state):
        assert commit(state, "toggle_context", context_id=11)
        assert state.active_context_ids == [10, 11]
        assert commit(state, "toggle_context", context_id=10)
        assert state.active_context_ids == [11]

    def test_toggle_unknown_context_is_noop(self, state):
        assert not commit(state, "toggle_context", context_id=101)
        assert state.active_context_ids == [10]

    def test_set_context_time(self, state):
        commit(state, "set_context_time", context_id=10, time="2020-01-01")
        assert state.contexts_times[10] == "2020-01-01"
        commit(state, "set_context_time", context_id=55, time="2020-02-02")
        assert state.contexts_times[55] == "2020-02-02"


def test_receive_config_rebuilds_in_place(state, document):
    commit(state, "add_group")
    commit(state, "toggle_context", context_id=11)
    same = state
    document["contexts"][1]["active"] = True
    assert commit(state, "receive_config", document=parse_document(document))
    assert state is same
    assert state.active_context_ids == [10, 11]
    assert [n.id for n in state.arena.walk()] == [100, 10, 101, 11, 102, 12]
    assert isinstance(state.arena.get(101), Group)
    assert isinstance(state.arena.get(11), Context)


def test_receive_config_keeps_session_flags(state, document):
    commit(state, "enable_edit", editing=True)
    commit(state, "edit_layers", edit=True)
    commit(state, "enable_feedback", enable=True)
    commit(state, "overlay_kml", kml="<kml/>")
    commit(state, "show_layer_info", file_name="roads.html", label="Roads")
    commit(state, "edit_item", id=101)

    assert commit(state, "receive_config", document=parse_document(document))
    assert state.editing is True
    assert state.edit_layers is True
    assert state.feedback_enabled is True
    assert state.kml_overlay == "<kml/>"
    assert state.layer_info.file_name == "roads.html"
    assert state.edit_target is None

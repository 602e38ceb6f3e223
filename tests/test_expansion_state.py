"""
View State Tests
================

Verifies that expansion and annotation state:
1. Never mutates in place
2. Ignores unknown bundle anchors
3. Carries choices across new bundle maps of the same graph
4. Resets when the graph changes
"""

from dataclasses import FrozenInstanceError

import pytest

from provtree.contracts.layout import Bundle
from provtree.state import ClusterExpansionState, ViewState


def bundle_map(*anchor_ids):
    return {a: Bundle(anchor_id=a, bunched_node_ids=(a,)) for a in anchor_ids}


class TestClusterExpansionState:

    def test_initial_follows_default(self):
        expanded = ClusterExpansionState.initial(bundle_map("a", "b"), default_expanded=True)
        collapsed = ClusterExpansionState.initial(bundle_map("a", "b"), default_expanded=False)

        assert expanded.expanded_ids == {"a", "b"}
        assert collapsed.expanded_ids == frozenset()
        assert collapsed.known_anchor_ids == {"a", "b"}

    def test_toggle_returns_new_state(self):
        state = ClusterExpansionState.initial(bundle_map("a"), default_expanded=False)

        toggled = state.toggle("a")

        assert toggled.is_expanded("a")
        assert not state.is_expanded("a")
        assert not toggled.toggle("a").is_expanded("a")

    def test_toggle_unknown_is_noop(self):
        state = ClusterExpansionState.initial(bundle_map("a"))
        assert state.toggle("zzz") is state

    def test_state_is_frozen(self):
        state = ClusterExpansionState.initial(bundle_map("a"))
        with pytest.raises(FrozenInstanceError):
            state.expanded_ids = frozenset()

    def test_expanded_must_be_known(self):
        with pytest.raises(ValueError):
            ClusterExpansionState(known_anchor_ids=frozenset({"a"}), expanded_ids=frozenset({"b"}))

    def test_with_expanded_drops_unknown(self):
        state = ClusterExpansionState.initial(bundle_map("a", "b"), default_expanded=False)
        assert state.with_expanded({"b", "zzz"}).expanded_ids == {"b"}

    def test_reconcile_keeps_choices_and_defaults_new_anchors(self):
        state = ClusterExpansionState.initial(bundle_map("a", "b"), True, graph_id="g")
        state = state.toggle("a")

        reconciled = state.reconcile(bundle_map("a", "b", "c"), graph_id="g")

        assert not reconciled.is_expanded("a")
        assert reconciled.is_expanded("b")
        assert reconciled.is_expanded("c")

    def test_reconcile_new_anchor_collapsed_by_default(self):
        state = ClusterExpansionState.initial(bundle_map("a"), False, graph_id="g").toggle("a")

        reconciled = state.reconcile(bundle_map("a", "c"), graph_id="g")

        assert reconciled.expanded_ids == {"a"}

    def test_reconcile_drops_vanished_anchors(self):
        state = ClusterExpansionState.initial(bundle_map("a", "b"), True, graph_id="g")

        reconciled = state.reconcile(bundle_map("b"), graph_id="g")

        assert reconciled.known_anchor_ids == {"b"}
        assert reconciled.expanded_ids == {"b"}

    def test_reconcile_resets_on_new_graph(self):
        state = ClusterExpansionState.initial(bundle_map("a", "b"), True, graph_id="g1")
        state = state.toggle("a").toggle("b")

        reconciled = state.reconcile(bundle_map("a", "b"), graph_id="g2")

        assert reconciled.expanded_ids == {"a", "b"}
        assert reconciled.graph_id == "g2"


class TestViewState:

    def test_toggle_annotation_opens_and_closes(self):
        view = ViewState()

        opened = view.toggle_annotation(3)
        assert opened.annotation_open_depth == 3
        assert opened.toggle_annotation(3).annotation_open_depth is None

    def test_only_one_annotation_open(self):
        view = ViewState().toggle_annotation(1).toggle_annotation(4)
        assert view.annotation_open_depth == 4

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            ViewState().toggle_annotation(-1)

    def test_close_annotation(self):
        view = ViewState().toggle_annotation(2)
        assert view.close_annotation().annotation_open_depth is None
        assert ViewState().close_annotation() == ViewState()

    def test_toggle_unknown_bundle_returns_same_view(self):
        view = ViewState(expansion=ClusterExpansionState.initial(bundle_map("a")))
        assert view.toggle_bundle("zzz") is view

    def test_toggle_bundle_leaves_annotation_alone(self):
        view = ViewState(
            expansion=ClusterExpansionState.initial(bundle_map("a")),
            annotation_open_depth=2,
        )

        toggled = view.toggle_bundle("a")

        assert not toggled.expansion.is_expanded("a")
        assert toggled.annotation_open_depth == 2

    def test_reconcile_same_graph_keeps_annotation(self):
        view = ViewState(
            expansion=ClusterExpansionState.initial(bundle_map("a"), graph_id="g"),
            annotation_open_depth=2,
        )
        assert view.reconcile(bundle_map("a"), "g").annotation_open_depth == 2

    def test_reconcile_new_graph_closes_annotation(self):
        view = ViewState(
            expansion=ClusterExpansionState.initial(bundle_map("a"), graph_id="g"),
            annotation_open_depth=2,
        )

        reconciled = view.reconcile(bundle_map("a"), "other")

        assert reconciled.annotation_open_depth is None
        assert reconciled.graph_id == "other"

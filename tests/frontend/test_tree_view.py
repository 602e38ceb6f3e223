"""
Tree View Contract Tests

Tests that the render views are a faithful projection of the layout.

TEST CATEGORIES:
================
1. Immutability - view DTOs cannot be mutated
2. Projection - coordinates and ordering are copied, never recomputed
3. Bundle glyphs - collapsed labels and outlines
4. Interactions - requests are validated and routed to the engine
"""

import pytest
from dataclasses import FrozenInstanceError

from provtree.config import BundleConfig, ProvenanceTreeConfig
from provtree.contracts.base import ErrorCode
from provtree.engine import ProvenanceTreeEngine
from provtree.store import InMemoryProvenanceGraph
from provvis import (
    ActionType, InteractionRequest, TreeViewMapper, apply_interaction,
)


def build_engine(default_expanded=False):
    """
    root -> a -> e1 (eph) -> e2 (eph) -> b
    """
    store = InMemoryProvenanceGraph(root_id="root", graph_id="g")
    store.add_node("A", node_id="a", event_type="Filter")
    store.add_node("E1", node_id="e1", ephemeral=True, event_type="Hover")
    store.add_node("E2", node_id="e2", ephemeral=True, event_type="Hover")
    store.add_node("B", node_id="b", event_type="Filter")
    config = ProvenanceTreeConfig(bundles=BundleConfig(default_expanded=default_expanded))
    return ProvenanceTreeEngine(store, config)


@pytest.fixture
def engine():
    return build_engine()


@pytest.fixture
def mapper():
    return TreeViewMapper()


def node_view(view, node_id):
    return next(n for n in view.nodes if n.node_id == node_id)


# =============================================================================
# IMMUTABILITY TESTS
# =============================================================================

class TestViewImmutability:

    def test_render_node_is_frozen(self, engine, mapper):
        view = mapper.map_tree(engine.render())
        with pytest.raises(FrozenInstanceError):
            view.nodes[0].x = 99

    def test_tree_view_is_frozen(self, engine, mapper):
        view = mapper.map_tree(engine.render())
        with pytest.raises(FrozenInstanceError):
            view.current_id = "a"


# =============================================================================
# PROJECTION TESTS
# =============================================================================

class TestProjection:

    def test_coordinates_copied_from_layout(self, engine, mapper):
        positioned = engine.render()
        view = mapper.map_tree(positioned)

        assert [n.node_id for n in view.nodes] == [n.id for n in positioned.nodes]
        for rendered, source in zip(view.nodes, positioned.nodes):
            assert (rendered.x, rendered.y, rendered.depth) == (source.x, source.y, source.depth)

    def test_links_follow_effective_parents(self, engine, mapper):
        view = mapper.map_tree(engine.render())

        assert [(l.source_id, l.target_id) for l in view.links] == [
            ("root", "a"), ("a", "e1"), ("e1", "b"),
        ]
        assert view.links[1].link_id == "ae1"

    def test_same_layout_same_view(self, engine, mapper):
        first = mapper.map_tree(engine.render())
        second = mapper.map_tree(engine.render())

        assert first == second

    def test_view_id_changes_with_expansion(self, engine, mapper):
        before = mapper.map_tree(engine.render()).view_id
        engine.toggle_bundle("e1")
        after = mapper.map_tree(engine.render()).view_id

        assert before != after

    def test_current_and_backbone_flags(self, engine, mapper):
        view = mapper.map_tree(engine.render())

        assert node_view(view, "b").is_current
        assert all(n.is_backbone for n in view.nodes)
        assert view.shift_left == 30

    def test_long_labels_are_shortened(self, engine, mapper):
        engine.store.add_node("A label that is far too long", node_id="long")
        view = mapper.map_tree(engine.render())

        assert node_view(view, "long").label == "A label that is far .."

    def test_open_annotation_flag(self, engine, mapper):
        engine.add_annotation("a", "note")
        engine.toggle_annotation("a")
        view = mapper.map_tree(engine.render())

        assert node_view(view, "a").annotation_open
        assert node_view(view, "a").annotation == "note"
        assert not node_view(view, "b").annotation_open


# =============================================================================
# BUNDLE GLYPH TESTS
# =============================================================================

class TestBundleGlyphs:

    def test_collapsed_anchor_summarizes_chain(self, engine, mapper):
        view = mapper.map_tree(engine.render())
        anchor = node_view(view, "e1")

        assert anchor.label == "[2] Hover"
        assert anchor.is_bundle_anchor
        assert anchor.is_collapsed
        assert anchor.bundle_size == 2

    def test_collapsed_outline_is_one_slot(self, engine, mapper):
        view = mapper.map_tree(engine.render())

        assert len(view.outlines) == 1
        outline = view.outlines[0]
        assert outline.anchor_id == "e1"
        assert (outline.x, outline.y, outline.height) == (5, 75, 50)
        assert not outline.expanded

    def test_expanded_outline_spans_members(self, mapper):
        engine = build_engine(default_expanded=True)
        view = mapper.map_tree(engine.render())

        outline = view.outlines[0]
        assert outline.expanded
        assert outline.height == 100
        assert node_view(view, "e1").label == "E1"
        assert node_view(view, "e2").x == 20

    def test_side_branch_bundle_has_no_outline(self, engine, mapper):
        engine.store.add_node("C", node_id="c", parent_id="a")
        view = mapper.map_tree(engine.render())

        assert node_view(view, "e1").lane_width == 1
        assert view.outlines == ()


# =============================================================================
# BOOKMARK LIST TESTS
# =============================================================================

class TestBookmarkList:

    def test_bookmarks_laid_out_vertically(self, engine, mapper):
        engine.set_bookmark("a", True)
        engine.add_annotation("e2", "hidden but listed")

        listing = mapper.map_bookmarks(engine.bookmarked_nodes(), current_id="b")

        assert len(listing) == 2
        assert [e.node_id for e in listing.entries] == ["a", "e2"]
        assert [e.y for e in listing.entries] == [0, 50]
        assert all(e.x == 15 for e in listing.entries)
        assert listing.entries[1].annotation == "hidden but listed"
        assert not listing.entries[1].bookmarked


# =============================================================================
# INTERACTION TESTS
# =============================================================================

class TestInteractions:

    def test_toggle_bundle_request(self, engine):
        request = InteractionRequest("r1", ActionType.TOGGLE_BUNDLE, {"node_id": "e1"})

        result = apply_interaction(engine, request)

        assert result.is_success
        assert engine.is_expanded("e1")

    def test_missing_payload_rejected(self, engine):
        result = apply_interaction(engine, InteractionRequest("r2", ActionType.GO_TO_NODE))

        assert result.error.code == ErrorCode.INVALID_REQUEST
        assert engine.store.current_id == "b"

    def test_navigation_requests(self, engine):
        apply_interaction(engine, InteractionRequest("r3", ActionType.UNDO))
        assert engine.store.current_id == "e2"

        apply_interaction(engine, InteractionRequest("r4", ActionType.REDO))
        assert engine.store.current_id == "b"

        apply_interaction(engine, InteractionRequest("r5", ActionType.GO_TO_NODE, {"node_id": "a"}))
        assert engine.store.current_id == "a"

    def test_marking_requests(self, engine):
        apply_interaction(engine, InteractionRequest("r6", ActionType.SET_BOOKMARK, {"node_id": "a"}))
        apply_interaction(
            engine,
            InteractionRequest("r7", ActionType.ADD_ANNOTATION, {"node_id": "b", "annotation": "x"}),
        )

        assert [n.id for n in engine.bookmarked_nodes()] == ["a", "b"]

    def test_bookmark_flag_must_be_boolean(self, engine):
        request = InteractionRequest(
            "r9", ActionType.SET_BOOKMARK, {"node_id": "a", "bookmarked": "false"}
        )

        result = apply_interaction(engine, request)

        assert result.error.code == ErrorCode.INVALID_REQUEST
        assert not engine.store.get_bookmark("a")

    def test_bookmark_flag_false_clears(self, engine):
        engine.set_bookmark("a", True)
        request = InteractionRequest(
            "r10", ActionType.SET_BOOKMARK, {"node_id": "a", "bookmarked": False}
        )

        assert apply_interaction(engine, request).is_success
        assert not engine.store.get_bookmark("a")

    def test_annotation_request_on_unknown_node(self, engine):
        request = InteractionRequest("r8", ActionType.TOGGLE_ANNOTATION, {"node_id": "zzz"})
        assert apply_interaction(engine, request).error.code == ErrorCode.UNKNOWN_NODE

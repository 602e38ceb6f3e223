"""
Property Tests for Provenance Tree Contracts
Verifies bundle, stratification and layout invariants on random
append-only provenance graphs.
"""

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from provtree.core.bundles import detect_bundles
from provtree.core.layout import layout
from provtree.core.stratify import stratify
from provtree.state import ClusterExpansionState

from tests.fixtures import make_nodes

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

@composite
def provenance_graphs(draw):
    """Generates append-only graphs: every node's parent was created earlier."""
    size = draw(st.integers(min_value=1, max_value=25))
    rows = [("n0", None, False)]
    for i in range(1, size):
        parent_id = draw(st.sampled_from([row[0] for row in rows]))
        rows.append((f"n{i}", parent_id, draw(st.booleans())))
    return make_nodes(rows)


@composite
def graph_views(draw):
    """A graph, its bundles, an expanded subset and a current node."""
    nodes = draw(provenance_graphs())
    bundles = detect_bundles(nodes, "n0")
    anchors = sorted(bundles)
    expanded = draw(st.sets(st.sampled_from(anchors))) if anchors else set()
    current_id = draw(st.sampled_from(sorted(nodes)))
    return nodes, bundles, frozenset(expanded), current_id


# =============================================================================
# BUNDLE PROPERTIES
# =============================================================================

@given(provenance_graphs())
def test_bundles_are_maximal_ephemeral_chains(nodes):
    """Members are ephemeral single-child nodes, each the child of the previous."""
    for anchor_id, bundle in detect_bundles(nodes, "n0").items():
        anchor = nodes[anchor_id]
        parent = nodes[anchor.parent_id]
        assert not parent.ephemeral or len(parent.child_ids) > 1

        for position, member_id in enumerate(bundle.bunched_node_ids):
            member = nodes[member_id]
            assert member.ephemeral and len(member.child_ids) == 1
            if position > 0:
                assert member.parent_id == bundle.bunched_node_ids[position - 1]

        terminal = nodes[nodes[bundle.bunched_node_ids[-1]].child_ids[0]]
        assert not terminal.ephemeral or len(terminal.child_ids) != 1


@given(provenance_graphs())
def test_each_node_in_at_most_one_bundle(nodes):
    members = [m for b in detect_bundles(nodes, "n0").values() for m in b.bunched_node_ids]
    assert len(members) == len(set(members))


# =============================================================================
# STRATIFICATION PROPERTIES
# =============================================================================

@given(graph_views())
def test_collapsed_bundles_hide_size_minus_one(view):
    nodes, bundles, expanded, _ = view
    tree = stratify(nodes, bundles, expanded, "n0")

    hidden = sum(b.size - 1 for a, b in bundles.items() if a not in expanded)
    assert len(tree) == len(nodes) - hidden


@given(graph_views())
def test_visible_tree_is_single_rooted(view):
    nodes, bundles, expanded, _ = view
    tree = stratify(nodes, bundles, expanded, "n0")

    assert tree.nodes[0].id == "n0"
    for node in tree.nodes[1:]:
        parent = tree.get(node.effective_parent_id)
        assert parent is not None
        assert node.depth == parent.depth + 1
        assert node.id in parent.child_ids


@given(graph_views())
def test_toggle_twice_restores_tree(view):
    nodes, bundles, expanded, _ = view
    state = ClusterExpansionState.initial(bundles, default_expanded=False).with_expanded(expanded)
    before = stratify(nodes, bundles, state.expanded_ids, "n0")

    for anchor_id in bundles:
        state = state.toggle(anchor_id).toggle(anchor_id)

    assert stratify(nodes, bundles, state.expanded_ids, "n0") == before


# =============================================================================
# LAYOUT PROPERTIES
# =============================================================================

@settings(deadline=None)
@given(graph_views())
def test_layout_is_deterministic(view):
    nodes, bundles, expanded, current_id = view
    first = layout(stratify(nodes, bundles, expanded, "n0"), current_id, nodes=nodes)
    second = layout(stratify(nodes, bundles, expanded, "n0"), current_id, nodes=nodes)
    assert first == second


@given(graph_views())
def test_links_have_both_endpoints(view):
    nodes, bundles, expanded, current_id = view
    positioned = layout(stratify(nodes, bundles, expanded, "n0"), current_id, nodes=nodes)

    assert len(positioned.links) == len(positioned.nodes) - 1
    for link in positioned.links:
        assert link.source_id in positioned
        assert link.target_id in positioned


@given(graph_views())
def test_siblings_never_share_a_lane(view):
    nodes, bundles, expanded, current_id = view
    positioned = layout(stratify(nodes, bundles, expanded, "n0"), current_id, nodes=nodes)

    for node in positioned.nodes:
        lanes = [positioned.get(child_id).lane_width for child_id in node.child_ids]
        assert len(lanes) == len(set(lanes))


@given(graph_views())
def test_lane_zero_is_one_path_through_current(view):
    nodes, bundles, expanded, current_id = view
    positioned = layout(stratify(nodes, bundles, expanded, "n0"), current_id, nodes=nodes)

    backbone = [n for n in positioned.nodes if n.on_backbone]
    assert [n.depth for n in backbone] == list(range(len(backbone)))

    # The current node, or the anchor summarizing it, is on the backbone.
    current = nodes[current_id]
    while current.id not in positioned:
        current = nodes[current.parent_id]
    assert positioned.get(current.id).on_backbone

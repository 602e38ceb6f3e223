"""
Provenance Graph Fixtures

Explicit, hand-built graphs for deterministic testing.
"""

from typing import Dict, Iterable, Optional, Tuple

from provtree.contracts.graph import (
    GraphSnapshot, NodeArtifacts, NodeMetadata, ProvenanceNode
)


# (node_id, parent_id, ephemeral)
NodeRow = Tuple[str, Optional[str], bool]


def make_nodes(rows: Iterable[NodeRow], event_type: Optional[str] = None) -> Dict[str, ProvenanceNode]:
    """Build an ordered node mapping; children follow row order."""
    rows = list(rows)
    children: Dict[str, list] = {node_id: [] for node_id, _, _ in rows}
    for node_id, parent_id, _ in rows:
        if parent_id is not None and parent_id in children:
            children[parent_id].append(node_id)

    return {
        node_id: ProvenanceNode(
            id=node_id,
            label=f"State {node_id}",
            parent_id=parent_id,
            child_ids=tuple(children[node_id]),
            ephemeral=ephemeral,
            metadata=NodeMetadata(type=None if parent_id is None else event_type),
            artifacts=NodeArtifacts(),
        )
        for node_id, parent_id, ephemeral in rows
    }


def make_snapshot(
    rows: Iterable[NodeRow],
    current_id: Optional[str] = None,
    graph_id: str = "graph_fixture"
) -> GraphSnapshot:
    nodes = make_nodes(rows)
    root_id = next(iter(nodes))
    return GraphSnapshot(
        nodes=nodes,
        root_id=root_id,
        current_id=current_id or root_id,
        graph_id=graph_id,
        version=len(nodes),
    )


# =============================================================================
# SCENARIO GRAPHS
# =============================================================================

# R -> A -> B1 -> B2 -> B3 -> C -> {D, E}
# B1..B3 are ephemeral; C branches.
CHAIN_ROWS = [
    ("R", None, False),
    ("A", "R", False),
    ("B1", "A", True),
    ("B2", "B1", True),
    ("B3", "B2", True),
    ("C", "B3", False),
    ("D", "C", False),
    ("E", "C", False),
]

# Two bundles on separate branches off A, plus an ephemeral leaf.
# R -> A -> X1 -> X2 -> P
#        \-> Y1 -> Q -> Z (ephemeral leaf)
TWO_BRANCH_ROWS = [
    ("R", None, False),
    ("A", "R", False),
    ("X1", "A", True),
    ("X2", "X1", True),
    ("P", "X2", False),
    ("Y1", "A", True),
    ("Q", "Y1", False),
    ("Z", "Q", True),
]

# Branching ephemeral node ends a chain: B1 -> B2 (ephemeral, two children).
# B2 is not bundled; B3 and B4 start their own single-node bundles.
BRANCHING_EPHEMERAL_ROWS = [
    ("R", None, False),
    ("A", "R", False),
    ("B1", "A", True),
    ("B2", "B1", True),
    ("B3", "B2", True),
    ("C", "B3", False),
    ("B4", "B2", True),
    ("F", "B4", False),
]

"""
Bundle Detector
===============

Finds maximal chains of ephemeral, single-child nodes that can be summarized
by one glyph.

A chain starts at an ANCHOR: an ephemeral node with exactly one child whose
parent is either non-ephemeral or branching. The chain follows the single
child while the current node is ephemeral with exactly one child, and stops
(exclusive) at the first non-ephemeral or branching node, which is where the
chain reattaches when collapsed.

GUARANTEES:
- Pure function of the snapshot; no input is modified
- Bundles come out in node creation order
- A node belongs to at most one detected bundle
"""

from __future__ import annotations
import logging
from typing import Dict, FrozenSet, Mapping, Optional, Set, Tuple

from ..contracts.base import (
    NodeId, Error, ErrorCode, StructuralInconsistencyError
)
from ..contracts.graph import ProvenanceNode
from ..contracts.layout import Bundle, BundleMap

logger = logging.getLogger(__name__)


def detect_bundles(
    nodes: Mapping[NodeId, ProvenanceNode],
    root_id: NodeId
) -> BundleMap:
    """
    Detect every bundle in the graph.

    Raises StructuralInconsistencyError on a missing root, a dangling
    parent/child reference, a second root, or a cycle along a chain.
    """
    if root_id not in nodes:
        raise StructuralInconsistencyError(Error(
            code=ErrorCode.MISSING_ROOT,
            message=f"Root {root_id} is not in the node mapping"
        ))

    bundle_map: BundleMap = {}
    for node in nodes.values():
        if node.id == root_id:
            continue
        parent = _parent_of(node, nodes, root_id)
        if not _is_anchor(node, parent):
            continue
        bundle_map[node.id] = Bundle(
            anchor_id=node.id,
            bunched_node_ids=_walk_chain(node, nodes)
        )

    logger.debug(
        "Detected %d bundles over %d nodes", len(bundle_map), len(nodes)
    )
    return bundle_map


def _parent_of(
    node: ProvenanceNode,
    nodes: Mapping[NodeId, ProvenanceNode],
    root_id: NodeId
) -> ProvenanceNode:
    if node.parent_id is None:
        raise StructuralInconsistencyError(Error(
            code=ErrorCode.MULTIPLE_ROOTS,
            message=f"Node {node.id} has no parent but {root_id} is the root"
        ))
    parent = nodes.get(node.parent_id)
    if parent is None:
        raise StructuralInconsistencyError(Error(
            code=ErrorCode.DANGLING_PARENT,
            message=f"Parent {node.parent_id} of node {node.id} does not exist"
        ).with_context("node_id", node.id))
    return parent


def _is_anchor(node: ProvenanceNode, parent: ProvenanceNode) -> bool:
    if not node.ephemeral or len(node.child_ids) != 1:
        return False
    return not parent.ephemeral or len(parent.child_ids) > 1


def _walk_chain(
    anchor: ProvenanceNode,
    nodes: Mapping[NodeId, ProvenanceNode]
) -> Tuple[NodeId, ...]:
    chain = []
    seen: Set[NodeId] = set()
    current = anchor

    while current.ephemeral and len(current.child_ids) == 1:
        if current.id in seen:
            raise StructuralInconsistencyError(Error(
                code=ErrorCode.CYCLE_DETECTED,
                message=f"Chain starting at {anchor.id} revisits {current.id}"
            ))
        seen.add(current.id)
        chain.append(current.id)

        child_id = current.child_ids[0]
        child = nodes.get(child_id)
        if child is None:
            raise StructuralInconsistencyError(Error(
                code=ErrorCode.DANGLING_CHILD,
                message=f"Child {child_id} of node {current.id} does not exist"
            ).with_context("node_id", current.id))
        current = child

    return tuple(chain)


def merge_bundles(detected: BundleMap, custom: Optional[BundleMap] = None) -> BundleMap:
    """
    Merge caller-defined bundles with detected ones.

    Custom bundles keep their position at the front of the map. When a
    detected bundle shares an anchor with a custom one, the detected chain
    wins but the custom label and metadata are kept.

    The result is disjoint: a bundle sharing any node with a bundle already
    kept is dropped (and logged), so a node belongs to at most one bundle.
    """
    candidates = []
    for anchor_id, bundle in (custom or {}).items():
        found = detected.get(anchor_id)
        if found is not None:
            bundle = Bundle(
                anchor_id=anchor_id,
                bunched_node_ids=found.bunched_node_ids,
                label=bundle.label,
                metadata=bundle.metadata,
            )
        candidates.append(bundle)
    candidates.extend(b for a, b in detected.items() if a not in (custom or {}))

    merged: BundleMap = {}
    claimed: Set[NodeId] = set()
    for bundle in candidates:
        overlap = claimed.intersection(bundle.bunched_node_ids)
        if overlap:
            logger.info(
                "Dropping bundle %s: shares %s with an earlier bundle",
                bundle.anchor_id, ",".join(sorted(overlap))
            )
            continue
        merged[bundle.anchor_id] = bundle
        claimed.update(bundle.bunched_node_ids)
    return merged


def bundle_parents(node_id: NodeId, bundle_map: Mapping[NodeId, Bundle]) -> Tuple[NodeId, ...]:
    """Anchors of every bundle containing node_id, in bundle-map order."""
    return tuple(
        anchor_id for anchor_id, bundle in bundle_map.items()
        if node_id in bundle.bunched_node_ids
    )


def bundled_node_ids(bundle_map: Mapping[NodeId, Bundle]) -> FrozenSet[NodeId]:
    """All anchors and members of all bundles."""
    ids: Set[NodeId] = set(bundle_map.keys())
    for bundle in bundle_map.values():
        ids.update(bundle.bunched_node_ids)
    return frozenset(ids)


class BundleIndex:
    """
    Precomputed lookups over a bundle map.

    Keeps the stratifier linear: bundle_parents() for every node would be
    quadratic in the number of bundles.
    """

    def __init__(self, bundle_map: Mapping[NodeId, Bundle]):
        self._bundle_map = bundle_map
        self._parents: Dict[NodeId, Tuple[NodeId, ...]] = {}
        for anchor_id, bundle in bundle_map.items():
            for node_id in bundle.bunched_node_ids:
                self._parents[node_id] = self._parents.get(node_id, ()) + (anchor_id,)
        self._bundled = frozenset(self._parents.keys()) | frozenset(bundle_map.keys())

    def is_anchor(self, node_id: NodeId) -> bool:
        return node_id in self._bundle_map

    def is_bundled(self, node_id: NodeId) -> bool:
        return node_id in self._bundled

    def parents_of(self, node_id: NodeId) -> Tuple[NodeId, ...]:
        return self._parents.get(node_id, ())

    def first_collapsed_parent(
        self,
        node_id: NodeId,
        expanded_ids: FrozenSet[NodeId]
    ) -> Optional[NodeId]:
        """First containing bundle that is not expanded, in bundle-map order."""
        for anchor_id in self.parents_of(node_id):
            if anchor_id not in expanded_ids:
                return anchor_id
        return None

    def is_hidden(self, node_id: NodeId, expanded_ids: FrozenSet[NodeId]) -> bool:
        """Non-anchor member of at least one collapsed bundle."""
        if self.is_anchor(node_id) or not self.is_bundled(node_id):
            return False
        return self.first_collapsed_parent(node_id, expanded_ids) is not None


def bundle_label(bundle: Bundle, node: ProvenanceNode, expanded: bool) -> str:
    """
    Display label for an anchor.

    A collapsed anchor summarizes its chain as "[size] type".
    """
    if expanded or not node.ephemeral:
        return bundle.label or node.label
    if node.event_type:
        return f"[{bundle.size}] {node.event_type}"
    return f"[{bundle.size}]"

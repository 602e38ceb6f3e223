"""
Tree Stratifier
===============

Converts the provenance DAG into a single-rooted visible tree, resolving
effective parents across collapsed bundles.

VISIBILITY:
===========
A node is hidden when it is a non-anchor member of at least one bundle that
is not expanded. The root, anchors and unbundled nodes are always visible.

EFFECTIVE PARENT:
=================
1. Root: none.
2. Collapsed anchor: walk up the true ancestors and stop at the first visible
   one (unbundled, an anchor, or a member of expanded bundles only).
   A member of an expanded bundle is drawn, so an anchor directly below an
   expanded chain attaches to that member rather than to an ancestor above
   it. Detected bundles never reach this case; caller-defined bundles can.
3. True parent hidden: attach to the first collapsed bundle containing the
   parent, in bundle-map order (the nearest enclosing collapsed anchor).
4. Otherwise: the true parent.

FAILURE:
========
Dangling references, second roots, cycles and unreachable nodes are upstream
defects. They raise StructuralInconsistencyError; nothing is reparented to
the root to hide them.
"""

from __future__ import annotations
import logging
from collections import deque
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

import networkx as nx

from ..contracts.base import (
    NodeId, Error, ErrorCode, StructuralInconsistencyError
)
from ..contracts.graph import ProvenanceNode
from ..contracts.layout import Bundle, StratifiedNode, StratifiedTree
from .bundles import BundleIndex

logger = logging.getLogger(__name__)


class TreeStratifier:
    """
    Builds the visible tree for one (graph, bundle map, expansion) triple.

    Instances hold only the inputs of a single pass; every call to
    stratify() produces a fresh StratifiedTree.
    """

    def __init__(
        self,
        nodes: Mapping[NodeId, ProvenanceNode],
        bundle_map: Mapping[NodeId, Bundle],
        expanded_ids: Iterable[NodeId],
        root_id: NodeId
    ):
        self._nodes = nodes
        self._bundle_map = bundle_map
        self._expanded: FrozenSet[NodeId] = frozenset(expanded_ids)
        self._root_id = root_id
        self._index = BundleIndex(bundle_map)

    # =========================================================================
    # PUBLIC INTERFACE
    # =========================================================================

    def stratify(self) -> StratifiedTree:
        self._validate_structure()

        visible = [n for n in self._nodes.values() if self.is_visible(n.id)]
        parents: Dict[NodeId, Optional[NodeId]] = {
            n.id: self.effective_parent(n) for n in visible
        }

        self._verify_tree(parents)

        children: Dict[NodeId, List[NodeId]] = {n.id: [] for n in visible}
        for node in visible:
            parent_id = parents[node.id]
            if parent_id is not None:
                children[parent_id].append(node.id)

        ordered = self._breadth_first(parents, children)

        logger.debug(
            "Stratified %d of %d nodes (%d bundles, %d expanded)",
            len(ordered), len(self._nodes), len(self._bundle_map),
            len(self._expanded & set(self._bundle_map))
        )

        return StratifiedTree(
            root_id=self._root_id,
            nodes=tuple(ordered),
            bundle_map=dict(self._bundle_map),
            expanded_ids=self._expanded,
        )

    def is_visible(self, node_id: NodeId) -> bool:
        if node_id == self._root_id:
            return True
        return not self._index.is_hidden(node_id, self._expanded)

    def effective_parent(self, node: ProvenanceNode) -> Optional[NodeId]:
        """Parent of node in the visible tree."""
        if node.id == self._root_id:
            return None

        if self._index.is_anchor(node.id) and node.id not in self._expanded:
            return self._nearest_visible_ancestor(node)

        parent_id = node.parent_id
        if not self.is_visible(parent_id):
            return self._index.first_collapsed_parent(parent_id, self._expanded)

        return parent_id

    def visible_representative(self, node_id: NodeId) -> Optional[NodeId]:
        """
        The node itself when visible, else its nearest visible true ancestor.

        Returns None for ids that are not in the graph.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None
        if self.is_visible(node_id):
            return node_id
        return self._nearest_visible_ancestor(node)

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _nearest_visible_ancestor(self, node: ProvenanceNode) -> NodeId:
        # Explicit loop over the node table; the visited set bounds it.
        seen: Set[NodeId] = {node.id}
        ancestor_id = node.parent_id

        while True:
            if ancestor_id is None:
                self._fail(Error(
                    code=ErrorCode.UNREACHABLE_NODE,
                    message=f"No visible ancestor above {node.id}"
                ))
            if ancestor_id in seen:
                self._fail(Error(
                    code=ErrorCode.CYCLE_DETECTED,
                    message=f"Ancestry of {node.id} revisits {ancestor_id}"
                ))
            seen.add(ancestor_id)

            if self.is_visible(ancestor_id):
                return ancestor_id

            ancestor_id = self._nodes[ancestor_id].parent_id

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def _validate_structure(self):
        if self._root_id not in self._nodes:
            self._fail(Error(
                code=ErrorCode.MISSING_ROOT,
                message=f"Root {self._root_id} is not in the node mapping"
            ))

        for node in self._nodes.values():
            if node.id == self._root_id:
                continue
            if node.parent_id is None:
                self._fail(Error(
                    code=ErrorCode.MULTIPLE_ROOTS,
                    message=f"Node {node.id} has no parent but {self._root_id} is the root"
                ))
            if node.parent_id not in self._nodes:
                self._fail(Error(
                    code=ErrorCode.DANGLING_PARENT,
                    message=f"Parent {node.parent_id} of node {node.id} does not exist"
                ).with_context("node_id", node.id))

    def _verify_tree(self, parents: Mapping[NodeId, Optional[NodeId]]):
        graph = nx.DiGraph()
        graph.add_nodes_from(parents.keys())
        graph.add_edges_from(
            (parent_id, node_id)
            for node_id, parent_id in parents.items()
            if parent_id is not None
        )

        if nx.is_arborescence(graph):
            return

        if not nx.is_directed_acyclic_graph(graph):
            cycle = nx.find_cycle(graph)
            self._fail(Error(
                code=ErrorCode.CYCLE_DETECTED,
                message=f"Effective parents form a cycle through {cycle[0][0]}"
            ).with_context("cycle", "->".join(edge[0] for edge in cycle)))

        reachable = nx.descendants(graph, self._root_id) | {self._root_id}
        stray = [node_id for node_id in parents if node_id not in reachable]
        self._fail(Error(
            code=ErrorCode.UNREACHABLE_NODE,
            message=f"{len(stray)} visible nodes are not reachable from {self._root_id}"
        ).with_context("node_ids", ",".join(stray)))

    def _breadth_first(
        self,
        parents: Mapping[NodeId, Optional[NodeId]],
        children: Mapping[NodeId, List[NodeId]]
    ) -> List[StratifiedNode]:
        ordered: List[StratifiedNode] = []
        queue = deque([(self._root_id, 0)])
        while queue:
            node_id, depth = queue.popleft()
            ordered.append(StratifiedNode(
                node=self._nodes[node_id],
                effective_parent_id=parents[node_id],
                child_ids=tuple(children[node_id]),
                depth=depth,
            ))
            queue.extend((child_id, depth + 1) for child_id in children[node_id])
        return ordered

    def _fail(self, error: Error):
        logger.error("Stratification failed: %s", error.message)
        raise StructuralInconsistencyError(error)


def stratify(
    nodes: Mapping[NodeId, ProvenanceNode],
    bundle_map: Mapping[NodeId, Bundle],
    expanded_ids: Iterable[NodeId],
    root_id: NodeId
) -> StratifiedTree:
    """Build the visible tree. See TreeStratifier."""
    return TreeStratifier(nodes, bundle_map, expanded_ids, root_id).stratify()

"""
Graph Store
===========

Contract of the collaborator that owns the provenance DAG, plus an in-memory
reference implementation.

STORE CONTRACT:
===============
- snapshot() returns an immutable GraphSnapshot
- Nodes are only ever appended; existing nodes change only their
  children, bookmark flag and annotation
- Requests naming an unknown id are rejected with a failed Result and
  change nothing
"""

from __future__ import annotations
import hashlib
import logging
import uuid
from dataclasses import replace
from typing import Dict, Optional

from ..contracts.base import NodeId, Error, ErrorCode, Result
from ..contracts.graph import GraphSnapshot, NodeArtifacts, NodeMetadata, ProvenanceNode

logger = logging.getLogger(__name__)


# =============================================================================
# STORE INTERFACE (Dependency Inversion)
# =============================================================================

class GraphStore:
    """
    Abstract graph store interface.

    The engine reads snapshots and issues navigation and mutation requests;
    it never reaches into the store's internals.
    """

    def snapshot(self) -> GraphSnapshot:
        raise NotImplementedError

    def go_to_node(self, node_id: NodeId) -> Result:
        raise NotImplementedError

    def go_back_one_step(self) -> Result:
        raise NotImplementedError

    def go_forward_one_step(self) -> Result:
        raise NotImplementedError

    def go_back_to_non_ephemeral(self) -> Result:
        raise NotImplementedError

    def go_forward_to_non_ephemeral(self) -> Result:
        raise NotImplementedError

    def set_bookmark(self, node_id: NodeId, bookmarked: bool) -> Result:
        raise NotImplementedError

    def get_bookmark(self, node_id: NodeId) -> bool:
        raise NotImplementedError

    def add_annotation_to_node(self, node_id: NodeId, annotation: str) -> Result:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY IMPLEMENTATION
# =============================================================================

class InMemoryProvenanceGraph(GraphStore):
    """
    Append-only provenance graph held in memory.

    add_node() appends a child of the current node and moves the current
    pointer to it, the way an application records each action it applies.
    Forward steps follow the most recently created child.
    """

    def __init__(
        self,
        root_label: str = "Root",
        root_id: Optional[NodeId] = None,
        graph_id: Optional[str] = None
    ):
        self._graph_id = graph_id or uuid.uuid4().hex
        self._sequence = 0
        self._nodes: Dict[NodeId, ProvenanceNode] = {}

        root_id = root_id or self._generate_id()
        self._nodes[root_id] = ProvenanceNode(
            id=root_id,
            label=root_label,
            metadata=NodeMetadata(type="Root"),
        )
        self._root_id = root_id
        self._current_id = root_id

    # =========================================================================
    # READ INTERFACE
    # =========================================================================

    @property
    def graph_id(self) -> str:
        return self._graph_id

    @property
    def root_id(self) -> NodeId:
        return self._root_id

    @property
    def current_id(self) -> NodeId:
        return self._current_id

    @property
    def version(self) -> int:
        return len(self._nodes)

    def node(self, node_id: NodeId) -> Optional[ProvenanceNode]:
        return self._nodes.get(node_id)

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=dict(self._nodes),
            root_id=self._root_id,
            current_id=self._current_id,
            graph_id=self._graph_id,
            version=self.version,
        )

    # =========================================================================
    # APPEND INTERFACE
    # =========================================================================

    def add_node(
        self,
        label: str,
        ephemeral: bool = False,
        event_type: Optional[str] = None,
        node_id: Optional[NodeId] = None,
        parent_id: Optional[NodeId] = None
    ) -> NodeId:
        """
        Append a node under parent_id (default: the current node) and make
        it current. Returns the new id.
        """
        parent_id = parent_id if parent_id is not None else self._current_id
        if parent_id not in self._nodes:
            raise KeyError(f"Unknown parent node: {parent_id}")

        node_id = node_id or self._generate_id()
        if node_id in self._nodes:
            raise ValueError(f"Node id already exists: {node_id}")

        self._nodes[node_id] = ProvenanceNode(
            id=node_id,
            label=label,
            parent_id=parent_id,
            ephemeral=ephemeral,
            metadata=NodeMetadata(type=event_type),
        )
        parent = self._nodes[parent_id]
        self._nodes[parent_id] = replace(parent, child_ids=parent.child_ids + (node_id,))
        self._current_id = node_id
        return node_id

    def _generate_id(self) -> NodeId:
        seed = f"{self._graph_id}|{self._sequence}"
        self._sequence += 1
        return f"node_{hashlib.sha256(seed.encode('utf-8')).hexdigest()[:12]}"

    # =========================================================================
    # NAVIGATION INTERFACE
    # =========================================================================

    def go_to_node(self, node_id: NodeId) -> Result:
        if node_id not in self._nodes:
            return self._reject(ErrorCode.UNKNOWN_NODE, f"Cannot navigate to unknown node {node_id}")
        self._current_id = node_id
        return Result.success(node_id)

    def go_back_one_step(self) -> Result:
        parent_id = self._nodes[self._current_id].parent_id
        if parent_id is None:
            return self._reject(ErrorCode.NAVIGATION_EXHAUSTED, "Already at the root")
        return self.go_to_node(parent_id)

    def go_forward_one_step(self) -> Result:
        children = self._nodes[self._current_id].child_ids
        if not children:
            return self._reject(ErrorCode.NAVIGATION_EXHAUSTED, "Already at the latest state")
        return self.go_to_node(children[-1])

    def go_back_to_non_ephemeral(self) -> Result:
        node = self._nodes[self._current_id]
        if node.parent_id is None:
            return self._reject(ErrorCode.NAVIGATION_EXHAUSTED, "Already at the root")

        node = self._nodes[node.parent_id]
        while node.ephemeral and node.parent_id is not None:
            node = self._nodes[node.parent_id]
        return self.go_to_node(node.id)

    def go_forward_to_non_ephemeral(self) -> Result:
        node = self._nodes[self._current_id]
        if not node.child_ids:
            return self._reject(ErrorCode.NAVIGATION_EXHAUSTED, "Already at the latest state")

        node = self._nodes[node.child_ids[-1]]
        while node.ephemeral and node.child_ids:
            node = self._nodes[node.child_ids[-1]]
        return self.go_to_node(node.id)

    # =========================================================================
    # MUTATION INTERFACE
    # =========================================================================

    def set_bookmark(self, node_id: NodeId, bookmarked: bool) -> Result:
        node = self._nodes.get(node_id)
        if node is None:
            return self._reject(ErrorCode.UNKNOWN_NODE, f"Cannot bookmark unknown node {node_id}")
        self._nodes[node_id] = replace(node, bookmarked=bookmarked)
        return Result.success(bookmarked)

    def get_bookmark(self, node_id: NodeId) -> bool:
        node = self._nodes.get(node_id)
        return node is not None and node.bookmarked

    def add_annotation_to_node(self, node_id: NodeId, annotation: str) -> Result:
        node = self._nodes.get(node_id)
        if node is None:
            return self._reject(ErrorCode.UNKNOWN_NODE, f"Cannot annotate unknown node {node_id}")
        self._nodes[node_id] = replace(node, artifacts=NodeArtifacts(annotation=annotation))
        return Result.success(annotation)

    def _reject(self, code: ErrorCode, message: str) -> Result:
        logger.info("Rejected graph request: %s", message)
        return Result.failure(Error(code=code, message=message))

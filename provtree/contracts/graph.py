"""
Provenance Graph Contracts

Read-only view of the graph store's append-only DAG.

OWNERSHIP:
==========
The graph store builds these objects; every pipeline stage treats them as
immutable input. Node mappings preserve insertion order, which is creation
order, and stages rely on it for deterministic output.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .base import NodeId


@dataclass(frozen=True)
class NodeMetadata:
    """Classification attached to a node by the application."""
    type: Optional[str] = None


@dataclass(frozen=True)
class NodeArtifacts:
    """User-supplied artifacts attached to a node."""
    annotation: Optional[str] = None

    @property
    def has_annotation(self) -> bool:
        return bool(self.annotation)


@dataclass(frozen=True)
class ProvenanceNode:
    """
    A single state in the interaction history.

    parent_id is None only for the root. child_ids are in creation order.
    ephemeral marks auto-generated intermediate states eligible for bundling.
    """
    id: NodeId
    label: str
    parent_id: Optional[NodeId] = None
    child_ids: Tuple[NodeId, ...] = ()
    ephemeral: bool = False
    bookmarked: bool = False
    metadata: NodeMetadata = field(default_factory=NodeMetadata)
    artifacts: NodeArtifacts = field(default_factory=NodeArtifacts)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def event_type(self) -> Optional[str]:
        return self.metadata.type


@dataclass(frozen=True)
class GraphSnapshot:
    """
    Point-in-time snapshot of the graph store.

    graph_id identifies the store instance; version is the node count and
    only grows while graph_id stays the same.
    """
    nodes: Mapping[NodeId, ProvenanceNode]
    root_id: NodeId
    current_id: NodeId
    graph_id: str
    version: int

    def __post_init__(self):
        if not isinstance(self.nodes, MappingProxyType):
            object.__setattr__(self, 'nodes', MappingProxyType(dict(self.nodes)))

    @property
    def cache_key(self) -> Tuple[str, int]:
        """Key under which derived bundle maps may be cached."""
        return (self.graph_id, self.version)

    def get(self, node_id: NodeId) -> Optional[ProvenanceNode]:
        return self.nodes.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

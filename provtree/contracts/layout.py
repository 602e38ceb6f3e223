"""
Stratification and Layout Contracts

Derived, per-pass structures produced by the pipeline:
Bundle (detector) -> StratifiedNode / StratifiedTree (stratifier)
-> PositionedTree with Links (layout engine).

All outputs are frozen and rebuilt from scratch on every pass.
Renderers read them; nothing downstream mutates them.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from .base import NodeId
from .graph import ProvenanceNode


@dataclass(frozen=True)
class Bundle:
    """
    A maximal chain of ephemeral single-child nodes summarized as one glyph.

    bunched_node_ids starts with the anchor and excludes the node the chain
    reattaches to.
    """
    anchor_id: NodeId
    bunched_node_ids: Tuple[NodeId, ...]
    label: Optional[str] = None
    metadata: Optional[str] = None

    def __post_init__(self):
        if not self.bunched_node_ids:
            raise ValueError("Bundle must contain at least its anchor")
        if self.bunched_node_ids[0] != self.anchor_id:
            raise ValueError(
                f"Bundle {self.anchor_id} must list its anchor first, "
                f"got {self.bunched_node_ids[0]}"
            )

    @property
    def size(self) -> int:
        return len(self.bunched_node_ids)

    @property
    def member_ids(self) -> Tuple[NodeId, ...]:
        """Members hidden when the bundle is collapsed (anchor excluded)."""
        return self.bunched_node_ids[1:]

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.bunched_node_ids


# Ordered: iteration order is insertion order and is part of the contract.
BundleMap = Dict[NodeId, Bundle]


@dataclass(frozen=True)
class StratifiedNode:
    """
    A visible node of the stratified tree.

    Coordinates stay at 0 until the layout engine assigns them.
    """
    node: ProvenanceNode
    effective_parent_id: Optional[NodeId]
    child_ids: Tuple[NodeId, ...] = ()
    depth: int = 0
    lane_width: int = 0
    x: float = 0.0
    y: float = 0.0

    @property
    def id(self) -> NodeId:
        return self.node.id

    @property
    def on_backbone(self) -> bool:
        return self.lane_width == 0

    def positioned(self, lane_width: int, x: float, y: float) -> StratifiedNode:
        return replace(self, lane_width=lane_width, x=x, y=y)


@dataclass(frozen=True)
class StratifiedTree:
    """
    Single-rooted visible tree.

    nodes are ordered breadth first from the root, children in creation order.
    """
    root_id: NodeId
    nodes: Tuple[StratifiedNode, ...]
    bundle_map: Mapping[NodeId, Bundle] = field(default_factory=dict)
    expanded_ids: frozenset = frozenset()

    def __post_init__(self):
        object.__setattr__(self, '_index', {n.id: n for n in self.nodes})

    def get(self, node_id: NodeId) -> Optional[StratifiedNode]:
        return self._index.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def visible_ids(self) -> Tuple[NodeId, ...]:
        return tuple(n.id for n in self.nodes)


@dataclass(frozen=True)
class Link:
    """Edge between a visible node and its effective parent."""
    source_id: NodeId
    target_id: NodeId
    source_x: float
    source_y: float
    target_x: float
    target_y: float


@dataclass(frozen=True)
class PositionedTree:
    """
    Output of the layout engine, consumed by render adapters.

    Carries the bundle map and expansion snapshot so the adapter can decide,
    per visible id, between a single node and a collapsed-bundle indicator.
    """
    root_id: NodeId
    current_id: NodeId
    nodes: Tuple[StratifiedNode, ...]
    links: Tuple[Link, ...]
    bundle_map: Mapping[NodeId, Bundle]
    expanded_ids: frozenset
    annotation_open_depth: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, '_index', {n.id: n for n in self.nodes})

    def get(self, node_id: NodeId) -> Optional[StratifiedNode]:
        return self._index.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    @property
    def max_depth(self) -> int:
        return max((n.depth for n in self.nodes), default=0)

    @property
    def max_lane(self) -> int:
        return max((n.lane_width for n in self.nodes), default=0)

    @property
    def shift_left(self) -> int:
        """Horizontal room a renderer reserves for side lanes."""
        if self.max_lane == 0:
            return 30
        if self.max_lane == 1:
            return 52
        return 74

    def is_collapsed_anchor(self, node_id: NodeId) -> bool:
        return node_id in self.bundle_map and node_id not in self.expanded_ids

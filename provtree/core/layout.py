"""
Layout Engine
=============

Assigns lanes and coordinates to a stratified tree and emits its links.

BACKBONE:
=========
The path from the root to the current node (or its visible representative
when the current node is hidden in a collapsed bundle), extended below it by
following the most recently created child down to a leaf. Backbone nodes sit
in lane 0.

SIDE BRANCHES:
==============
Every other child starts a branch that continues through the most recent
child of each of its nodes. Branches are placed breadth first, closest to the
backbone first, each in the smallest lane above its parent's lane whose
occupied depth range does not overlap its own. Sibling branches therefore
never share a lane and only the backbone uses lane 0.

DETERMINISTIC:
Same tree + expansion + current id + open annotation depth = identical output.
Nothing is read from a previous layout.
"""

from __future__ import annotations
import logging
from collections import deque
from typing import Dict, List, Mapping, Optional, Tuple

from ..config import LayoutConfig
from ..contracts.base import NodeId
from ..contracts.graph import ProvenanceNode
from ..contracts.layout import Link, PositionedTree, StratifiedNode, StratifiedTree
from .bundles import BundleIndex

logger = logging.getLogger(__name__)


Branch = List[StratifiedNode]


class LayoutEngine:
    """Coordinate arithmetic over a structurally valid stratified tree."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def layout(
        self,
        tree: StratifiedTree,
        current_id: NodeId,
        annotation_open_depth: Optional[int] = None,
        nodes: Optional[Mapping[NodeId, ProvenanceNode]] = None
    ) -> PositionedTree:
        """
        Position every node of tree.

        nodes (the full graph) lets a hidden current node resolve to the
        visible anchor it is summarized by. Without it, or for an unknown id,
        the backbone starts from the root.
        """
        tip_id = self.resolve_visible(tree, current_id, nodes)
        backbone = self._backbone(tree, tip_id)
        lanes = self._assign_lanes(tree, backbone)

        index = BundleIndex(tree.bundle_map)
        positioned: Dict[NodeId, StratifiedNode] = {}
        for node in tree.nodes:
            lane = lanes[node.id]
            positioned[node.id] = node.positioned(
                lane_width=lane,
                x=self._x(node, lane, index),
                y=self._y(node, annotation_open_depth),
            )

        ordered = tuple(positioned[node.id] for node in tree.nodes)
        links = tuple(
            Link(
                source_id=node.effective_parent_id,
                target_id=node.id,
                source_x=positioned[node.effective_parent_id].x,
                source_y=positioned[node.effective_parent_id].y,
                target_x=node.x,
                target_y=node.y,
            )
            for node in ordered
            if node.effective_parent_id is not None
        )

        logger.debug(
            "Laid out %d nodes, %d links, backbone length %d, %d lanes",
            len(ordered), len(links), len(backbone),
            max(lanes.values(), default=0) + 1
        )

        return PositionedTree(
            root_id=tree.root_id,
            current_id=current_id,
            nodes=ordered,
            links=links,
            bundle_map=tree.bundle_map,
            expanded_ids=tree.expanded_ids,
            annotation_open_depth=annotation_open_depth,
        )

    # =========================================================================
    # BACKBONE
    # =========================================================================

    @staticmethod
    def resolve_visible(
        tree: StratifiedTree,
        node_id: NodeId,
        nodes: Optional[Mapping[NodeId, ProvenanceNode]] = None
    ) -> NodeId:
        """node_id if visible, else its nearest visible true ancestor, else the root."""
        if node_id in tree:
            return node_id
        if nodes is None or node_id not in nodes:
            logger.debug("Current node %s not in tree; using root", node_id)
            return tree.root_id

        seen = set()
        ancestor_id = nodes[node_id].parent_id
        while ancestor_id is not None and ancestor_id not in seen:
            if ancestor_id in tree:
                return ancestor_id
            seen.add(ancestor_id)
            parent = nodes.get(ancestor_id)
            ancestor_id = parent.parent_id if parent is not None else None
        return tree.root_id

    def _backbone(self, tree: StratifiedTree, tip_id: NodeId) -> Branch:
        upward = []
        node = tree.get(tip_id)
        while node is not None:
            upward.append(node)
            parent_id = node.effective_parent_id
            node = tree.get(parent_id) if parent_id is not None else None
        path = list(reversed(upward))
        path.extend(self._follow_latest(tree, path[-1])[1:])
        return path

    @staticmethod
    def _follow_latest(tree: StratifiedTree, start: StratifiedNode) -> Branch:
        branch = [start]
        node = start
        while node.child_ids:
            node = tree.get(node.child_ids[-1])
            branch.append(node)
        return branch

    # =========================================================================
    # LANES
    # =========================================================================

    def _assign_lanes(self, tree: StratifiedTree, backbone: Branch) -> Dict[NodeId, int]:
        lanes: Dict[NodeId, int] = {node.id: 0 for node in backbone}
        occupied: Dict[int, List[Tuple[int, int]]] = {
            0: [(backbone[0].depth, backbone[-1].depth)]
        }

        queue = deque([(backbone, 0)])
        while queue:
            branch, lane = queue.popleft()
            for position, node in enumerate(branch):
                continuing = branch[position + 1].id if position + 1 < len(branch) else None
                for child_id in node.child_ids:
                    if child_id == continuing:
                        continue
                    side = self._follow_latest(tree, tree.get(child_id))
                    span = (side[0].depth, side[-1].depth)
                    side_lane = self._free_lane(occupied, lane + 1, span)
                    occupied.setdefault(side_lane, []).append(span)
                    for member in side:
                        lanes[member.id] = side_lane
                    queue.append((side, side_lane))
        return lanes

    @staticmethod
    def _free_lane(
        occupied: Mapping[int, List[Tuple[int, int]]],
        lowest: int,
        span: Tuple[int, int]
    ) -> int:
        lane = lowest
        while any(
            start <= span[1] and span[0] <= end
            for start, end in occupied.get(lane, ())
        ):
            lane += 1
        return lane

    # =========================================================================
    # COORDINATES
    # =========================================================================

    def _x(self, node: StratifiedNode, lane: int, index: BundleIndex) -> float:
        x = self._config.gutter + lane * self._config.lane_spacing
        # Visible non-anchor members only exist inside expanded bundles.
        if index.is_bundled(node.id) and not index.is_anchor(node.id):
            x += self._config.bundle_indent
        return x

    def _y(self, node: StratifiedNode, annotation_open_depth: Optional[int]) -> float:
        y = node.depth * self._config.vertical_space
        if annotation_open_depth is not None and node.depth > annotation_open_depth:
            y += self._config.annotation_height
        return y


def layout(
    tree: StratifiedTree,
    current_id: NodeId,
    root_id: Optional[NodeId] = None,
    annotation_open_depth: Optional[int] = None,
    config: Optional[LayoutConfig] = None,
    nodes: Optional[Mapping[NodeId, ProvenanceNode]] = None
) -> PositionedTree:
    """Position a stratified tree. See LayoutEngine."""
    if root_id is not None and root_id != tree.root_id:
        raise ValueError(f"Tree is rooted at {tree.root_id}, not {root_id}")
    return LayoutEngine(config).layout(tree, current_id, annotation_open_depth, nodes)

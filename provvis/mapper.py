"""
Positioned Tree to View Mapper

Converts layout-engine output into frontend view DTOs.

MAPPING BOUNDARY:
=================
This is the ONLY place where positioned trees become render views.

MAPPING RULES:
==============
1. Never re-run layout; coordinates are copied as computed
2. Preserve the engine's node and link ordering
3. Bundle anchors that are no longer in the tree draw nothing
4. Labels are shortened for display only
"""

from __future__ import annotations
import hashlib
import logging
from typing import Iterable, List, Optional

from provtree.config import LayoutConfig
from provtree.contracts.graph import ProvenanceNode
from provtree.contracts.layout import PositionedTree, StratifiedNode
from provtree.core.bundles import bundle_label

from .visualization import (
    RenderNode, RenderLink, BundleOutline, ProvenanceTreeView,
    BookmarkEntry, BookmarkListView,
)

logger = logging.getLogger(__name__)


class TreeViewMapper:
    """
    Maps positioned trees to render views.

    SINGLE POINT OF CONVERSION:
    ===========================
    All layout -> view conversion goes through this class.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    # =========================================================================
    # TREE MAPPING
    # =========================================================================

    def map_tree(self, positioned: PositionedTree) -> ProvenanceTreeView:
        nodes = tuple(self._map_node(positioned, node) for node in positioned.nodes)
        links = tuple(
            RenderLink(
                link_id=f"{link.source_id}{link.target_id}",
                source_id=link.source_id,
                target_id=link.target_id,
                source_x=link.source_x,
                source_y=link.source_y,
                target_x=link.target_x,
                target_y=link.target_y,
            )
            for link in positioned.links
        )

        return ProvenanceTreeView(
            view_id=self._view_id(positioned),
            root_id=positioned.root_id,
            current_id=positioned.current_id,
            nodes=nodes,
            links=links,
            outlines=tuple(self._map_outlines(positioned)),
            max_depth=positioned.max_depth,
            max_lane=positioned.max_lane,
            shift_left=positioned.shift_left,
            annotation_open_depth=positioned.annotation_open_depth,
        )

    def _map_node(self, positioned: PositionedTree, stratified: StratifiedNode) -> RenderNode:
        node = stratified.node
        bundle = positioned.bundle_map.get(node.id)
        expanded = node.id in positioned.expanded_ids

        if bundle is not None:
            label = bundle_label(bundle, node, expanded)
        else:
            label = node.label

        return RenderNode(
            node_id=node.id,
            x=stratified.x,
            y=stratified.y,
            depth=stratified.depth,
            lane_width=stratified.lane_width,
            label=self.shorten(label),
            annotation=self.shorten(node.artifacts.annotation or ""),
            event_type=node.event_type,
            is_backbone=stratified.on_backbone,
            is_current=node.id == positioned.current_id,
            is_bundle_anchor=bundle is not None,
            is_collapsed=bundle is not None and not expanded,
            bundle_size=bundle.size if bundle is not None else 0,
            bookmarked=node.bookmarked,
            annotation_open=positioned.annotation_open_depth == stratified.depth,
        )

    def _map_outlines(self, positioned: PositionedTree) -> List[BundleOutline]:
        outlines = []
        space = self._config.cluster_vertical_space
        for anchor_id, bundle in positioned.bundle_map.items():
            anchor = positioned.get(anchor_id)
            if anchor is None:
                logger.debug("Bundle %s has no visible anchor; skipping outline", anchor_id)
                continue
            if not anchor.on_backbone:
                continue

            expanded = anchor_id in positioned.expanded_ids
            bottom = anchor.y
            if expanded:
                member_ys = [
                    positioned.get(member_id).y
                    for member_id in bundle.member_ids
                    if member_id in positioned
                ]
                bottom = max([anchor.y] + member_ys)

            outlines.append(BundleOutline(
                anchor_id=anchor_id,
                x=anchor.x - self._config.gutter + 5,
                y=anchor.y - space / 2,
                height=bottom - anchor.y + space,
                expanded=expanded,
            ))
        return outlines

    @staticmethod
    def _view_id(positioned: PositionedTree) -> str:
        seed = "|".join([
            positioned.root_id,
            positioned.current_id,
            ",".join(n.id for n in positioned.nodes),
            ",".join(sorted(positioned.expanded_ids)),
            str(positioned.annotation_open_depth),
        ])
        return f"view_{hashlib.sha256(seed.encode('utf-8')).hexdigest()[:16]}"

    # =========================================================================
    # BOOKMARK MAPPING
    # =========================================================================

    def map_bookmarks(
        self,
        nodes: Iterable[ProvenanceNode],
        current_id: Optional[str] = None
    ) -> BookmarkListView:
        entries = tuple(
            BookmarkEntry(
                node_id=node.id,
                label=self.shorten(node.label),
                annotation=self.shorten(node.artifacts.annotation or ""),
                event_type=node.event_type,
                bookmarked=node.bookmarked,
                is_current=node.id == current_id,
                x=self._config.gutter,
                y=position * self._config.vertical_space,
            )
            for position, node in enumerate(nodes)
        )
        return BookmarkListView(entries=entries)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def shorten(self, text: str) -> str:
        limit = self._config.label_max_length
        if len(text) > limit:
            return text[:limit] + ".."
        return text

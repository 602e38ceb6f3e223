"""
Engine Orchestration Module

Coordinates the pipeline for one provenance graph:

    GraphStore.snapshot() -> detect_bundles -> stratify -> layout

DESIGN PRINCIPLES:
==================
1. recompute() is a pure function of (snapshot, view state, config)
2. The engine only caches the bundle map, keyed by graph identity and version
3. User requests either change the view state or go to the store, one at a
   time; rejected requests return a failed Result and change nothing
4. Structural inconsistencies propagate to the caller
"""

from __future__ import annotations
import logging
from typing import Optional, Tuple

from .config import ProvenanceTreeConfig
from .contracts.base import NodeId, Error, ErrorCode, Result
from .contracts.graph import GraphSnapshot, ProvenanceNode
from .contracts.layout import BundleMap, PositionedTree
from .core.bundles import detect_bundles, merge_bundles
from .core.layout import LayoutEngine
from .core.stratify import stratify
from .state.expansion import ClusterExpansionState
from .state.view import ViewState
from .store.memory import GraphStore

logger = logging.getLogger(__name__)


def bundles_for(snapshot: GraphSnapshot, custom: Optional[BundleMap] = None) -> BundleMap:
    """Detected bundles merged with custom bundles whose anchor exists."""
    detected = detect_bundles(snapshot.nodes, snapshot.root_id)
    present = {
        anchor_id: bundle for anchor_id, bundle in (custom or {}).items()
        if anchor_id in snapshot.nodes
    }
    return merge_bundles(detected, present)


def recompute(
    snapshot: GraphSnapshot,
    view: ViewState,
    config: Optional[ProvenanceTreeConfig] = None,
    bundle_map: Optional[BundleMap] = None
) -> Tuple[PositionedTree, ViewState]:
    """
    Full pass for one snapshot.

    Returns the positioned tree and the view state reconciled with the
    snapshot's bundle map; the caller keeps that state for the next pass.
    """
    config = config or ProvenanceTreeConfig()
    if bundle_map is None:
        bundle_map = bundles_for(snapshot, config.bundles.custom_bundles)

    view = view.reconcile(bundle_map, snapshot.graph_id)
    tree = stratify(
        snapshot.nodes,
        bundle_map,
        view.expansion.expanded_ids,
        snapshot.root_id,
    )
    positioned = LayoutEngine(config.layout).layout(
        tree,
        snapshot.current_id,
        annotation_open_depth=view.annotation_open_depth,
        nodes=snapshot.nodes,
    )
    return positioned, view


class ProvenanceTreeEngine:
    """
    Stateful front for one graph store.

    Holds the current ViewState and the cached bundle map. Bundle detection
    re-runs only when the graph identity or node count changes; stratification
    and layout re-run on every render().
    """

    def __init__(
        self,
        store: GraphStore,
        config: Optional[ProvenanceTreeConfig] = None,
        view: Optional[ViewState] = None
    ):
        self._store = store
        self._config = config or ProvenanceTreeConfig()
        self._bundle_cache_key: Optional[Tuple[str, int]] = None
        self._bundle_cache: BundleMap = {}
        self._view = view or ViewState(
            expansion=ClusterExpansionState(
                default_expanded=self._config.bundles.default_expanded
            )
        )

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def config(self) -> ProvenanceTreeConfig:
        return self._config

    @property
    def view_state(self) -> ViewState:
        return self._view

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def bundle_map(self, snapshot: Optional[GraphSnapshot] = None) -> BundleMap:
        snapshot = snapshot or self._store.snapshot()
        if snapshot.cache_key != self._bundle_cache_key:
            self._bundle_cache = bundles_for(snapshot, self._config.bundles.custom_bundles)
            self._bundle_cache_key = snapshot.cache_key
            logger.debug(
                "Bundle map rebuilt for graph %s version %d",
                snapshot.graph_id, snapshot.version
            )
        return self._bundle_cache

    def render(self) -> PositionedTree:
        snapshot = self._store.snapshot()
        positioned, self._view = recompute(
            snapshot, self._view, self._config, self.bundle_map(snapshot)
        )
        return positioned

    def _synced_view(self) -> ViewState:
        snapshot = self._store.snapshot()
        self._view = self._view.reconcile(self.bundle_map(snapshot), snapshot.graph_id)
        return self._view

    # =========================================================================
    # VIEW REQUESTS
    # =========================================================================

    def toggle_bundle(self, anchor_id: NodeId) -> Result:
        """Expand or collapse a bundle. Unknown anchors are a rejected no-op."""
        view = self._synced_view()
        if not view.expansion.is_known(anchor_id):
            return self._reject(ErrorCode.UNKNOWN_BUNDLE, f"{anchor_id} is not a bundle anchor")
        self._view = view.toggle_bundle(anchor_id)
        return Result.success(self._view.expansion.is_expanded(anchor_id))

    def is_expanded(self, anchor_id: NodeId) -> bool:
        return self._synced_view().expansion.is_expanded(anchor_id)

    def toggle_annotation(self, node_id: NodeId) -> Result:
        """Open or close the annotation editor at the visible node's depth."""
        positioned = self.render()
        node = positioned.get(node_id)
        if node is None:
            return self._reject(ErrorCode.UNKNOWN_NODE, f"{node_id} is not visible")
        self._view = self._view.toggle_annotation(node.depth)
        return Result.success(self._view.annotation_open_depth)

    def close_annotation(self) -> Result:
        self._view = self._view.close_annotation()
        return Result.success(None)

    # =========================================================================
    # STORE REQUESTS
    # =========================================================================

    def change_current(self, node_id: NodeId) -> Result:
        return self._store.go_to_node(node_id)

    def undo(self) -> Result:
        if self._config.navigation.ephemeral_undo:
            return self._store.go_back_to_non_ephemeral()
        return self._store.go_back_one_step()

    def redo(self) -> Result:
        if self._config.navigation.ephemeral_undo:
            return self._store.go_forward_to_non_ephemeral()
        return self._store.go_forward_one_step()

    def set_bookmark(self, node_id: NodeId, bookmarked: bool) -> Result:
        return self._store.set_bookmark(node_id, bookmarked)

    def toggle_bookmark(self, node_id: NodeId) -> Result:
        return self._store.set_bookmark(node_id, not self._store.get_bookmark(node_id))

    def add_annotation(self, node_id: NodeId, annotation: str) -> Result:
        return self._store.add_annotation_to_node(node_id, annotation)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def bookmarked_nodes(self) -> Tuple[ProvenanceNode, ...]:
        """Non-root nodes that are bookmarked or annotated, in creation order."""
        snapshot = self._store.snapshot()
        return tuple(
            node for node in snapshot.nodes.values()
            if not node.is_root and (node.bookmarked or node.artifacts.has_annotation)
        )

    def event_types(self) -> Tuple[str, ...]:
        """Distinct event types of non-root nodes, in first-seen order."""
        seen = []
        for node in self._store.snapshot().nodes.values():
            if not node.is_root and node.event_type and node.event_type not in seen:
                seen.append(node.event_type)
        return tuple(seen)

    def _reject(self, code: ErrorCode, message: str) -> Result:
        logger.info("Rejected view request: %s", message)
        return Result.failure(Error(code=code, message=message))

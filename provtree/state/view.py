"""
View State

Everything the layout depends on besides the graph itself: bundle expansion
and the single open annotation editor.

The annotation editor is keyed by tree depth. Opening it at a depth closes
any other; toggling the open depth closes it.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from ..contracts.base import NodeId
from ..contracts.layout import Bundle
from .expansion import ClusterExpansionState


@dataclass(frozen=True)
class ViewState:
    """Immutable view state passed into and returned from recomputation."""
    expansion: ClusterExpansionState = field(default_factory=ClusterExpansionState)
    annotation_open_depth: Optional[int] = None

    @property
    def graph_id(self) -> Optional[str]:
        return self.expansion.graph_id

    def toggle_bundle(self, anchor_id: NodeId) -> ViewState:
        expansion = self.expansion.toggle(anchor_id)
        if expansion is self.expansion:
            return self
        return replace(self, expansion=expansion)

    def toggle_annotation(self, depth: int) -> ViewState:
        if depth < 0:
            raise ValueError(f"Annotation depth must be non-negative, got {depth}")
        if self.annotation_open_depth == depth:
            return replace(self, annotation_open_depth=None)
        return replace(self, annotation_open_depth=depth)

    def close_annotation(self) -> ViewState:
        if self.annotation_open_depth is None:
            return self
        return replace(self, annotation_open_depth=None)

    def reconcile(
        self,
        bundle_map: Mapping[NodeId, Bundle],
        graph_id: Optional[str] = None
    ) -> ViewState:
        """Follow a new bundle map; a new graph also closes the annotation editor."""
        expansion = self.expansion.reconcile(bundle_map, graph_id)
        graph_changed = (
            graph_id is not None
            and self.graph_id is not None
            and graph_id != self.graph_id
        )
        return replace(
            self,
            expansion=expansion,
            annotation_open_depth=None if graph_changed else self.annotation_open_depth,
        )

"""
Cluster Expansion State
=======================

Which bundle anchors are shown in full (expanded) versus summarized
(collapsed).

IMMUTABLE:
==========
Every mutation returns a new state. Recomputation takes a state in and the
caller keeps the state it gets back; nothing is shared or mutated in place.

INDEPENDENCE:
=============
Moving the current pointer never expands or collapses a bundle. Only
toggle() does.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, Mapping, Optional

from ..contracts.base import NodeId
from ..contracts.layout import Bundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClusterExpansionState:
    """
    known_anchor_ids: anchors of the bundle map this state was built for.
    expanded_ids: subset of known anchors that are expanded.
    """
    known_anchor_ids: FrozenSet[NodeId] = frozenset()
    expanded_ids: FrozenSet[NodeId] = frozenset()
    default_expanded: bool = True
    graph_id: Optional[str] = None

    def __post_init__(self):
        stray = self.expanded_ids - self.known_anchor_ids
        if stray:
            raise ValueError(f"Expanded ids are not known anchors: {sorted(stray)}")

    @staticmethod
    def initial(
        bundle_map: Mapping[NodeId, Bundle],
        default_expanded: bool = True,
        graph_id: Optional[str] = None
    ) -> ClusterExpansionState:
        anchors = frozenset(bundle_map.keys())
        return ClusterExpansionState(
            known_anchor_ids=anchors,
            expanded_ids=anchors if default_expanded else frozenset(),
            default_expanded=default_expanded,
            graph_id=graph_id,
        )

    def is_expanded(self, anchor_id: NodeId) -> bool:
        return anchor_id in self.expanded_ids

    def is_known(self, anchor_id: NodeId) -> bool:
        return anchor_id in self.known_anchor_ids

    def toggle(self, anchor_id: NodeId) -> ClusterExpansionState:
        """Flip anchor_id. Unknown ids are ignored and return this state."""
        if not self.is_known(anchor_id):
            logger.info("Ignoring toggle of unknown bundle %s", anchor_id)
            return self
        if anchor_id in self.expanded_ids:
            expanded = self.expanded_ids - {anchor_id}
        else:
            expanded = self.expanded_ids | {anchor_id}
        return replace(self, expanded_ids=expanded)

    def with_expanded(self, anchor_ids: Iterable[NodeId]) -> ClusterExpansionState:
        """Replace the expanded set, keeping only known anchors."""
        return replace(self, expanded_ids=frozenset(anchor_ids) & self.known_anchor_ids)

    def reconcile(
        self,
        bundle_map: Mapping[NodeId, Bundle],
        graph_id: Optional[str] = None
    ) -> ClusterExpansionState:
        """
        Carry choices over to a newer bundle map of the same graph.

        Still-known anchors keep their state, vanished anchors are dropped and
        new anchors get the default. A different graph_id resets everything.
        """
        if graph_id is not None and self.graph_id is not None and graph_id != self.graph_id:
            logger.info("Graph changed from %s to %s; resetting expansion", self.graph_id, graph_id)
            return ClusterExpansionState.initial(bundle_map, self.default_expanded, graph_id)

        anchors = frozenset(bundle_map.keys())
        kept = self.expanded_ids & anchors
        if self.default_expanded:
            kept |= anchors - self.known_anchor_ids
        return ClusterExpansionState(
            known_anchor_ids=anchors,
            expanded_ids=kept,
            default_expanded=self.default_expanded,
            graph_id=graph_id if graph_id is not None else self.graph_id,
        )

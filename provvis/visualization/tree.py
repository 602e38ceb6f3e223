"""
Provenance Tree Visualization Contracts

Responsibility:
Deterministic transformation of a positioned provenance tree into renderable
views. Renderers draw these as-is; no layout logic lives in the renderer.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class RenderNode:
    """Renderable tree node."""
    node_id: str
    x: float
    y: float
    depth: int
    lane_width: int
    label: str
    annotation: str
    event_type: Optional[str]
    is_backbone: bool
    is_current: bool
    is_bundle_anchor: bool
    is_collapsed: bool
    bundle_size: int
    bookmarked: bool
    annotation_open: bool


@dataclass(frozen=True)
class RenderLink:
    """Renderable link from a node's effective parent to the node."""
    link_id: str
    source_id: str
    target_id: str
    source_x: float
    source_y: float
    target_x: float
    target_y: float


@dataclass(frozen=True)
class BundleOutline:
    """
    Rounded box drawn around a bundle on the backbone.

    Collapsed bundles get a single slot; expanded ones span their visible
    members.
    """
    anchor_id: str
    x: float
    y: float
    height: float
    expanded: bool


@dataclass(frozen=True)
class ProvenanceTreeView:
    """
    Pre-layouted provenance tree.
    Same positioned tree = identical view.
    """
    view_id: str
    root_id: str
    current_id: str
    nodes: Tuple[RenderNode, ...]
    links: Tuple[RenderLink, ...]
    outlines: Tuple[BundleOutline, ...]
    max_depth: int
    max_lane: int
    shift_left: int
    annotation_open_depth: Optional[int]

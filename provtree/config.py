"""
Provenance Tree Configuration

Layout spacing, bundling policy and navigation policy.
Every stage receives its own config object; ProvenanceTreeConfig composes them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

from .contracts.base import NodeId
from .contracts.layout import Bundle


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing used by the layout engine (renderer units)."""
    gutter: float = 15
    backbone_gutter: float = 20
    lane_spacing: float = 22
    vertical_space: float = 50
    cluster_vertical_space: float = 50
    annotation_height: float = 100
    label_max_length: int = 20

    def __post_init__(self):
        if self.vertical_space <= 0:
            raise ValueError("vertical_space must be positive")
        if self.lane_spacing <= 0:
            raise ValueError("lane_spacing must be positive")
        if self.backbone_gutter < self.gutter:
            raise ValueError("backbone_gutter must not be smaller than gutter")

    @property
    def bundle_indent(self) -> float:
        """Extra x offset for members of an expanded bundle."""
        return self.backbone_gutter - self.gutter


@dataclass(frozen=True)
class BundleConfig:
    """
    Bundling policy.

    default_expanded: whether newly detected bundles start expanded.
    custom_bundles: caller-defined bundles merged ahead of detected ones.
    """
    default_expanded: bool = True
    custom_bundles: Dict[NodeId, Bundle] = field(default_factory=dict)


@dataclass(frozen=True)
class NavigationConfig:
    """Undo/redo policy. ephemeral_undo skips ephemeral states."""
    ephemeral_undo: bool = False


@dataclass
class ProvenanceTreeConfig:
    """Unified configuration for the provenance tree engine."""
    layout: LayoutConfig = None
    bundles: BundleConfig = None
    navigation: NavigationConfig = None

    def __post_init__(self):
        self.layout = self.layout or LayoutConfig()
        self.bundles = self.bundles or BundleConfig()
        self.navigation = self.navigation or NavigationConfig()

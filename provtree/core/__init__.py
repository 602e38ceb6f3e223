"""
Provenance Tree Core

Pipeline stages, each a pure function of its inputs:

    detect_bundles -> stratify -> layout
"""

from .bundles import (
    detect_bundles, merge_bundles, bundle_parents, bundled_node_ids,
    bundle_label, BundleIndex
)
from .stratify import TreeStratifier, stratify
from .layout import LayoutEngine, layout

__all__ = [
    'detect_bundles', 'merge_bundles', 'bundle_parents', 'bundled_node_ids',
    'bundle_label', 'BundleIndex',
    'TreeStratifier', 'stratify',
    'LayoutEngine', 'layout',
]

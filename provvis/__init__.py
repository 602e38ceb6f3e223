"""
Provenance Tree Views

Responsibility:
Read-only, render-ready views of the positioned provenance tree, and the
user intents a renderer sends back.

PRINCIPLES:
1. Immutable (Frozen)
2. No Layout Logic
3. No Drawing Logic
"""

from .visualization import (
    RenderNode, RenderLink, BundleOutline, ProvenanceTreeView,
    BookmarkEntry, BookmarkListView,
)
from .mapper import TreeViewMapper
from .interaction import ActionType, InteractionRequest, apply_interaction

__all__ = [
    'RenderNode', 'RenderLink', 'BundleOutline', 'ProvenanceTreeView',
    'BookmarkEntry', 'BookmarkListView',
    'TreeViewMapper',
    'ActionType', 'InteractionRequest', 'apply_interaction',
]

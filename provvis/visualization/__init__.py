from .tree import RenderNode, RenderLink, BundleOutline, ProvenanceTreeView
from .bookmarks import BookmarkEntry, BookmarkListView

__all__ = [
    'RenderNode', 'RenderLink', 'BundleOutline', 'ProvenanceTreeView',
    'BookmarkEntry', 'BookmarkListView',
]

"""
Bookmark List Contracts

Flat list of the states a user marked: bookmarked or annotated nodes, in
creation order, independent of bundle expansion.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class BookmarkEntry:
    """One marked state."""
    node_id: str
    label: str
    annotation: str
    event_type: Optional[str]
    bookmarked: bool
    is_current: bool
    x: float
    y: float


@dataclass(frozen=True)
class BookmarkListView:
    """All marked states, laid out as a vertical list."""
    entries: Tuple[BookmarkEntry, ...]

    def __len__(self) -> int:
        return len(self.entries)

"""
API Mapper
==========

Transforms render views into JSON-ready dictionaries.
Coordinates and ordering are passed through untouched.
"""
from dataclasses import asdict
from typing import Any, Dict

from provvis.visualization import BookmarkListView, ProvenanceTreeView

from ..contracts.base import Error, Result


def map_tree_view(view: ProvenanceTreeView, graph_id: str, version: int) -> Dict[str, Any]:
    """Map ProvenanceTreeView to the tree payload."""
    payload = asdict(view)
    payload["graph_id"] = graph_id
    payload["graph_version"] = version
    return payload


def map_bookmarks(view: BookmarkListView) -> Dict[str, Any]:
    return {"bookmarks": [asdict(entry) for entry in view.entries]}


def map_error(error: Error) -> Dict[str, Any]:
    return {
        "code": error.code.name,
        "message": error.message,
        "context": dict(error.context),
    }


def map_result(result: Result) -> Dict[str, Any]:
    if result.is_failure:
        return {"ok": False, "error": map_error(result.error)}
    return {"ok": True, "value": result.value}

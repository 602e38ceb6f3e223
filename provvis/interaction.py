"""
Interaction Contracts

Responsibility:
Define valid user actions on the provenance tree and route them to the
engine, one request at a time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from provtree.contracts.base import Error, ErrorCode, Result
from provtree.engine import ProvenanceTreeEngine


class ActionType(Enum):
    """Types of user interaction."""
    # View
    TOGGLE_BUNDLE = "toggle_bundle"
    TOGGLE_ANNOTATION = "toggle_annotation"

    # Navigation
    GO_TO_NODE = "go_to_node"
    UNDO = "undo"
    REDO = "redo"

    # Marking
    SET_BOOKMARK = "set_bookmark"
    ADD_ANNOTATION = "add_annotation"


@dataclass(frozen=True)
class InteractionRequest:
    """A specific user intent."""
    request_id: str
    action: ActionType
    payload: Dict[str, Any] = field(default_factory=dict)
    source_component: str = "tree"


_REQUIRED_KEYS = {
    ActionType.TOGGLE_BUNDLE: ("node_id",),
    ActionType.TOGGLE_ANNOTATION: ("node_id",),
    ActionType.GO_TO_NODE: ("node_id",),
    ActionType.SET_BOOKMARK: ("node_id",),
    ActionType.ADD_ANNOTATION: ("node_id", "annotation"),
}


def apply_interaction(engine: ProvenanceTreeEngine, request: InteractionRequest) -> Result:
    """Dispatch request to the engine. Missing payload keys reject the request."""
    payload = request.payload
    missing = [key for key in _REQUIRED_KEYS.get(request.action, ()) if key not in payload]
    if missing:
        return Result.failure(Error(
            code=ErrorCode.INVALID_REQUEST,
            message=f"Request {request.request_id} is missing {', '.join(missing)}"
        ))

    if request.action == ActionType.TOGGLE_BUNDLE:
        return engine.toggle_bundle(payload["node_id"])
    if request.action == ActionType.TOGGLE_ANNOTATION:
        return engine.toggle_annotation(payload["node_id"])
    if request.action == ActionType.GO_TO_NODE:
        return engine.change_current(payload["node_id"])
    if request.action == ActionType.UNDO:
        return engine.undo()
    if request.action == ActionType.REDO:
        return engine.redo()
    if request.action == ActionType.SET_BOOKMARK:
        bookmarked = payload.get("bookmarked", True)
        if not isinstance(bookmarked, bool):
            return Result.failure(Error(
                code=ErrorCode.INVALID_REQUEST,
                message=f"Request {request.request_id} has non-boolean bookmarked={bookmarked!r}"
            ))
        return engine.set_bookmark(payload["node_id"], bookmarked)
    if request.action == ActionType.ADD_ANNOTATION:
        return engine.add_annotation(payload["node_id"], payload["annotation"])
    raise ValueError(f"Unhandled action: {request.action}")

"""
Provenance Tree API Server
==========================

HTTP surface for render adapters: serves the positioned tree and accepts
one user request at a time.

Endpoints:
- GET  /api/v1/tree                          -> Positioned tree view
- GET  /api/v1/bookmarks                     -> Bookmarked / annotated states
- POST /api/v1/nodes                         -> Append a state (in-memory store)
- POST /api/v1/bundles/{anchor_id}/toggle    -> Expand / collapse a bundle
- POST /api/v1/annotations/{node_id}/toggle  -> Open / close annotation editor
- POST /api/v1/navigate/{node_id}            -> Move the current pointer
- POST /api/v1/undo, /api/v1/redo            -> Step through history
- PUT  /api/v1/nodes/{node_id}/bookmark      -> Set bookmark flag
- PUT  /api/v1/nodes/{node_id}/annotation    -> Set annotation text

Usage:
    uvicorn provtree.api.server:app --reload
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from provvis.mapper import TreeViewMapper

from ..contracts.base import ErrorCode, Result, StructuralInconsistencyError
from ..engine import ProvenanceTreeEngine
from ..observability import configure_logging
from ..store.memory import InMemoryProvenanceGraph
from .mapper import map_bookmarks, map_error, map_result, map_tree_view

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class NodeCreate(BaseModel):
    label: str
    ephemeral: bool = False
    event_type: Optional[str] = None


class BookmarkUpdate(BaseModel):
    bookmarked: bool = True


class AnnotationUpdate(BaseModel):
    annotation: str


_STATUS_BY_CODE = {
    ErrorCode.UNKNOWN_NODE: 404,
    ErrorCode.UNKNOWN_BUNDLE: 404,
    ErrorCode.NAVIGATION_EXHAUSTED: 409,
    ErrorCode.INVALID_REQUEST: 400,
}


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(engine: Optional[ProvenanceTreeEngine] = None) -> FastAPI:
    """Build the API around engine (default: a fresh in-memory graph)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if getattr(app.state, "engine", None) is None:
            app.state.engine = ProvenanceTreeEngine(InMemoryProvenanceGraph())
            logger.info("Initialized in-memory provenance graph")
        yield
        logger.info("Shutting down provenance tree API")

    app = FastAPI(
        title="Provenance Tree API",
        version="0.1.0",
        description="Positioned provenance trees for render adapters",
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["*"],
    )

    @app.exception_handler(StructuralInconsistencyError)
    async def structural_error_handler(request: Request, exc: StructuralInconsistencyError):
        return JSONResponse(status_code=500, content={"error": map_error(exc.error)})

    def current_engine() -> ProvenanceTreeEngine:
        engine = app.state.engine
        if engine is None:
            raise HTTPException(status_code=503, detail="Engine not initialized")
        return engine

    def respond(result: Result):
        if result.is_failure:
            status = _STATUS_BY_CODE.get(result.error.code, 400)
            raise HTTPException(status_code=status, detail=map_error(result.error))
        return map_result(result)

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check():
        current_engine()
        return {"status": "online"}

    @app.get("/api/v1/tree")
    async def get_tree():
        engine = current_engine()
        positioned = engine.render()
        snapshot = engine.store.snapshot()
        view = TreeViewMapper(engine.config.layout).map_tree(positioned)
        return map_tree_view(view, snapshot.graph_id, snapshot.version)

    @app.get("/api/v1/bookmarks")
    async def get_bookmarks():
        engine = current_engine()
        snapshot = engine.store.snapshot()
        view = TreeViewMapper(engine.config.layout).map_bookmarks(
            engine.bookmarked_nodes(), snapshot.current_id
        )
        return map_bookmarks(view)

    @app.post("/api/v1/nodes", status_code=201)
    async def add_node(body: NodeCreate):
        engine = current_engine()
        if not isinstance(engine.store, InMemoryProvenanceGraph):
            raise HTTPException(status_code=501, detail="Store does not accept new nodes")
        node_id = engine.store.add_node(body.label, body.ephemeral, body.event_type)
        return {"ok": True, "value": node_id}

    @app.post("/api/v1/bundles/{anchor_id}/toggle")
    async def toggle_bundle(anchor_id: str):
        return respond(current_engine().toggle_bundle(anchor_id))

    @app.post("/api/v1/annotations/{node_id}/toggle")
    async def toggle_annotation(node_id: str):
        return respond(current_engine().toggle_annotation(node_id))

    @app.post("/api/v1/navigate/{node_id}")
    async def navigate(node_id: str):
        return respond(current_engine().change_current(node_id))

    @app.post("/api/v1/undo")
    async def undo():
        return respond(current_engine().undo())

    @app.post("/api/v1/redo")
    async def redo():
        return respond(current_engine().redo())

    @app.put("/api/v1/nodes/{node_id}/bookmark")
    async def set_bookmark(node_id: str, body: BookmarkUpdate):
        return respond(current_engine().set_bookmark(node_id, body.bookmarked))

    @app.put("/api/v1/nodes/{node_id}/annotation")
    async def set_annotation(node_id: str, body: AnnotationUpdate):
        return respond(current_engine().add_annotation(node_id, body.annotation))

    return app


app = create_app()

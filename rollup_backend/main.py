"""
Roll-up Tree Backend - FastAPI Application

This is the main entry point for the roll-up tree backend.
It provides:
- REST API for the user commands (set state, toggle, expand/collapse all)
- Click and context-menu endpoints for the browser's interaction layer
- Scene endpoints (current frame as JSON or SVG)
- WebSocket endpoint streaming animation frames
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException, Body
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from rollup_core import (
    NodeState, SetStateRequest, ContextMenuRequest, ChooseRequest,
    MalformedInputError, NodeNotFoundError, NotCollapsibleError, MenuNotOpenError,
    validate_input_tree,
)
from rollup_core.validation import validation_summary

from .sample import SAMPLE_TREE
from .scheduler import FrameScheduler
from .settings import settings
from .svg import frame_to_svg
from .tree_manager import TreeManager
from .websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)

tree_manager = TreeManager(settings)
ws_manager = WebSocketManager()
scheduler = FrameScheduler(
    tree_manager.renderer, ws_manager.send_frame, interval=settings.frame_interval
)


# --- Async change notification ---
# Bridge between sync TreeManager callbacks and async WebSocket broadcasts

_change_event: Optional[asyncio.Event] = None


def on_tree_change(transition):
    """Callback for tree changes - sets event for async handler."""
    if _change_event is not None:
        _change_event.set()


tree_manager.on_change(on_tree_change)


async def change_broadcaster(event: asyncio.Event):
    """Background task that plays new transitions to WebSocket clients."""
    while True:
        await event.wait()
        event.clear()

        transition = tree_manager.renderer.transition
        if transition is not None:
            scheduler.start(transition)
        await ws_manager.notify_tree_updated(tree_manager.renderer.render_count)


def load_initial_tree():
    """Load the tree named by ROLLUP_TREE_DATA, else the bundled sample."""
    if tree_manager.is_loaded:
        return
    if settings.data is not None:
        tree_manager.load_file(settings.data)
    else:
        tree_manager.load(SAMPLE_TREE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    global _change_event
    # The event belongs to this loop
    _change_event = asyncio.Event()

    load_initial_tree()
    # Play whatever is already rendered to the first clients
    _change_event.set()

    # Start background broadcaster
    broadcaster_task = asyncio.create_task(change_broadcaster(_change_event))

    yield

    # Cleanup
    _change_event = None
    await scheduler.stop()
    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Roll-up Tree API",
    description="Backend API for the animated roll-up tree",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_tree():
    if not tree_manager.is_loaded:
        raise HTTPException(status_code=400, detail="No tree loaded")


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Tree State ---

@app.get("/api/tree")
async def get_tree():
    """Get the full tree, collapsed subtrees included."""
    return tree_manager.get_state()


@app.post("/api/tree")
async def load_tree(input_tree: dict[str, Any] = Body(...)):
    """Replace the tree with one built from the request body."""
    try:
        root = tree_manager.load(input_tree)
        return {"success": True, "tree": root.to_json_dict()}
    except MalformedInputError as e:
        logger.warning("Rejected input tree: %s", e)
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/tree/visible")
async def get_visible_tree():
    """Get the visible tree (collapsed subtrees pruned)."""
    return tree_manager.get_visible_state()


@app.get("/api/tree/summary")
async def summarize_current_tree():
    """
    Get a summary of the current tree.

    Returns totals, node counts by state, depth and largest leaves.
    """
    _require_tree()
    return {"success": True, "summary": tree_manager.summary()}


@app.post("/api/tree/validate")
async def validate_tree(input_tree: Any = Body(...)):
    """
    Validate an input tree without loading it.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    issues = validate_input_tree(input_tree)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


@app.post("/api/tree/expand-all")
async def expand_all():
    """Expand every node."""
    _require_tree()
    changed = tree_manager.expand_all()
    return {"success": True, "changed": changed}


@app.post("/api/tree/collapse-all")
async def collapse_all():
    """Collapse every node with children."""
    _require_tree()
    changed = tree_manager.collapse_all()
    return {"success": True, "changed": changed}


# --- Node Operations ---

@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node and its subtree."""
    _require_tree()
    try:
        return {"success": True, "node": tree_manager.get_node(node_id).to_json_dict()}
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/nodes/{node_id}/state")
async def set_node_state(node_id: str, request: SetStateRequest):
    """Include, invert or exclude a node."""
    _require_tree()
    try:
        tree_manager.set_state(node_id, request.state)
        root = tree_manager.engine.get_root()
        return {
            "success": True,
            "node": tree_manager.get_node(node_id).to_json_dict(),
            "total": root.aggregate_value
        }
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/nodes/{node_id}/toggle")
async def toggle_node(node_id: str):
    """Collapse or expand a node."""
    _require_tree()
    try:
        node = tree_manager.toggle_collapse(node_id)
        return {"success": True, "id": node.id, "collapsed": node.collapsed}
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotCollapsibleError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Interaction ---

@app.post("/api/nodes/{node_id}/click")
async def click_node(node_id: str):
    """Primary click on a drawn node."""
    _require_tree()
    try:
        tree_manager.interaction.primary_click(node_id)
        return {"success": True, "node": tree_manager.get_node(node_id).to_json_dict()}
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/nodes/{node_id}/context-menu")
async def open_context_menu(node_id: str, request: ContextMenuRequest):
    """Secondary click on a drawn node; opens the state menu."""
    _require_tree()
    try:
        tree_manager.interaction.secondary_click(node_id, request.x, request.y)
        return {"success": True, "menu": tree_manager.interaction.menu.state.to_dict()}
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/api/menu")
async def get_menu():
    """Get the state menu (hidden or shown, and where)."""
    return {"menu": tree_manager.interaction.menu.state.to_dict()}


@app.post("/api/menu/choose")
async def choose_from_menu(request: ChooseRequest):
    """Pick a state from the open menu."""
    try:
        state = tree_manager.interaction.menu.choose(request.state)
        return {"success": True, "state": state.value}
    except MenuNotOpenError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/menu/hide")
async def hide_menu():
    """Click outside the menu."""
    tree_manager.interaction.outside_click()
    return {"success": True}


# --- Scene ---

@app.get("/api/scene")
async def get_scene():
    """Get the current frame: positioned markers, labels and connectors."""
    return {"frame": tree_manager.renderer.frame().to_dict()}


@app.get("/api/scene.svg")
async def get_scene_svg():
    """Get the current frame as an SVG document."""
    svg = frame_to_svg(tree_manager.renderer.frame())
    return Response(content=svg, media_type="image/svg+xml")


# --- Enums for Frontend ---

@app.get("/api/enums/states")
async def get_states():
    """Get available node states."""
    return {"states": [s.value for s in NodeState]}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive frames and tree_updated events.
    """
    await ws_manager.connect(websocket)

    try:
        # New clients start from the current frame
        await websocket.send_json({
            "type": "frame",
            "frame": tree_manager.renderer.frame().to_dict()
        })
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)
    except Exception as e:
        logger.warning("WebSocket error: %s", e)
        await ws_manager.disconnect(websocket)


# --- Run with uvicorn ---

def run(host: Optional[str] = None, port: Optional[int] = None):
    """Configure logging and serve the app."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":
    run()

"""
FastAPI web server — exposes the configurator to a browser canvas.

The browser reports its canvas size and raw pointer events; the server
answers with the scene to draw.  All unit conversion and validation
happens here, never in the browser.
"""

from __future__ import annotations

import logging
import threading

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from plateconfig.config import load_rules
from plateconfig.layout.dimensions import DimensionValue
from plateconfig.layout.models import PlateChangeError, SocketGroupError
from plateconfig.layout.serialization import socket_group_to_dict
from plateconfig.session import ConfiguratorSession
from plateconfig.store import JsonFileRepository


log = logging.getLogger(__name__)

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="Plate Configurator")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Session state (persists across requests) ───────────────────────

_session = ConfiguratorSession()
_lock = threading.Lock()        # sync endpoints run in a thread pool


def reset_session(session: ConfiguratorSession | None = None) -> ConfiguratorSession:
    """Swap in a fresh session (a new in-memory one by default)."""
    global _session
    with _lock:
        _session = session or ConfiguratorSession()
        return _session


# ── Models ─────────────────────────────────────────────────────────


class DimensionModel(BaseModel):
    width: str
    height: str


class PlatesRequest(BaseModel):
    dimensions: list[DimensionModel]
    clamp: bool = False


class ViewportRequest(BaseModel):
    width: float = Field(ge=0)
    height: float = Field(ge=0)
    immediate: bool = False


class SocketCreateRequest(BaseModel):
    plate_index: int
    count: int = 1
    orientation: str = "vertical"
    anchor_x: float | None = None
    anchor_y: float | None = None


class SocketUpdateRequest(BaseModel):
    plate_index: int | None = None
    count: int | None = None
    orientation: str | None = None
    anchor_x: float | None = None
    anchor_y: float | None = None


class PointerRequest(BaseModel):
    x: float
    y: float


class CutoutsRequest(BaseModel):
    enabled: bool = True
    plate_index: int | None = None
    editing_socket_id: str | None = None


def _verdict_or_409(verdict, group) -> dict:
    if not verdict.valid:
        raise HTTPException(409, verdict.reason)
    return socket_group_to_dict(group)


# ── Routes ─────────────────────────────────────────────────────────


@app.get("/api/state")
def get_state():
    with _lock:
        return _session.to_dict()


@app.get("/api/scene")
def get_scene():
    with _lock:
        return _session.scene()


@app.put("/api/plates")
def put_plates(req: PlatesRequest):
    """Replace the plate list with the entered width/height strings."""
    with _lock:
        try:
            _session.set_dimensions(
                [DimensionValue(width=d.width, height=d.height) for d in req.dimensions],
                clamp=req.clamp,
            )
        except PlateChangeError as exc:
            raise HTTPException(409, str(exc))
        except ValueError as exc:
            raise HTTPException(400, str(exc))
        return _session.to_dict()


@app.post("/api/plates")
def add_plate(req: DimensionModel | None = None):
    """Append a plate (default size when no body is sent)."""
    with _lock:
        dim = DimensionValue(width=req.width, height=req.height) if req else None
        index = _session.add_plate(dim)
        return {"index": index, **_session.to_dict()}


@app.delete("/api/plates/{index}")
def delete_plate(index: int):
    with _lock:
        if not _session.remove_plate(index):
            raise HTTPException(400, "Plate cannot be removed.")
        return _session.to_dict()


@app.post("/api/viewport")
def post_viewport(req: ViewportRequest):
    """Report the canvas size; applied after the debounce window."""
    with _lock:
        _session.resize(req.width, req.height, immediate=req.immediate)
        return {"status": "ok", "pending": _session.controller.viewport.has_pending_resize}


@app.post("/api/cutouts")
def post_cutouts(req: CutoutsRequest):
    """Toggle cutouts and choose the plate shown for socket placement."""
    with _lock:
        c = _session.controller
        c.set_cutouts_enabled(req.enabled)
        if req.enabled:
            c.focus_plate(req.plate_index)
            c.start_edit(req.editing_socket_id)
        return _session.to_dict()


@app.get("/api/sockets")
def list_sockets():
    with _lock:
        return {"sockets": [socket_group_to_dict(g) for g in _session.sockets.groups]}


@app.post("/api/sockets")
def create_socket(req: SocketCreateRequest):
    with _lock:
        try:
            group, verdict = _session.confirm_socket(
                req.plate_index, req.count, req.orientation, req.anchor_x, req.anchor_y,
            )
        except SocketGroupError as exc:
            raise HTTPException(400, str(exc))
        return _verdict_or_409(verdict, group)


@app.put("/api/sockets/{socket_id}")
def update_socket(socket_id: str, req: SocketUpdateRequest):
    with _lock:
        if _session.sockets.get(socket_id) is None:
            raise HTTPException(404, f"Unknown socket group '{socket_id}'")
        try:
            group, verdict = _session.edit_socket(
                socket_id,
                plate_index=req.plate_index,
                count=req.count,
                orientation=req.orientation,
                anchor_x_cm=req.anchor_x,
                anchor_y_cm=req.anchor_y,
            )
        except SocketGroupError as exc:
            raise HTTPException(400, str(exc))
        return _verdict_or_409(verdict, group)


@app.delete("/api/sockets/{socket_id}")
def delete_socket(socket_id: str):
    with _lock:
        if not _session.delete_socket(socket_id):
            raise HTTPException(404, f"Unknown socket group '{socket_id}'")
        return {"status": "ok"}


# ── Pointer input ──────────────────────────────────────────────────


@app.post("/api/pointer/down")
def pointer_down(req: PointerRequest):
    with _lock:
        socket_id = _session.controller.pointer_down(req.x, req.y)
        return {"socket_id": socket_id, "state": _session.controller.state}


@app.post("/api/pointer/move")
def pointer_move(req: PointerRequest):
    with _lock:
        update = _session.controller.update_drag(req.x, req.y)
        return {"accepted": update.accepted, "reason": update.reason, "scene": _session.scene()}


@app.post("/api/pointer/up")
def pointer_up():
    with _lock:
        snapped = _session.controller.end_drag()
        return {"snapped_back": snapped, "scene": _session.scene()}


@app.post("/api/pointer/leave")
def pointer_leave():
    return pointer_up()


@app.post("/api/pointer/click")
def pointer_click(req: PointerRequest):
    with _lock:
        hit = _session.controller.click(req.x, req.y)
        return {"hit": hit, "active_socket_id": _session.controller.active_socket_id}


# ── Entry point ────────────────────────────────────────────────────


def build_session(
    store_path: str | None = None, rules_path: str | None = None,
) -> ConfiguratorSession:
    """Session backed by a JSON file and/or custom rules."""
    repository = JsonFileRepository(store_path) if store_path else None
    if rules_path:
        socket_rules, canvas_rules = load_rules(rules_path)
        log.info("Loaded design rules from %s", rules_path)
        return ConfiguratorSession(repository, rules=socket_rules, canvas_rules=canvas_rules)
    return ConfiguratorSession(repository)


def main(
    host: str = "127.0.0.1",
    port: int = 8000,
    store_path: str | None = None,
    rules_path: str | None = None,
):
    import uvicorn

    reset_session(build_session(store_path, rules_path))
    if store_path:
        log.info("Persisting configurator state to %s", store_path)
    uvicorn.run(app, host=host, port=port, reload=False)


if __name__ == "__main__":
    main()

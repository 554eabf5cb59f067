"""
SilentMap Main Application
==========================

FastAPI entry point for the sound map service.

The service owns one ApplicationController. Platform callbacks (position
fixes, map interaction) and user actions arrive as HTTP requests, are
turned into events and applied by the controller; the UI reads the
rendered state back.

Endpoints:
    GET  /                      - Service information
    GET  /health                - Liveness probe
    GET  /ready                 - Readiness probe (dispatcher running?)
    GET  /metrics               - Counters for observability
    GET  /state                 - Rendered screen (map, panels, status)
    GET  /areas                 - Area list
    GET  /notices               - Drain pending notices
    POST /position              - Position fix {latitude, longitude}
    POST /position/error        - Geolocation error {message}
    POST /position/unavailable  - No geolocation on this device
    POST /map/view              - Map moved {latitude, longitude, zoom}
    POST /areas/commit          - Record the map center as a new area
    POST /areas/{index}/select  - Open the detail panel on an area
    POST /listening/toggle      - Start or stop the listening session
    POST /panels/songs          - Toggle the songs panel
    POST /panels/stats          - Toggle the stats panel
    POST /panels/close          - Close both side panels
    POST /detail/play           - Play the area's note
    POST /detail/take           - Take the area's song
    POST /detail/dismiss        - Close the detail panel
    WS   /ws/state              - Rendered screen once per second
"""

import asyncio
import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from silentmap.app import ApplicationController, build_controller
from silentmap.app.events import (
    ClosePanels,
    CommitRequested,
    DismissDetail,
    Event,
    MapMoved,
    PlaySong,
    PositionError,
    PositionFix,
    PositionUnavailable,
    SelectArea,
    TakeSong,
    ToggleListening,
    ToggleSongsPanel,
    ToggleStatsPanel,
)
from silentmap.config import settings
from silentmap.models.geo import Coordinate
from silentmap.views import render_state


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False
_controller: Optional[ApplicationController] = None
_dispatcher_task: Optional[asyncio.Task] = None
_startup_time: float = 0.0


def get_controller() -> ApplicationController:
    if _controller is None:
        raise HTTPException(status_code=503, detail="Service not started")
    return _controller


def is_ready() -> bool:
    return (
        _controller is not None
        and _dispatcher_task is not None
        and not _dispatcher_task.done()
    )


def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Request Bodies
# =============================================================================

class PositionBody(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class PositionErrorBody(BaseModel):
    message: str = Field(..., description="Error text reported by the platform")


class MapViewBody(PositionBody):
    zoom: int = Field(..., ge=1, le=20)


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _controller, _dispatcher_task, _startup_time, _shutdown_flag

    # signal handlers can only be installed from the main thread
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.app.name} {settings.app.version}")
    logger.info(
        f"Audio backend: {settings.audio.backend}, "
        f"seed areas: {settings.area.seed_path}, "
        f"storage: {settings.storage.path}"
    )

    _controller = build_controller(settings)
    _dispatcher_task = asyncio.create_task(
        _controller.run(),
        name="event_dispatcher",
    )

    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    await _controller.stop()

    if _dispatcher_task:
        _dispatcher_task.cancel()
        try:
            await _dispatcher_task
        except asyncio.CancelledError:
            pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="SilentMap",
    description="Sound map of quiet places",
    version=settings.app.version,
    lifespan=lifespan,
)


def _state_payload(controller: ApplicationController) -> dict:
    screen = render_state(
        controller.state,
        tile_url=settings.map.tile_url,
        attribution=settings.map.attribution,
    )
    return screen.model_dump(mode="json")


async def _apply(event: Event) -> JSONResponse:
    controller = get_controller()
    await controller.dispatch(event)
    return JSONResponse(_state_payload(controller))


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "SilentMap",
        "version": settings.app.version,
        "name": settings.app.name,
        "status": "running",
        "audio_backend": settings.audio.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe. Always 200 while the process is up."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe.

    Returns 200 once the controller is built and its dispatcher task is
    running, 503 otherwise.
    """
    if is_ready():
        return JSONResponse({
            "status": "ready",
            "areas": len(_controller.state.areas),
        })
    return JSONResponse({"status": "not_ready"}, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    controller = get_controller()
    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "audio_backend": settings.audio.backend,
        "events_processed": controller.events_processed,
        "handler_errors": controller.handler_errors,
        "sessions_started": controller.session.sessions_started,
        "microphone_owner": controller.recorder.microphone.owner,
        **{f"queue_{k}": v for k, v in controller.queue.metrics().items()},
    })


@app.get("/state")
async def state() -> JSONResponse:
    """Rendered screen."""
    return JSONResponse(_state_payload(get_controller()))


@app.get("/areas")
async def areas() -> JSONResponse:
    """Areas in the seed file format, seed areas first."""
    controller = get_controller()
    return JSONResponse([area.to_seed_dict() for area in controller.state.areas])


@app.get("/notices")
async def notices() -> JSONResponse:
    """Pending notices, oldest first. Each notice is returned once."""
    controller = get_controller()
    return JSONResponse([n.model_dump(mode="json") for n in controller.drain_notices()])


@app.post("/position")
async def position(body: PositionBody) -> JSONResponse:
    return await _apply(PositionFix(Coordinate(latitude=body.latitude, longitude=body.longitude)))


@app.post("/position/error")
async def position_error(body: PositionErrorBody) -> JSONResponse:
    return await _apply(PositionError(body.message))


@app.post("/position/unavailable")
async def position_unavailable() -> JSONResponse:
    return await _apply(PositionUnavailable())


@app.post("/map/view")
async def map_view(body: MapViewBody) -> JSONResponse:
    center = Coordinate(latitude=body.latitude, longitude=body.longitude)
    return await _apply(MapMoved(center=center, zoom=body.zoom))


@app.post("/areas/commit")
async def commit_area() -> JSONResponse:
    """
    Start the commit routine at the current map center.

    Returns immediately; the outcome arrives later as a notice.
    """
    return await _apply(CommitRequested())


@app.post("/areas/{index}/select")
async def select_area(index: int) -> JSONResponse:
    try:
        return await _apply(SelectArea(index))
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/listening/toggle")
async def toggle_listening() -> JSONResponse:
    return await _apply(ToggleListening())


@app.post("/panels/songs")
async def toggle_songs_panel() -> JSONResponse:
    return await _apply(ToggleSongsPanel())


@app.post("/panels/stats")
async def toggle_stats_panel() -> JSONResponse:
    return await _apply(ToggleStatsPanel())


@app.post("/panels/close")
async def close_panels() -> JSONResponse:
    return await _apply(ClosePanels())


@app.post("/detail/play")
async def play_song() -> JSONResponse:
    return await _apply(PlaySong())


@app.post("/detail/take")
async def take_song() -> JSONResponse:
    return await _apply(TakeSong())


@app.post("/detail/dismiss")
async def dismiss_detail() -> JSONResponse:
    return await _apply(DismissDetail())


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/state")
async def state_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing the rendered screen every second."""
    await websocket.accept()
    logger.info("Client connected to /ws/state")

    try:
        while not _shutdown_flag:
            if _controller is not None:
                await websocket.send_json(_state_payload(_controller))

            # clients never send; a receive only ends early on disconnect
            try:
                message = await asyncio.wait_for(websocket.receive(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            if message["type"] == "websocket.disconnect":
                break

    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/state")


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "silentmap.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import AsyncIterator, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from ..sim.core.clock import SimulationClock
from ..sim.core.config import SimulationConfig
from ..sim.core.errors import ConfigurationError
from ..sim.core.world import World

logger = logging.getLogger(__name__)


class FlockViewer:
    """Runs the flock at its fixed rate and pushes the newest frame to viewers.

    Viewers only ever see whole ticks: frames are serialized under the same
    lock that guards stepping. A slow viewer just misses intermediate
    frames; nothing is queued per client.
    """

    def __init__(self, config: SimulationConfig):
        self.world = World(config)
        self.clock = SimulationClock(self.world)
        self.running = False
        self.speed_multiplier = 1.0
        self.viewers: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    @property
    def completed_ticks(self) -> int:
        return self.clock.tick

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        self.running = True

    async def shutdown(self) -> None:
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.world.close()

    async def advance(self, elapsed_seconds: float) -> int:
        """Feed wall time to the clock off the event loop; returns ticks run."""
        async with self._lock:
            ticks = await asyncio.to_thread(self.clock.advance, elapsed_seconds)
        return len(ticks)

    async def reset(self) -> None:
        async with self._lock:
            self.clock.reset()
        await self.publish()

    async def set_viewport(self, width: float, height: float) -> None:
        async with self._lock:
            self.world.set_bounds(width / 2.0, height / 2.0)

    async def frame(self) -> str:
        async with self._lock:
            snapshot = self.world.snapshot(self.clock.tick)
        return json.dumps(
            {
                "type": "frame",
                "completed_ticks": snapshot.completed_ticks,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            }
        )

    async def publish(self) -> None:
        if not self.viewers:
            return
        payload = await self.frame()
        gone = []
        for viewer in list(self.viewers):
            try:
                await viewer.send_text(payload)
            except (WebSocketDisconnect, RuntimeError):
                gone.append(viewer)
        for viewer in gone:
            logger.debug("viewer went away")
            self.viewers.discard(viewer)

    async def handle_message(self, message: str) -> None:
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            logger.debug("ignoring malformed viewer message")
            return
        if not isinstance(payload, dict) or payload.get("type") != "viewport":
            return
        try:
            await self.set_viewport(float(payload["width"]), float(payload["height"]))
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("ignoring bad viewport from viewer: %s", exc)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        while True:
            await asyncio.sleep(self.clock.time_step)
            now = loop.time()
            elapsed = (now - last) * self.speed_multiplier
            last = now
            if not self.running:
                continue
            if await self.advance(elapsed):
                await self.publish()


viewer = FlockViewer(SimulationConfig())
static_dir = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    await viewer.start()
    yield
    await viewer.shutdown()


app = FastAPI(title="Birbs Flocking Viewer", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    half_width, half_height = viewer.world.bounds
    metrics = viewer.world.metrics
    return JSONResponse(
        {
            "running": viewer.running,
            "completed_ticks": viewer.completed_ticks,
            "population": viewer.world.population,
            "half_width": half_width,
            "half_height": half_height,
            "metrics": asdict(metrics) if metrics is not None else None,
        }
    )


# Registered before the catch-all action route so "speed" reaches it.
@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    viewer.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": viewer.speed_multiplier})


@app.post("/api/control/{action}")
async def control(action: str) -> JSONResponse:
    if action == "start":
        viewer.running = True
    elif action == "stop":
        viewer.running = False
    elif action == "reset":
        await viewer.reset()
    else:
        return JSONResponse({"error": f"unknown action {action!r}"}, status_code=404)
    return JSONResponse({"running": viewer.running, "completed_ticks": viewer.completed_ticks})


@app.post("/api/viewport")
async def set_viewport(payload: dict) -> JSONResponse:
    try:
        width = float(payload["width"])
        height = float(payload["height"])
    except (KeyError, TypeError, ValueError):
        return JSONResponse({"error": "width and height are required numbers"}, status_code=400)
    try:
        await viewer.set_viewport(width, height)
    except ConfigurationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    half_width, half_height = viewer.world.bounds
    return JSONResponse({"half_width": half_width, "half_height": half_height})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    viewer.viewers.add(websocket)
    await websocket.send_text(await viewer.frame())
    try:
        while True:
            await viewer.handle_message(await websocket.receive_text())
    except WebSocketDisconnect:
        viewer.viewers.discard(websocket)


__all__ = ["app", "viewer"]

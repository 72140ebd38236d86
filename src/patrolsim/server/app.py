"""FastAPI server exposing the patrol simulation.

Provides:
- REST control surface: start/pause/resume/stop/reset, algorithm, environment,
  heatmap and speed selection
- REST read surface: world summary, full frame, metrics, timeline, catalogue
- POST /api/detections: external perception events into the timeline
- WebSocket /ws/frames: projected frames at the configured frame rate
- WebSocket /ws/control: the control surface as JSON commands
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel, Field

from patrolsim import __version__
from patrolsim.config import SimulationSettings, get_settings
from patrolsim.engine.coordinator import InvalidControlError, PatrolCoordinator
from patrolsim.engine.entropy import Entropy
from patrolsim.model.catalogue import ALGORITHMS, ENVIRONMENTS
from patrolsim.model.detection import DetectionEvent
from patrolsim.projection.projector import frame_to_dict, project

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from patrolsim.model.agent import Position
    from patrolsim.model.world import WorldState

logger = logging.getLogger(__name__)


class SimulationState:
    """Thread-safe owner of a PatrolCoordinator.

    A background thread plays the part of the per-frame callback. Every tick,
    control action, read and detection ingestion goes through one lock, so
    none of them interleave.
    """

    def __init__(self, settings: SimulationSettings | None = None) -> None:
        """Create a coordinator from settings (defaults from the environment)."""
        self._settings = settings or get_settings()
        self._coordinator = PatrolCoordinator(
            algorithm=self._settings.default_algorithm,
            environment=self._settings.default_environment,
            heatmap=self._settings.default_heatmap,
            speed=self._settings.default_speed,
            entropy=Entropy.seeded(self._settings.seed),
            max_frame_delta=self._settings.max_frame_delta,
        )
        self._lock = threading.Lock()
        self._running = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        # (world, target, projected frame) of the last projection
        self._latest: tuple[WorldState, Position | None, dict[str, Any]] | None = None

    @property
    def settings(self) -> SimulationSettings:
        return self._settings

    @property
    def world(self) -> WorldState:
        """Current world snapshot (thread-safe)."""
        with self._lock:
            return self._coordinator.snapshot()

    def frame(self) -> dict[str, Any]:
        """Latest projected frame, re-projected only when the world has changed."""
        with self._lock:
            return self._project_locked()

    def _project_locked(self) -> dict[str, Any]:
        world = self._coordinator.snapshot()
        target = self._coordinator.target
        if self._latest is not None and self._latest[0] is world and self._latest[1] == target:
            return self._latest[2]
        frame = frame_to_dict(project(world, target))
        self._latest = (world, target, frame)
        return frame

    def apply(self, action: Callable[[PatrolCoordinator], WorldState]) -> WorldState:
        """Run a control action under the lock.

        Raises:
            InvalidControlError: Propagated from the coordinator; state unchanged.
        """
        with self._lock:
            return action(self._coordinator)

    def tick(self) -> WorldState:
        """Advance one frame using the coordinator's clock and cache its projection."""
        with self._lock:
            world = self._coordinator.frame()
            self._project_locked()
            return world

    def ingest(self, detection: DetectionEvent) -> WorldState:
        with self._lock:
            return self._coordinator.ingest_detection(detection)

    def start(self) -> None:
        """Start the background frame driver."""
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._frame_loop, daemon=True)
        self._thread.start()
        logger.info("Frame driver started at %.1f fps", self._settings.frame_rate)

    def stop(self) -> None:
        """Stop the background frame driver."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        logger.info("Frame driver stopped")

    def _frame_loop(self) -> None:
        interval = 1.0 / self._settings.frame_rate
        while self._running and not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=interval)


# Global simulation state
_sim_state: SimulationState | None = None


def get_sim_state() -> SimulationState:
    """Get or create the global simulation state."""
    global _sim_state
    if _sim_state is None:
        _sim_state = SimulationState()
    return _sim_state


def set_sim_state(state: SimulationState | None) -> None:
    """Replace the global simulation state (used by tests)."""
    global _sim_state
    _sim_state = state


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start/stop the frame driver with the application."""
    sim = get_sim_state()
    sim.start()
    yield
    sim.stop()


app = FastAPI(
    title="patrolsim",
    description="Patrol simulation engine with pluggable decision strategies",
    version=__version__,
    lifespan=lifespan,
)


# Pydantic models


class ControlCommandResponse(BaseModel):
    """Response for control commands."""

    success: bool = Field(description="Whether command succeeded")
    message: str = Field(description="Status message")
    run_state: str = Field(description="Run state after the command")


class WorldSummaryResponse(BaseModel):
    """Summary of the current world."""

    run_state: str = Field(description="idle, running or paused")
    elapsed: float = Field(description="Elapsed simulation seconds")
    algorithm: str = Field(description="Active decision strategy")
    environment: str = Field(description="Active environment preset")
    heatmap: str = Field(description="Active heatmap layer")
    speed: float = Field(description="Time-scale multiplier")
    battery: float = Field(description="Agent battery percent")
    obstacle_count: int = Field(description="Number of obstacles")
    intruder_count: int = Field(description="Number of intruders")
    timeline_length: int = Field(description="Number of timeline events")


class MetricsResponse(BaseModel):
    """Derived metrics of the current world."""

    area_observed: float
    blind_spots: float
    detection_latency: float
    battery: float
    intruders_detected: int
    total_intruders: int
    patrol_efficiency: float
    avg_response_time: float


class TimelineEventResponse(BaseModel):
    id: str
    timestamp: float
    category: str
    message: str
    severity: str


class CatalogueEntry(BaseModel):
    id: str
    name: str
    description: str
    icon: str


class AlgorithmRequest(BaseModel):
    algorithm: str = Field(description="RPA, ZPA, CPA, TFA or PDAP")


class EnvironmentRequest(BaseModel):
    environment: str = Field(description="Environment preset tag")


class HeatmapRequest(BaseModel):
    heatmap: str = Field(description="coverage, threat, uncertainty or none")


class SpeedRequest(BaseModel):
    speed: float = Field(description="Speed multiplier in [0.25, 4]")


class DetectionRequest(BaseModel):
    """An object detection reported by an external perception component."""

    label: str = Field(min_length=1, description="Detected class label")
    confidence: float = Field(ge=0.0, le=1.0, description="Detection confidence")
    bbox: tuple[float, float, float, float] = Field(
        default=(0.0, 0.0, 0.0, 0.0), description="x, y, width, height"
    )
    timestamp: float = Field(default=0.0, description="Producer timestamp (seconds)")


def _control(
    action: Callable[[PatrolCoordinator], WorldState], message: str
) -> ControlCommandResponse:
    sim = get_sim_state()
    try:
        world = sim.apply(action)
    except InvalidControlError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ControlCommandResponse(success=True, message=message, run_state=world.run_state.value)


# Read endpoints


@app.get("/api/world", response_model=WorldSummaryResponse, tags=["world"])
async def get_world() -> WorldSummaryResponse:
    """Get a summary of the current world."""
    world = get_sim_state().world
    return WorldSummaryResponse(
        run_state=world.run_state.value,
        elapsed=world.elapsed,
        algorithm=world.algorithm.value,
        environment=world.environment.value,
        heatmap=world.heatmap.value,
        speed=world.speed,
        battery=world.agent.battery,
        obstacle_count=len(world.obstacles),
        intruder_count=len(world.intruders),
        timeline_length=len(world.timeline),
    )


@app.get("/api/frame", tags=["world"])
async def get_frame() -> dict[str, Any]:
    """Get the full projected frame for rendering."""
    return get_sim_state().frame()


@app.get("/api/metrics", response_model=MetricsResponse, tags=["world"])
async def get_metrics() -> MetricsResponse:
    """Get the current derived metrics."""
    return MetricsResponse(**asdict(get_sim_state().world.metrics))


@app.get("/api/timeline", response_model=list[TimelineEventResponse], tags=["world"])
async def get_timeline(limit: int = 50) -> list[TimelineEventResponse]:
    """Get timeline events, newest first."""
    world = get_sim_state().world
    return [
        TimelineEventResponse(
            id=e.id,
            timestamp=e.timestamp,
            category=e.category.value,
            message=e.message,
            severity=e.severity.value,
        )
        for e in world.timeline.events[: max(0, limit)]
    ]


@app.get("/api/algorithms", response_model=list[CatalogueEntry], tags=["catalogue"])
async def get_algorithms() -> list[CatalogueEntry]:
    """List the available decision strategies."""
    return [
        CatalogueEntry(id=a.id.value, name=a.name, description=a.description, icon=a.icon)
        for a in ALGORITHMS
    ]


@app.get("/api/environments", response_model=list[CatalogueEntry], tags=["catalogue"])
async def get_environments() -> list[CatalogueEntry]:
    """List the available environment presets."""
    return [
        CatalogueEntry(id=e.id.value, name=e.name, description=e.description, icon=e.icon)
        for e in ENVIRONMENTS
    ]


# Control endpoints


@app.post("/api/control/start", response_model=ControlCommandResponse, tags=["control"])
async def start_simulation() -> ControlCommandResponse:
    return _control(lambda c: c.start(), "Simulation started")


@app.post("/api/control/pause", response_model=ControlCommandResponse, tags=["control"])
async def pause_simulation() -> ControlCommandResponse:
    return _control(lambda c: c.pause(), "Simulation paused")


@app.post("/api/control/resume", response_model=ControlCommandResponse, tags=["control"])
async def resume_simulation() -> ControlCommandResponse:
    return _control(lambda c: c.resume(), "Simulation resumed")


@app.post("/api/control/stop", response_model=ControlCommandResponse, tags=["control"])
async def stop_simulation() -> ControlCommandResponse:
    return _control(lambda c: c.stop(), "Simulation stopped")


@app.post("/api/control/reset", response_model=ControlCommandResponse, tags=["control"])
async def reset_simulation() -> ControlCommandResponse:
    return _control(lambda c: c.reset(), "World reset")


@app.post("/api/control/algorithm", response_model=ControlCommandResponse, tags=["control"])
async def select_algorithm(request: AlgorithmRequest) -> ControlCommandResponse:
    return _control(
        lambda c: c.select_algorithm(request.algorithm),
        f"Algorithm set to {request.algorithm}",
    )


@app.post("/api/control/environment", response_model=ControlCommandResponse, tags=["control"])
async def select_environment(request: EnvironmentRequest) -> ControlCommandResponse:
    return _control(
        lambda c: c.select_environment(request.environment),
        f"Environment set to {request.environment}",
    )


@app.post("/api/control/heatmap", response_model=ControlCommandResponse, tags=["control"])
async def select_heatmap(request: HeatmapRequest) -> ControlCommandResponse:
    return _control(
        lambda c: c.select_heatmap(request.heatmap),
        f"Heatmap set to {request.heatmap}",
    )


@app.post("/api/control/speed", response_model=ControlCommandResponse, tags=["control"])
async def set_speed(request: SpeedRequest) -> ControlCommandResponse:
    return _control(lambda c: c.set_speed(request.speed), f"Speed set to {request.speed}")


# External events


@app.post("/api/detections", response_model=TimelineEventResponse, tags=["events"])
async def post_detection(request: DetectionRequest) -> TimelineEventResponse:
    """Accept an external detection and record it as an alert event."""
    world = get_sim_state().ingest(
        DetectionEvent(
            label=request.label,
            confidence=request.confidence,
            bbox=request.bbox,
            timestamp=request.timestamp,
        )
    )
    event = world.timeline[0]
    return TimelineEventResponse(
        id=event.id,
        timestamp=event.timestamp,
        category=event.category.value,
        message=event.message,
        severity=event.severity.value,
    )


# WebSockets


@app.websocket("/ws/frames")
async def websocket_frames(websocket: WebSocket) -> None:
    """Stream projected frames at the configured frame rate."""
    await websocket.accept()
    sim = get_sim_state()
    interval = 1.0 / sim.settings.frame_rate
    logger.info("Frame client connected")
    try:
        while True:
            start = asyncio.get_running_loop().time()
            await websocket.send_json(sim.frame())
            elapsed = asyncio.get_running_loop().time() - start
            await asyncio.sleep(max(0.0, interval - elapsed))
    except WebSocketDisconnect:
        logger.info("Frame client disconnected")
    except Exception as e:
        logger.error("Frame streaming error: %s", str(e))


_COMMANDS: dict[str, Callable[[PatrolCoordinator, dict[str, Any]], WorldState]] = {
    "start": lambda c, _: c.start(),
    "pause": lambda c, _: c.pause(),
    "resume": lambda c, _: c.resume(),
    "stop": lambda c, _: c.stop(),
    "reset": lambda c, _: c.reset(),
    "select_algorithm": lambda c, d: c.select_algorithm(d.get("algorithm", "")),
    "select_environment": lambda c, d: c.select_environment(d.get("environment", "")),
    "select_heatmap": lambda c, d: c.select_heatmap(d.get("heatmap", "")),
    "set_speed": lambda c, d: c.set_speed(d.get("speed")),
}


@app.websocket("/ws/control")
async def websocket_control(websocket: WebSocket) -> None:
    """Receive control commands as JSON.

    Accepts ``{"type": <command>, ...}`` where command is one of start, pause,
    resume, stop, reset, select_algorithm (algorithm), select_environment
    (environment), select_heatmap (heatmap) or set_speed (speed).
    """
    await websocket.accept()
    sim = get_sim_state()
    try:
        while True:
            data = await websocket.receive_json()
            if not isinstance(data, dict):
                await websocket.send_json(
                    {"success": False, "message": "Command must be a JSON object"}
                )
                continue
            cmd_type = str(data.get("type", "")).lower()
            command = _COMMANDS.get(cmd_type)

            if command is None:
                response: dict[str, Any] = {
                    "success": False,
                    "message": f"Unknown command: {cmd_type}",
                }
            else:
                try:
                    world = sim.apply(lambda c, cmd=command: cmd(c, data))
                    response = {
                        "success": True,
                        "message": f"{cmd_type} applied",
                        "run_state": world.run_state.value,
                    }
                except InvalidControlError as e:
                    response = {"success": False, "message": str(e)}

            await websocket.send_json(response)

    except WebSocketDisconnect:
        logger.info("Control client disconnected")
    except Exception as e:
        logger.error("Control WebSocket error: %s", str(e))


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}

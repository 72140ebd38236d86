"""Frame projector: WorldState to a render-ready Frame.

A Frame is a flat snapshot of what a renderer draws for one animation frame:
the agent pose, obstacle boxes, intruders, the current target, the active
heatmap layer and the panel data (metrics, reasons, timeline).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from patrolsim.model.grid import index_to_world
from patrolsim.model.intruder import ThreatLevel
from patrolsim.model.world import HeatmapType

if TYPE_CHECKING:
    from patrolsim.model.agent import Position
    from patrolsim.model.grid import GridCell
    from patrolsim.model.world import WorldState

HEATMAP_MIN_VALUE = 0.1  # cells below this are not drawn
HEATMAP_MAX_OPACITY = 0.4
HEATMAP_LOW_BAND = 0.3
HEATMAP_HIGH_BAND = 0.7

# (low, mid, high) colours per layer
HEATMAP_COLORS: dict[HeatmapType, tuple[str, str, str]] = {
    HeatmapType.COVERAGE: ("#ef4444", "#f59e0b", "#10b981"),
    HeatmapType.THREAT: ("#10b981", "#f59e0b", "#ef4444"),
    HeatmapType.UNCERTAINTY: ("#a855f7", "#8b5cf6", "#6366f1"),
}

THREAT_COLORS: dict[ThreatLevel, str] = {
    ThreatLevel.LOW: "#f59e0b",
    ThreatLevel.MEDIUM: "#f97316",
    ThreatLevel.HIGH: "#ef4444",
}
UNDETECTED_COLOR = "#6b7280"


@dataclass
class AgentVisual:
    x: float
    y: float
    z: float
    heading: float
    fov_angle: float
    fov_range: float
    battery: float
    is_moving: bool


@dataclass
class ObstacleVisual:
    id: str
    x: float
    z: float
    width: float
    height: float
    depth: float
    kind: str
    visible: bool


@dataclass
class IntruderVisual:
    id: str
    x: float
    z: float
    threat_level: str
    detected: bool
    color: str


@dataclass
class HeatmapCellVisual:
    """One drawn heatmap tile, centred on its cell."""

    x: float
    z: float
    value: float
    color: str
    opacity: float


@dataclass
class Frame:
    """Everything needed to draw one frame and its side panels."""

    elapsed: float
    run_state: str
    algorithm: str
    environment: str
    heatmap: str
    speed: float
    agent: AgentVisual
    target: tuple[float, float] | None = None
    obstacles: list[ObstacleVisual] = field(default_factory=list)
    intruders: list[IntruderVisual] = field(default_factory=list)
    heatmap_cells: list[HeatmapCellVisual] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)
    reasons: list[dict[str, Any]] = field(default_factory=list)
    timeline: list[dict[str, Any]] = field(default_factory=list)


def _layer_value(cell: GridCell, heatmap: HeatmapType) -> float:
    if heatmap == HeatmapType.COVERAGE:
        return cell.coverage_value
    if heatmap == HeatmapType.THREAT:
        return cell.threat_value
    if heatmap == HeatmapType.UNCERTAINTY:
        return cell.uncertainty_value
    return 0.0


def heatmap_color(heatmap: HeatmapType, value: float) -> str:
    """Pick the band colour for a layer value."""
    low, mid, high = HEATMAP_COLORS[heatmap]
    if value > HEATMAP_HIGH_BAND:
        return high
    if value > HEATMAP_LOW_BAND:
        return mid
    return low


def project_heatmap(world: WorldState) -> list[HeatmapCellVisual]:
    """Tiles for the active heatmap layer; empty when the layer is 'none'."""
    heatmap = world.heatmap
    if heatmap == HeatmapType.NONE:
        return []

    size = world.grid.size
    tiles = []
    for cell in world.grid:
        value = _layer_value(cell, heatmap)
        if value < HEATMAP_MIN_VALUE:
            continue
        tiles.append(
            HeatmapCellVisual(
                x=index_to_world(cell.x, size) + 0.5,
                z=index_to_world(cell.y, size) + 0.5,
                value=value,
                color=heatmap_color(heatmap, value),
                opacity=value * HEATMAP_MAX_OPACITY,
            )
        )
    return tiles


def project(world: WorldState, target: Position | None = None) -> Frame:
    """Project a WorldState into a Frame.

    Args:
        world: Snapshot to project.
        target: The coordinator's current waypoint, if any.

    Returns:
        Frame ready for serialization with frame_to_dict.
    """
    agent = world.agent
    return Frame(
        elapsed=world.elapsed,
        run_state=world.run_state.value,
        algorithm=world.algorithm.value,
        environment=world.environment.value,
        heatmap=world.heatmap.value,
        speed=world.speed,
        agent=AgentVisual(
            x=agent.position.x,
            y=agent.position.y,
            z=agent.position.z,
            heading=agent.heading,
            fov_angle=agent.fov_angle,
            fov_range=agent.fov_range,
            battery=agent.battery,
            is_moving=agent.is_moving,
        ),
        target=(target.x, target.z) if target is not None else None,
        obstacles=[
            ObstacleVisual(
                id=o.id,
                x=o.position.x,
                z=o.position.z,
                width=o.size.width,
                height=o.size.height,
                depth=o.size.depth,
                kind=o.kind.value,
                visible=o.visible,
            )
            for o in world.obstacles
        ],
        intruders=[
            IntruderVisual(
                id=i.id,
                x=i.position.x,
                z=i.position.z,
                threat_level=i.threat_level.value,
                detected=i.detected,
                color=THREAT_COLORS[i.threat_level] if i.detected else UNDETECTED_COLOR,
            )
            for i in world.intruders
        ],
        heatmap_cells=project_heatmap(world),
        metrics=asdict(world.metrics),
        reasons=[asdict(r) for r in world.reasons],
        timeline=[
            {
                "id": e.id,
                "timestamp": e.timestamp,
                "category": e.category.value,
                "message": e.message,
                "severity": e.severity.value,
            }
            for e in world.timeline
        ],
    )


def frame_to_dict(frame: Frame) -> dict[str, Any]:
    """Convert a Frame into a JSON-serializable dict."""
    data = asdict(frame)
    if frame.target is not None:
        data["target"] = list(frame.target)
    return data

"""Frame projection: WorldState to render-ready frame snapshots."""

from patrolsim.projection.projector import (
    AgentVisual,
    Frame,
    HeatmapCellVisual,
    IntruderVisual,
    ObstacleVisual,
    frame_to_dict,
    heatmap_color,
    project,
    project_heatmap,
)

__all__ = [
    "AgentVisual",
    "Frame",
    "HeatmapCellVisual",
    "IntruderVisual",
    "ObstacleVisual",
    "frame_to_dict",
    "heatmap_color",
    "project",
    "project_heatmap",
]

"""Domain model: agent, grid, obstacles, intruders, decisions, timeline, world."""

from patrolsim.model.agent import AGENT_ALTITUDE, AgentState, Position
from patrolsim.model.catalogue import ALGORITHMS, ENVIRONMENTS, AlgorithmInfo, EnvironmentInfo
from patrolsim.model.decision import MAX_REASONS, Decision, DecisionReason
from patrolsim.model.detection import DetectionEvent
from patrolsim.model.grid import GRID_SIZE, Grid, GridCell, create_grid, mark_observed
from patrolsim.model.intruder import Intruder, ThreatLevel
from patrolsim.model.metrics import Metrics
from patrolsim.model.obstacle import BoxSize, Obstacle, ObstacleKind
from patrolsim.model.timeline import (
    TIMELINE_CAPACITY,
    EventCategory,
    Severity,
    Timeline,
    TimelineEvent,
)
from patrolsim.model.world import Algorithm, Environment, HeatmapType, RunState, WorldState

__all__ = [
    "AGENT_ALTITUDE",
    "ALGORITHMS",
    "ENVIRONMENTS",
    "GRID_SIZE",
    "MAX_REASONS",
    "TIMELINE_CAPACITY",
    "AgentState",
    "Algorithm",
    "AlgorithmInfo",
    "BoxSize",
    "Decision",
    "DecisionReason",
    "DetectionEvent",
    "Environment",
    "EnvironmentInfo",
    "EventCategory",
    "Grid",
    "GridCell",
    "HeatmapType",
    "Intruder",
    "Metrics",
    "Obstacle",
    "ObstacleKind",
    "Position",
    "RunState",
    "Severity",
    "ThreatLevel",
    "Timeline",
    "TimelineEvent",
    "WorldState",
    "create_grid",
    "mark_observed",
]

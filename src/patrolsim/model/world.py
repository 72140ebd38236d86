"""WorldState dataclass and the selector enums the coordinator switches between."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from patrolsim.model.agent import AgentState
from patrolsim.model.metrics import Metrics
from patrolsim.model.timeline import Timeline

if TYPE_CHECKING:
    from patrolsim.model.decision import DecisionReason
    from patrolsim.model.grid import Grid
    from patrolsim.model.intruder import Intruder
    from patrolsim.model.obstacle import Obstacle


class Algorithm(StrEnum):
    """Decision strategy tags."""

    RPA = "RPA"  # Random Patrol
    ZPA = "ZPA"  # Zigzag Patrol
    CPA = "CPA"  # Sector Sweep
    TFA = "TFA"  # Tactical Pursuit
    PDAP = "PDAP"  # Priority-Driven Adaptive


class Environment(StrEnum):
    """World generator presets."""

    OPEN_GRID = "open-grid"
    URBAN_DENSE = "urban-dense"
    MAZE_FACILITY = "maze-facility"
    DYNAMIC_RISK = "dynamic-risk"
    CHANGING_ENV = "changing-env"
    FOG_OF_WAR = "fog-of-war"


class HeatmapType(StrEnum):
    """Grid layer a renderer should overlay."""

    COVERAGE = "coverage"
    THREAT = "threat"
    UNCERTAINTY = "uncertainty"
    NONE = "none"


class RunState(StrEnum):
    """Coordinator state machine states."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class WorldState:
    """Snapshot of the whole simulation.

    Owned by the coordinator, which replaces it wholesale after every tick or
    control action. Everything else only reads it.
    """

    grid: Grid
    agent: AgentState = field(default_factory=AgentState)
    obstacles: tuple[Obstacle, ...] = ()
    intruders: tuple[Intruder, ...] = ()
    metrics: Metrics = field(default_factory=Metrics)
    reasons: tuple[DecisionReason, ...] = ()
    timeline: Timeline = field(default_factory=Timeline)

    elapsed: float = 0.0  # simulation seconds
    run_state: RunState = RunState.IDLE
    algorithm: Algorithm = Algorithm.PDAP
    environment: Environment = Environment.OPEN_GRID
    heatmap: HeatmapType = HeatmapType.NONE
    speed: float = 1.0

    @property
    def is_running(self) -> bool:
        """True while running or paused (a session is in progress)."""
        return self.run_state != RunState.IDLE

    @property
    def is_paused(self) -> bool:
        return self.run_state == RunState.PAUSED

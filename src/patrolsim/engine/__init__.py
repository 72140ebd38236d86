"""Simulation engine: world generator, decision strategies, kinematics, metrics, coordinator."""

from patrolsim.engine.coordinator import (
    MAX_FRAME_DELTA,
    MAX_SPEED,
    MIN_SPEED,
    InvalidControlError,
    PatrolCoordinator,
)
from patrolsim.engine.entropy import Entropy
from patrolsim.engine.generator import (
    GeneratedWorld,
    build_world,
    generate_intruders,
    generate_obstacles,
)
from patrolsim.engine.kinematics import ARRIVAL_THRESHOLD, StepResult, step_agent
from patrolsim.engine.metrics import compute_metrics, initial_metrics
from patrolsim.engine.strategies import STRATEGIES, DecisionContext, decide

__all__ = [
    "ARRIVAL_THRESHOLD",
    "MAX_FRAME_DELTA",
    "MAX_SPEED",
    "MIN_SPEED",
    "STRATEGIES",
    "DecisionContext",
    "Entropy",
    "GeneratedWorld",
    "InvalidControlError",
    "PatrolCoordinator",
    "StepResult",
    "build_world",
    "compute_metrics",
    "decide",
    "generate_intruders",
    "generate_obstacles",
    "initial_metrics",
    "step_agent",
]

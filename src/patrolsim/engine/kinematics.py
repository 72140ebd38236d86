"""Kinematics and sensing: the per-tick agent update.

One call to ``step_agent`` either acquires a new target (no movement that tick)
or moves toward the current one, then always drains the battery, marks the
sensor footprint on the grid and tests intruders for detection.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from patrolsim.engine.strategies import decide
from patrolsim.model.grid import mark_observed, world_to_index
from patrolsim.model.intruder import ThreatLevel
from patrolsim.model.timeline import EventCategory, Severity, TimelineEvent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from patrolsim.engine.entropy import Entropy
    from patrolsim.model.agent import AgentState, Position
    from patrolsim.model.decision import DecisionReason
    from patrolsim.model.grid import Grid
    from patrolsim.model.intruder import Intruder
    from patrolsim.model.world import WorldState

logger = logging.getLogger(__name__)

# Re-decide once the agent is this close to its target. Debounces re-planning.
ARRIVAL_THRESHOLD = 0.5
CRUISE_SPEED = 2.0  # world units per simulated second
MOVING_THRESHOLD = 0.1
BATTERY_DRAIN_RATE = 0.01  # percent per simulated second

THREAT_SEVERITY: dict[ThreatLevel, Severity] = {
    ThreatLevel.LOW: Severity.INFO,
    ThreatLevel.MEDIUM: Severity.WARNING,
    ThreatLevel.HIGH: Severity.DANGER,
}


@dataclass(frozen=True)
class StepResult:
    """Everything one kinematics step produced.

    ``reasons`` is None when no new decision was taken this step.
    """

    agent: AgentState
    grid: Grid
    intruders: tuple[Intruder, ...]
    target: Position
    reasons: tuple[DecisionReason, ...] | None
    events: tuple[TimelineEvent, ...]

    @property
    def decided(self) -> bool:
        return self.reasons is not None


def needs_decision(agent: AgentState, target: Position | None) -> bool:
    """True when there is no target or the agent has arrived at it."""
    return target is None or agent.position.planar_distance(target) < ARRIVAL_THRESHOLD


def move_toward(agent: AgentState, target: Position, dt: float) -> AgentState:
    """Advance up to CRUISE_SPEED * dt toward target without overshooting."""
    pos = agent.position
    dx = target.x - pos.x
    dz = target.z - pos.z
    distance = math.hypot(dx, dz)

    x, z = pos.x, pos.z
    if distance > MOVING_THRESHOLD:
        step = min(CRUISE_SPEED * dt, distance)
        x += dx / distance * step
        z += dz / distance * step

    return replace(
        agent,
        position=replace(pos, x=x, z=z),
        heading=math.atan2(dz, dx),
        is_moving=distance > MOVING_THRESHOLD,
    )


def drain_battery(agent: AgentState, dt: float) -> AgentState:
    return replace(agent, battery=max(0.0, agent.battery - BATTERY_DRAIN_RATE * dt))


def observe(grid: Grid, agent: AgentState, timestamp: float) -> Grid:
    """Mark the sensor footprint around the agent's cell."""
    center = (
        world_to_index(agent.position.x, grid.size),
        world_to_index(agent.position.z, grid.size),
    )
    return mark_observed(grid, center, agent.fov_range, timestamp)


def detect_intruders(
    intruders: Sequence[Intruder],
    agent: AgentState,
    timestamp: float,
) -> tuple[tuple[Intruder, ...], tuple[TimelineEvent, ...]]:
    """Detect undetected intruders within the sensor radius.

    Returns:
        The updated intruders (same order) and one detection event per newly
        detected intruder.
    """
    updated = []
    events = []
    for intruder in intruders:
        if not intruder.detected and agent.position.planar_distance(intruder.position) <= (
            agent.fov_range
        ):
            intruder = intruder.mark_detected(timestamp)
            events.append(
                TimelineEvent(
                    id=f"detection-{intruder.id}-{timestamp}",
                    timestamp=timestamp,
                    category=EventCategory.DETECTION,
                    message=(
                        f"Intruder detected at "
                        f"({intruder.position.x:.1f}, {intruder.position.z:.1f})"
                    ),
                    severity=THREAT_SEVERITY[intruder.threat_level],
                )
            )
            logger.info(
                "Detected %s (%s) at t=%.2f",
                intruder.id,
                intruder.threat_level,
                timestamp,
            )
        updated.append(intruder)
    return tuple(updated), tuple(events)


def step_agent(
    world: WorldState,
    target: Position | None,
    dt: float,
    timestamp: float,
    entropy: Entropy,
) -> StepResult:
    """Run one kinematics and sensing step.

    Args:
        world: World before the step (left unchanged).
        target: Current waypoint, or None when there is none.
        dt: Scaled simulation delta in seconds.
        timestamp: Simulation time after this step.
        entropy: Random and clock source for the decision engine.

    Returns:
        StepResult holding the new agent, grid, intruders, target and events.
    """
    agent = world.agent
    reasons = None

    if needs_decision(agent, target):
        decision = decide(
            world.algorithm,
            agent,
            world.grid,
            world.intruders,
            world.obstacles,
            entropy,
        )
        target = decision.target
        reasons = decision.reasons
        logger.debug(
            "%s chose target (%.2f, %.2f): %s",
            world.algorithm,
            target.x,
            target.z,
            reasons[0].text if reasons else "-",
        )
    else:
        agent = move_toward(agent, target, dt)

    agent = drain_battery(agent, dt)
    grid = observe(world.grid, agent, timestamp)
    intruders, events = detect_intruders(world.intruders, agent, timestamp)

    return StepResult(
        agent=agent,
        grid=grid,
        intruders=intruders,
        target=target,
        reasons=reasons,
        events=events,
    )

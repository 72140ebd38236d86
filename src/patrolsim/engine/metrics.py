"""Metrics aggregator: recompute summary statistics from post-tick state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from patrolsim.model.metrics import Metrics

if TYPE_CHECKING:
    from collections.abc import Sequence

    from patrolsim.model.agent import AgentState
    from patrolsim.model.grid import Grid
    from patrolsim.model.intruder import Intruder


def initial_metrics(total_intruders: int, battery: float = 100.0) -> Metrics:
    """Metrics for a world that has not ticked yet."""
    return Metrics(battery=battery, total_intruders=total_intruders)


def compute_metrics(
    agent: AgentState,
    grid: Grid,
    intruders: Sequence[Intruder],
    elapsed: float,
    previous: Metrics,
) -> Metrics:
    """Derive metrics from scratch.

    detection_latency is the mean of the raw ``detected_at`` timestamps and
    avg_response_time echoes the previous tick's detection_latency; both keep
    those literal definitions.

    Args:
        agent: Agent after the tick.
        grid: Grid after the tick.
        intruders: Intruders after the tick.
        elapsed: Simulation time after the tick.
        previous: Metrics from the previous tick.

    Returns:
        Fresh Metrics.
    """
    total_cells = len(grid)
    visited = grid.visited_count()
    detected = [intruder for intruder in intruders if intruder.detected]

    area_observed = visited / total_cells * 100
    if detected:
        latency = sum(intruder.detected_at or 0.0 for intruder in detected) / len(detected)
    else:
        latency = 0.0

    return Metrics(
        area_observed=area_observed,
        blind_spots=100 - area_observed,
        detection_latency=latency,
        battery=agent.battery,
        intruders_detected=len(detected),
        total_intruders=len(intruders),
        patrol_efficiency=visited / max(1.0, elapsed) * 10,
        avg_response_time=previous.detection_latency if detected else 0.0,
    )

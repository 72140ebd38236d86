"""Decision engine: five interchangeable strategies that pick the next waypoint.

Every strategy shares one signature, ``strategy(context) -> Decision``, and is
registered under its Algorithm tag in STRATEGIES. ``decide`` dispatches on the
tag, clamps the target into the patrol field and caps the reasons. A strategy
that raises is replaced by a hold-position fallback so a decision is always
produced.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from patrolsim.model.agent import Position
from patrolsim.model.decision import MAX_REASONS, Decision, DecisionReason
from patrolsim.model.world import Algorithm

if TYPE_CHECKING:
    from patrolsim.engine.entropy import Entropy
    from patrolsim.model.agent import AgentState
    from patrolsim.model.grid import Grid, GridCell
    from patrolsim.model.intruder import Intruder
    from patrolsim.model.obstacle import Obstacle

logger = logging.getLogger(__name__)

FIELD_LIMIT = 9.0  # targets are clamped into [-9, 9] on x and z

# ZPA
ZIGZAG_LANE_WIDTH = 2.0
ZIGZAG_TURN_DEPTH = 8.0
ZIGZAG_STEP = 2.0

# CPA
SECTOR_CENTERS: tuple[tuple[int, float, float], ...] = (
    (1, 5.0, 5.0),  # NE
    (2, -5.0, 5.0),  # NW
    (3, -5.0, -5.0),  # SW
    (4, 5.0, -5.0),  # SE
)
SECTOR_SAMPLE_OFFSETS = (-2, 0, 2)
SECTOR_TRANSIT_DISTANCE = 5.0
SECTOR_SWEEP_EXTENT = 8.0

# TFA
INTERCEPT_DISTANCE = 4.0
STANDOFF_DISTANCE = 2.5
INTERCEPT_STEP = 3.0
STANDOFF_STEP = 2.0
ORBIT_STEP = 1.0
SPIRAL_BASE_RADIUS = 3.0
SPIRAL_AMPLITUDE = 5.0
SPIRAL_RATE = 0.5

# PDAP
UNCERTAINTY_WEIGHT = 2.0
COVERAGE_WEIGHT = 1.0
THREAT_VALUE = 10.0
SECTOR_LATTICE = (-8.0, -4.0, 0.0, 4.0, 8.0)


@dataclass(frozen=True)
class DecisionContext:
    """Read-only inputs to a strategy."""

    agent: AgentState
    grid: Grid
    intruders: Sequence[Intruder]
    obstacles: Sequence[Obstacle]
    entropy: Entropy

    @property
    def detected(self) -> list[Intruder]:
        return [intruder for intruder in self.intruders if intruder.detected]


Strategy = Callable[[DecisionContext], Decision]


def _reason(rank: int, text: str, weight: float, icon: str) -> DecisionReason:
    return DecisionReason(rank=rank, text=text, weight=weight, icon=icon)


def _at(context: DecisionContext, x: float, z: float) -> Position:
    """A planar target at the agent's altitude."""
    return Position(x, context.agent.position.y, z)


def clamp_to_field(position: Position, limit: float = FIELD_LIMIT) -> Position:
    """Clamp x and z into [-limit, limit]."""
    return Position(
        max(-limit, min(limit, position.x)),
        position.y,
        max(-limit, min(limit, position.z)),
    )


def random_patrol(context: DecisionContext) -> Decision:
    """RPA: hop 1-3 units in a uniformly random direction."""
    rng = context.entropy.rng
    angle = rng.random() * math.pi * 2
    distance = 1 + rng.random() * 2
    pos = context.agent.position
    target = _at(context, pos.x + math.cos(angle) * distance, pos.z + math.sin(angle) * distance)
    return Decision(
        target=target,
        reasons=(_reason(1, "Random direction selected", 100, "Shuffle"),),
    )


def zigzag_patrol(context: DecisionContext) -> Decision:
    """ZPA: sweep lanes 2 units wide, alternating direction along z."""
    pos = context.agent.position
    lane = math.floor((pos.x + 10) / ZIGZAG_LANE_WIDTH)
    direction = 1 if lane % 2 == 0 else -1

    x, z = pos.x, pos.z
    if pos.z * direction >= ZIGZAG_TURN_DEPTH:
        x = pos.x + ZIGZAG_STEP
        primary = _reason(1, "Advancing to next row", 80, "ArrowRight")
    else:
        z = pos.z + direction * ZIGZAG_STEP
        primary = _reason(1, "Continuing zigzag pattern", 80, "TrendingUp")

    if x > FIELD_LIMIT:
        x = -FIELD_LIMIT

    return Decision(
        target=_at(context, x, z),
        reasons=(primary, _reason(2, "Systematic coverage", 60, "Grid3x3")),
    )


def _sector_score(grid: Grid, cx: float, cz: float) -> int:
    """Count unvisited cells on a 3x3 lattice (step 2) around a sector centre."""
    score = 0
    for dx in SECTOR_SAMPLE_OFFSETS:
        for dz in SECTOR_SAMPLE_OFFSETS:
            cell = grid.cell_at_world(cx + dx, cz + dz)
            if cell is not None and not cell.visited:
                score += 1
    return score


def sector_sweep(context: DecisionContext) -> Decision:
    """CPA: pick the least-covered quadrant, transit to it, then sweep it cell by cell."""
    grid = context.grid
    pos = context.agent.position

    scored = [
        (sector_id, cx, cz, _sector_score(grid, cx, cz)) for sector_id, cx, cz in SECTOR_CENTERS
    ]
    # Stable sort keeps the NE, NW, SW, SE order among equal scores.
    scored.sort(key=lambda sector: sector[3], reverse=True)
    sector_id, cx, cz, score = scored[0]

    if score <= 0:
        return Decision(
            target=_at(context, 0.0, 0.0),
            reasons=(_reason(1, "Mission Complete - RTB", 100, "Home"),),
        )

    if math.hypot(cx - pos.x, cz - pos.z) > SECTOR_TRANSIT_DISTANCE:
        return Decision(
            target=_at(context, cx, cz),
            reasons=(_reason(1, f"Transit to Sector {sector_id}", 100, "ArrowRight"),),
        )

    local: list[GridCell] = []
    for cell in grid.unvisited():
        wx, wz = grid.world_center(cell)
        if abs(wx - cx) < SECTOR_SWEEP_EXTENT and abs(wz - cz) < SECTOR_SWEEP_EXTENT:
            local.append(cell)

    if not local:
        return Decision(
            target=_at(context, cx, cz),
            reasons=(_reason(1, "Sector Finishing", 60, "Check"),),
        )

    def distance_to(cell: GridCell) -> float:
        wx, wz = grid.world_center(cell)
        return math.hypot(wx - pos.x, wz - pos.z)

    nearest = min(local, key=distance_to)
    wx, wz = grid.world_center(nearest)
    return Decision(
        target=_at(context, wx, wz),
        reasons=(_reason(1, f"Sweeping Sector {sector_id}", 90, "Grid"),),
    )


def tactical_pursuit(context: DecisionContext) -> Decision:
    """TFA: close on, hold off from, or orbit the centroid of detected intruders.

    With nothing detected, fly a clock-driven spiral around the origin.
    """
    detected = context.detected
    pos = context.agent.position

    if not detected:
        t = context.entropy.wall_clock()
        radius = SPIRAL_BASE_RADIUS + math.sin(t * SPIRAL_RATE) * SPIRAL_AMPLITUDE
        return Decision(
            target=_at(context, math.cos(t) * radius, math.sin(t) * radius),
            reasons=(
                _reason(1, "Scanning for hostiles (Spiral)", 50, "Search"),
                _reason(2, "Sector clear", 30, "CheckCircle"),
            ),
        )

    centroid_x = sum(intruder.position.x for intruder in detected) / len(detected)
    centroid_z = sum(intruder.position.z for intruder in detected) / len(detected)
    distance = math.hypot(centroid_x - pos.x, centroid_z - pos.z)
    angle = math.atan2(centroid_z - pos.z, centroid_x - pos.x)

    if distance > INTERCEPT_DISTANCE:
        x = pos.x + math.cos(angle) * INTERCEPT_STEP
        z = pos.z + math.sin(angle) * INTERCEPT_STEP
        primary = _reason(1, "Intercepting target(s)", 100, "Crosshair")
    elif distance < STANDOFF_DISTANCE:
        x = pos.x - math.cos(angle) * STANDOFF_STEP
        z = pos.z - math.sin(angle) * STANDOFF_STEP
        primary = _reason(1, "Maintaining tactical standoff", 90, "Shield")
    else:
        x = pos.x + math.cos(angle + math.pi / 2) * ORBIT_STEP
        z = pos.z + math.sin(angle + math.pi / 2) * ORBIT_STEP
        primary = _reason(1, "Tracking & Monitoring", 85, "Eye")

    return Decision(
        target=_at(context, x, z),
        reasons=(
            primary,
            _reason(2, f"Threat Centroid: [{centroid_x:.1f}, {centroid_z:.1f}]", 80, "MapPin"),
        ),
    )


@dataclass(frozen=True)
class UtilityCandidate:
    """A PDAP waypoint candidate."""

    x: float
    z: float
    kind: str  # "threat" or "sector"
    value: float


def utility_score(
    candidate: UtilityCandidate,
    grid: Grid,
    distance: float,
    move_cost_weight: float,
) -> float:
    """value + uncertainty gain + unvisited bonus - travel cost."""
    score = candidate.value
    cell = grid.cell_at_world(candidate.x, candidate.z)
    if cell is not None:
        score += cell.uncertainty_value * UNCERTAINTY_WEIGHT * 10
        if not cell.visited:
            score += COVERAGE_WEIGHT * 5
    return score - distance * move_cost_weight


def priority_adaptive(context: DecisionContext) -> Decision:
    """PDAP: maximise utility over detected threats and a fixed 5x5 sector lattice.

    Range and travel cost tighten as the battery drains.
    """
    battery = context.agent.battery or 0.0
    max_range = 20.0 if battery > 50 else 10.0
    move_cost_weight = 0.05 if battery > 30 else 0.2
    pos = context.agent.position

    candidates = [
        UtilityCandidate(i.position.x, i.position.z, "threat", THREAT_VALUE)
        for i in context.detected
    ]
    candidates.extend(
        UtilityCandidate(sx, sz, "sector", 0.0) for sx in SECTOR_LATTICE for sz in SECTOR_LATTICE
    )

    best: UtilityCandidate | None = None
    best_score = -math.inf
    for candidate in candidates:
        distance = math.hypot(candidate.x - pos.x, candidate.z - pos.z)
        if distance > max_range:
            continue
        score = utility_score(candidate, context.grid, distance, move_cost_weight)
        if score > best_score:
            best, best_score = candidate, score

    if best is None:
        return Decision(
            target=_at(context, 0.0, 0.0),
            reasons=(_reason(1, "Returning to base", 50, "Home"),),
        )

    if best.kind == "threat":
        primary = _reason(1, "Engaging identified threat", 95, "AlertTriangle")
    else:
        primary = _reason(1, "Exploring high-value sector", 95, "Compass")
    return Decision(
        target=_at(context, best.x, best.z),
        reasons=(primary, _reason(2, f"Utility Score: {best_score:.1f}", 60, "Activity")),
    )


STRATEGIES: dict[Algorithm, Strategy] = {
    Algorithm.RPA: random_patrol,
    Algorithm.ZPA: zigzag_patrol,
    Algorithm.CPA: sector_sweep,
    Algorithm.TFA: tactical_pursuit,
    Algorithm.PDAP: priority_adaptive,
}

FALLBACK_REASONS: dict[Algorithm, DecisionReason] = {
    Algorithm.TFA: _reason(1, "Navigation Error - Hovering", 100, "AlertTriangle"),
    Algorithm.PDAP: _reason(1, "Algorithm Error - Resetting", 100, "RefreshCcw"),
}
DEFAULT_FALLBACK_REASON = _reason(1, "Decision Error - Holding position", 100, "AlertTriangle")


def decide(
    algorithm: Algorithm,
    agent: AgentState,
    grid: Grid,
    intruders: Sequence[Intruder],
    obstacles: Sequence[Obstacle],
    entropy: Entropy,
) -> Decision:
    """Run the strategy registered for ``algorithm``.

    Args:
        algorithm: Which strategy to run.
        agent: Current agent state.
        grid: Current coverage grid.
        intruders: All intruders (detected and not).
        obstacles: Obstacles; available to strategies, unused by the built-in five.
        entropy: Random and clock source.

    Returns:
        Decision with the target clamped into the field and at most
        MAX_REASONS reasons.

    Raises:
        ValueError: If no strategy is registered for ``algorithm``.
    """
    strategy = STRATEGIES.get(algorithm)
    if strategy is None:
        raise ValueError(f"No strategy registered for algorithm: {algorithm}")

    context = DecisionContext(
        agent=agent,
        grid=grid,
        intruders=intruders,
        obstacles=obstacles,
        entropy=entropy,
    )
    try:
        decision = strategy(context)
    except Exception:
        logger.exception(
            "Strategy %s failed at (%.2f, %.2f). Holding position.",
            algorithm,
            agent.position.x,
            agent.position.z,
        )
        decision = Decision(
            target=agent.position,
            reasons=(FALLBACK_REASONS.get(algorithm, DEFAULT_FALLBACK_REASON),),
        )

    return Decision(
        target=clamp_to_field(decision.target),
        reasons=tuple(decision.reasons[:MAX_REASONS]),
    )

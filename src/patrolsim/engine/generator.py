"""World generator: obstacles, intruders and grid for an environment preset.

Each preset has a fixed structure (counts, kinds, wall layout) and randomized
detail (positions, sizes, threat levels), so regenerating the same preset gives
a structurally equivalent but different world.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from patrolsim.model.agent import Position
from patrolsim.model.grid import Grid, create_grid
from patrolsim.model.intruder import Intruder, ThreatLevel
from patrolsim.model.obstacle import BoxSize, Obstacle, ObstacleKind
from patrolsim.model.world import Environment

logger = logging.getLogger(__name__)

# Preset sizing
URBAN_DENSE_OBSTACLES = 15
DYNAMIC_RISK_OBSTACLES = 6
CHANGING_ENV_OBSTACLES = 10
FOG_OF_WAR_OBSTACLES = 8
CHANGING_ENV_HIDDEN_PROBABILITY = 0.3

DEFAULT_INTRUDERS = 4
DYNAMIC_RISK_INTRUDERS = 8
INTRUDER_SPREAD = 7.0  # intruders spawn in [-7, 7) on both axes
CLUSTER_JITTER = 3.0  # full width of the +/-1.5 jitter around a cluster centre
CLUSTER_CENTERS: tuple[tuple[float, float], ...] = (
    (-5.0, -5.0),
    (5.0, -5.0),
    (-5.0, 5.0),
    (5.0, 5.0),
)

# (x, z, width, depth) of the maze walls; corridors run between them
MAZE_WALLS: tuple[tuple[float, float, float, float], ...] = (
    (-6.0, 0.0, 0.3, 8.0),
    (-3.0, -4.0, 0.3, 8.0),
    (0.0, 2.0, 0.3, 8.0),
    (3.0, -2.0, 0.3, 8.0),
    (6.0, 0.0, 0.3, 8.0),
    (-4.0, -6.0, 8.0, 0.3),
    (2.0, -3.0, 6.0, 0.3),
    (-2.0, 3.0, 8.0, 0.3),
    (4.0, 6.0, 6.0, 0.3),
)
MAZE_WALL_HEIGHT = 1.5

THREAT_LEVELS = (ThreatLevel.LOW, ThreatLevel.MEDIUM, ThreatLevel.HIGH)


@dataclass(frozen=True)
class GeneratedWorld:
    """Structural pieces of a freshly generated world."""

    obstacles: tuple[Obstacle, ...]
    intruders: tuple[Intruder, ...]
    grid: Grid


def _spread(rng: random.Random, half_extent: float) -> float:
    return rng.random() * 2 * half_extent - half_extent


def _unit_boxes(rng: random.Random, count: int, half_extent: float) -> list[Obstacle]:
    return [
        Obstacle(
            id=f"obs-{i}",
            position=Position(_spread(rng, half_extent), 0.0, _spread(rng, half_extent)),
            size=BoxSize(1.0, 1.0, 1.0),
        )
        for i in range(count)
    ]


def generate_obstacles(
    environment: Environment, rng: random.Random | None = None
) -> list[Obstacle]:
    """Build the obstacle layout for a preset.

    Args:
        environment: Preset to build.
        rng: Random source for positions, sizes and visibility.

    Returns:
        List of obstacles (empty for open-grid).
    """
    rng = rng or random.Random()

    if environment == Environment.OPEN_GRID:
        return []

    if environment == Environment.URBAN_DENSE:
        obstacles = []
        for i in range(URBAN_DENSE_OBSTACLES):
            x = _spread(rng, 8.0)
            z = _spread(rng, 8.0)
            size = BoxSize(
                width=0.8 + rng.random() * 1.2,
                height=1.0 + rng.random() * 2.0,
                depth=0.8 + rng.random() * 1.2,
            )
            obstacles.append(Obstacle(id=f"obs-{i}", position=Position(x, 0.0, z), size=size))
        return obstacles

    if environment == Environment.MAZE_FACILITY:
        return [
            Obstacle(
                id=f"wall-{i}",
                position=Position(x, 0.0, z),
                size=BoxSize(width, MAZE_WALL_HEIGHT, depth),
            )
            for i, (x, z, width, depth) in enumerate(MAZE_WALLS)
        ]

    if environment == Environment.DYNAMIC_RISK:
        return _unit_boxes(rng, DYNAMIC_RISK_OBSTACLES, 7.0)

    if environment == Environment.CHANGING_ENV:
        obstacles = []
        for i in range(CHANGING_ENV_OBSTACLES):
            x = _spread(rng, 8.0)
            z = _spread(rng, 8.0)
            obstacles.append(
                Obstacle(
                    id=f"obs-{i}",
                    position=Position(x, 0.0, z),
                    size=BoxSize(1.0, 1.5, 1.0),
                    kind=ObstacleKind.DYNAMIC,
                    visible=rng.random() > CHANGING_ENV_HIDDEN_PROBABILITY,
                )
            )
        return obstacles

    if environment == Environment.FOG_OF_WAR:
        return _unit_boxes(rng, FOG_OF_WAR_OBSTACLES, 7.0)

    raise ValueError(f"Unknown environment: {environment}")


def intruder_count(environment: Environment) -> int:
    return DYNAMIC_RISK_INTRUDERS if environment == Environment.DYNAMIC_RISK else DEFAULT_INTRUDERS


def generate_intruders(
    environment: Environment, rng: random.Random | None = None
) -> list[Intruder]:
    """Place intruders for a preset.

    In dynamic-risk every intruder after the first is jittered around one of
    the four CLUSTER_CENTERS; elsewhere intruders are spread uniformly.
    """
    rng = rng or random.Random()
    intruders = []
    for i in range(intruder_count(environment)):
        x = _spread(rng, INTRUDER_SPREAD)
        z = _spread(rng, INTRUDER_SPREAD)

        if environment == Environment.DYNAMIC_RISK and i > 0:
            cx, cz = CLUSTER_CENTERS[(i // 2) % len(CLUSTER_CENTERS)]
            x = cx + (rng.random() - 0.5) * CLUSTER_JITTER
            z = cz + (rng.random() - 0.5) * CLUSTER_JITTER

        intruders.append(
            Intruder(
                id=f"intruder-{i}",
                position=Position(x, 0.0, z),
                threat_level=THREAT_LEVELS[int(rng.random() * len(THREAT_LEVELS))],
            )
        )
    return intruders


def build_world(environment: Environment, rng: random.Random | None = None) -> GeneratedWorld:
    """Generate obstacles, intruders and grid for a preset."""
    rng = rng or random.Random()
    obstacles = generate_obstacles(environment, rng)
    intruders = generate_intruders(environment, rng)
    grid = create_grid(fog_of_war=environment == Environment.FOG_OF_WAR, rng=rng)
    logger.debug(
        "Generated %s world: obstacles=%d, intruders=%d",
        environment,
        len(obstacles),
        len(intruders),
    )
    return GeneratedWorld(obstacles=tuple(obstacles), intruders=tuple(intruders), grid=grid)

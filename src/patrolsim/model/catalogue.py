"""Display catalogue for algorithms and environment presets."""

from __future__ import annotations

from dataclasses import dataclass

from patrolsim.model.world import Algorithm, Environment


@dataclass(frozen=True)
class AlgorithmInfo:
    id: Algorithm
    name: str
    description: str
    icon: str


@dataclass(frozen=True)
class EnvironmentInfo:
    id: Environment
    name: str
    description: str
    icon: str


ALGORITHMS: tuple[AlgorithmInfo, ...] = (
    AlgorithmInfo(Algorithm.RPA, "Random Patrol", "Randomly selects next patrol point", "Shuffle"),
    AlgorithmInfo(
        Algorithm.ZPA, "Zigzag Patrol", "Systematic zigzag coverage pattern", "TrendingUp"
    ),
    AlgorithmInfo(Algorithm.CPA, "Sector Sweep", "Prioritizes unvisited sectors", "Grid3x3"),
    AlgorithmInfo(
        Algorithm.TFA, "Tactical Pursuit", "Tracks and follows detected threats", "Target"
    ),
    AlgorithmInfo(
        Algorithm.PDAP, "Priority-Driven Adaptive", "Dynamic priority balancing algorithm", "Brain"
    ),
)

ENVIRONMENTS: tuple[EnvironmentInfo, ...] = (
    EnvironmentInfo(
        Environment.OPEN_GRID, "Open Grid", "Clear area with no obstacles", "LayoutGrid"
    ),
    EnvironmentInfo(
        Environment.URBAN_DENSE, "Urban Dense", "High-density obstacle layout", "Building2"
    ),
    EnvironmentInfo(
        Environment.MAZE_FACILITY, "Maze Facility", "Complex maze-like structure", "Waypoints"
    ),
    EnvironmentInfo(
        Environment.DYNAMIC_RISK,
        "Dynamic Risk Zones",
        "Intruders appear in clusters",
        "AlertTriangle",
    ),
    EnvironmentInfo(
        Environment.CHANGING_ENV, "Changing Environment", "Obstacles appear/disappear", "RefreshCw"
    ),
    EnvironmentInfo(Environment.FOG_OF_WAR, "Fog of War", "Limited visibility range", "Cloud"),
)


def algorithm_name(algorithm: Algorithm) -> str:
    for info in ALGORITHMS:
        if info.id == algorithm:
            return info.name
    return str(algorithm)

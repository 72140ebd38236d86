"""Obstacle dataclass: presentational boxes placed by the world generator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from patrolsim.model.agent import Position


class ObstacleKind(StrEnum):
    """Whether an obstacle is fixed or may appear/disappear."""

    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class BoxSize:
    """Axis-aligned box extents."""

    width: float
    height: float
    depth: float


@dataclass(frozen=True)
class Obstacle:
    """A box in the world.

    Obstacles are rendered only; movement and detection never consult them.
    """

    id: str
    position: Position
    size: BoxSize
    kind: ObstacleKind = ObstacleKind.STATIC
    visible: bool = True

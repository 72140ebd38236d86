"""Position and AgentState dataclasses: pose and sensor state of the patrolling vehicle."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

AGENT_ALTITUDE = 2.0  # y is fixed; the simulation is planar in x/z


@dataclass(frozen=True)
class Position:
    """A point in world space. Only x and z take part in planar geometry."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def planar_distance(self, other: Position) -> float:
        """Euclidean distance in the x/z plane."""
        return math.hypot(other.x - self.x, other.z - self.z)

    def bearing_to(self, other: Position) -> float:
        """Angle (radians) from this point toward other in the x/z plane."""
        return math.atan2(other.z - self.z, other.x - self.x)


@dataclass(frozen=True)
class AgentState:
    """Pose, sensor footprint and battery of the patrolling agent.

    Only kinematics produces new AgentState values during a run; battery never
    increases until the world is reset.
    """

    position: Position = field(default_factory=lambda: Position(0.0, AGENT_ALTITUDE, 0.0))
    heading: float = 0.0  # radians
    fov_angle: float = 60.0  # half-angle, degrees
    fov_range: float = 4.0  # sensor radius in world units
    battery: float = 100.0  # percent, [0, 100]
    speed: float = 1.0  # speed multiplier mirrored from the coordinator
    is_moving: bool = False

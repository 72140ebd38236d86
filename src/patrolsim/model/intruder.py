"""Intruder dataclass: a target the patrolling agent must find."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum

from patrolsim.model.agent import Position


class ThreatLevel(StrEnum):
    """Threat classification drawn uniformly at generation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Intruder:
    """A stationary intruder.

    ``detected`` flips from False to True exactly once; ``detected_at`` records
    the simulation time of that flip.
    """

    id: str
    position: Position
    threat_level: ThreatLevel = ThreatLevel.LOW
    detected: bool = False
    detected_at: float | None = None

    def mark_detected(self, timestamp: float) -> Intruder:
        """Return a detected copy. Already-detected intruders are returned unchanged."""
        if self.detected:
            return self
        return replace(self, detected=True, detected_at=timestamp)

"""DecisionReason and Decision: the output of one decision strategy run."""

from __future__ import annotations

from dataclasses import dataclass, field

from patrolsim.model.agent import Position

MAX_REASONS = 3


@dataclass(frozen=True)
class DecisionReason:
    """One ranked justification for the chosen target."""

    rank: int
    text: str
    weight: float  # 0-100
    icon: str


@dataclass(frozen=True)
class Decision:
    """A target waypoint plus at most MAX_REASONS ranked reasons."""

    target: Position
    reasons: tuple[DecisionReason, ...] = field(default_factory=tuple)

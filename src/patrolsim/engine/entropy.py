"""Single injectable source of randomness and clock reads for the engine."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class Entropy:
    """Bundle of every non-deterministic input the simulation consumes.

    Attributes:
        rng: Random draws for world generation and random patrol.
        wall_clock: Epoch seconds; drives the spiral search and event ids.
        monotonic: Frame clock used to measure per-frame deltas.
    """

    rng: random.Random = field(default_factory=random.Random)
    wall_clock: Callable[[], float] = time.time
    monotonic: Callable[[], float] = time.monotonic

    @classmethod
    def seeded(cls, seed: int | None) -> Entropy:
        """Create an Entropy whose random draws are reproducible when seed is set."""
        return cls(rng=random.Random(seed))

    @classmethod
    def fixed(cls, seed: int = 0, wall_time: float = 0.0, frame_time: float = 0.0) -> Entropy:
        """Fully deterministic entropy: seeded draws and frozen clocks."""
        return cls(
            rng=random.Random(seed),
            wall_clock=lambda: wall_time,
            monotonic=lambda: frame_time,
        )

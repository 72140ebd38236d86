"""Metrics dataclass: summary statistics derived from world state every tick."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Metrics:
    """Derived statistics. Percentages are in [0, 100]."""

    area_observed: float = 0.0
    blind_spots: float = 100.0
    detection_latency: float = 0.0  # mean detected_at of detected intruders
    battery: float = 100.0
    intruders_detected: int = 0
    total_intruders: int = 0
    patrol_efficiency: float = 0.0  # visited cells per elapsed second x 10
    avg_response_time: float = 0.0  # previous tick's detection_latency

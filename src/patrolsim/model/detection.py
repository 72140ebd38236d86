"""DetectionEvent: an externally produced object-detection trigger."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DetectionEvent:
    """A detection pushed by an external perception collaborator.

    The engine treats it as an opaque trigger for the timeline.
    """

    label: str
    confidence: float  # 0.0 to 1.0
    bbox: tuple[float, float, float, float] = field(default=(0.0, 0.0, 0.0, 0.0))  # x, y, w, h
    timestamp: float = 0.0  # producer's clock, seconds

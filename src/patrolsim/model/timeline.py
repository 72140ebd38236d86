"""Timeline log: bounded, newest-first journal of simulation events."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import StrEnum

TIMELINE_CAPACITY = 50


class EventCategory(StrEnum):
    """What produced a timeline event."""

    DETECTION = "detection"
    PATROL = "patrol"
    ALERT = "alert"
    DECISION = "decision"
    ENVIRONMENT = "environment"


class Severity(StrEnum):
    """Display severity of a timeline event."""

    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class TimelineEvent:
    """A single journal entry."""

    id: str
    timestamp: float  # simulation seconds
    category: EventCategory
    message: str
    severity: Severity = Severity.INFO


@dataclass(frozen=True)
class Timeline:
    """Capped event log. Index 0 is always the newest event.

    Appending prepends the event and discards entries beyond ``capacity``
    from the tail.
    """

    events: tuple[TimelineEvent, ...] = ()
    capacity: int = TIMELINE_CAPACITY

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[TimelineEvent]:
        return iter(self.events)

    def __getitem__(self, index: int) -> TimelineEvent:
        return self.events[index]

    @property
    def latest(self) -> TimelineEvent | None:
        return self.events[0] if self.events else None

    def append(self, event: TimelineEvent) -> Timeline:
        """Return a new Timeline with event at the front."""
        return replace(self, events=((event,) + self.events)[: self.capacity])

    def extend(self, events: Iterable[TimelineEvent]) -> Timeline:
        """Append events in order; the last one ends up newest."""
        timeline = self
        for event in events:
            timeline = timeline.append(event)
        return timeline

    def cleared(self) -> Timeline:
        return replace(self, events=())

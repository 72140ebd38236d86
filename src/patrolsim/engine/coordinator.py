"""Simulation coordinator: tick loop, control actions and the world snapshot it owns.

The coordinator is single-threaded and has no timers. Something outside calls
``frame()`` once per rendered frame; callers that share a coordinator across
threads must serialize access themselves (see patrolsim.server.app).
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import replace
from enum import StrEnum
from typing import TypeVar

from patrolsim.engine.entropy import Entropy
from patrolsim.engine.generator import build_world
from patrolsim.engine.kinematics import step_agent
from patrolsim.engine.metrics import compute_metrics, initial_metrics
from patrolsim.model.agent import AgentState, Position
from patrolsim.model.catalogue import algorithm_name
from patrolsim.model.detection import DetectionEvent
from patrolsim.model.timeline import EventCategory, Severity, Timeline, TimelineEvent
from patrolsim.model.world import Algorithm, Environment, HeatmapType, RunState, WorldState

logger = logging.getLogger(__name__)

MIN_SPEED = 0.25
MAX_SPEED = 4.0
MAX_FRAME_DELTA = 0.1  # seconds; longer frame gaps are clamped

_E = TypeVar("_E", bound=StrEnum)


class InvalidControlError(ValueError):
    """A control action was given an input it cannot accept. State is unchanged."""


def _parse(enum_cls: type[_E], value: object, label: str) -> _E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if member.value.lower() == value.strip().lower():
                return member
    valid = ", ".join(member.value for member in enum_cls)
    raise InvalidControlError(f"Unknown {label}: {value!r}. Valid values: {valid}")


def validate_speed(speed: float) -> float:
    """Return speed as a float if it lies in [MIN_SPEED, MAX_SPEED].

    Raises:
        InvalidControlError: If speed is not a finite number in range.
    """
    try:
        value = float(speed)
    except (TypeError, ValueError) as e:
        raise InvalidControlError(f"Invalid speed: {speed!r}") from e
    if not math.isfinite(value) or not MIN_SPEED <= value <= MAX_SPEED:
        raise InvalidControlError(f"Speed must be between {MIN_SPEED} and {MAX_SPEED}, got {value}")
    return value


class PatrolCoordinator:
    """Owns the WorldState and drives it through the Idle/Running/Paused machine.

    Transitions:
        start    Idle -> Running (Paused -> Running acts as resume)
        pause    Running -> Paused
        resume   Paused -> Running
        stop     any -> Idle, drops the current target
        reset    any -> Idle, regenerates the world for the current preset
        select_environment  any -> Idle, regenerates for the new preset

    Actions requested from a state that does not allow them are ignored.
    """

    def __init__(
        self,
        algorithm: Algorithm | str = Algorithm.PDAP,
        environment: Environment | str = Environment.OPEN_GRID,
        heatmap: HeatmapType | str = HeatmapType.NONE,
        speed: float = 1.0,
        entropy: Entropy | None = None,
        max_frame_delta: float = MAX_FRAME_DELTA,
    ) -> None:
        """Initialize with a freshly generated world.

        Raises:
            InvalidControlError: If any initial selection is invalid.
        """
        self._entropy = entropy or Entropy()
        self._max_frame_delta = max_frame_delta
        self._target: Position | None = None
        self._last_frame: float | None = None
        self._event_ids = itertools.count()
        self._world = self._generate(
            _parse(Environment, environment, "environment"),
            algorithm=_parse(Algorithm, algorithm, "algorithm"),
            heatmap=_parse(HeatmapType, heatmap, "heatmap"),
            speed=validate_speed(speed),
        )

    # Read surface

    @property
    def world(self) -> WorldState:
        return self._world

    def snapshot(self) -> WorldState:
        """Current world state. Snapshots are immutable and safe to hand out."""
        return self._world

    @property
    def target(self) -> Position | None:
        return self._target

    @property
    def run_state(self) -> RunState:
        return self._world.run_state

    @property
    def entropy(self) -> Entropy:
        return self._entropy

    # Tick loop

    def frame(self, now: float | None = None) -> WorldState:
        """Per-frame callback: measure the frame delta and advance the simulation.

        Args:
            now: Frame clock reading in seconds; read from the entropy monotonic
                clock when omitted.

        Returns:
            The world after the frame.
        """
        if now is None:
            now = self._entropy.monotonic()
        if self._last_frame is None:
            self._last_frame = now
        delta = now - self._last_frame
        self._last_frame = now
        return self.advance(delta)

    def advance(self, delta: float) -> WorldState:
        """Clamp a wall-clock delta, scale it by speed and tick once."""
        delta = min(max(delta, 0.0), self._max_frame_delta)
        return self.tick(delta * self._world.speed)

    def tick(self, dt: float) -> WorldState:
        """Apply one simulation step of ``dt`` simulated seconds.

        A no-op unless Running. Negative ``dt`` is treated as 0 so time and
        battery never run backwards. The new world is assembled completely
        before it replaces the old one, so a failed tick leaves state untouched.
        """
        world = self._world
        if world.run_state != RunState.RUNNING:
            return world
        dt = max(0.0, dt)

        try:
            elapsed = world.elapsed + dt
            step = step_agent(world, self._target, dt, elapsed, self._entropy)
            metrics = compute_metrics(step.agent, step.grid, step.intruders, elapsed, world.metrics)
            new_world = replace(
                world,
                agent=step.agent,
                grid=step.grid,
                intruders=step.intruders,
                metrics=metrics,
                reasons=step.reasons if step.decided else world.reasons,
                timeline=world.timeline.extend(step.events),
                elapsed=elapsed,
            )
        except Exception:
            logger.exception("Tick failed at t=%.2f; world left unchanged", world.elapsed)
            return world

        self._target = step.target
        self._world = new_world
        return new_world

    # Control surface

    def start(self) -> WorldState:
        state = self._world.run_state
        if state == RunState.PAUSED:
            return self.resume()
        if state != RunState.IDLE:
            logger.debug("Ignoring start while %s", state)
            return self._world
        self._set_run_state(RunState.RUNNING)
        self._record(
            EventCategory.PATROL,
            f"Patrol started ({algorithm_name(self._world.algorithm)})",
        )
        logger.info(
            "Simulation started: algorithm=%s, environment=%s",
            self._world.algorithm,
            self._world.environment,
        )
        return self._world

    def pause(self) -> WorldState:
        if self._world.run_state != RunState.RUNNING:
            logger.debug("Ignoring pause while %s", self._world.run_state)
            return self._world
        self._set_run_state(RunState.PAUSED)
        self._record(EventCategory.PATROL, "Patrol paused")
        logger.info("Simulation paused at t=%.2f", self._world.elapsed)
        return self._world

    def resume(self) -> WorldState:
        if self._world.run_state != RunState.PAUSED:
            logger.debug("Ignoring resume while %s", self._world.run_state)
            return self._world
        self._set_run_state(RunState.RUNNING)
        self._record(EventCategory.PATROL, "Patrol resumed")
        logger.info("Simulation resumed at t=%.2f", self._world.elapsed)
        return self._world

    def stop(self) -> WorldState:
        was = self._world.run_state
        self._target = None
        if was == RunState.IDLE:
            return self._world
        self._set_run_state(RunState.IDLE)
        self._record(EventCategory.PATROL, "Patrol stopped")
        logger.info("Simulation stopped at t=%.2f", self._world.elapsed)
        return self._world

    def reset(self) -> WorldState:
        """Regenerate the world for the current preset; selections are kept."""
        world = self._world
        self._target = None
        self._last_frame = None
        self._world = self._generate(
            world.environment,
            algorithm=world.algorithm,
            heatmap=world.heatmap,
            speed=world.speed,
        )
        logger.info("World reset: environment=%s", world.environment)
        return self._world

    def select_algorithm(self, algorithm: Algorithm | str) -> WorldState:
        """Switch strategy; the current target is dropped so the next tick re-decides."""
        selected = _parse(Algorithm, algorithm, "algorithm")
        self._target = None
        if selected == self._world.algorithm:
            return self._world
        self._world = replace(self._world, algorithm=selected)
        self._record(
            EventCategory.DECISION,
            f"Algorithm switched to {algorithm_name(selected)}",
        )
        logger.info("Algorithm set to %s", selected)
        return self._world

    def select_environment(self, environment: Environment | str) -> WorldState:
        """Stop, regenerate for a new preset and log a single environment event."""
        selected = _parse(Environment, environment, "environment")
        world = self._world
        self._target = None
        self._last_frame = None
        fresh = self._generate(
            selected,
            algorithm=world.algorithm,
            heatmap=world.heatmap,
            speed=world.speed,
        )
        event = TimelineEvent(
            id=self._event_id(f"env-change-{int(self._entropy.wall_clock() * 1000)}"),
            timestamp=0.0,
            category=EventCategory.ENVIRONMENT,
            message=f"Environment changed to {selected}",
            severity=Severity.INFO,
        )
        self._world = replace(fresh, timeline=Timeline().append(event))
        logger.info("Environment changed to %s", selected)
        return self._world

    def select_heatmap(self, heatmap: HeatmapType | str) -> WorldState:
        self._world = replace(self._world, heatmap=_parse(HeatmapType, heatmap, "heatmap"))
        return self._world

    def set_speed(self, speed: float) -> WorldState:
        """Set the time-scale multiplier.

        Raises:
            InvalidControlError: If speed is outside [MIN_SPEED, MAX_SPEED];
                the previous speed is kept.
        """
        value = validate_speed(speed)
        self._world = replace(
            self._world,
            speed=value,
            agent=replace(self._world.agent, speed=value),
        )
        logger.debug("Speed set to %.2f", value)
        return self._world

    # External event ingestion

    def add_event(self, event: TimelineEvent) -> WorldState:
        """Append an externally produced event to the timeline."""
        self._world = replace(self._world, timeline=self._world.timeline.append(event))
        return self._world

    def ingest_detection(self, detection: DetectionEvent) -> WorldState:
        """Record an external perception detection as an alert event.

        No gating or rate limiting is applied here.
        """
        confidence = round(detection.confidence * 100)
        event = TimelineEvent(
            id=self._event_id(f"cv-detection-{int(self._entropy.wall_clock() * 1000)}"),
            timestamp=self._world.elapsed,
            category=EventCategory.ALERT,
            message=f"CV DETECTION: {detection.label} detected ({confidence}% confidence)",
            severity=Severity.DANGER,
        )
        logger.warning("External detection: %s (%d%%)", detection.label, confidence)
        return self.add_event(event)

    # Internals

    def _generate(
        self,
        environment: Environment,
        algorithm: Algorithm,
        heatmap: HeatmapType,
        speed: float,
    ) -> WorldState:
        generated = build_world(environment, self._entropy.rng)
        return WorldState(
            grid=generated.grid,
            agent=AgentState(speed=speed),
            obstacles=generated.obstacles,
            intruders=generated.intruders,
            metrics=initial_metrics(len(generated.intruders)),
            environment=environment,
            algorithm=algorithm,
            heatmap=heatmap,
            speed=speed,
        )

    def _set_run_state(self, state: RunState) -> None:
        if state == RunState.RUNNING:
            self._last_frame = None
        self._world = replace(self._world, run_state=state)

    def _event_id(self, prefix: str) -> str:
        """Unique per coordinator, even once the timeline has wrapped."""
        return f"{prefix}-{next(self._event_ids)}"

    def _record(self, category: EventCategory, message: str) -> None:
        elapsed = self._world.elapsed
        self.add_event(
            TimelineEvent(
                id=self._event_id(str(category)),
                timestamp=elapsed,
                category=category,
                message=message,
                severity=Severity.INFO,
            )
        )

"""Tests for the frame projection module."""

from __future__ import annotations

import json

import pytest

from patrolsim.engine.coordinator import PatrolCoordinator
from patrolsim.engine.entropy import Entropy
from patrolsim.model.agent import AgentState, Position
from patrolsim.model.grid import Grid
from patrolsim.model.intruder import Intruder, ThreatLevel
from patrolsim.model.world import Environment, HeatmapType, WorldState
from patrolsim.projection import Frame, frame_to_dict, heatmap_color, project, project_heatmap
from patrolsim.projection.projector import THREAT_COLORS, UNDETECTED_COLOR


def make_world(
    grid: Grid | None = None, heatmap: HeatmapType = HeatmapType.NONE, **kwargs: object
) -> WorldState:
    """Create a test world."""
    return WorldState(grid=grid or Grid.blank(), heatmap=heatmap, **kwargs)


class TestHeatmapColor:
    """Tests for band selection."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.1, "#ef4444"), (0.3, "#ef4444"), (0.31, "#f59e0b"), (0.7, "#f59e0b"), (0.9, "#10b981")],
    )
    def test_coverage_bands(self, value: float, expected: str) -> None:
        assert heatmap_color(HeatmapType.COVERAGE, value) == expected

    def test_threat_inverts_coverage(self) -> None:
        assert heatmap_color(HeatmapType.THREAT, 0.9) == "#ef4444"
        assert heatmap_color(HeatmapType.THREAT, 0.2) == "#10b981"


class TestProjectHeatmap:
    """Tests for heatmap tiles."""

    def test_none_layer_is_empty(self) -> None:
        assert project_heatmap(make_world(Grid.blank(coverage_value=1.0))) == []

    def test_full_coverage(self) -> None:
        world = make_world(Grid.blank(coverage_value=1.0), HeatmapType.COVERAGE)
        tiles = project_heatmap(world)
        assert len(tiles) == 400
        first = tiles[0]
        assert (first.x, first.z) == (-9.5, -9.5)
        assert first.opacity == pytest.approx(0.4)
        assert first.color == "#10b981"

    def test_low_values_skipped(self) -> None:
        world = make_world(Grid.blank(threat_value=0.05), HeatmapType.THREAT)
        assert project_heatmap(world) == []

    def test_uncertainty_layer(self) -> None:
        world = make_world(Grid.blank(uncertainty_value=0.5), HeatmapType.UNCERTAINTY)
        tiles = project_heatmap(world)
        assert all(tile.color == "#8b5cf6" for tile in tiles)
        assert all(tile.opacity == pytest.approx(0.2) for tile in tiles)


class TestProject:
    """Tests for project()."""

    def test_agent_and_selections(self) -> None:
        agent = AgentState(position=Position(1.0, 2.0, -3.0), heading=0.5, battery=80.0)
        frame = project(make_world(agent=agent))
        assert isinstance(frame, Frame)
        assert (frame.agent.x, frame.agent.y, frame.agent.z) == (1.0, 2.0, -3.0)
        assert frame.agent.heading == 0.5
        assert frame.agent.battery == 80.0
        assert frame.run_state == "idle"
        assert frame.algorithm == "PDAP"
        assert frame.environment == "open-grid"
        assert frame.target is None

    def test_target(self) -> None:
        frame = project(make_world(), Position(4.0, 2.0, 5.0))
        assert frame.target == (4.0, 5.0)

    def test_intruder_colors(self) -> None:
        intruders = (
            Intruder(id="a", position=Position(1.0, 0.0, 1.0), threat_level=ThreatLevel.HIGH),
            Intruder(
                id="b", position=Position(2.0, 0.0, 2.0), threat_level=ThreatLevel.MEDIUM
            ).mark_detected(1.0),
        )
        frame = project(make_world(intruders=intruders))
        assert frame.intruders[0].color == UNDETECTED_COLOR
        assert frame.intruders[1].color == THREAT_COLORS[ThreatLevel.MEDIUM]
        assert frame.intruders[1].detected is True

    def test_obstacles(self) -> None:
        coordinator = PatrolCoordinator(
            environment=Environment.MAZE_FACILITY, entropy=Entropy.fixed()
        )
        frame = project(coordinator.world)
        assert len(frame.obstacles) == 9
        assert frame.obstacles[0].id == "wall-0"
        assert frame.obstacles[0].kind == "static"


class TestFrameToDict:
    """Tests for serialization."""

    def test_json_serializable(self) -> None:
        coordinator = PatrolCoordinator(heatmap=HeatmapType.THREAT, entropy=Entropy.fixed(seed=2))
        coordinator.start()
        for _ in range(20):
            coordinator.tick(0.1)
        data = frame_to_dict(project(coordinator.world, coordinator.target))

        decoded = json.loads(json.dumps(data))
        assert decoded["run_state"] == "running"
        assert isinstance(decoded["target"], list)
        assert len(decoded["target"]) == 2
        assert decoded["metrics"]["total_intruders"] == 4
        assert decoded["timeline"][-1]["message"].startswith("Patrol started")
        assert decoded["reasons"][0]["rank"] == 1
        assert len(decoded["heatmap_cells"]) > 0

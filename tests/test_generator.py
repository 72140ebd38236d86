"""Tests for the world generator presets."""

from __future__ import annotations

import random

import pytest

from patrolsim.engine.generator import (
    CLUSTER_CENTERS,
    MAZE_WALLS,
    build_world,
    generate_intruders,
    generate_obstacles,
    intruder_count,
)
from patrolsim.model.obstacle import ObstacleKind
from patrolsim.model.world import Environment


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)


class TestGenerateObstacles:
    """Tests for obstacle layouts per preset."""

    def test_open_grid_is_empty(self, rng: random.Random) -> None:
        assert generate_obstacles(Environment.OPEN_GRID, rng) == []

    def test_urban_dense(self, rng: random.Random) -> None:
        obstacles = generate_obstacles(Environment.URBAN_DENSE, rng)
        assert len(obstacles) == 15
        for o in obstacles:
            assert -8.0 <= o.position.x < 8.0
            assert -8.0 <= o.position.z < 8.0
            assert 0.8 <= o.size.width < 2.0
            assert 1.0 <= o.size.height < 3.0
            assert 0.8 <= o.size.depth < 2.0
            assert o.kind == ObstacleKind.STATIC

    def test_maze_is_fixed(self) -> None:
        """Maze walls do not depend on the random source."""
        first = generate_obstacles(Environment.MAZE_FACILITY, random.Random(1))
        second = generate_obstacles(Environment.MAZE_FACILITY, random.Random(2))
        assert first == second
        assert len(first) == len(MAZE_WALLS) == 9
        assert all(o.id.startswith("wall-") for o in first)
        assert all(o.size.height == 1.5 for o in first)

    def test_dynamic_risk(self, rng: random.Random) -> None:
        obstacles = generate_obstacles(Environment.DYNAMIC_RISK, rng)
        assert len(obstacles) == 6
        assert all(-7.0 <= o.position.x < 7.0 for o in obstacles)

    def test_changing_env_marks_dynamic(self, rng: random.Random) -> None:
        obstacles = generate_obstacles(Environment.CHANGING_ENV, rng)
        assert len(obstacles) == 10
        assert all(o.kind == ObstacleKind.DYNAMIC for o in obstacles)
        assert all(o.size.height == 1.5 for o in obstacles)

    def test_changing_env_hides_some(self) -> None:
        """Across many draws roughly 30% of obstacles start hidden."""
        rng = random.Random(0)
        hidden = sum(
            not o.visible
            for _ in range(100)
            for o in generate_obstacles(Environment.CHANGING_ENV, rng)
        )
        assert 200 < hidden < 400

    def test_fog_of_war(self, rng: random.Random) -> None:
        assert len(generate_obstacles(Environment.FOG_OF_WAR, rng)) == 8

    def test_unknown_environment(self, rng: random.Random) -> None:
        with pytest.raises(ValueError, match="Unknown environment"):
            generate_obstacles("volcano", rng)  # type: ignore[arg-type]


class TestGenerateIntruders:
    """Tests for intruder placement."""

    @pytest.mark.parametrize("environment", list(Environment))
    def test_counts(self, environment: Environment, rng: random.Random) -> None:
        expected = 8 if environment == Environment.DYNAMIC_RISK else 4
        assert intruder_count(environment) == expected
        assert len(generate_intruders(environment, rng)) == expected

    def test_uniform_spread(self, rng: random.Random) -> None:
        for intruder in generate_intruders(Environment.OPEN_GRID, rng):
            assert -7.0 <= intruder.position.x < 7.0
            assert -7.0 <= intruder.position.z < 7.0
            assert intruder.position.y == 0.0
            assert intruder.detected is False
            assert intruder.detected_at is None

    def test_ids(self, rng: random.Random) -> None:
        intruders = generate_intruders(Environment.OPEN_GRID, rng)
        assert [i.id for i in intruders] == [f"intruder-{n}" for n in range(4)]

    def test_dynamic_risk_clusters(self, rng: random.Random) -> None:
        """Every intruder after the first sits within 1.5 of its cluster centre."""
        intruders = generate_intruders(Environment.DYNAMIC_RISK, rng)
        for i, intruder in enumerate(intruders[1:], start=1):
            cx, cz = CLUSTER_CENTERS[(i // 2) % 4]
            assert abs(intruder.position.x - cx) <= 1.5
            assert abs(intruder.position.z - cz) <= 1.5


class TestBuildWorld:
    """Tests for build_world."""

    def test_seed_reproducible(self) -> None:
        first = build_world(Environment.URBAN_DENSE, random.Random(3))
        second = build_world(Environment.URBAN_DENSE, random.Random(3))
        assert first == second

    def test_regeneration_differs(self) -> None:
        """Same preset, fresh draws: same structure, different detail."""
        rng = random.Random(3)
        first = build_world(Environment.URBAN_DENSE, rng)
        second = build_world(Environment.URBAN_DENSE, rng)
        assert len(first.obstacles) == len(second.obstacles)
        assert first.obstacles != second.obstacles

    def test_fog_world_grid(self, rng: random.Random) -> None:
        world = build_world(Environment.FOG_OF_WAR, rng)
        assert all(cell.uncertainty_value == 1.0 for cell in world.grid)

    def test_grid_starts_unvisited(self, rng: random.Random) -> None:
        world = build_world(Environment.OPEN_GRID, rng)
        assert world.grid.visited_count() == 0
        assert isinstance(world.obstacles, tuple)
        assert isinstance(world.intruders, tuple)

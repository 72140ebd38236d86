"""Tests for the metrics aggregator."""

from __future__ import annotations

import pytest

from patrolsim.engine.metrics import compute_metrics, initial_metrics
from patrolsim.model.agent import AgentState, Position
from patrolsim.model.grid import Grid, GridCell
from patrolsim.model.intruder import Intruder
from patrolsim.model.metrics import Metrics


def _grid_with_visited(count: int) -> Grid:
    cells = [GridCell(x=n // 20, y=n % 20, visited=True) for n in range(count)]
    return Grid.blank().with_cells(cells)


class TestInitialMetrics:
    def test_defaults(self) -> None:
        metrics = initial_metrics(4)
        assert metrics.area_observed == 0.0
        assert metrics.blind_spots == 100.0
        assert metrics.battery == 100.0
        assert metrics.total_intruders == 4
        assert metrics.intruders_detected == 0


class TestComputeMetrics:
    """Tests for compute_metrics."""

    def test_coverage_percentages(self) -> None:
        metrics = compute_metrics(AgentState(), _grid_with_visited(100), (), 20.0, Metrics())
        assert metrics.area_observed == pytest.approx(25.0)
        assert metrics.blind_spots == pytest.approx(75.0)
        assert metrics.area_observed + metrics.blind_spots == pytest.approx(100.0)

    def test_efficiency_uses_at_least_one_second(self) -> None:
        grid = _grid_with_visited(45)
        early = compute_metrics(AgentState(), grid, (), 0.1, Metrics())
        later = compute_metrics(AgentState(), grid, (), 9.0, Metrics())
        assert early.patrol_efficiency == pytest.approx(450.0)
        assert later.patrol_efficiency == pytest.approx(50.0)

    def test_battery_mirrors_agent(self) -> None:
        metrics = compute_metrics(AgentState(battery=42.0), Grid.blank(), (), 1.0, Metrics())
        assert metrics.battery == 42.0

    def test_detection_latency_is_mean_detection_time(self) -> None:
        intruders = (
            Intruder(id="a", position=Position()).mark_detected(2.0),
            Intruder(id="b", position=Position()).mark_detected(4.0),
            Intruder(id="c", position=Position()),
        )
        previous = Metrics(detection_latency=1.25)
        metrics = compute_metrics(AgentState(), Grid.blank(), intruders, 5.0, previous)

        assert metrics.intruders_detected == 2
        assert metrics.total_intruders == 3
        assert metrics.detection_latency == pytest.approx(3.0)
        assert metrics.avg_response_time == pytest.approx(1.25)

    def test_no_detections(self) -> None:
        intruders = (Intruder(id="a", position=Position()),)
        metrics = compute_metrics(
            AgentState(), Grid.blank(), intruders, 5.0, Metrics(detection_latency=7.0)
        )
        assert metrics.detection_latency == 0.0
        assert metrics.avg_response_time == 0.0

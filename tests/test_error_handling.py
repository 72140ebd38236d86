"""Tests for error handling across the API and the simulation loop."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from patrolsim.config import SimulationSettings
from patrolsim.engine.strategies import STRATEGIES, DecisionContext
from patrolsim.model.decision import Decision
from patrolsim.model.world import Algorithm, RunState
from patrolsim.server.app import SimulationState, app, set_sim_state


@pytest.fixture
def sim_state() -> Iterator[SimulationState]:
    state = SimulationState(SimulationSettings(seed=3))
    set_sim_state(state)
    yield state
    set_sim_state(None)


@pytest.fixture
def client(sim_state: SimulationState) -> TestClient:
    return TestClient(app)


class TestAPIErrorHandling:
    """Tests for 400/422 responses on invalid control input."""

    def test_400_unknown_algorithm(self, client: TestClient, sim_state: SimulationState) -> None:
        response = client.post("/api/control/algorithm", json={"algorithm": "GREEDY"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Unknown algorithm" in response.json()["detail"]
        assert sim_state.world.algorithm == Algorithm.PDAP

    def test_400_unknown_environment(self, client: TestClient) -> None:
        response = client.post("/api/control/environment", json={"environment": "moon"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_400_unknown_heatmap(self, client: TestClient) -> None:
        response = client.post("/api/control/heatmap", json={"heatmap": "infrared"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.parametrize("speed", [0.0, 0.1, 4.01, 100.0])
    def test_400_speed_out_of_range(
        self, client: TestClient, sim_state: SimulationState, speed: float
    ) -> None:
        response = client.post("/api/control/speed", json={"speed": speed})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert sim_state.world.speed == 1.0

    def test_422_missing_body(self, client: TestClient) -> None:
        response = client.post("/api/control/speed", json={})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_422_detection_confidence_out_of_range(self, client: TestClient) -> None:
        response = client.post("/api/detections", json={"label": "person", "confidence": 1.5})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_422_detection_empty_label(self, client: TestClient) -> None:
        response = client.post("/api/detections", json={"label": "", "confidence": 0.5})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestWebSocketErrorHandling:
    """Tests for invalid WebSocket commands."""

    def test_unknown_command(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json({"type": "self_destruct"})
            response = ws.receive_json()
        assert response["success"] is False
        assert "Unknown command" in response["message"]

    def test_missing_command_type(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json({"speed": 2.0})
            assert ws.receive_json()["success"] is False

    def test_invalid_speed(self, client: TestClient, sim_state: SimulationState) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json({"type": "set_speed", "speed": 9})
            response = ws.receive_json()
        assert response["success"] is False
        assert sim_state.world.speed == 1.0

    def test_set_speed_none(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json({"type": "set_speed"})
            assert ws.receive_json()["success"] is False

    def test_connection_survives_bad_command(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json({"type": "select_algorithm", "algorithm": "nope"})
            assert ws.receive_json()["success"] is False
            ws.send_json({"type": "start"})
            assert ws.receive_json()["success"] is True

    def test_non_object_message(self, client: TestClient) -> None:
        with client.websocket_connect("/ws/control") as ws:
            ws.send_json([1, 2])
            response = ws.receive_json()
            assert response == {"success": False, "message": "Command must be a JSON object"}
            ws.send_json(42)
            assert ws.receive_json()["success"] is False
            ws.send_json({"type": "start"})
            assert ws.receive_json()["success"] is True


class TestStrategyFailureHandling:
    """A faulting strategy must not stop the simulation."""

    def test_simulation_continues(
        self, sim_state: SimulationState, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(context: DecisionContext) -> Decision:
            raise ZeroDivisionError("bad geometry")

        monkeypatch.setitem(STRATEGIES, Algorithm.PDAP, broken)
        sim_state.apply(lambda c: c.start())
        for _ in range(5):
            sim_state.apply(lambda c: c.tick(0.1))

        world = sim_state.world
        assert world.run_state == RunState.RUNNING
        assert world.elapsed == pytest.approx(0.5)
        assert world.reasons[0].text == "Algorithm Error - Resetting"
        assert world.agent.position.x == 0.0
        assert world.agent.position.z == 0.0

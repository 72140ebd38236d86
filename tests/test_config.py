"""Tests for SimulationSettings."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from patrolsim.config import SimulationSettings, get_settings
from patrolsim.model.world import Algorithm, Environment, HeatmapType


class TestSimulationSettings:
    """Tests for settings defaults, env loading and validation."""

    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = SimulationSettings(_env_file=None)
        assert settings.default_algorithm == Algorithm.PDAP
        assert settings.default_environment == Environment.OPEN_GRID
        assert settings.default_heatmap == HeatmapType.NONE
        assert settings.default_speed == 1.0
        assert settings.seed is None
        assert settings.frame_rate == 30.0
        assert settings.max_frame_delta == 0.1
        assert settings.port == 8000

    def test_from_environment(self) -> None:
        env = {
            "PATROL_DEFAULT_ALGORITHM": "zpa",
            "PATROL_DEFAULT_ENVIRONMENT": "FOG-OF-WAR",
            "PATROL_DEFAULT_HEATMAP": "Uncertainty",
            "PATROL_DEFAULT_SPEED": "2.5",
            "PATROL_SEED": "17",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = SimulationSettings(_env_file=None)
        assert settings.default_algorithm == Algorithm.ZPA
        assert settings.default_environment == Environment.FOG_OF_WAR
        assert settings.default_heatmap == HeatmapType.UNCERTAINTY
        assert settings.default_speed == 2.5
        assert settings.seed == 17

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"default_speed": 5.0},
            {"default_speed": 0.1},
            {"frame_rate": 0},
            {"default_algorithm": "GREEDY"},
            {"default_environment": "volcano"},
            {"port": 0},
        ],
    )
    def test_rejects_invalid(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ValidationError):
            SimulationSettings(_env_file=None, **kwargs)

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()

"""Runtime settings for the simulation and its server.

Settings load from PATROL_* environment variables and an optional .env file
via pydantic-settings.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from patrolsim.engine.coordinator import MAX_FRAME_DELTA, MAX_SPEED, MIN_SPEED
from patrolsim.model.world import Algorithm, Environment, HeatmapType

logger = logging.getLogger(__name__)


class SimulationSettings(BaseSettings):
    """Defaults for new coordinators and the frame driver.

    Environment Variables:
        PATROL_DEFAULT_ALGORITHM: RPA, ZPA, CPA, TFA or PDAP (default: PDAP)
        PATROL_DEFAULT_ENVIRONMENT: preset tag (default: open-grid)
        PATROL_DEFAULT_HEATMAP: coverage, threat, uncertainty or none (default: none)
        PATROL_DEFAULT_SPEED: time-scale multiplier 0.25-4 (default: 1.0)
        PATROL_SEED: integer seed for reproducible worlds (default: unset)
        PATROL_FRAME_RATE: frames per second of the server driver (default: 30)
        PATROL_MAX_FRAME_DELTA: clamp for a single frame delta (default: 0.1)
        PATROL_HOST / PATROL_PORT: HTTP bind address (default: 127.0.0.1:8000)

    Example:
        >>> settings = SimulationSettings(default_algorithm="zpa")
        >>> settings.default_algorithm
        <Algorithm.ZPA: 'ZPA'>
    """

    model_config = SettingsConfigDict(
        env_prefix="PATROL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_algorithm: Algorithm = Field(default=Algorithm.PDAP, description="Initial strategy")
    default_environment: Environment = Field(
        default=Environment.OPEN_GRID, description="Initial environment preset"
    )
    default_heatmap: HeatmapType = Field(default=HeatmapType.NONE, description="Initial heatmap")
    default_speed: float = Field(
        default=1.0, ge=MIN_SPEED, le=MAX_SPEED, description="Initial speed multiplier"
    )
    seed: int | None = Field(default=None, description="Seed for reproducible worlds")

    frame_rate: float = Field(default=30.0, gt=0, le=240, description="Driver frames per second")
    max_frame_delta: float = Field(
        default=MAX_FRAME_DELTA, gt=0, le=1.0, description="Clamp for one frame delta (s)"
    )

    host: str = Field(default="127.0.0.1", description="HTTP bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="HTTP bind port")

    @field_validator("default_algorithm", mode="before")
    @classmethod
    def normalize_algorithm(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("default_environment", "default_heatmap", mode="before")
    @classmethod
    def normalize_tag(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


@lru_cache
def get_settings() -> SimulationSettings:
    """Cached settings singleton. Call get_settings.cache_clear() to reload."""
    settings = SimulationSettings()
    logger.info(
        "Loaded settings: algorithm=%s, environment=%s, speed=%.2f, seed=%s, frame_rate=%.1f",
        settings.default_algorithm,
        settings.default_environment,
        settings.default_speed,
        settings.seed,
        settings.frame_rate,
    )
    return settings

"""
config.py – Centralised, validated application settings.

Uses pydantic-settings so every environment variable is:
  • Type-coerced (str, int, float, bool)
  • Range-checkable via Field/validator
  • Clearly reported on misconfiguration instead of failing deep in an aggregate

Usage
-----
>>> from waterway.common.config import settings
>>> print(settings.trend_window_size)
"""

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All runtime configuration is pulled from environment variables (or .env).

    Sections
    --------
    store_*         – Which key-value backend persists the aggregates
    postgres_*      – PostgreSQL connection parameters (postgres backend only)
    db_*            – psycopg connection-pool sizing and retry policy
    hotspot_*       – Pollution level bounds
    sim_*           – Simulated trend entry policy
    trend_*         – Rolling trend window
    events_*        – Event award behaviour
    log_level       – Root Python logging level (DEBUG / INFO / WARNING / ERROR)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Persistence
    store_backend: Literal["memory", "json", "postgres"] = Field(
        default="memory",
        description="Key-value backend used to persist every aggregate.",
    )
    store_key_prefix: str = Field(
        default="krvt_",
        description="Prefix prepended to each aggregate key (hotspots, events, …).",
    )
    store_json_dir: str = Field(
        default="data",
        description="Directory holding one JSON file per key for the json backend.",
    )

    # PostgreSQL
    postgres_host: str = Field(default="localhost")
    postgres_port: int = Field(default=55432, ge=1, le=65535)
    postgres_db: str = Field(default="waterway")
    postgres_user: str = Field(default="waterway_user")
    postgres_password: str = Field(default="waterway_pass")

    # Connection pool
    db_pool_min: int = Field(default=1, ge=1)
    db_pool_max: int = Field(default=4, ge=1)
    db_max_attempts: int = Field(
        default=5,
        ge=1,
        description="Tries per store statement before a transient error becomes StoreError.",
    )
    db_retry_backoff_s: float = Field(
        default=0.5,
        ge=0.0,
        description="First sleep between tries; doubles after each failure.",
    )

    # Hotspot pollution bounds
    hotspot_level_min: int = Field(default=0, ge=0)
    hotspot_level_max: int = Field(default=100, ge=1)

    # Simulated trend entries
    sim_bags_min: int = Field(
        default=10,
        ge=0,
        description="Inclusive lower bound of the simulated daily bag count.",
    )
    sim_bags_max: int = Field(
        default=50,
        ge=1,
        description="Exclusive upper bound of the simulated daily bag count.",
    )
    sim_rainfall_min: int = Field(
        default=5,
        ge=0,
        description="Inclusive lower bound of simulated rainfall on a rainy day.",
    )
    sim_rainfall_max: int = Field(
        default=65,
        ge=1,
        description="Exclusive upper bound of simulated rainfall on a rainy day.",
    )
    sim_rain_probability_daily: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Chance that a live simulated day has rain.",
    )
    sim_rain_probability_seed: float = Field(
        default=0.35,
        ge=0.0,
        le=1.0,
        description="Chance that a day of seeded history has rain.",
    )

    # Trend window
    trend_window_size: int = Field(
        default=15,
        ge=1,
        description="Number of most recent days kept in the trend log.",
    )

    # Events and points
    default_points_per_attendance: int = Field(default=20, ge=0)
    leaderboard_size: int = Field(default=10, ge=1)
    events_block_repeat_award: bool = Field(
        default=False,
        description="When true, awarding an already awarded event is a no-op.",
    )
    seed_defaults: bool = Field(
        default=True,
        description="Fall back to the built-in sample collections when a key is absent.",
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Root Python logging level. One of: DEBUG, INFO, WARNING, ERROR, CRITICAL.",
    )

    @model_validator(mode="after")
    def check_ranges(self) -> "Settings":
        """Reject empty simulation ranges and inverted level bounds."""
        if self.sim_bags_min >= self.sim_bags_max:
            raise ValueError("sim_bags_min must be lower than sim_bags_max")
        if self.sim_rainfall_min >= self.sim_rainfall_max:
            raise ValueError("sim_rainfall_min must be lower than sim_rainfall_max")
        if self.hotspot_level_min >= self.hotspot_level_max:
            raise ValueError("hotspot_level_min must be lower than hotspot_level_max")
        return self


# Module-level singleton – import this everywhere instead of instantiating Settings again.
settings = Settings()

"""Configuration settings for the lounge spatial engine — loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with env-driven overrides.

    All values can be overridden via environment variables prefixed with LOUNGE_.
    Example: LOUNGE_COLLIDER_INTERVAL_MS=120 overrides collider_interval_ms.
    """

    # Engine loop
    tick_rate_ms: int = 16
    stats_interval_ticks: int = 600
    log_level: str = "info"

    # AABB collider
    collider_interval_ms: float = 80.0
    collider_objects: str = ""  # selector expression, empty = all scene children

    # Proximity monitor
    distance_limit: float = 10.0
    proximity_frame_stride: int = 60  # 1 second at 60 FPS

    # Lounge layout
    lounge_width: float = 10.0
    lounge_height: float = 4.0
    lounge_depth: float = 7.0

    model_config = SettingsConfigDict(
        env_prefix="LOUNGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

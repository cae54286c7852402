"""
Configuration management for SingleDetect.

Loads settings from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "SingleDetect"
    app_env: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Viewport
    viewport_x_min: float = 0.0
    viewport_y_min: float = 0.0
    viewport_x_max: float = 600.0
    viewport_y_max: float = 500.0

    # Detection
    max_distance: float = Field(default=45.0, gt=0)  # Nearest neighbor farther than this => single
    detection_strategy: Literal["naive", "grid"] = "grid"
    knn_k: int = Field(default=0, ge=0)  # 0 disables the per-frame k-NN query

    # Animation
    dots_count: int = Field(default=50, ge=0)
    dots_moving_count: int = Field(default=10, ge=0)  # Moving dots per frame
    movement_speed: int = Field(default=3, ge=0)  # Max step per axis per frame
    frame_interval_ms: int = Field(default=200, gt=0)  # 1 frame per x msec
    random_seed: int | None = None

    # Display
    show_grid: bool = True
    dot_size: int = 4
    perf_log_every: int = Field(default=30, gt=0)  # Frames between perf log lines


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

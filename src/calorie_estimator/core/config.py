"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CALORIE_ESTIMATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Camera geometry (fixed per device class, not calibrated at runtime)
    camera_fov_deg: float = Field(default=77.0, gt=0, lt=180)
    subject_distance_mm: float = Field(default=400.0, gt=0)

    # Empirical height/volume calibration
    max_depth_span_mm: float = Field(default=5000.0, gt=0)
    height_damping: float = Field(default=0.05, gt=0)
    correction_factor: float = Field(default=0.8, gt=0)
    min_volume_cm3: float = Field(default=1.0, ge=0)
    mask_threshold: int = Field(default=128, ge=0, le=255)

    # Segmentation collaborator
    segmentation_timeout: float = Field(default=30.0, gt=0)  # seconds

    # Processing
    parallel_detections: bool = True

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

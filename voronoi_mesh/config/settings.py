"""Configuration management."""

from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Engine settings pulled from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: Literal["json", "console"] = Field(default="json", description="Log renderer")

    # Worker pool
    worker_count: Optional[int] = Field(default=None, ge=1, description="Centroid workers (None = CPU count)")
    task_queue_capacity: int = Field(default=100_000, ge=1, description="Max pending centroid tasks")
    centroid_dispatch: Literal["serial", "batch"] = Field(
        default="serial", description="serial awaits each region before the next; batch submits all first"
    )

    # Sampling
    key_precision: int = Field(default=2, ge=0, le=6, description="Decimal places of the duplicate key")
    seed: Optional[int] = Field(default=None, description="Seed for shuffling and jitter")

    # Height jitter
    jitter_min: float = Field(default=1e-4, ge=0, description="Lower bound of height jitter")
    jitter_max: float = Field(default=2e-3, ge=0, description="Upper bound of height jitter")

    @model_validator(mode="after")
    def _check_jitter(self):
        if self.jitter_max < self.jitter_min:
            raise ValueError("jitter_max must be >= jitter_min")
        return self

    class Config:
        env_prefix = "VORONOI_MESH_"
        env_file = ".env"
        extra = "ignore"


settings = Settings()

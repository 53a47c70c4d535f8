"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from doc_optimizer.configs.base import BaseSettings
from doc_optimizer.configs.inference import InferenceSettings
from doc_optimizer.configs.pipeline import (
    BreakerSettings,
    ChunkSettings,
    HealthSettings,
    JobSettings,
    RetrySettings,
    TimeoutSettings,
)
from doc_optimizer.configs.upload import UploadSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    upload: UploadSettings = Field(default_factory=UploadSettings)
    inference: InferenceSettings = Field(default_factory=InferenceSettings)
    chunk: ChunkSettings = Field(default_factory=ChunkSettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    breaker: BreakerSettings = Field(default_factory=BreakerSettings)
    health: HealthSettings = Field(default_factory=HealthSettings)
    job: JobSettings = Field(default_factory=JobSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from doc_optimizer.configs import get_settings
        settings = get_settings()
    """
    return Settings()

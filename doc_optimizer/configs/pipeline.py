"""
Optimization pipeline configuration.

Chunking, timeout budget, retry, circuit breaker, health probe, and job settings.

Dependencies: pydantic, pydantic_settings
System role: Resilience and pipeline tuning
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkSettings(BaseSettings):
    """Chunk sizing and scheduling."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="CHUNK_", case_sensitive=False, extra="ignore"
    )

    max_size: int = Field(default=1000, gt=0, description="Maximum chunk size in characters")
    concurrency_limit: int = Field(
        default=1,
        ge=1,
        description="Maximum concurrent inference calls per job (1 = sequential)",
    )


class TimeoutSettings(BaseSettings):
    """Per-call time budget parameters."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="TIMEOUT_", case_sensitive=False, extra="ignore"
    )

    cold_start_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Budget for the first call while model weights load",
    )
    base_seconds: float = Field(default=45.0, ge=0, description="Base budget for warm calls")
    per_char_seconds: float = Field(
        default=0.005,
        ge=0,
        description="Additional budget per character of chunk text",
    )
    max_seconds: float = Field(default=120.0, gt=0, description="Upper clamp for warm calls")


class RetrySettings(BaseSettings):
    """Retry and backoff for retryable inference failures."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="RETRY_", case_sensitive=False, extra="ignore"
    )

    max_attempts: int = Field(default=5, ge=1, description="Maximum attempts per chunk")
    base_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Backoff delay before the second attempt, doubled each retry",
    )
    jitter_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Upper bound of random jitter added to each backoff delay",
    )


class BreakerSettings(BaseSettings):
    """Circuit breaker thresholds."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="BREAKER_", case_sensitive=False, extra="ignore"
    )

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures that open the circuit",
    )
    success_threshold: int = Field(
        default=2,
        ge=1,
        description="Consecutive half-open successes that close the circuit",
    )
    cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Time the circuit stays open before admitting a probe",
    )
    half_open_max_calls: int = Field(
        default=1,
        ge=1,
        description="Concurrent probe calls admitted while half-open",
    )


class HealthSettings(BaseSettings):
    """Periodic health probe."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="HEALTH_", case_sensitive=False, extra="ignore"
    )

    check_interval_seconds: float = Field(default=30.0, gt=0)
    probe_enabled: bool = Field(default=True, description="Run the background probe task")


class JobSettings(BaseSettings):
    """Whole-request limits for one optimization job."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="JOB_", case_sensitive=False, extra="ignore"
    )

    timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Upper bound for one optimization request after upload",
    )
    disconnect_poll_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Interval for checking whether the client went away",
    )

"""
Health and metrics API contracts.

Dependencies: pydantic
System role: Health check and metrics HTTP API contracts
"""

from pydantic import BaseModel, Field


class ServiceHealth(BaseModel):
    """Per-dependency probe results."""

    inference: bool
    model: bool
    storage: bool


class CircuitBreakerStatus(BaseModel):
    """Circuit breaker view."""

    state: str
    consecutive_failures: int
    consecutive_successes: int
    last_transition_at: str
    retry_after_seconds: float
    in_flight_probes: int


class JobCounters(BaseModel):
    """Job counters since process start."""

    active: int
    started: int
    succeeded: int
    failed: int
    cancelled: int = 0


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(description="healthy, degraded, or unavailable")
    services: ServiceHealth
    circuit_breaker: CircuitBreakerStatus
    jobs: JobCounters
    errors: dict[str, str] = Field(default_factory=dict)
    last_check: str
    uptime_seconds: float


class LivenessResponse(BaseModel):
    """Process liveness."""

    status: str = "alive"
    uptime_seconds: float


class MetricsResponse(BaseModel):
    """Tracker snapshot."""

    jobs_started: int
    jobs_succeeded: int
    jobs_failed: int
    jobs_cancelled: int
    active_jobs: int
    average_processing_time_ms: float
    total_attempts: int
    failed_attempts: int
    failures_by_code: dict[str, int]
    circuit_breaker: CircuitBreakerStatus
    last_health: dict | None = None

"""API request/response models."""

from .common import ErrorDetails, ErrorResponse
from .health import (
    CircuitBreakerStatus,
    HealthResponse,
    JobCounters,
    LivenessResponse,
    MetricsResponse,
    ServiceHealth,
)
from .optimize import OptimizationMetadata, OptimizeResponse

__all__ = [
    "ErrorDetails",
    "ErrorResponse",
    "CircuitBreakerStatus",
    "HealthResponse",
    "JobCounters",
    "LivenessResponse",
    "MetricsResponse",
    "ServiceHealth",
    "OptimizationMetadata",
    "OptimizeResponse",
]

"""
Health check API endpoints.

Routes:
- GET /health - Dependency probe, breaker state, and job counters (503 when unavailable)
- GET /health/live - Process liveness only
- POST /health/circuit/reset - Operator reset of the circuit breaker

Dependencies: doc_optimizer.core.health_monitor, doc_optimizer.core.resilience
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from doc_optimizer.api.deps import get_circuit_breaker, get_health_monitor, get_metrics_tracker
from doc_optimizer.core.health_monitor import HealthMonitor, HealthStatus
from doc_optimizer.core.metrics_tracker import MetricsTracker
from doc_optimizer.core.resilience import CircuitBreaker
from doc_optimizer.models import (
    CircuitBreakerStatus,
    HealthResponse,
    JobCounters,
    LivenessResponse,
    ServiceHealth,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check(
    monitor: HealthMonitor = Depends(get_health_monitor),
    breaker: CircuitBreaker = Depends(get_circuit_breaker),
    tracker: MetricsTracker = Depends(get_metrics_tracker),
):
    """
    Probe inference server, model, and storage.

    Runs a fresh probe on every call. Status is `unavailable` (HTTP 503) when
    the inference server or storage is down and `degraded` when only the
    model is missing.
    """
    report = await monitor.check()
    metrics = tracker.snapshot()

    body = HealthResponse(
        status=report.status.value,
        services=ServiceHealth(inference=report.inference, model=report.model, storage=report.storage),
        circuit_breaker=CircuitBreakerStatus(**breaker.snapshot().to_dict()),
        jobs=JobCounters(
            active=metrics.active_jobs,
            started=metrics.jobs_started,
            succeeded=metrics.jobs_succeeded,
            failed=metrics.jobs_failed,
            cancelled=metrics.jobs_cancelled,
        ),
        errors=report.errors,
        last_check=report.checked_at.isoformat(),
        uptime_seconds=round(monitor.uptime_seconds, 3),
    )
    status_code = 503 if report.status is HealthStatus.UNAVAILABLE else 200
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.get("/live", response_model=LivenessResponse)
async def liveness(monitor: HealthMonitor = Depends(get_health_monitor)) -> LivenessResponse:
    """Process liveness; touches no dependency."""
    return LivenessResponse(uptime_seconds=round(monitor.uptime_seconds, 3))


@router.post("/circuit/reset", response_model=CircuitBreakerStatus)
async def reset_circuit(breaker: CircuitBreaker = Depends(get_circuit_breaker)) -> CircuitBreakerStatus:
    """Force the circuit breaker closed."""
    await breaker.reset()
    logger.warning("Circuit breaker reset by operator", extra={"breaker": breaker.name})
    return CircuitBreakerStatus(**breaker.snapshot().to_dict())

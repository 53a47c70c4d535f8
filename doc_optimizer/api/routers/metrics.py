"""
Metrics API endpoint.

Routes: GET /metrics

Dependencies: doc_optimizer.core.metrics_tracker
System role: Job and attempt counters for operators
"""

from fastapi import APIRouter, Depends

from doc_optimizer.api.deps import get_circuit_breaker, get_metrics_tracker
from doc_optimizer.core.metrics_tracker import MetricsTracker
from doc_optimizer.core.resilience import CircuitBreaker
from doc_optimizer.models import CircuitBreakerStatus, MetricsResponse

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
async def get_metrics(
    tracker: MetricsTracker = Depends(get_metrics_tracker),
    breaker: CircuitBreaker = Depends(get_circuit_breaker),
) -> MetricsResponse:
    """Current tracker snapshot plus breaker state."""
    return MetricsResponse(
        **tracker.snapshot().to_dict(),
        circuit_breaker=CircuitBreakerStatus(**breaker.snapshot().to_dict()),
    )

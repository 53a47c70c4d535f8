"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    ServiceCache,
    get_artifact_store,
    get_circuit_breaker,
    get_health_monitor,
    get_ingestion_validator,
    get_metrics_tracker,
    get_pipeline,
    get_service_cache,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "get_artifact_store",
    "get_circuit_breaker",
    "get_health_monitor",
    "get_ingestion_validator",
    "get_metrics_tracker",
    "get_pipeline",
    "get_service_cache",
    "get_settings_dependency",
]

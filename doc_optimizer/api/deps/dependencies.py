"""
Dependency injection container.

Builds the process-wide service graph once and exposes FastAPI dependency
factories over it.

Dependencies: doc_optimizer.configs, doc_optimizer.boundary, doc_optimizer.core
System role: DI container for service injection
"""

from functools import lru_cache

from doc_optimizer.api.routers.router_utils.upload_utils import IngestionValidator
from doc_optimizer.boundary.inference import OllamaClient
from doc_optimizer.boundary.storage import LocalArtifactStore
from doc_optimizer.configs import Settings, get_settings
from doc_optimizer.core.health_monitor import HealthMonitor
from doc_optimizer.core.metrics_tracker import MetricsTracker
from doc_optimizer.core.optimization import OptimizationPipeline
from doc_optimizer.core.optimization.tasks import ChunkingTask, ContentExtractor, TimeoutPolicy
from doc_optimizer.core.resilience import BoundedScheduler, CircuitBreaker, ResilientInvoker


class ServiceCache:
    """
    Container for cached service instances.

    The breaker, invoker (and its warm-up flag), and tracker are shared by
    every request in the process.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings
        self._store = None
        self._client = None
        self._breaker = None
        self._invoker = None
        self._pipeline = None
        self._validator = None
        self._tracker = None
        self._health_monitor = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def store(self) -> LocalArtifactStore:
        """Get cached artifact store."""
        if self._store is None:
            self._store = LocalArtifactStore(self.settings.upload.upload_dir)
        return self._store

    @property
    def client(self) -> OllamaClient:
        """Get cached inference client."""
        if self._client is None:
            inference = self.settings.inference
            self._client = OllamaClient(
                base_url=inference.base_url,
                liveness_path=inference.liveness_path,
                connect_timeout=inference.connect_timeout_seconds,
            )
        return self._client

    @property
    def tracker(self) -> MetricsTracker:
        if self._tracker is None:
            self._tracker = MetricsTracker()
        return self._tracker

    @property
    def breaker(self) -> CircuitBreaker:
        """Get the process-wide circuit breaker."""
        if self._breaker is None:
            breaker = self.settings.breaker
            self._breaker = CircuitBreaker(
                failure_threshold=breaker.failure_threshold,
                success_threshold=breaker.success_threshold,
                cooldown_seconds=breaker.cooldown_seconds,
                half_open_max_calls=breaker.half_open_max_calls,
            )
        return self._breaker

    @property
    def invoker(self) -> ResilientInvoker:
        """Get cached resilient invoker."""
        if self._invoker is None:
            retry = self.settings.retry
            self._invoker = ResilientInvoker(
                client=self.client,
                breaker=self.breaker,
                model=self.settings.inference.model,
                max_attempts=retry.max_attempts,
                base_delay=retry.base_delay_seconds,
                jitter=retry.jitter_seconds,
                prompt_style=self.settings.inference.prompt_style,
                observer=self.tracker.record_attempt,
            )
        return self._invoker

    @property
    def pipeline(self) -> OptimizationPipeline:
        """Get cached optimization pipeline."""
        if self._pipeline is None:
            scheduler = BoundedScheduler(
                invoker=self.invoker,
                timeout_policy=TimeoutPolicy(self.settings.timeouts),
                concurrency_limit=self.settings.chunk.concurrency_limit,
            )
            self._pipeline = OptimizationPipeline(
                store=self.store,
                extractor=ContentExtractor(),
                chunker=ChunkingTask(max_size=self.settings.chunk.max_size),
                scheduler=scheduler,
            )
        return self._pipeline

    @property
    def validator(self) -> IngestionValidator:
        if self._validator is None:
            self._validator = IngestionValidator(self.store, self.settings.upload)
        return self._validator

    @property
    def health_monitor(self) -> HealthMonitor:
        """Get cached health monitor."""
        if self._health_monitor is None:
            self._health_monitor = HealthMonitor(
                client=self.client,
                store=self.store,
                model=self.settings.inference.model,
                tracker=self.tracker,
                probe_timeout=self.settings.inference.health_check_timeout_seconds,
                interval=self.settings.health.check_interval_seconds,
            )
        return self._health_monitor

    async def aclose(self) -> None:
        """Stop background work and close network clients."""
        if self._health_monitor is not None:
            await self._health_monitor.stop()
        if self._client is not None:
            await self._client.aclose()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._store = None
        self._client = None
        self._breaker = None
        self._invoker = None
        self._pipeline = None
        self._validator = None
        self._tracker = None
        self._health_monitor = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_artifact_store() -> LocalArtifactStore:
    return get_service_cache().store


def get_ingestion_validator() -> IngestionValidator:
    return get_service_cache().validator


def get_pipeline() -> OptimizationPipeline:
    """
    Get optimization pipeline instance.

    Returns:
        OptimizationPipeline: Pipeline wired to the shared invoker and breaker
    """
    return get_service_cache().pipeline


def get_metrics_tracker() -> MetricsTracker:
    return get_service_cache().tracker


def get_circuit_breaker() -> CircuitBreaker:
    return get_service_cache().breaker


def get_health_monitor() -> HealthMonitor:
    return get_service_cache().health_monitor

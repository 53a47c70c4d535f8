"""
Inference and storage health monitor.

Probes the inference server, the configured model, and the artifact store,
and derives the status the service advertises to external monitoring.
Runs periodically as a background task started by the app lifespan.

Dependencies: asyncio (stdlib), doc_optimizer.boundary, doc_optimizer.core.metrics_tracker
System role: Health probe for the /health endpoint
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol

from doc_optimizer.core.exceptions import InferenceError
from doc_optimizer.core.metrics_tracker import MetricsTracker

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Service status advertised to monitoring."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"


class ProbeClient(Protocol):
    async def ping(self, timeout: float) -> bool: ...

    async def model_available(self, model: str, timeout: float) -> bool: ...


class ProbeStore(Protocol):
    async def check(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Result of one health probe."""

    status: HealthStatus
    inference: bool
    model: bool
    storage: bool
    checked_at: datetime
    errors: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "services": {
                "inference": self.inference,
                "model": self.model,
                "storage": self.storage,
            },
            "errors": dict(self.errors),
            "last_check": self.checked_at.isoformat(),
        }


def derive_status(inference: bool, model: bool, storage: bool) -> HealthStatus:
    """Server or storage down means unavailable; a missing model only degrades."""
    if not inference or not storage:
        return HealthStatus.UNAVAILABLE
    if not model:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthMonitor:
    """Probe dependencies on demand or on an interval."""

    def __init__(
        self,
        client: ProbeClient,
        store: ProbeStore,
        model: str,
        tracker: MetricsTracker,
        probe_timeout: float = 2.0,
        interval: float = 30.0,
    ) -> None:
        self._client = client
        self._store = store
        self._model = model
        self._tracker = tracker
        self._probe_timeout = probe_timeout
        self._interval = interval
        self._started_at = time.monotonic()
        self._last_report: HealthReport | None = None
        self._task: asyncio.Task | None = None

    @property
    def last_report(self) -> HealthReport | None:
        return self._last_report

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    async def check(self) -> HealthReport:
        """Run all probes concurrently and record the report."""
        inference, model, storage = await asyncio.gather(
            self._probe(self._client.ping(self._probe_timeout)),
            self._probe(self._client.model_available(self._model, self._probe_timeout)),
            self._probe(self._store.check()),
        )
        errors = {
            name: error
            for name, (_, error) in (("inference", inference), ("model", model), ("storage", storage))
            if error
        }
        report = HealthReport(
            status=derive_status(inference[0], model[0], storage[0]),
            inference=inference[0],
            model=model[0],
            storage=storage[0],
            checked_at=datetime.now(timezone.utc),
            errors=errors,
        )
        self._last_report = report
        self._tracker.record_health(report.to_dict())

        if report.status is not HealthStatus.HEALTHY:
            logger.warning("Health check not healthy", extra={"status": report.status.value, "errors": errors})
        return report

    async def _probe(self, probe) -> tuple[bool, str | None]:
        try:
            return bool(await probe), None
        except InferenceError as e:
            return False, e.kind.value
        except OSError as e:
            return False, f"{type(e).__name__}: {e}"

    def start(self) -> None:
        """Start the periodic probe task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="health-monitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            try:
                await self.check()
            except Exception as e:
                logger.exception("Health check crashed", extra={"error": str(e)})
            await asyncio.sleep(self._interval)

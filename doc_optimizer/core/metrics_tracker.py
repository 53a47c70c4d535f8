"""
Job metrics tracking.

Process-wide counters for optimization jobs and inference attempts, plus the
last health report. Every mutation and read goes through one lock.

Dependencies: threading (stdlib), doc_optimizer.core.optimization.models
System role: Health/metrics state owner
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from doc_optimizer.core.optimization.models import AttemptOutcome, InvocationAttempt


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Point-in-time copy of tracker counters."""

    jobs_started: int
    jobs_succeeded: int
    jobs_failed: int
    jobs_cancelled: int
    active_jobs: int
    average_processing_time_ms: float
    total_attempts: int
    failed_attempts: int
    failures_by_code: dict[str, int] = field(default_factory=dict)
    last_health: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "jobs_started": self.jobs_started,
            "jobs_succeeded": self.jobs_succeeded,
            "jobs_failed": self.jobs_failed,
            "jobs_cancelled": self.jobs_cancelled,
            "active_jobs": self.active_jobs,
            "average_processing_time_ms": round(self.average_processing_time_ms, 2),
            "total_attempts": self.total_attempts,
            "failed_attempts": self.failed_attempts,
            "failures_by_code": dict(self.failures_by_code),
            "last_health": self.last_health,
        }


class MetricsTracker:
    """Running job counters with an incrementally updated average duration."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = 0
        self._succeeded = 0
        self._failed = 0
        self._cancelled = 0
        self._active = 0
        self._avg_ms = 0.0
        self._attempts = 0
        self._failed_attempts = 0
        self._failures_by_code: Counter[str] = Counter()
        self._last_health: dict[str, Any] | None = None

    def job_started(self) -> None:
        with self._lock:
            self._started += 1
            self._active += 1

    def job_succeeded(self, processing_time_ms: float) -> None:
        with self._lock:
            self._succeeded += 1
            self._active = max(self._active - 1, 0)
            n = self._succeeded
            self._avg_ms = (self._avg_ms * (n - 1) + processing_time_ms) / n

    def job_failed(self, code: str) -> None:
        with self._lock:
            self._failed += 1
            self._active = max(self._active - 1, 0)
            self._failures_by_code[code] += 1

    def job_cancelled(self) -> None:
        with self._lock:
            self._cancelled += 1
            self._active = max(self._active - 1, 0)

    def record_attempt(self, attempt: InvocationAttempt) -> None:
        with self._lock:
            self._attempts += 1
            if attempt.outcome is not AttemptOutcome.SUCCESS:
                self._failed_attempts += 1

    def record_health(self, report: dict[str, Any]) -> None:
        with self._lock:
            self._last_health = dict(report)

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                jobs_started=self._started,
                jobs_succeeded=self._succeeded,
                jobs_failed=self._failed,
                jobs_cancelled=self._cancelled,
                active_jobs=self._active,
                average_processing_time_ms=self._avg_ms,
                total_attempts=self._attempts,
                failed_attempts=self._failed_attempts,
                failures_by_code=dict(self._failures_by_code),
                last_health=dict(self._last_health) if self._last_health else None,
            )

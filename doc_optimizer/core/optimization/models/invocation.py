"""
Invocation attempt records.

Ephemeral per-attempt records produced by the resilient invoker and consumed
by its retry loop and the metrics tracker. Never persisted.

Dependencies: dataclasses (stdlib)
System role: Attempt bookkeeping for inference calls
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from doc_optimizer.core.exceptions import FailureKind


class AttemptOutcome(str, Enum):
    """Result class of one inference attempt."""

    SUCCESS = "success"
    RETRYABLE_ERROR = "retryable_error"
    FATAL_ERROR = "fatal_error"


@dataclass(frozen=True, slots=True)
class InvocationAttempt:
    """One attempt at optimizing one chunk."""

    chunk_ordinal: int
    attempt_number: int
    started_at: datetime
    outcome: AttemptOutcome
    elapsed_ms: float
    failure_kind: FailureKind | None = None


@dataclass(slots=True)
class InvocationResult:
    """Optimized text for one chunk plus the attempts it took."""

    chunk_ordinal: int
    text: str
    attempts: list[InvocationAttempt] = field(default_factory=list)

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

"""
Job result domain model.

Terminal outcome of driving one document's chunks through the invoker.

Dependencies: dataclasses (stdlib)
System role: Return type of BoundedScheduler.run()
"""

from dataclasses import dataclass, field
from enum import Enum

from doc_optimizer.core.exceptions import OptimizerException


class JobStatus(str, Enum):
    """Terminal job status."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class JobResult:
    """
    Result of one optimization job.

    `outputs` is ordered by chunk ordinal. On failure it holds the outputs of
    the chunks that did complete, in ordinal order, and `error` holds the
    first fatal or retry-exhausted failure.
    """

    outputs: tuple[str, ...]
    total_attempts: int
    elapsed_ms: float
    status: JobStatus
    total_chunks: int
    error: OptimizerException | None = field(default=None)

    @property
    def completed(self) -> bool:
        return self.status is JobStatus.COMPLETED

    @property
    def chunks_processed(self) -> int:
        return len(self.outputs)


@dataclass(slots=True)
class JobProgress:
    """
    Running tally of a job while its chunks are in flight.

    Owned by the caller of BoundedScheduler.run() so it stays readable after
    the run is cancelled or times out. Attempts of an invocation cut short
    by cancellation are not counted.
    """

    total_chunks: int = 0
    outputs: dict[int, str] = field(default_factory=dict)
    total_attempts: int = 0

    @property
    def chunks_processed(self) -> int:
        return len(self.outputs)

    def ordered_outputs(self) -> tuple[str, ...]:
        return tuple(self.outputs[ordinal] for ordinal in sorted(self.outputs))

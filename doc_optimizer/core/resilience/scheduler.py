"""
Bounded chunk scheduler.

Drives an ordered chunk sequence through the timeout policy and resilient
invoker with at most N invocations in flight, reassembling outputs by ordinal.

Dependencies: asyncio (stdlib), doc_optimizer.core.resilience.invoker
System role: Per-job concurrency control and result aggregation
"""

import asyncio
import logging
import time
from typing import Protocol

from doc_optimizer.core.exceptions import OptimizerException
from doc_optimizer.core.optimization.models import (
    InvocationResult,
    JobProgress,
    JobResult,
    JobStatus,
    TextChunk,
)
from doc_optimizer.core.optimization.tasks.timeout_policy import TimeoutPolicy

logger = logging.getLogger(__name__)


class ChunkInvoker(Protocol):
    """The slice of ResilientInvoker the scheduler depends on."""

    @property
    def warmed_up(self) -> bool: ...

    async def invoke(self, chunk: TextChunk, timeout: float) -> InvocationResult: ...


class BoundedScheduler:
    """
    Run chunk invocations under a concurrency ceiling.

    With `concurrency_limit=1` chunks are processed strictly in order. On the
    first failure no further chunks are started; invocations already in
    flight finish, and the JobResult reports that first failure.
    """

    def __init__(
        self,
        invoker: ChunkInvoker,
        timeout_policy: TimeoutPolicy,
        concurrency_limit: int = 1,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self._invoker = invoker
        self._timeout_policy = timeout_policy
        self._concurrency_limit = concurrency_limit

    @property
    def concurrency_limit(self) -> int:
        return self._concurrency_limit

    async def run(self, chunks: list[TextChunk], progress: JobProgress | None = None) -> JobResult:
        """
        Process every chunk and aggregate the outcome.

        Args:
            chunks: Chunks with dense ordinals
            progress: Tally updated as chunks finish; readable after
                cancellation

        Returns:
            JobResult: Completed with every output in ordinal order, or failed
                with the first fatal/exhausted error

        Raises:
            asyncio.CancelledError: Caller cancelled the job; every in-flight
                and queued invocation of this job is cancelled
        """
        start = time.perf_counter()
        ordered = sorted(chunks, key=lambda c: c.ordinal)
        progress = progress if progress is not None else JobProgress()
        progress.total_chunks = len(ordered)
        failures: list[OptimizerException] = []
        queue = iter(ordered)

        async def worker(worker_id: int) -> None:
            for chunk in queue:
                if failures:
                    return
                timeout = self._timeout_policy(chunk.char_length, not self._invoker.warmed_up)
                logger.debug(
                    "Invoking chunk",
                    extra={"worker": worker_id, "chunk_ordinal": chunk.ordinal, "timeout_s": timeout},
                )
                try:
                    result = await self._invoker.invoke(chunk, timeout)
                except OptimizerException as e:
                    progress.total_attempts += e.details.get("attempts", 0)
                    failures.append(e)
                    logger.warning(
                        "Chunk failed, stopping job",
                        extra={"chunk_ordinal": chunk.ordinal, "error_code": e.code.value},
                    )
                    return
                progress.total_attempts += result.attempt_count
                progress.outputs[chunk.ordinal] = result.text

        workers = min(self._concurrency_limit, len(ordered)) or 1
        tasks = [asyncio.create_task(worker(i)) for i in range(workers)]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        completed = not failures and progress.chunks_processed == len(ordered)
        return JobResult(
            outputs=progress.ordered_outputs(),
            total_attempts=progress.total_attempts,
            elapsed_ms=elapsed_ms,
            status=JobStatus.COMPLETED if completed else JobStatus.FAILED,
            total_chunks=len(ordered),
            error=failures[0] if failures else None,
        )

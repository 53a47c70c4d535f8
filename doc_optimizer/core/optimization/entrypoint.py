"""
Document optimization pipeline orchestrator.

Coordinates extraction, chunking, and bounded scheduling of inference calls
for one uploaded artifact, and owns that artifact's deletion.

Dependencies: All task modules, doc_optimizer.core.resilience, doc_optimizer.boundary.storage
System role: Pipeline orchestration (coordinates only)
"""

import asyncio
import logging
import time

from doc_optimizer.boundary.storage import LocalArtifactStore
from doc_optimizer.core.exceptions import JobTimeoutError, OptimizerException
from doc_optimizer.core.resilience.scheduler import BoundedScheduler

from .models import JobProgress, JobResult, OptimizationResult, UploadArtifact
from .tasks import ChunkingTask, ContentExtractor
from .tasks.chunking_task import PARAGRAPH_SEPARATOR

logger = logging.getLogger(__name__)


class OptimizationPipeline:
    """Orchestrate document optimization: extract -> chunk -> schedule -> join."""

    def __init__(
        self,
        store: LocalArtifactStore,
        extractor: ContentExtractor,
        chunker: ChunkingTask,
        scheduler: BoundedScheduler,
    ) -> None:
        """
        Initialize pipeline with its stages.

        Args:
            store: Artifact store used to release the upload
            extractor: Text extraction stage
            chunker: Chunking stage
            scheduler: Bounded scheduler driving the resilient invoker
        """
        self._store = store
        self._extractor = extractor
        self._chunker = chunker
        self._scheduler = scheduler

    async def optimize(self, artifact: UploadArtifact, timeout: float | None = None) -> OptimizationResult:
        """
        Optimize one uploaded document.

        Takes ownership of the artifact: it is deleted when this call
        returns, raises, or is cancelled.

        Args:
            artifact: Validated upload
            timeout: Budget in seconds for the whole job, or None for no limit

        Returns:
            OptimizationResult: Joined output and processing metadata

        Raises:
            ContentError: Extraction failed or document empty
            ServiceUnavailableError: Inference failed; details carry attempts,
                elapsed_ms, chunks_processed, and total_chunks
            JobTimeoutError: Budget exceeded; details carry the same progress
        """
        start = time.perf_counter()
        progress = JobProgress()
        async with self._store.lease(artifact):
            try:
                async with asyncio.timeout(timeout) as budget:
                    job = await self._run(artifact, progress)
            except TimeoutError as e:
                if not budget.expired():
                    raise
                raise self._timed_out(artifact, timeout, progress, start) from e
            elapsed_ms = (time.perf_counter() - start) * 1000

            if not job.completed:
                error: OptimizerException = job.error
                error.details.update(
                    {
                        "attempts": job.total_attempts,
                        "elapsed_ms": round(elapsed_ms, 2),
                        "chunks_processed": job.chunks_processed,
                        "total_chunks": job.total_chunks,
                    }
                )
                raise error

        logger.info(
            "Document optimized",
            extra={
                "file_name": artifact.original_filename,
                "attempts": job.total_attempts,
                "processing_time_ms": round(elapsed_ms, 2),
            },
        )
        return OptimizationResult(
            optimized_content=PARAGRAPH_SEPARATOR.join(job.outputs),
            attempts=job.total_attempts,
            processing_time_ms=elapsed_ms,
            chunks_processed=job.chunks_processed,
            total_chunks=job.total_chunks,
            filename=artifact.original_filename,
        )

    async def _run(self, artifact: UploadArtifact, progress: JobProgress) -> JobResult:
        text = await self._extractor.extract(artifact)
        chunks = self._chunker.chunk(text)
        progress.total_chunks = len(chunks)

        logger.info(
            "Optimizing document",
            extra={
                "file_name": artifact.original_filename,
                "characters": len(text),
                "total_chunks": len(chunks),
                "concurrency_limit": self._scheduler.concurrency_limit,
            },
        )
        return await self._scheduler.run(chunks, progress)

    def _timed_out(
        self,
        artifact: UploadArtifact,
        timeout: float,
        progress: JobProgress,
        start: float,
    ) -> JobTimeoutError:
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.warning(
            "Optimization exceeded its time budget",
            extra={
                "file_name": artifact.original_filename,
                "timeout_seconds": timeout,
                "chunks_processed": progress.chunks_processed,
                "total_chunks": progress.total_chunks,
            },
        )
        return JobTimeoutError(
            f"Optimization did not finish within {timeout:g}s",
            attempts=progress.total_attempts,
            details={
                "timeout_seconds": timeout,
                "file_name": artifact.original_filename,
                "elapsed_ms": elapsed_ms,
                "chunks_processed": progress.chunks_processed,
                "total_chunks": progress.total_chunks,
            },
        )

"""Tests for the optimization pipeline orchestrator."""

import asyncio

import pytest

from doc_optimizer.core.exceptions import (
    ErrorCode,
    ExtractionError,
    FailureKind,
    JobTimeoutError,
    RetriesExhaustedError,
)
from doc_optimizer.core.optimization import OptimizationPipeline
from doc_optimizer.core.optimization.tasks import ChunkingTask, ContentExtractor, TimeoutPolicy
from doc_optimizer.core.resilience import BoundedScheduler, CircuitBreaker, ResilientInvoker
from tests.helpers import ScriptedClient, inference_error


def _pipeline(store, client, fake_clock, recording_sleep, timeout_settings, max_size=1000, extractor=None):
    invoker = ResilientInvoker(client, CircuitBreaker(clock=fake_clock), model="m", sleep=recording_sleep)
    return OptimizationPipeline(
        store=store,
        extractor=extractor or ContentExtractor(),
        chunker=ChunkingTask(max_size=max_size),
        scheduler=BoundedScheduler(invoker, TimeoutPolicy(timeout_settings)),
    )


@pytest.fixture
def build(artifact_store, fake_clock, recording_sleep, timeout_settings):
    def _build(client, **kwargs):
        return _pipeline(artifact_store, client, fake_clock, recording_sleep, timeout_settings, **kwargs)

    return _build


class TestPipelineSuccess:
    """End-to-end with a scripted model."""

    @pytest.mark.asyncio
    async def test_outputs_joined_in_order(self, build, make_artifact) -> None:
        """Should join chunk outputs with blank lines in ordinal order."""
        client = ScriptedClient(default=lambda prompt: prompt.rsplit("\n", 1)[-1].upper())
        artifact = make_artifact(b"first para.\n\nsecond para.\n\nthird para.")

        result = await build(client, max_size=12).optimize(artifact)

        assert result.optimized_content == "FIRST PARA.\n\nSECOND PARA.\n\nTHIRD PARA."
        assert result.total_chunks == 3
        assert result.chunks_processed == 3
        assert result.attempts == 3
        assert result.filename == "resume.txt"
        assert not artifact.path.exists()

    @pytest.mark.asyncio
    async def test_five_kilobyte_scenario(self, build, make_artifact) -> None:
        """Should complete a ~5 KB document with one attempt per chunk."""
        paragraph = ("Delivered quarterly targets ahead of schedule. " * 4).strip()
        artifact = make_artifact("\n\n".join([paragraph] * 27).encode())
        client = ScriptedClient()

        result = await build(client).optimize(artifact)

        assert result.total_chunks == result.chunks_processed
        assert result.attempts == result.total_chunks == len(client.calls)
        assert 5 <= result.total_chunks <= 7


class TestPipelineFailures:
    """Failure propagation and cleanup."""

    @pytest.mark.asyncio
    async def test_inference_failure_carries_progress(self, build, make_artifact) -> None:
        """Should raise with attempts, elapsed time, and chunk progress."""
        client = ScriptedClient(["ok-0"], default=inference_error(FailureKind.CONNECTION_REFUSED))
        artifact = make_artifact(b"one.\n\ntwo.\n\nthree.")

        with pytest.raises(RetriesExhaustedError) as exc_info:
            await build(client, max_size=5).optimize(artifact)

        details = exc_info.value.details
        assert exc_info.value.code is ErrorCode.CONNECTION_ERROR
        assert details["attempts"] == 6
        assert details["chunks_processed"] == 1
        assert details["total_chunks"] == 3
        assert details["elapsed_ms"] >= 0
        assert not artifact.path.exists()

    @pytest.mark.asyncio
    async def test_extraction_failure_deletes_artifact(self, build, make_artifact) -> None:
        """Should delete the artifact when extraction fails."""
        artifact = make_artifact(b"\xff\xfe")
        client = ScriptedClient()

        with pytest.raises(ExtractionError):
            await build(client).optimize(artifact)

        assert not artifact.path.exists()
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_cancellation_deletes_artifact(self, build, make_artifact) -> None:
        """Should delete the artifact when the job is cancelled mid-inference."""
        started = asyncio.Event()

        class HangingClient:
            async def generate(self, model, prompt, timeout):
                started.set()
                await asyncio.sleep(3600)

        artifact = make_artifact(b"Some text.")
        task = asyncio.create_task(build(HangingClient()).optimize(artifact))
        await started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not artifact.path.exists()

    @pytest.mark.asyncio
    async def test_job_budget_reports_progress(self, build, make_artifact) -> None:
        """Should raise JobTimeoutError carrying the effort spent before the budget ran out."""

        class FirstThenHangClient:
            def __init__(self) -> None:
                self.calls = 0

            async def generate(self, model, prompt, timeout):
                self.calls += 1
                if self.calls == 1:
                    return "first"
                await asyncio.sleep(3600)

        artifact = make_artifact(b"one.\n\ntwo.\n\nthree.")

        with pytest.raises(JobTimeoutError) as exc_info:
            await build(FirstThenHangClient(), max_size=5).optimize(artifact, timeout=0.1)

        details = exc_info.value.details
        assert exc_info.value.code is ErrorCode.JOB_TIMEOUT
        assert details["attempts"] == 1
        assert details["chunks_processed"] == 1
        assert details["total_chunks"] == 3
        assert details["elapsed_ms"] >= 50
        assert details["timeout_seconds"] == 0.1
        assert not artifact.path.exists()

    @pytest.mark.asyncio
    async def test_budget_unused_when_job_finishes(self, build, make_artifact) -> None:
        """Should return normally when the job completes inside its budget."""
        result = await build(ScriptedClient()).optimize(make_artifact(b"Quick job."), timeout=5)

        assert result.chunks_processed == 1

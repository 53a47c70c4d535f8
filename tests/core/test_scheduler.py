"""Tests for the bounded chunk scheduler."""

import asyncio

import pytest

from doc_optimizer.core.exceptions import ErrorCode, RetriesExhaustedError
from doc_optimizer.core.optimization.models import InvocationResult, JobProgress, JobStatus, TextChunk
from doc_optimizer.core.optimization.tasks import TimeoutPolicy
from doc_optimizer.core.resilience import BoundedScheduler, CircuitBreaker, ResilientInvoker
from tests.helpers import ScriptedClient


def _chunks(count: int) -> list[TextChunk]:
    return [TextChunk(ordinal=i, text=f"chunk {i} text.") for i in range(count)]


class DelayedInvoker:
    """Invoker stub whose calls finish in reverse order."""

    def __init__(self, fail_ordinal: int | None = None) -> None:
        self.warmed_up = True
        self.started: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_ordinal = fail_ordinal

    async def invoke(self, chunk: TextChunk, timeout: float) -> InvocationResult:
        self.started.append(chunk.ordinal)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01 * (10 - chunk.ordinal))
            if chunk.ordinal == self.fail_ordinal:
                raise RetriesExhaustedError("down", attempts=5)
            return InvocationResult(chunk_ordinal=chunk.ordinal, text=f"out-{chunk.ordinal}")
        finally:
            self.in_flight -= 1


class TestScheduling:
    """Ordering and concurrency."""

    @pytest.mark.asyncio
    async def test_sequential_job_completes(self, fake_clock, recording_sleep, timeout_settings) -> None:
        """Should process five chunks with five attempts at concurrency 1."""
        client = ScriptedClient()
        invoker = ResilientInvoker(
            client,
            CircuitBreaker(clock=fake_clock),
            model="mistral:latest",
            sleep=recording_sleep,
        )
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings), concurrency_limit=1)

        job = await scheduler.run(_chunks(5))

        assert job.status is JobStatus.COMPLETED
        assert len(job.outputs) == 5
        assert job.total_attempts == 5
        assert job.outputs == tuple(f"optimized-{i}" for i in range(1, 6))

    @pytest.mark.asyncio
    async def test_first_call_uses_cold_budget(self, fake_clock, recording_sleep, timeout_settings) -> None:
        """Should give the first call the cold-start budget and later calls the warm one."""
        client = ScriptedClient()
        invoker = ResilientInvoker(client, CircuitBreaker(clock=fake_clock), model="m", sleep=recording_sleep)
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings))

        await scheduler.run(_chunks(2))

        assert client.calls[0]["timeout"] == pytest.approx(300.0)
        assert client.calls[1]["timeout"] < 120.0

    @pytest.mark.asyncio
    async def test_order_preserved_with_concurrency(self, timeout_settings) -> None:
        """Should reassemble by ordinal even when calls finish out of order."""
        invoker = DelayedInvoker()
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings), concurrency_limit=3)

        job = await scheduler.run(list(reversed(_chunks(6))))

        assert job.completed
        assert job.outputs == tuple(f"out-{i}" for i in range(6))
        assert invoker.max_in_flight <= 3
        assert invoker.max_in_flight > 1

    @pytest.mark.asyncio
    async def test_concurrency_one_is_sequential(self, timeout_settings) -> None:
        """Should never run two calls at once with a limit of 1."""
        invoker = DelayedInvoker()
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings), concurrency_limit=1)

        await scheduler.run(_chunks(4))

        assert invoker.max_in_flight == 1
        assert invoker.started == [0, 1, 2, 3]

    def test_invalid_concurrency_rejected(self, timeout_settings) -> None:
        """Should reject a limit below one."""
        with pytest.raises(ValueError):
            BoundedScheduler(DelayedInvoker(), TimeoutPolicy(timeout_settings), concurrency_limit=0)


class TestFailureHandling:
    """First failure stops the job."""

    @pytest.mark.asyncio
    async def test_stops_after_failure(self, timeout_settings) -> None:
        """Should start no further chunks after a failure at concurrency 1."""
        invoker = DelayedInvoker(fail_ordinal=1)
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings), concurrency_limit=1)

        job = await scheduler.run(_chunks(4))

        assert job.status is JobStatus.FAILED
        assert invoker.started == [0, 1]
        assert job.outputs == ("out-0",)
        assert job.chunks_processed == 1
        assert job.total_chunks == 4
        assert job.error.code is ErrorCode.CONNECTION_ERROR
        assert job.total_attempts == 5

    @pytest.mark.asyncio
    async def test_cancellation_cancels_in_flight(self, timeout_settings) -> None:
        """Should cancel every worker when the job is cancelled."""
        started = asyncio.Event()
        cancelled: list[int] = []

        class HangingInvoker:
            warmed_up = True

            async def invoke(self, chunk, timeout):
                started.set()
                try:
                    await asyncio.sleep(3600)
                except asyncio.CancelledError:
                    cancelled.append(chunk.ordinal)
                    raise

        scheduler = BoundedScheduler(HangingInvoker(), TimeoutPolicy(timeout_settings), concurrency_limit=2)
        task = asyncio.create_task(scheduler.run(_chunks(4)))
        await started.wait()
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert sorted(cancelled) == [0, 1]

    @pytest.mark.asyncio
    async def test_progress_survives_cancellation(self, fake_clock, recording_sleep, timeout_settings) -> None:
        """Should leave finished chunks and their attempts in the caller's progress."""
        second_started = asyncio.Event()

        class FirstThenHangClient:
            def __init__(self) -> None:
                self.calls = 0

            async def generate(self, model, prompt, timeout):
                self.calls += 1
                if self.calls == 1:
                    return "first"
                second_started.set()
                await asyncio.sleep(3600)

        invoker = ResilientInvoker(
            FirstThenHangClient(), CircuitBreaker(clock=fake_clock), model="m", sleep=recording_sleep
        )
        scheduler = BoundedScheduler(invoker, TimeoutPolicy(timeout_settings))
        progress = JobProgress()
        task = asyncio.create_task(scheduler.run(_chunks(3), progress))
        await second_started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert progress.total_chunks == 3
        assert progress.chunks_processed == 1
        assert progress.total_attempts == 1
        assert progress.ordered_outputs() == ("first",)

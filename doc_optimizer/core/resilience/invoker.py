"""
Resilient inference invoker.

Wraps one chunk's inference call with circuit-breaker gating, per-call time
budget, and bounded exponential backoff over retryable failures.

Dependencies: tenacity, doc_optimizer.boundary.inference, doc_optimizer.core.resilience
System role: Retry/classification layer between the scheduler and the client
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Protocol

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from doc_optimizer.core.exceptions import (
    CircuitOpenError,
    InferenceError,
    RetriesExhaustedError,
    ServiceUnavailableError,
)
from doc_optimizer.core.optimization.models import (
    AttemptOutcome,
    InvocationAttempt,
    InvocationResult,
    TextChunk,
)
from doc_optimizer.core.optimization.prompts import build_prompt
from doc_optimizer.core.resilience.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

AttemptObserver = Callable[[InvocationAttempt], None]


class InferenceBackend(Protocol):
    """The slice of the inference client the invoker depends on."""

    async def generate(self, model: str, prompt: str, timeout: float) -> str: ...


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, InferenceError) and exc.retryable


class ResilientInvoker:
    """Invoke the model for one chunk with retry, backoff, and breaker gating."""

    def __init__(
        self,
        client: InferenceBackend,
        breaker: CircuitBreaker,
        model: str,
        max_attempts: int = 5,
        base_delay: float = 1.0,
        jitter: float = 0.0,
        prompt_style: str = "standard",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        observer: AttemptObserver | None = None,
    ) -> None:
        """
        Initialize invoker.

        Args:
            client: Inference client
            breaker: Shared circuit breaker
            model: Model identifier
            max_attempts: Maximum attempts per chunk (including the first)
            base_delay: Delay before attempt 2; doubles for each later attempt
            jitter: Upper bound of random seconds added to each delay
            prompt_style: Prompt template name
            sleep: Awaitable sleep used between attempts
            observer: Callback receiving every InvocationAttempt
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._client = client
        self._breaker = breaker
        self._model = model
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._jitter = jitter
        self._prompt_style = prompt_style
        self._sleep = sleep
        self._observer = observer
        self._warmed_up = False

    @property
    def warmed_up(self) -> bool:
        """True once any call in this process has succeeded."""
        return self._warmed_up

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def backoff_delay(self, attempt: int) -> float:
        """Delay slept after failed `attempt` (1-based), before jitter."""
        return self._base_delay * 2 ** (attempt - 1)

    async def invoke(self, chunk: TextChunk, timeout: float) -> InvocationResult:
        """
        Optimize one chunk.

        Args:
            chunk: Chunk to optimize
            timeout: Per-attempt time budget in seconds

        Returns:
            InvocationResult: Optimized text and the attempts made

        Raises:
            CircuitOpenError: Breaker rejected an attempt (no network call made)
            ServiceUnavailableError: Fatal failure, after exactly one attempt
            RetriesExhaustedError: Every attempt failed with a retryable error
        """
        prompt = build_prompt(chunk.text, self._prompt_style)
        attempts: list[InvocationAttempt] = []

        wait = wait_exponential(multiplier=self._base_delay, exp_base=2)
        if self._jitter > 0:
            wait = wait + wait_random(0, self._jitter)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait,
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            before_sleep=self._log_retry(chunk),
            reraise=False,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    text = await self._attempt(chunk, prompt, timeout, attempts)
        except RetryError as e:
            last = e.last_attempt.exception()
            kind = last.kind if isinstance(last, InferenceError) else None
            logger.error(
                "Inference retries exhausted",
                extra={"chunk_ordinal": chunk.ordinal, "attempts": len(attempts)},
            )
            raise RetriesExhaustedError(
                f"Inference service unavailable after {len(attempts)} attempts",
                reason=kind,
                attempts=len(attempts),
                details={"chunk_ordinal": chunk.ordinal},
            ) from last
        except CircuitOpenError as e:
            e.attempts = len(attempts)
            e.details["attempts"] = len(attempts)
            e.details["chunk_ordinal"] = chunk.ordinal
            raise
        except InferenceError as e:
            raise ServiceUnavailableError(
                e.message,
                reason=e.kind,
                attempts=len(attempts),
                details={"chunk_ordinal": chunk.ordinal},
            ) from e

        return InvocationResult(chunk_ordinal=chunk.ordinal, text=text, attempts=attempts)

    async def _attempt(
        self,
        chunk: TextChunk,
        prompt: str,
        timeout: float,
        attempts: list[InvocationAttempt],
    ) -> str:
        await self._breaker.acquire()

        number = len(attempts) + 1
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()
        try:
            text = await self._client.generate(self._model, prompt, timeout)
        except InferenceError as e:
            await self._breaker.record_failure()
            outcome = AttemptOutcome.RETRYABLE_ERROR if e.retryable else AttemptOutcome.FATAL_ERROR
            self._record(
                attempts,
                InvocationAttempt(chunk.ordinal, number, started_at, outcome, _elapsed_ms(start), e.kind),
            )
            logger.warning(
                "Inference attempt failed",
                extra={
                    "chunk_ordinal": chunk.ordinal,
                    "attempt": number,
                    "reason": e.kind.value,
                    "retryable": e.retryable,
                },
            )
            raise
        except BaseException:
            # Cancellation and unexpected errors are not breaker failures
            await asyncio.shield(self._breaker.release())
            raise

        await self._breaker.record_success()
        self._warmed_up = True
        self._record(
            attempts,
            InvocationAttempt(chunk.ordinal, number, started_at, AttemptOutcome.SUCCESS, _elapsed_ms(start)),
        )
        return text

    def _record(self, attempts: list[InvocationAttempt], attempt: InvocationAttempt) -> None:
        attempts.append(attempt)
        if self._observer is not None:
            self._observer(attempt)

    def _log_retry(self, chunk: TextChunk) -> Callable[[RetryCallState], None]:
        def before_sleep(state: RetryCallState) -> None:
            logger.info(
                "Retrying inference call",
                extra={
                    "chunk_ordinal": chunk.ordinal,
                    "attempt": state.attempt_number,
                    "sleep_seconds": state.next_action.sleep if state.next_action else None,
                },
            )

        return before_sleep


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000

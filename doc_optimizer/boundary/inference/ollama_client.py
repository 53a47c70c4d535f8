"""
Ollama inference client.

Async HTTP boundary to the local model server. Supplies the per-call time
budget and classifies every failure into a FailureKind at the call site.
Performs no retries of its own.

Dependencies: httpx, doc_optimizer.core.exceptions
System role: Inference endpoint adapter
"""

import asyncio
import logging
from typing import Any

import httpx

from doc_optimizer.core.exceptions import FailureKind, InferenceError

logger = logging.getLogger(__name__)

_BUSY_STATUSES = frozenset({502, 503, 504})
_MODEL_MISSING_MARKERS = ("model not found", "failed to load model", "not found, try pulling")


class OllamaClient:
    """Thin async client for generate, liveness, and model-availability calls."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        liveness_path: str = "/api/version",
        connect_timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: Inference server base URL
            liveness_path: GET path used as liveness probe
            connect_timeout: TCP connect timeout in seconds
            transport: Optional transport override (tests)
        """
        self._base_url = base_url.rstrip("/")
        self._liveness_path = liveness_path
        self._connect_timeout = connect_timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(None, connect=connect_timeout),
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, model: str, prompt: str, timeout: float) -> str:
        """
        Run one non-streaming generation.

        Args:
            model: Model identifier
            prompt: Full prompt text
            timeout: Total time budget in seconds

        Returns:
            str: Generated text

        Raises:
            InferenceError: Classified failure
        """
        response = await self._request(
            "POST",
            "/api/generate",
            timeout=timeout,
            json={"model": model, "prompt": prompt, "stream": False},
        )
        self._raise_for_status(response)
        payload = self._parse_json(response)

        text = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(text, str) or not text.strip():
            raise InferenceError("No response from inference service", FailureKind.MALFORMED_RESPONSE)
        return text

    async def ping(self, timeout: float) -> bool:
        """
        Liveness probe.

        Raises:
            InferenceError: Server unreachable or timed out
        """
        response = await self._request("GET", self._liveness_path, timeout=timeout)
        return response.status_code == 200

    async def model_available(self, model: str, timeout: float) -> bool:
        """
        Check whether the model is present on the server.

        Returns:
            bool: False when the server reports the model missing

        Raises:
            InferenceError: Server unreachable, timed out, or erroring
        """
        response = await self._request("POST", "/api/show", timeout=timeout, json={"model": model})
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def _request(self, method: str, path: str, timeout: float, **kwargs: Any) -> httpx.Response:
        try:
            return await asyncio.wait_for(self._client.request(method, path, **kwargs), timeout)
        except asyncio.TimeoutError as e:
            raise InferenceError(
                f"Request to inference service timed out after {timeout:.1f}s",
                FailureKind.TIMEOUT,
            ) from e
        except httpx.TimeoutException as e:
            raise InferenceError("Connection to inference service timed out", FailureKind.TIMEOUT) from e
        except httpx.ConnectError as e:
            raise InferenceError(
                "Unable to connect to inference service",
                FailureKind.CONNECTION_REFUSED,
            ) from e
        except httpx.TransportError as e:
            # Dropped connections, protocol errors, resets mid-response
            raise InferenceError(
                f"Connection to inference service lost: {type(e).__name__}",
                FailureKind.CONNECTION_DROPPED,
            ) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        error_text = response.text[:500].lower()
        if status == 404 or any(marker in error_text for marker in _MODEL_MISSING_MARKERS):
            raise InferenceError("Model not found on inference service", FailureKind.MODEL_NOT_FOUND, status)
        if status in _BUSY_STATUSES:
            raise InferenceError("Inference service is busy", FailureKind.SERVICE_BUSY, status)
        raise InferenceError(f"Inference service returned HTTP {status}", FailureKind.HTTP_ERROR, status)

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise InferenceError(
                "Inference service returned a non-JSON body",
                FailureKind.MALFORMED_RESPONSE,
                response.status_code,
            ) from e

"""
Exception hierarchy for the document optimization service.

Provides layered exception structure for pipeline errors.
All exceptions include context for observability and debugging, plus the
error code and status class used to build the boundary error payload.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Status class an error maps to at the HTTP boundary."""

    BAD_INPUT = "bad_input"
    UNPROCESSABLE = "unprocessable"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class ErrorCode(str, Enum):
    """Closed set of error codes surfaced to callers."""

    INVALID_CONTENT_TYPE = "invalid_content_type"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_FILE_TYPE = "invalid_type"
    NO_FILE = "no_file"
    STREAM_ERROR = "stream_error"
    EXTRACTION_FAILED = "extraction_failed"
    EMPTY_CONTENT = "empty_content"
    CIRCUIT_OPEN = "circuit_open"
    CONNECTION_ERROR = "connection_error"
    SERVICE_UNAVAILABLE = "service_unavailable"
    JOB_TIMEOUT = "job_timeout"
    INTERNAL = "internal_error"


class FailureKind(str, Enum):
    """
    Classification of a single inference call failure.

    Assigned once by the network wrapper at the point of failure.
    """

    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    CONNECTION_DROPPED = "connection_dropped"
    SERVICE_BUSY = "service_busy"
    MODEL_NOT_FOUND = "model_not_found"
    MALFORMED_RESPONSE = "malformed_response"
    HTTP_ERROR = "http_error"

    @property
    def retryable(self) -> bool:
        return self in _RETRYABLE_KINDS


_RETRYABLE_KINDS = frozenset(
    {
        FailureKind.TIMEOUT,
        FailureKind.CONNECTION_REFUSED,
        FailureKind.CONNECTION_DROPPED,
        FailureKind.SERVICE_BUSY,
    }
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class OptimizerException(Exception):
    """Base exception for all document optimization errors."""

    code: ErrorCode = ErrorCode.INTERNAL
    category: ErrorCategory = ErrorCategory.INTERNAL
    stage: str = "unknown"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        *,
        stage: str | None = None,
        status: str | None = None,
    ) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
            stage: Pipeline stage that failed (defaults to the class stage)
            status: Processing status label (defaults to the error code)
        """
        self.message = message
        self.details = details or {}
        if stage is not None:
            self.stage = stage
        self.status = status or self.code.value
        self.timestamp = _utc_now()
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_payload(self) -> dict[str, Any]:
        """Build the boundary error payload."""
        return {
            "success": False,
            "error": self.message,
            "category": self.category.value,
            "code": self.code.value,
            "details": {
                "stage": self.stage,
                "status": self.status,
                "timestamp": self.timestamp,
                **self.details,
            },
        }


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------


class IngestionError(OptimizerException):
    """Base class for rejected uploads."""

    category = ErrorCategory.BAD_INPUT
    stage = "file_validation"


class InvalidContentTypeError(IngestionError):
    """Raised when the request body is not multipart/form-data."""

    code = ErrorCode.INVALID_CONTENT_TYPE
    stage = "content_type_validation"


class FileTooLargeError(IngestionError):
    """Raised when the upload exceeds the configured ceiling."""

    code = ErrorCode.FILE_TOO_LARGE

    def __init__(self, limit: int, received: int | None = None) -> None:
        details: dict[str, Any] = {"max_bytes": limit}
        if received is not None:
            details["received_bytes"] = received
        super().__init__(f"File exceeds maximum size of {limit} bytes", details)


class InvalidFileTypeError(IngestionError):
    """Raised when filename extension or MIME type is not allowed."""

    code = ErrorCode.INVALID_FILE_TYPE

    def __init__(self, filename: str, mime_type: str) -> None:
        super().__init__(
            "Invalid file type. Only DOCX and TXT files are allowed.",
            {"filename": filename, "mime_type": mime_type},
        )


class NoFileError(IngestionError):
    """Raised when the multipart body carries no file part."""

    code = ErrorCode.NO_FILE

    def __init__(self) -> None:
        super().__init__("No file was uploaded in the request")


class UploadStreamError(IngestionError):
    """Raised when the upload stream fails or ends prematurely."""

    code = ErrorCode.STREAM_ERROR
    stage = "file_upload"


# ---------------------------------------------------------------------------
# Content errors
# ---------------------------------------------------------------------------


class ContentError(OptimizerException):
    """Base class for documents that cannot be optimized."""

    category = ErrorCategory.UNPROCESSABLE
    stage = "content_extraction"


class ExtractionError(ContentError):
    """Raised when text cannot be extracted from an artifact."""

    code = ErrorCode.EXTRACTION_FAILED

    def __init__(
        self,
        message: str,
        file_type: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        status: str | None = None,
    ) -> None:
        details = details or {}
        if file_type:
            details["file_type"] = file_type
        super().__init__(message, details, status=status)


class EmptyContentError(ContentError):
    """Raised when extraction yields no usable text."""

    code = ErrorCode.EMPTY_CONTENT

    def __init__(self, message: str = "Extracted content is empty") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Service errors
# ---------------------------------------------------------------------------


class InferenceError(OptimizerException):
    """
    Raised by the inference client for a single failed call.

    Carries the FailureKind assigned at the network boundary.
    """

    category = ErrorCategory.UNAVAILABLE
    code = ErrorCode.SERVICE_UNAVAILABLE
    stage = "inference"

    def __init__(
        self,
        message: str,
        kind: FailureKind,
        status_code: int | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        details: dict[str, Any] = {"reason": kind.value}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, status=kind.value)

    @property
    def retryable(self) -> bool:
        return self.kind.retryable


class ServiceUnavailableError(OptimizerException):
    """Raised when the inference service could not produce a result."""

    category = ErrorCategory.UNAVAILABLE
    code = ErrorCode.SERVICE_UNAVAILABLE
    stage = "inference"

    def __init__(
        self,
        message: str,
        reason: FailureKind | None = None,
        attempts: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.reason = reason
        self.attempts = attempts
        details = details or {}
        details["attempts"] = attempts
        if reason is not None:
            details["reason"] = reason.value
        super().__init__(message, details, status=reason.value if reason else None)


class RetriesExhaustedError(ServiceUnavailableError):
    """Raised when every allowed attempt failed with a retryable error."""

    code = ErrorCode.CONNECTION_ERROR


class CircuitOpenError(ServiceUnavailableError):
    """Raised without contacting the network while the circuit is open."""

    code = ErrorCode.CIRCUIT_OPEN

    def __init__(self, retry_after: float, attempts: int = 0) -> None:
        super().__init__(
            "Inference service temporarily unavailable (circuit open)",
            attempts=attempts,
            details={"retry_after_seconds": round(max(retry_after, 0.0), 3)},
        )


class JobTimeoutError(ServiceUnavailableError):
    """Raised when a whole optimization job exceeds its time budget."""

    code = ErrorCode.JOB_TIMEOUT
    stage = "optimization"

"""
Core business logic module.

Contains the optimization pipeline, the resilience layer around inference
calls, health/metrics tracking, and the exception hierarchy.
"""

from doc_optimizer.core.exceptions import (
    CircuitOpenError,
    ContentError,
    EmptyContentError,
    ErrorCategory,
    ErrorCode,
    ExtractionError,
    FailureKind,
    FileTooLargeError,
    InferenceError,
    IngestionError,
    InvalidContentTypeError,
    InvalidFileTypeError,
    JobTimeoutError,
    NoFileError,
    OptimizerException,
    RetriesExhaustedError,
    ServiceUnavailableError,
    UploadStreamError,
)

__all__ = [
    "OptimizerException",
    "ErrorCategory",
    "ErrorCode",
    "FailureKind",
    "IngestionError",
    "InvalidContentTypeError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "NoFileError",
    "UploadStreamError",
    "ContentError",
    "ExtractionError",
    "EmptyContentError",
    "InferenceError",
    "ServiceUnavailableError",
    "RetriesExhaustedError",
    "CircuitOpenError",
    "JobTimeoutError",
]

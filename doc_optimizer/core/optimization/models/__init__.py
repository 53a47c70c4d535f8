"""
Models for the document optimization pipeline.

Exports: TextChunk, UploadArtifact, InvocationAttempt, InvocationResult,
AttemptOutcome, JobProgress, JobResult, JobStatus, OptimizationResult
"""

from .artifact import UploadArtifact
from .chunk import TextChunk
from .invocation import AttemptOutcome, InvocationAttempt, InvocationResult
from .job_result import JobProgress, JobResult, JobStatus
from .optimization_result import OptimizationResult

__all__ = [
    "TextChunk",
    "UploadArtifact",
    "AttemptOutcome",
    "InvocationAttempt",
    "InvocationResult",
    "JobProgress",
    "JobResult",
    "JobStatus",
    "OptimizationResult",
]

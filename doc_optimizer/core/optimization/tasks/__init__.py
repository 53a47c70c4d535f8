"""
Task modules for the optimization pipeline.

Exports: ContentExtractor, ChunkingTask, TimeoutPolicy, compute_timeout
"""

from .chunking_task import ChunkingTask
from .extraction_task import ContentExtractor, decode_docx
from .timeout_policy import TimeoutPolicy, compute_timeout

__all__ = [
    "ContentExtractor",
    "decode_docx",
    "ChunkingTask",
    "TimeoutPolicy",
    "compute_timeout",
]

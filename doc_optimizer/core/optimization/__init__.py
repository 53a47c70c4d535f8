"""
Document optimization pipeline.

Extraction, chunking, timeout budgeting, and orchestration of inference
calls for one uploaded document.

Dependencies: aiofiles, python-docx, langchain_core, pydantic
System role: Document optimization pipeline entrypoint
"""

from .entrypoint import OptimizationPipeline
from .models import OptimizationResult, TextChunk, UploadArtifact

__all__ = [
    "OptimizationPipeline",
    "OptimizationResult",
    "TextChunk",
    "UploadArtifact",
]

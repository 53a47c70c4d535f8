"""
Optimization result model.

Represents the outcome of optimizing one uploaded document.

Dependencies: pydantic
System role: Return type for OptimizationPipeline.optimize()
"""

from pydantic import BaseModel, Field


class OptimizationResult(BaseModel):
    """Result of document optimization pipeline execution."""

    optimized_content: str = Field(description="Chunk outputs joined in original order")
    attempts: int = Field(description="Total inference attempts across all chunks")
    processing_time_ms: float = Field(description="Total processing time in milliseconds")
    chunks_processed: int = Field(description="Number of chunks optimized")
    total_chunks: int = Field(description="Number of chunks produced by the chunker")
    filename: str = Field(description="Original upload filename")

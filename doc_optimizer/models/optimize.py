"""
Optimization API contracts.

Response schema for POST /optimize.

Dependencies: pydantic, doc_optimizer.core.optimization
System role: Optimization HTTP API contract
"""

from pydantic import BaseModel, Field

from doc_optimizer.core.optimization.models import OptimizationResult


class OptimizationMetadata(BaseModel):
    """Processing metadata for one optimized document."""

    attempts: int = Field(description="Total inference attempts across all chunks")
    processing_time_ms: float = Field(description="End-to-end processing time")
    chunks_processed: int
    total_chunks: int
    filename: str


class OptimizeResponse(BaseModel):
    """Successful optimization response."""

    success: bool = True
    optimized_content: str
    metadata: OptimizationMetadata

    @classmethod
    def from_result(cls, result: OptimizationResult) -> "OptimizeResponse":
        return cls(
            optimized_content=result.optimized_content,
            metadata=OptimizationMetadata(
                attempts=result.attempts,
                processing_time_ms=round(result.processing_time_ms, 2),
                chunks_processed=result.chunks_processed,
                total_chunks=result.total_chunks,
                filename=result.filename,
            ),
        )

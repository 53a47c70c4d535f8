"""
Common response models.

Error schema shared by every endpoint.

Dependencies: pydantic
System role: Common API response structures
"""

from pydantic import BaseModel, Field


class ErrorDetails(BaseModel):
    """Context attached to every error response."""

    model_config = {"extra": "allow"}

    stage: str = Field(description="Pipeline stage that failed")
    status: str = Field(description="Processing status label")
    timestamp: str = Field(description="UTC time the error was raised")
    attempts: int | None = Field(default=None, description="Inference attempts made, when relevant")
    elapsed_ms: float | None = Field(default=None, description="Time spent before failing")


class ErrorResponse(BaseModel):
    """Error response schema."""

    success: bool = False
    error: str = Field(description="Error message")
    category: str = Field(description="Status class: bad_input, unprocessable, unavailable, internal")
    code: str = Field(description="Stable error code")
    details: ErrorDetails

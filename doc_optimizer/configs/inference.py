"""
Inference endpoint configuration.

Connection settings for the local model server and prompt selection.

Dependencies: pydantic_settings
System role: Inference boundary configuration
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InferenceSettings(BaseSettings):
    """Settings for the Ollama-compatible inference server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INFERENCE_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the inference server",
    )
    model: str = Field(
        default="mistral:latest",
        description="Model identifier sent with every generate call",
    )
    liveness_path: str = Field(
        default="/api/version",
        description="Lightweight GET endpoint used as liveness probe",
    )
    connect_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="TCP connect timeout for every call",
    )
    health_check_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Total time budget for liveness and model probes",
    )
    prompt_style: Literal["standard", "detailed"] = Field(
        default="standard",
        description="Prompt template used for optimization calls",
    )

"""
Upload ingestion configuration.

Size ceiling, allow-lists, and temporary artifact location for streamed uploads.

Dependencies: pydantic_settings
System role: Ingestion validator configuration
"""

import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class UploadSettings(BaseSettings):
    """Settings for single-file multipart uploads."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="UPLOAD_",
        case_sensitive=False,
        extra="ignore",
    )

    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Maximum accepted file size in bytes (default 10MB)",
    )
    envelope_allowance: int = Field(
        default=64 * 1024,
        ge=0,
        description="Bytes of multipart framing tolerated on top of max_file_size",
    )
    allowed_mime_types: list[str] = Field(
        default=["text/plain", DOCX_MIME_TYPE],
        description="Declared MIME types accepted for upload",
    )
    allowed_extensions: list[str] = Field(
        default=[".txt", ".docx"],
        description="Filename extensions accepted for upload",
    )
    upload_dir: Path = Field(
        default=Path(tempfile.gettempdir()) / "docopt_uploads",
        description="Directory holding transient upload artifacts",
    )
    upload_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Maximum time allowed to receive the upload body",
    )

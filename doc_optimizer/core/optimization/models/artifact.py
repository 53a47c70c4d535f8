"""
Upload artifact domain model.

Metadata for a transient file written by the ingestion validator.

Dependencies: dataclasses (stdlib)
System role: Handle passed from ingestion to extraction and cleanup
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path


@dataclass(slots=True)
class UploadArtifact:
    """Temporary upload owned by exactly one request."""

    path: Path
    original_filename: str
    mime_type: str
    size: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def extension(self) -> str:
        return Path(self.original_filename).suffix.lower()

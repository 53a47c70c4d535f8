"""
Artifact storage boundary.

Exports: LocalArtifactStore, ArtifactWriter, sanitize_filename
"""

from .artifact_store import ArtifactWriter, LocalArtifactStore, sanitize_filename

__all__ = ["LocalArtifactStore", "ArtifactWriter", "sanitize_filename"]

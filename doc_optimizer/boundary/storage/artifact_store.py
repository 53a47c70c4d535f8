"""
Local artifact store for transient uploads.

Write-stream, stat, and delete operations over a local directory, plus a
scoped lease that guarantees deletion on every exit path.

Dependencies: aiofiles, doc_optimizer.core.optimization.models
System role: Durable temporary storage for upload artifacts
"""

import errno
import logging
import os
import re
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, AsyncIterator

import aiofiles
import aiofiles.os

if TYPE_CHECKING:
    from doc_optimizer.core.optimization.models import UploadArtifact

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 100


def sanitize_filename(filename: str) -> str:
    """Strip directory components and unsafe characters from a client filename."""
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._") or "upload"
    return name[-_MAX_NAME_LENGTH:]


class ArtifactWriter:
    """Incremental writer for one artifact; counts bytes as they land."""

    def __init__(self, path: Path, handle) -> None:
        self.path = path
        self._handle = handle
        self.bytes_written = 0

    async def write(self, data: bytes) -> int:
        await self._handle.write(data)
        self.bytes_written += len(data)
        return self.bytes_written


class LocalArtifactStore:
    """Filesystem-backed store keyed by absolute path."""

    def __init__(self, upload_dir: str | Path) -> None:
        """
        Initialize store.

        Args:
            upload_dir: Directory holding transient artifacts
        """
        self._upload_dir = Path(upload_dir)

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    async def initialize(self) -> None:
        """Create the upload directory if missing."""
        await aiofiles.os.makedirs(self._upload_dir, exist_ok=True)

    def new_path(self, filename: str) -> Path:
        return self._upload_dir / f"{uuid.uuid4().hex}-{sanitize_filename(filename)}"

    @asynccontextmanager
    async def open_writer(self, path: Path) -> AsyncIterator[ArtifactWriter]:
        """
        Open an artifact for streaming writes.

        The file is flushed and closed when the block exits. Deleting a
        partial file on failure is the caller's responsibility.
        """
        await self.initialize()
        async with aiofiles.open(path, "wb") as handle:
            yield ArtifactWriter(path, handle)

    async def stat(self, path: Path) -> os.stat_result:
        return await aiofiles.os.stat(path)

    async def exists(self, path: Path) -> bool:
        return await aiofiles.os.path.exists(path)

    async def delete(self, path: Path) -> bool:
        """
        Delete an artifact.

        Args:
            path: Artifact path

        Returns:
            bool: True if a file was removed, False if it was already gone
        """
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            if e.errno == errno.ENOENT:
                return False
            raise
        logger.debug("Deleted artifact", extra={"file_path": str(path)})
        return True

    async def check(self) -> bool:
        """Write, read back, and delete a probe file."""
        probe = self._upload_dir / f".probe-{uuid.uuid4().hex}"
        payload = b"ok"
        await self.initialize()
        try:
            async with aiofiles.open(probe, "wb") as handle:
                await handle.write(payload)
            async with aiofiles.open(probe, "rb") as handle:
                return await handle.read() == payload
        finally:
            await self.delete(probe)

    @asynccontextmanager
    async def lease(self, artifact: "UploadArtifact") -> AsyncIterator["UploadArtifact"]:
        """
        Scope an artifact to a block; it is deleted exactly once on exit.

        Runs on success, on any exception, and on task cancellation.
        """
        try:
            yield artifact
        finally:
            try:
                await self.delete(artifact.path)
            except OSError as e:
                logger.warning(
                    "Failed to delete artifact",
                    extra={"file_path": str(artifact.path), "error": str(e)},
                )

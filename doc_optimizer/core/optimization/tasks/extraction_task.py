"""
Text extraction task for uploaded artifacts.

Reads plain text directly and decodes DOCX documents with python-docx,
normalising every decoder failure into ExtractionError.

Dependencies: aiofiles, python-docx, doc_optimizer.core.exceptions
System role: First stage of the optimization pipeline
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

import aiofiles
import docx

from doc_optimizer.core.exceptions import EmptyContentError, ExtractionError
from doc_optimizer.core.optimization.models import UploadArtifact

logger = logging.getLogger(__name__)

DocxDecoder = Callable[[Path], Any]


def decode_docx(path: Path) -> str:
    """
    Extract raw text from a DOCX file, discarding formatting.

    Body paragraphs come first, then table cells, each separated by a blank
    line.
    """
    document = docx.Document(str(path))
    blocks = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                blocks.append(" | ".join(cells))
    return "\n\n".join(blocks)


class ContentExtractor:
    """Convert a stored artifact into a single UTF-8 text payload."""

    def __init__(self, docx_decoder: DocxDecoder | None = None) -> None:
        """
        Initialize extractor.

        Args:
            docx_decoder: Blocking DOCX decoder, run in a worker thread
        """
        self._docx_decoder = docx_decoder or decode_docx

    async def extract(self, artifact: UploadArtifact) -> str:
        """
        Extract text from an artifact.

        Args:
            artifact: Stored upload

        Returns:
            str: Extracted text

        Raises:
            ExtractionError: File missing, undecodable, or decoder failure
            EmptyContentError: Extracted text is empty or whitespace
        """
        path = Path(artifact.path)
        if not path.exists():
            raise ExtractionError(
                "Uploaded file is no longer available",
                details={"file_path": str(path)},
                status="file_missing",
            )

        if artifact.extension == ".docx":
            content = await self._extract_docx(path)
        else:
            content = await self._extract_text(path)

        if not content.strip():
            raise EmptyContentError()

        logger.info(
            "Content extracted",
            extra={"file_name": artifact.original_filename, "characters": len(content)},
        )
        return content

    async def _extract_text(self, path: Path) -> str:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as handle:
                return await handle.read()
        except (UnicodeDecodeError, OSError) as e:
            raise ExtractionError(
                "Failed to extract file content",
                file_type="text",
                details={"error": str(e)},
                status="extraction_failed",
            ) from e

    async def _extract_docx(self, path: Path) -> str:
        try:
            result = await asyncio.to_thread(self._docx_decoder, path)
        except Exception as e:
            logger.warning(
                "DOCX conversion failed",
                extra={"file_path": str(path), "error_type": type(e).__name__},
            )
            raise ExtractionError(
                "Failed to process DOCX file",
                file_type="docx",
                details={"error": str(e)},
                status="docx_conversion_failed",
            ) from e

        if not isinstance(result, str):
            raise ExtractionError(
                "Invalid document conversion result",
                file_type="docx",
                details={"result_type": type(result).__name__},
                status="docx_conversion_failed",
            )
        return result

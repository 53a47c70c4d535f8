"""Tests for text extraction from stored artifacts."""

import docx
import pytest

from doc_optimizer.configs.upload import DOCX_MIME_TYPE
from doc_optimizer.core.exceptions import EmptyContentError, ErrorCategory, ExtractionError
from doc_optimizer.core.optimization.tasks import ContentExtractor, decode_docx


class TestTextExtraction:
    """Plain text artifacts."""

    @pytest.mark.asyncio
    async def test_reads_utf8_text(self, make_artifact) -> None:
        """Should return the file's text unchanged."""
        artifact = make_artifact("Résumé summary.\n\nSkills.".encode("utf-8"))

        text = await ContentExtractor().extract(artifact)

        assert text == "Résumé summary.\n\nSkills."

    @pytest.mark.asyncio
    async def test_invalid_utf8_raises(self, make_artifact) -> None:
        """Should raise ExtractionError for undecodable bytes."""
        artifact = make_artifact(b"\xff\xfe\x00bad")

        with pytest.raises(ExtractionError) as exc_info:
            await ContentExtractor().extract(artifact)

        assert exc_info.value.category is ErrorCategory.UNPROCESSABLE
        assert exc_info.value.status == "extraction_failed"

    @pytest.mark.asyncio
    async def test_whitespace_only_raises_empty(self, make_artifact) -> None:
        """Should raise EmptyContentError for blank documents."""
        artifact = make_artifact(b"  \n\n\t ")

        with pytest.raises(EmptyContentError):
            await ContentExtractor().extract(artifact)

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, make_artifact) -> None:
        """Should raise ExtractionError when the artifact is gone."""
        artifact = make_artifact()
        artifact.path.unlink()

        with pytest.raises(ExtractionError) as exc_info:
            await ContentExtractor().extract(artifact)

        assert exc_info.value.status == "file_missing"


class TestDocxExtraction:
    """DOCX artifacts."""

    @pytest.mark.asyncio
    async def test_decodes_real_docx(self, make_artifact, tmp_path) -> None:
        """Should extract paragraphs and table rows with python-docx."""
        source = tmp_path / "source.docx"
        document = docx.Document()
        document.add_paragraph("Senior Engineer")
        document.add_paragraph("Built data pipelines.")
        table = document.add_table(rows=1, cols=2)
        table.cell(0, 0).text = "Python"
        table.cell(0, 1).text = "SQL"
        document.save(str(source))
        artifact = make_artifact(source.read_bytes(), filename="cv.docx", mime_type=DOCX_MIME_TYPE)

        text = await ContentExtractor().extract(artifact)

        assert "Senior Engineer" in text
        assert "Built data pipelines." in text
        assert "Python | SQL" in text
        assert decode_docx(artifact.path) == text

    @pytest.mark.asyncio
    async def test_decoder_failure_normalised(self, make_artifact) -> None:
        """Should wrap any decoder exception as ExtractionError."""

        def broken(path):
            raise KeyError("word/document.xml")

        artifact = make_artifact(b"not a zip", filename="cv.docx", mime_type=DOCX_MIME_TYPE)

        with pytest.raises(ExtractionError) as exc_info:
            await ContentExtractor(docx_decoder=broken).extract(artifact)

        assert exc_info.value.status == "docx_conversion_failed"
        assert exc_info.value.details["file_type"] == "docx"

    @pytest.mark.asyncio
    async def test_non_string_result_rejected(self, make_artifact) -> None:
        """Should reject a decoder that returns something other than text."""
        artifact = make_artifact(b"x", filename="cv.docx", mime_type=DOCX_MIME_TYPE)

        with pytest.raises(ExtractionError):
            await ContentExtractor(docx_decoder=lambda path: None).extract(artifact)

    @pytest.mark.asyncio
    async def test_corrupt_docx_with_real_decoder(self, make_artifact) -> None:
        """Should turn a corrupt archive into ExtractionError."""
        artifact = make_artifact(b"PK\x03\x04 truncated", filename="cv.docx", mime_type=DOCX_MIME_TYPE)

        with pytest.raises(ExtractionError):
            await ContentExtractor().extract(artifact)

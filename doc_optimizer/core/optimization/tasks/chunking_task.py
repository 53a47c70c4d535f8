"""
Context-preserving text chunking.

Splits extracted text into ordered chunks no larger than a maximum size,
preferring paragraph boundaries over sentence boundaries and never truncating.

Dependencies: re (stdlib), doc_optimizer.core.optimization.models
System role: Second stage of the optimization pipeline
"""

import re

from doc_optimizer.core.exceptions import EmptyContentError
from doc_optimizer.core.optimization.models import TextChunk

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "

_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


class ChunkingTask:
    """Split text into `TextChunk`s of at most `max_size` characters."""

    def __init__(self, max_size: int = 1000) -> None:
        """
        Initialize chunking task.

        Args:
            max_size: Maximum chunk size in characters

        Raises:
            ValueError: When max_size is not positive
        """
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size

    @property
    def max_size(self) -> int:
        return self._max_size

    def chunk(self, text: str) -> list[TextChunk]:
        """
        Split text into ordered chunks.

        Paragraphs are packed greedily and joined with a blank line. A
        paragraph longer than the maximum is packed sentence by sentence
        instead; a single sentence longer than the maximum becomes its own
        oversized chunk.

        Args:
            text: Extracted document text

        Returns:
            list[TextChunk]: Non-empty chunks with dense ordinals from 0

        Raises:
            EmptyContentError: When text has no non-whitespace content
        """
        pieces: list[str] = []
        current = ""

        for paragraph in self._split_paragraphs(text):
            if len(paragraph) > self._max_size:
                if current:
                    pieces.append(current)
                    current = ""
                pieces.extend(self._pack(self._split_sentences(paragraph), SENTENCE_SEPARATOR))
                continue

            candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
            if len(candidate) <= self._max_size:
                current = candidate
            else:
                pieces.append(current)
                current = paragraph

        if current:
            pieces.append(current)

        if not pieces:
            raise EmptyContentError("Document contains no text to optimize")

        return [TextChunk(ordinal=i, text=piece) for i, piece in enumerate(pieces)]

    def _pack(self, parts: list[str], separator: str) -> list[str]:
        packed: list[str] = []
        current = ""
        for part in parts:
            candidate = f"{current}{separator}{part}" if current else part
            if len(candidate) <= self._max_size:
                current = candidate
                continue
            if current:
                packed.append(current)
            # Oversized sentences are emitted whole
            current = part
        if current:
            packed.append(current)
        return packed

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        return [part.strip() for part in _PARAGRAPH_SPLIT.split(text) if part.strip()]

    @staticmethod
    def _split_sentences(paragraph: str) -> list[str]:
        return [part.strip() for part in _SENTENCE_SPLIT.split(paragraph) if part.strip()]

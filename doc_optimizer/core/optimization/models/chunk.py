"""
Text chunk domain model.

One bounded-size, immutable segment of extracted text sent as one inference call.

Dependencies: dataclasses (stdlib)
System role: Unit of work flowing from the chunker to the scheduler
"""

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class TextChunk:
    """Ordered text segment; `ordinal` is the only ordering key."""

    ordinal: int
    text: str
    char_length: int = field(init=False)
    byte_length: int = field(init=False)

    def __post_init__(self) -> None:
        if self.ordinal < 0:
            raise ValueError("ordinal must be non-negative")
        object.__setattr__(self, "char_length", len(self.text))
        object.__setattr__(self, "byte_length", len(self.text.encode("utf-8")))

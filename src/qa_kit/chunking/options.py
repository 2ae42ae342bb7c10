# src/qa_kit/chunking/options.py

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from qa_kit.errors import InputError

# A chunk is an opaque, immutable string unit of source material.
Chunk = str


class ChunkingAlgorithm(str, Enum):
    """Selectable chunking strategies."""

    RECURSIVE = "recursive"
    LINE = "line"
    CSV_TSV = "csv-tsv"
    JSONL = "jsonl"
    SENTENCE = "sentence-chunks"
    MARKDOWN = "markdown-chunks"
    ROLLING_WINDOW = "rolling-sentence-chunks"


@dataclass(frozen=True)
class ChunkOptions:
    """Chunking parameters.

    ``chunk_size`` and ``chunk_overlap`` are characters for the recursive
    splitter and tokens (4 characters each, rounded down) for the sentence
    splitter. An overlap that is not smaller than the size is tolerated;
    splitters clamp it so every chunk still advances.
    """

    algorithm: ChunkingAlgorithm = ChunkingAlgorithm.RECURSIVE
    chunk_size: int = 1000
    chunk_overlap: int = 200
    window_size: int = 3

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise InputError("chunk_size must be > 0")
        if self.chunk_overlap < 0:
            raise InputError("chunk_overlap must be >= 0")
        if self.window_size < 0:
            raise InputError("window_size must be >= 0")

    @property
    def effective_overlap(self) -> int:
        return min(self.chunk_overlap, self.chunk_size - 1)


@dataclass(frozen=True)
class ChunkSource:
    """Input handed to a chunking strategy.

    Text splitters read ``text``. The CSV/TSV projector reads ``rows`` and
    ``columns``; the record projector reads ``records`` and ``paths``.
    """

    text: str = ""
    rows: Sequence[Sequence[str]] | None = None
    columns: Sequence[int] | None = None
    records: Sequence[Any] | None = None
    paths: Sequence[str] | None = None

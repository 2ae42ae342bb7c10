from .engine import ChunkingEngine, ChunkingStrategy, chunk_document
from .options import Chunk, ChunkingAlgorithm, ChunkOptions, ChunkSource
from .projectors import (
    DelimitedProjector,
    RecordProjector,
    project_records,
    project_rows,
    resolve_path,
)
from .sentences import estimate_tokens, split_sentences
from .splitters import (
    LineSplitter,
    MarkdownSplitter,
    RecursiveSplitter,
    RollingWindowSplitter,
    SentenceSplitter,
)

__all__ = [
    # Engine
    "ChunkingEngine",
    "ChunkingStrategy",
    "chunk_document",
    # Options
    "Chunk",
    "ChunkingAlgorithm",
    "ChunkOptions",
    "ChunkSource",
    # Strategies
    "DelimitedProjector",
    "LineSplitter",
    "MarkdownSplitter",
    "RecordProjector",
    "RecursiveSplitter",
    "RollingWindowSplitter",
    "SentenceSplitter",
    # Helpers
    "estimate_tokens",
    "project_records",
    "project_rows",
    "resolve_path",
    "split_sentences",
]

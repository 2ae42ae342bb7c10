# src/qa_kit/chunking/engine.py

import asyncio
import logging
from collections.abc import Sequence
from time import monotonic
from typing import Any, Protocol

from qa_kit.errors import InputError
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .options import Chunk, ChunkingAlgorithm, ChunkOptions, ChunkSource
from .projectors import DelimitedProjector, RecordProjector
from .splitters import (
    LineSplitter,
    MarkdownSplitter,
    RecursiveSplitter,
    RollingWindowSplitter,
    SentenceSplitter,
)

logger = logging.getLogger(__name__)


class ChunkingStrategy(Protocol):
    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]: ...


_TEXT_ALGORITHMS = frozenset(
    {
        ChunkingAlgorithm.RECURSIVE,
        ChunkingAlgorithm.LINE,
        ChunkingAlgorithm.SENTENCE,
        ChunkingAlgorithm.MARKDOWN,
        ChunkingAlgorithm.ROLLING_WINDOW,
    }
)


class ChunkingEngine:
    """Dispatches a chunking request to the strategy for its algorithm.

    Always returns a fully materialized list; callers index by count.
    """

    def __init__(self, metrics_hook: MetricsHook = NoOpMetricsHook()) -> None:
        self.metrics_hook = metrics_hook
        self._strategies: dict[ChunkingAlgorithm, ChunkingStrategy] = {
            ChunkingAlgorithm.RECURSIVE: RecursiveSplitter(),
            ChunkingAlgorithm.LINE: LineSplitter(),
            ChunkingAlgorithm.SENTENCE: SentenceSplitter(),
            ChunkingAlgorithm.MARKDOWN: MarkdownSplitter(),
            ChunkingAlgorithm.ROLLING_WINDOW: RollingWindowSplitter(),
            ChunkingAlgorithm.CSV_TSV: DelimitedProjector(),
            ChunkingAlgorithm.JSONL: RecordProjector(),
        }

    def strategy(self, algorithm: ChunkingAlgorithm) -> ChunkingStrategy:
        try:
            return self._strategies[ChunkingAlgorithm(algorithm)]
        except (KeyError, ValueError):
            raise ValueError(f"Unknown chunking algorithm: {algorithm}")

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        """Chunk ``source`` with ``options.algorithm``.

        Raises:
            InputError: If the input is empty, a required selection is
                missing, or no usable chunk was produced.
        """
        start = monotonic()
        strategy = self.strategy(options.algorithm)
        algorithm = ChunkingAlgorithm(options.algorithm)

        if algorithm in _TEXT_ALGORITHMS and not source.text.strip():
            raise InputError("No document text to chunk")

        logger.debug("Chunking with algorithm=%s", algorithm.value)
        chunks = strategy.chunk(source, options)
        if not chunks:
            raise InputError(f"Chunking with '{algorithm.value}' produced no chunks")

        elapsed_ms = 1000 * (monotonic() - start)
        labels = {"algorithm": algorithm.value}
        self.metrics_hook.record_latency(names.CHUNKING_DURATION, elapsed_ms, labels)
        self.metrics_hook.increment(names.CHUNKING_CHUNKS_CREATED, len(chunks), labels)
        logger.info(
            "Chunked input into %d chunks with %s in %.0fms",
            len(chunks),
            algorithm.value,
            elapsed_ms,
        )
        return chunks

    async def achunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        """Chunk very large documents off the event loop.

        The only place qa-kit hands work to a thread. Chunking is pure CPU
        work over immutable input; generation and streaming stay on the loop.
        Callers that want no threads at all use ``chunk`` directly.
        """
        return await asyncio.to_thread(self.chunk, source, options)


def chunk_document(
    text: str,
    options: ChunkOptions,
    *,
    rows: Sequence[Sequence[str]] | None = None,
    columns: Sequence[int] | None = None,
    records: Sequence[Any] | None = None,
    paths: Sequence[str] | None = None,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> list[Chunk]:
    """Chunk a document in one call.

    Args:
        text: Extracted document text (text algorithms).
        options: Algorithm and size parameters.
        rows: Parsed CSV/TSV rows, row 0 being the header (``csv-tsv``).
        columns: Selected column indices (``csv-tsv``).
        records: Parsed JSON/JSONL records (``jsonl``).
        paths: Selected key paths, usually ``KeyTree.projection_paths()``
            (``jsonl``).
        metrics_hook: Optional metrics hook for observability.

    Returns:
        Ordered list of non-empty chunks.
    """
    source = ChunkSource(
        text=text, rows=rows, columns=columns, records=records, paths=paths
    )
    return ChunkingEngine(metrics_hook=metrics_hook).chunk(source, options)

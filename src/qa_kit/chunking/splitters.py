# src/qa_kit/chunking/splitters.py

"""Text splitters: strategies that consume raw document text."""

import re

from .options import Chunk, ChunkOptions, ChunkSource
from .sentences import estimate_tokens, split_sentences

# Break preferences for the recursive splitter, strongest first. A cut is
# placed right after the separator so it stays with the earlier chunk.
_BREAK_PATTERNS = (
    re.compile(r"\n[ \t]*\n\s*"),
    re.compile(r"[.!?][\"'\)\]]*\s+"),
    re.compile(r"\s+"),
)

_HEADING = re.compile(r"^#{1,6}\s+\S")
_FENCE = re.compile(r"^\s*(```|~~~)")


class RecursiveSplitter:
    """Greedy character splitter with paragraph > sentence > word preference.

    Chunks are contiguous slices of the input; each chunk after the first
    starts with exactly ``chunk_overlap`` characters taken from the end of
    the previous one. A cut is never placed inside the overlap, so every
    chunk advances.
    """

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        text = source.text
        size = options.chunk_size
        overlap = options.effective_overlap

        chunks: list[Chunk] = []
        start = 0
        while start < len(text):
            if len(text) - start <= size:
                chunks.append(text[start:])
                break
            end = self._find_cut(text, start, lo=start + overlap + 1, hi=start + size)
            chunks.append(text[start:end])
            start = end - overlap
        return chunks

    def _find_cut(self, text: str, start: int, *, lo: int, hi: int) -> int:
        for pattern in _BREAK_PATTERNS:
            best = None
            for match in pattern.finditer(text, start, hi):
                if match.end() >= lo:
                    best = match.end()
            if best is not None:
                return best
        # No natural boundary: hard cut.
        return hi


class LineSplitter:
    """One chunk per non-blank line."""

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        return [line for line in source.text.splitlines() if line.strip()]


class SentenceSplitter:
    """Packs whole sentences into chunks of at most ``chunk_size`` tokens.

    Trailing sentences worth up to ``chunk_overlap`` tokens carry over into
    the next chunk. A sentence longer than the limit becomes a chunk of its
    own; sentences are never cut.
    """

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        limit = options.chunk_size
        overlap = options.chunk_overlap

        chunks: list[Chunk] = []
        current: list[str] = []
        has_new = False

        for sentence in split_sentences(source.text):
            candidate = " ".join([*current, sentence])
            if current and has_new and estimate_tokens(candidate) > limit:
                chunks.append(" ".join(current))
                current = self._carry_over(current, overlap)
                has_new = False
                if current and estimate_tokens(" ".join([*current, sentence])) > limit:
                    current = []
            current.append(sentence)
            has_new = True

        if current and has_new:
            chunks.append(" ".join(current))
        return chunks

    @staticmethod
    def _carry_over(sentences: list[str], overlap: int) -> list[str]:
        carried: list[str] = []
        # Never carry the whole chunk over, or nothing would advance.
        for sentence in reversed(sentences[1:]):
            if estimate_tokens(" ".join([sentence, *carried])) > overlap:
                break
            carried.insert(0, sentence)
        return carried


class MarkdownSplitter:
    """One chunk per heading section. Sizes are not enforced."""

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        sections: list[list[str]] = []
        current: list[str] = []
        in_fence = False

        for line in source.text.splitlines():
            if _FENCE.match(line):
                in_fence = not in_fence
            elif not in_fence and _HEADING.match(line) and current:
                sections.append(current)
                current = []
            current.append(line)
        if current:
            sections.append(current)

        chunks = ("\n".join(lines).strip() for lines in sections)
        return [c for c in chunks if c]


class RollingWindowSplitter:
    """One chunk per sentence: the sentence plus ``window_size`` neighbours
    on each side. Windows at the document edges are truncated."""

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        sentences = split_sentences(source.text)
        window = options.window_size
        return [
            " ".join(sentences[max(0, i - window) : i + window + 1])
            for i in range(len(sentences))
        ]

# src/qa_kit/llms/buffering.py

from collections.abc import AsyncIterator
from typing import TypeVar

T = TypeVar("T")

MIN_FLUSH_SIZE = 50


def should_flush(buffer: str, min_size: int = MIN_FLUSH_SIZE) -> bool:
    """Flush once the buffer holds ``min_size`` characters or a newline."""
    return len(buffer) >= min_size or "\n" in buffer


class FragmentBuffer:
    """Coalesces streamed fragments to cut down on downstream updates.

    Only the number of emissions changes; the concatenated text is the same
    as the raw fragments.
    """

    def __init__(self, min_size: int = MIN_FLUSH_SIZE) -> None:
        self._min_size = min_size
        self._buffer = ""

    def push(self, fragment: str) -> str | None:
        self._buffer += fragment
        if should_flush(self._buffer, self._min_size):
            return self.flush()
        return None

    def flush(self) -> str | None:
        text, self._buffer = self._buffer, ""
        return text or None


async def next_or_none(iterator: AsyncIterator[T]) -> T | None:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return None

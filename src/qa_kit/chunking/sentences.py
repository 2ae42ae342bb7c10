# src/qa_kit/chunking/sentences.py

import re

# Terminal punctuation (with trailing quotes/brackets) followed by
# whitespace, or a blank line.
_SENTENCE_BREAK = re.compile(r"([.!?]+[\"'\)\]]*)\s+|\n[ \t]*\n\s*")


def split_sentences(text: str) -> list[str]:
    """Split ``text`` into stripped, non-empty sentences in document order."""
    sentences: list[str] = []
    start = 0
    for match in _SENTENCE_BREAK.finditer(text):
        end = match.end(1) if match.group(1) else match.start()
        sentence = text[start:end].strip()
        if sentence:
            sentences.append(sentence)
        start = match.end()

    tail = text[start:].strip()
    if tail:
        sentences.append(tail)
    return sentences


def estimate_tokens(text: str) -> int:
    # 1 token ~= 4 characters
    return len(text) // 4

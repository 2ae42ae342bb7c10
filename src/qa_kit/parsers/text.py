# src/qa_kit/parsers/text.py

import re

_TAGS = re.compile(r"<[^>]*>")
_BLANK_RUNS = re.compile(r"\s*\n\s*\n\s*")
_CONTROL = re.compile(r"[\x00-\x09\x0B-\x0C\x0E-\x1F\x7F-\x9F]")


def clean_text(text: str) -> str:
    """Normalize text extracted from PDF/DOCX containers before chunking."""
    text = _TAGS.sub("", text)
    text = _BLANK_RUNS.sub("\n\n", text)
    text = _CONTROL.sub("", text)
    return text.strip()

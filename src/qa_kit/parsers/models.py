# src/qa_kit/parsers/models.py

from dataclasses import dataclass, field
from typing import Any

from qa_kit.errors import ParseError


@dataclass(frozen=True)
class ParsedTable:
    rows: list[list[str]]
    delimiter: str
    errors: list[ParseError] = field(default_factory=list)

    @property
    def header(self) -> list[str]:
        return self.rows[0] if self.rows else []


@dataclass(frozen=True)
class ParsedRecords:
    records: list[Any]
    errors: list[ParseError] = field(default_factory=list)

# src/qa_kit/parsers/delimited.py

import csv
import io
import logging
import re

from qa_kit.errors import InputError, ParseError
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .models import ParsedTable

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


def detect_delimiter(text: str) -> str:
    return "\t" if "\t" in text else ","


def parse_delimited(
    text: str,
    delimiter: str | None = None,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ParsedTable:
    """Parse CSV/TSV text into rows of trimmed cells.

    - Quote-aware: ``""`` inside a quoted field is a literal quote, and
      newlines inside quotes become spaces
    - Rows with no non-empty cell are dropped
    - A row wider than the header (non-empty extra cells) or a quoting
      error is a unit-level ParseError; the row is skipped

    ParseError units are the source line on which the row ended.

    Raises:
        InputError: If no row survives parsing.
    """
    delimiter = delimiter or detect_delimiter(text)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    raw_rows: list[tuple[int, list[str]]] = []
    errors: list[ParseError] = []

    while True:
        try:
            cells = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            errors.append(ParseError(reader.line_num, str(exc)))
            continue
        raw_rows.append((reader.line_num, [_clean_cell(c) for c in cells]))

    rows: list[list[str]] = []
    width: int | None = None
    for number, cells in raw_rows:
        if not any(cells):
            continue
        if width is None:
            width = len(cells)
        elif len(cells) > width and any(cells[width:]):
            errors.append(
                ParseError(number, f"expected {width} cells, found {len(cells)}")
            )
            continue
        rows.append(cells[:width])

    for error in errors:
        logger.warning("Skipping malformed row at line %d: %s", error.unit, error.message)
    if errors:
        metrics_hook.increment(
            names.PARSER_UNITS_SKIPPED, len(errors), labels={"format": "delimited"}
        )

    if not rows:
        raise InputError("No rows found in delimited input")

    logger.info("Parsed %d rows (delimiter=%r, skipped=%d)", len(rows), delimiter, len(errors))
    return ParsedTable(rows=rows, delimiter=delimiter, errors=errors)


def _clean_cell(cell: str) -> str:
    return _LINE_BREAKS.sub(" ", cell).strip()

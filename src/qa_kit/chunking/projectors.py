# src/qa_kit/chunking/projectors.py

"""Projectors: strategies that turn pre-parsed rows or records into chunks.

One chunk per row/record. Rows and records that contribute nothing for
the current selection are dropped, never emitted as empty chunks.
"""

import json
import logging
from collections import Counter
from collections.abc import Sequence
from typing import Any

from qa_kit.errors import InputError

from .options import Chunk, ChunkOptions, ChunkSource

logger = logging.getLogger(__name__)


class DelimitedProjector:
    """CSV/TSV rows (row 0 = header) to ``"<column>: <value>"`` chunks."""

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        rows = source.rows or []
        columns = sorted(set(source.columns or []))

        if not columns:
            raise InputError("No columns selected")
        if len(rows) < 2:
            raise InputError("CSV/TSV data needs a header row and at least one data row")

        header = [h.strip() for h in rows[0]]
        for index in columns:
            if not 0 <= index < len(header):
                raise InputError(f"Column index {index} out of range")

        chunks: list[Chunk] = []
        for row_number, row in enumerate(rows[1:], start=2):
            lines = []
            for index in columns:
                # Short rows: missing cells count as empty.
                value = row[index] if index < len(row) else ""
                if value.strip():
                    lines.append(f"{header[index]}: {value}")
            if lines:
                chunks.append("\n".join(lines))
            else:
                logger.debug("Dropping row %d: no selected cell has a value", row_number)
        return chunks


class RecordProjector:
    """JSON/JSONL records to labelled-line chunks for the selected key paths.

    Lines are labelled with the key name (``name: ...``). Selected paths
    whose names clash, such as ``author.name`` and ``publisher.name``, keep
    their full path as the label.
    """

    def chunk(self, source: ChunkSource, options: ChunkOptions) -> list[Chunk]:
        records = source.records or []
        paths = list(source.paths or [])

        if not paths:
            raise InputError("No keys selected")
        if not records:
            raise InputError("No records to chunk")

        labels = line_labels(paths)
        chunks: list[Chunk] = []
        for index, record in enumerate(records):
            lines: list[str] = []
            for path in paths:
                lines.extend(_render_value(labels[path], resolve_path(record, path)))
            if lines:
                chunks.append("\n".join(lines))
            else:
                logger.debug("Dropping record %d: no selected key has a value", index)
        return chunks


def resolve_path(record: Any, path: str) -> Any:
    """Walk a dotted path through ``record``.

    Arrays met along the way fan out: the result is then a flat list of
    every value found under the remaining path. Returns None when nothing
    is found.
    """
    values = [record]
    fanned_out = False
    for segment in path.split("."):
        found = []
        for value in values:
            if isinstance(value, list):
                fanned_out = True
                candidates = value
            else:
                candidates = [value]
            for candidate in candidates:
                if isinstance(candidate, dict) and segment in candidate:
                    found.append(candidate[segment])
        values = found
        if not values:
            return None

    if not fanned_out:
        return values[0]

    flat: list[Any] = []
    for value in values:
        if isinstance(value, list):
            flat.extend(value)
        else:
            flat.append(value)
    return flat


def line_labels(paths: Sequence[str]) -> dict[str, str]:
    """Label each path with its key name, or the full path if names clash."""
    names = Counter(path.rsplit(".", 1)[-1] for path in set(paths))
    labels = {}
    for path in paths:
        name = path.rsplit(".", 1)[-1]
        labels[path] = name if names[name] == 1 else path
    return labels


def _render_value(label: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        lines = []
        for position, item in enumerate(value, start=1):
            text = _format_value(item)
            if text:
                lines.append(f"{label}: {position}. {text}")
        return lines

    text = _format_value(value)
    return [f"{label}: {text}"] if text else []


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return json.dumps(value)


def project_rows(
    rows: Sequence[Sequence[str]], columns: Sequence[int]
) -> list[Chunk]:
    return DelimitedProjector().chunk(ChunkSource(rows=rows, columns=columns), ChunkOptions())


def project_records(records: Sequence[Any], paths: Sequence[str]) -> list[Chunk]:
    return RecordProjector().chunk(ChunkSource(records=records, paths=paths), ChunkOptions())

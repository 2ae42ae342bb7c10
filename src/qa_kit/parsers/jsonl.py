# src/qa_kit/parsers/jsonl.py

import json
import logging

from qa_kit.errors import InputError, ParseError
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .models import ParsedRecords

logger = logging.getLogger(__name__)


def parse_jsonl(
    text: str,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ParsedRecords:
    """Parse JSON Lines, one record per non-blank line.

    Lines that are not valid JSON, or not an object/array, are recorded as
    ParseErrors (1-based line number) and skipped.

    Raises:
        InputError: If no line yields a record.
    """
    records = []
    errors: list[ParseError] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            value = json.loads(line)
        except json.JSONDecodeError as exc:
            errors.append(ParseError(line_number, f"invalid JSON: {exc.msg}"))
            continue
        if not isinstance(value, (dict, list)):
            errors.append(ParseError(line_number, "not a JSON object or array"))
            continue
        records.append(value)

    return _finish(records, errors, "jsonl", metrics_hook)


def parse_json(
    text: str,
    *,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> ParsedRecords:
    """Parse a whole JSON document: an array of records or a single object."""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputError(f"Invalid JSON document: {exc.msg}") from exc

    if isinstance(document, dict):
        return ParsedRecords(records=[document])
    if not isinstance(document, list):
        raise InputError("JSON document must be an object or an array of records")

    records = []
    errors: list[ParseError] = []
    for position, item in enumerate(document, start=1):
        if isinstance(item, (dict, list)):
            records.append(item)
        else:
            errors.append(ParseError(position, "not a JSON object or array"))

    return _finish(records, errors, "json", metrics_hook)


def _finish(
    records: list, errors: list[ParseError], fmt: str, metrics_hook: MetricsHook
) -> ParsedRecords:
    for error in errors:
        logger.warning("Skipping malformed %s unit %d: %s", fmt, error.unit, error.message)
    if errors:
        metrics_hook.increment(
            names.PARSER_UNITS_SKIPPED, len(errors), labels={"format": fmt}
        )

    if not records:
        raise InputError(f"No usable records found in {fmt} input")

    logger.info("Parsed %d %s records (skipped=%d)", len(records), fmt, len(errors))
    return ParsedRecords(records=records, errors=errors)

from .delimited import detect_delimiter, parse_delimited
from .jsonl import parse_json, parse_jsonl
from .models import ParsedRecords, ParsedTable
from .text import clean_text

__all__ = [
    "ParsedRecords",
    "ParsedTable",
    "clean_text",
    "detect_delimiter",
    "parse_delimited",
    "parse_json",
    "parse_jsonl",
]

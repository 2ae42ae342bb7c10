# src/qa_kit/errors.py

"""Error taxonomy for qa-kit.

Every error raised on purpose by the library derives from ``QAKitError`` so
callers can tell library failures apart from bugs.
"""


class QAKitError(Exception):
    """Base class for all qa-kit errors."""


class InputError(QAKitError, ValueError):
    """The operation cannot start: nothing usable to work on.

    Raised for empty documents, missing column/key selections, empty
    datasets and chunking runs that produce zero chunks.
    """


class ParseError(QAKitError):
    """A single unit (CSV row, JSONL line) could not be parsed.

    Unit-level. Parsers collect these and skip the unit instead of raising.
    """

    def __init__(self, unit: int, message: str) -> None:
        self.unit = unit
        self.message = message
        super().__init__(f"unit {unit}: {message}")


class BackendUnavailable(QAKitError):
    """The generation backend did not answer the reachability probe."""


class Cancelled(QAKitError):
    """The operator cancelled the running generation.

    Not a failure. Never retried, never reported as a record error.
    """


class RecordGenerationError(QAKitError):
    """A single record's stream call failed for an ordinary reason."""

    def __init__(self, record_id: int, step: str, message: str) -> None:
        self.record_id = record_id
        self.step = step
        self.message = message
        super().__init__(f"record {record_id} ({step}): {message}")

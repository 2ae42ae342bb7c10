# src/qa_kit/dataset/store.py

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

_TEXT_FIELDS = frozenset({"question", "answer"})


@dataclass
class QARecord:
    """A chunk plus its generated question/answer and status flags.

    ``context`` is the chunk and is not touched by generation.
    """

    id: int
    context: str
    question: str = ""
    answer: str = ""
    selected: bool = False
    generating_question: bool = False
    generating_answer: bool = False

    @property
    def is_generating(self) -> bool:
        return self.generating_question or self.generating_answer


class MergePolicy(str, Enum):
    """How freshly chunked records join an existing dataset."""

    REPLACE = "replace"
    APPEND = "append"


class DatasetStore:
    """In-memory, insertion-ordered collection of QA records keyed by id.

    Lookups, updates and deletes by id are O(1) and never reorder the
    remaining records. Ids are assigned monotonically and are not reused
    until the next ``create_from``.
    """

    def __init__(self) -> None:
        self._records: dict[int, QARecord] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[QARecord]:
        return iter(list(self._records.values()))

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def create_from(self, chunks: Iterable[str]) -> list[QARecord]:
        """Replace the dataset with one record per chunk, ids ``1..n``."""
        self._records = {}
        self._last_id = 0
        created = self._add(chunks)
        logger.info("Created dataset with %d records", len(created))
        return created

    def append_from(self, chunks: Iterable[str]) -> list[QARecord]:
        """Append one record per chunk, continuing after the highest id."""
        created = self._add(chunks)
        logger.info(
            "Appended %d records (dataset now has %d)", len(created), len(self._records)
        )
        return created

    def load(self, chunks: Iterable[str], policy: MergePolicy) -> list[QARecord]:
        if MergePolicy(policy) is MergePolicy.REPLACE:
            return self.create_from(chunks)
        return self.append_from(chunks)

    def get(self, record_id: int) -> QARecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise KeyError(f"Record {record_id} not found")

    def records(self) -> list[QARecord]:
        return list(self._records.values())

    def selected(self) -> list[QARecord]:
        return [r for r in self._records.values() if r.selected]

    def targets(self) -> list[QARecord]:
        """The selected records if any are selected, otherwise all of them."""
        return self.selected() or self.records()

    def contexts(self) -> list[str]:
        return [r.context for r in self._records.values()]

    def update_field(self, record_id: int, field: str, value: str) -> QARecord:
        if field not in _TEXT_FIELDS:
            raise ValueError(f"Field '{field}' cannot be updated")
        record = self.get(record_id)
        setattr(record, field, value)
        return record

    def update_generating(
        self,
        record_id: int,
        *,
        question: bool | None = None,
        answer: bool | None = None,
    ) -> QARecord:
        record = self.get(record_id)
        if question is not None:
            record.generating_question = question
        if answer is not None:
            record.generating_answer = answer
        return record

    def set_selected(self, record_id: int, selected: bool) -> QARecord:
        record = self.get(record_id)
        record.selected = selected
        return record

    def clear_selection(self) -> None:
        for record in self._records.values():
            record.selected = False

    def delete(self, record_id: int) -> None:
        try:
            del self._records[record_id]
        except KeyError:
            raise KeyError(f"Record {record_id} not found")
        logger.debug("Deleted record %d", record_id)

    def delete_many(self, record_ids: Iterable[int]) -> int:
        removed = 0
        for record_id in record_ids:
            if self._records.pop(record_id, None) is not None:
                removed += 1
        logger.debug("Deleted %d records", removed)
        return removed

    def clear(self) -> None:
        self._records = {}
        self._last_id = 0

    def _add(self, chunks: Iterable[str]) -> list[QARecord]:
        next_id = max(self._last_id, max(self._records, default=0)) + 1
        created = []
        for offset, chunk in enumerate(chunks):
            record = QARecord(id=next_id + offset, context=chunk)
            self._records[record.id] = record
            created.append(record)
        if created:
            self._last_id = created[-1].id
        return created

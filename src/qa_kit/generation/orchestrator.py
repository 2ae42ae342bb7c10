# src/qa_kit/generation/orchestrator.py

import logging
from collections.abc import Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass
from time import monotonic

from qa_kit.cancellation import CancelToken
from qa_kit.dataset.store import DatasetStore, QARecord
from qa_kit.errors import (
    BackendUnavailable,
    Cancelled,
    InputError,
    RecordGenerationError,
)
from qa_kit.llms.base import StreamingClient
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook
from qa_kit.prompts.prompt import (
    DEFAULT_SUMMARY_PROMPT,
    PromptTemplate,
    build_summary_prompt,
    render_prompt,
)

from .session import GenerationKind, GenerationSession, Progress

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Progress], None]
UpdateCallback = Callable[[QARecord], None]
Step = Callable[[QARecord, CancelToken, list[RecordGenerationError]], Awaitable[None]]


@dataclass(frozen=True)
class BatchResult:
    kind: GenerationKind
    completed: int
    total: int
    cancelled: bool = False
    failures: tuple[RecordGenerationError, ...] = ()


class GenerationOrchestrator:
    """Drives summary/question/answer generation over a dataset.

    - Strictly sequential: one record, one open stream at a time
    - Targets the selected records if any are selected, else all of them
    - A failing record is logged and skipped; the batch carries on
    - Cancellation unwinds the whole batch; text already streamed is kept
    - Starting while a run is active cancels that run instead
    """

    def __init__(
        self,
        client: StreamingClient,
        store: DatasetStore,
        *,
        template: PromptTemplate,
        summary_prompt: str = DEFAULT_SUMMARY_PROMPT,
        session: GenerationSession | None = None,
        on_progress: ProgressCallback | None = None,
        on_update: UpdateCallback | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self.client = client
        self.store = store
        self.template = template
        self.summary_prompt = summary_prompt
        self.session = session or GenerationSession()
        self.metrics_hook = metrics_hook
        self._on_progress = on_progress
        self._on_update = on_update

    @property
    def is_running(self) -> bool:
        return self.session.is_running

    def cancel(self) -> bool:
        cancelled = self.session.request_cancel()
        if cancelled:
            logger.info("Cancellation requested for %s generation", self.session.kind)
        return cancelled

    async def run(self, kind: GenerationKind) -> BatchResult | None:
        kind = GenerationKind(kind)
        if kind is GenerationKind.SUMMARY:
            return await self.generate_summary()
        if kind is GenerationKind.QUESTION:
            return await self.generate_questions()
        if kind is GenerationKind.ANSWER:
            return await self.generate_answers()
        return await self.generate_qa()

    async def generate_summary(self) -> BatchResult | None:
        """One stream over all chunk contexts; result kept on the session.

        Returns None when the call was turned into a cancellation request.
        """
        if self._cancel_if_running():
            return None

        contexts = self.store.contexts()
        if not contexts:
            raise InputError("No chunks available to summarize")

        prompt = build_summary_prompt(self.summary_prompt, contexts)
        start = monotonic()
        cancelled = False

        token = self.session.begin(GenerationKind.SUMMARY, total=1)
        try:
            self._notify_progress()
            await token.interruptible(self.client.probe())
            summary = ""
            stream = self.client.stream(prompt, token, probe=False)
            async with aclosing(stream) as fragments:
                async for fragment in fragments:
                    summary += fragment
                    self.session.summary = summary
            self.session.summary = summary
            self.session.advance()
            self._notify_progress()
        except Cancelled:
            cancelled = True
            self.metrics_hook.increment(names.GENERATION_CANCELLED_TOTAL)
            logger.info("Summary generation cancelled")
        finally:
            progress = self.session.progress
            self.session.finish()
            self._record_batch(GenerationKind.SUMMARY, start)

        return BatchResult(
            kind=GenerationKind.SUMMARY,
            completed=progress.completed,
            total=progress.total,
            cancelled=cancelled,
        )

    async def generate_questions(self) -> BatchResult | None:
        return await self._run_batch(GenerationKind.QUESTION, self._question_step)

    async def generate_answers(self) -> BatchResult | None:
        return await self._run_batch(GenerationKind.ANSWER, self._answer_step)

    async def generate_qa(self) -> BatchResult | None:
        return await self._run_batch(GenerationKind.QA, self._qa_step)

    async def _run_batch(self, kind: GenerationKind, step: Step) -> BatchResult | None:
        if self._cancel_if_running():
            return None

        targets = self.store.targets()
        if not targets:
            raise InputError("No records to process")

        logger.info("Starting %s generation for %d records", kind.value, len(targets))
        start = monotonic()
        failures: list[RecordGenerationError] = []
        cancelled = False

        token = self.session.begin(kind, total=len(targets))
        try:
            self._notify_progress()
            self.metrics_hook.record_gauge(names.GENERATION_BATCH_SIZE, len(targets))
            await token.interruptible(self.client.probe())
            for record in targets:
                token.raise_if_cancelled()
                await step(record, token, failures)
                self.session.advance()
                self.metrics_hook.increment(
                    names.GENERATION_RECORDS_COMPLETED, labels={"kind": kind.value}
                )
                self._notify_progress()
        except Cancelled:
            cancelled = True
            self.metrics_hook.increment(names.GENERATION_CANCELLED_TOTAL)
            logger.info(
                "%s generation cancelled after %d/%d records",
                kind.value,
                self.session.progress.completed,
                self.session.progress.total,
            )
        finally:
            progress = self.session.progress
            self.session.finish()
            self._record_batch(kind, start)

        logger.info(
            "Finished %s generation: completed=%d/%d, failures=%d",
            kind.value,
            progress.completed,
            progress.total,
            len(failures),
        )
        return BatchResult(
            kind=kind,
            completed=progress.completed,
            total=progress.total,
            cancelled=cancelled,
            failures=tuple(failures),
        )

    async def _question_step(
        self,
        record: QARecord,
        token: CancelToken,
        failures: list[RecordGenerationError],
    ) -> None:
        await self._generate_question(record, token, failures)

    async def _answer_step(
        self,
        record: QARecord,
        token: CancelToken,
        failures: list[RecordGenerationError],
    ) -> None:
        if not record.question.strip():
            logger.warning("Skipping answer for record %d: no question", record.id)
            return
        prompt = render_prompt(
            self.template.answer_prompt,
            summary=self.session.summary,
            chunk=record.context,
            question=record.question,
        )
        await self._stream_into(record, "answer", prompt, token, failures)

    async def _qa_step(
        self,
        record: QARecord,
        token: CancelToken,
        failures: list[RecordGenerationError],
    ) -> None:
        if not await self._generate_question(record, token, failures):
            return
        token.raise_if_cancelled()
        await self._answer_step(record, token, failures)

    async def _generate_question(
        self,
        record: QARecord,
        token: CancelToken,
        failures: list[RecordGenerationError],
    ) -> bool:
        prompt = render_prompt(
            self.template.question_prompt,
            summary=self.session.summary,
            chunk=record.context,
        )
        return await self._stream_into(record, "question", prompt, token, failures)

    async def _stream_into(
        self,
        record: QARecord,
        field: str,
        prompt: str,
        token: CancelToken,
        failures: list[RecordGenerationError],
    ) -> bool:
        """Stream one field of one record. Returns False if the call failed."""
        self.store.update_generating(record.id, **{field: True})
        text = ""
        try:
            stream = self.client.stream(prompt, token, probe=False)
            async with aclosing(stream) as fragments:
                async for fragment in fragments:
                    text += fragment
                    self._apply(record.id, field, text)
            self._apply(record.id, field, text)
            return True
        except (Cancelled, BackendUnavailable):
            raise
        except Exception as exc:
            failures.append(RecordGenerationError(record.id, field, str(exc)))
            self.metrics_hook.increment(
                names.GENERATION_ERRORS_TOTAL, labels={"step": field}
            )
            logger.exception("Failed to generate %s for record %d", field, record.id)
            return False
        finally:
            if record.id in self.store:
                self.store.update_generating(record.id, **{field: False})

    def _apply(self, record_id: int, field: str, text: str) -> None:
        record = self.store.update_field(record_id, field, text)
        if self._on_update is not None:
            self._on_update(record)

    def _cancel_if_running(self) -> bool:
        if not self.session.is_running:
            return False
        logger.info("Generation already running; treating request as cancellation")
        self.cancel()
        return True

    def _notify_progress(self) -> None:
        if self._on_progress is not None:
            self._on_progress(self.session.progress)

    def _record_batch(self, kind: GenerationKind, start: float) -> None:
        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(
            names.GENERATION_BATCH_DURATION, elapsed_ms, labels={"kind": kind.value}
        )

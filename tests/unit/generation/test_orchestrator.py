import asyncio
from collections.abc import AsyncIterator, Callable
from unittest.mock import MagicMock

import pytest

from qa_kit.cancellation import CancelToken
from qa_kit.dataset import DatasetStore, QARecord
from qa_kit.errors import BackendUnavailable, InputError
from qa_kit.generation import GenerationKind, GenerationOrchestrator, Progress
from qa_kit.observability import names
from qa_kit.observability.base import NoOpMetricsHook
from qa_kit.prompts import PromptTemplate

TEMPLATE = PromptTemplate(
    name="test",
    question_prompt="Q:{chunk}",
    answer_prompt="A:{chunk}|{question}|{summary}",
)


class FakeStreamingClient:
    """Streams scripted fragments per prompt, honouring the cancel token."""

    def __init__(self, script: Callable[[str], list[str] | Exception]) -> None:
        self.metrics_hook = NoOpMetricsHook()
        self.script = script
        self.prompts: list[str] = []
        self.stream_probes: list[bool] = []
        self.probe_calls = 0
        self.probe_error: Exception | None = None

    async def probe(self) -> None:
        self.probe_calls += 1
        if self.probe_error is not None:
            raise self.probe_error

    async def stream(
        self, prompt: str, cancel_token: CancelToken, *, probe: bool = True
    ) -> AsyncIterator[str]:
        if probe:
            await self.probe()
        cancel_token.raise_if_cancelled()
        self.prompts.append(prompt)
        self.stream_probes.append(probe)
        outcome = self.script(prompt)
        if isinstance(outcome, Exception):
            raise outcome
        for fragment in outcome:
            await asyncio.sleep(0)
            yield fragment
            cancel_token.raise_if_cancelled()

    async def aclose(self) -> None:
        pass


def default_script(prompt: str) -> list[str] | Exception:
    if prompt.startswith("Q:"):
        return ["What is ", prompt[2:], "?"]
    if prompt.startswith("A:"):
        return ["Because ", "of it."]
    return ["Sum", "mary"]


def _setup(
    contexts: list[str],
    script: Callable[[str], list[str] | Exception] = default_script,
    **kwargs,
) -> tuple[GenerationOrchestrator, FakeStreamingClient, DatasetStore]:
    store = DatasetStore()
    store.create_from(contexts)
    client = FakeStreamingClient(script)
    orchestrator = GenerationOrchestrator(client, store, template=TEMPLATE, **kwargs)
    return orchestrator, client, store


class TestGenerateQuestions:
    @pytest.mark.asyncio
    async def test_fills_every_record(self) -> None:
        progress: list[Progress] = []
        orchestrator, _, store = _setup(["c1", "c2"], on_progress=progress.append)

        result = await orchestrator.generate_questions()

        assert result.kind is GenerationKind.QUESTION
        assert (result.completed, result.total, result.cancelled) == (2, 2, False)
        assert [r.question for r in store] == ["What is c1?", "What is c2?"]
        assert [r.answer for r in store] == ["", ""]
        assert not any(r.is_generating for r in store)
        assert progress == [Progress(0, 2), Progress(1, 2), Progress(2, 2)]
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_updates_stream_in_as_they_arrive(self) -> None:
        seen: list[tuple[str, bool]] = []

        def on_update(record: QARecord) -> None:
            seen.append((record.question, record.generating_question))

        orchestrator, _, _ = _setup(["c1"], on_update=on_update)

        await orchestrator.generate_questions()

        assert seen[:3] == [("What is ", True), ("What is c1", True), ("What is c1?", True)]
        assert seen[-1][0] == "What is c1?"

    @pytest.mark.asyncio
    async def test_only_selected_records_are_processed(self) -> None:
        orchestrator, client, store = _setup(["c1", "c2", "c3"])
        store.set_selected(3, True)
        store.set_selected(1, True)

        result = await orchestrator.generate_questions()

        assert result.total == 2
        assert client.prompts == ["Q:c1", "Q:c3"]
        assert store.get(2).question == ""

    @pytest.mark.asyncio
    async def test_failing_record_does_not_stop_the_batch(self) -> None:
        hook = MagicMock()

        def script(prompt: str) -> list[str] | Exception:
            if prompt == "Q:bad":
                return RuntimeError("model crashed")
            return default_script(prompt)

        orchestrator, _, store = _setup(["c1", "bad", "c3"], script, metrics_hook=hook)

        result = await orchestrator.generate_questions()

        assert result.completed == result.total == 3
        assert [(f.record_id, f.step) for f in result.failures] == [(2, "question")]
        assert store.get(1).question == "What is c1?"
        assert store.get(2).question == ""
        assert store.get(3).question == "What is c3?"
        assert not store.get(2).generating_question
        hook.increment.assert_any_call(names.GENERATION_ERRORS_TOTAL, labels={"step": "question"})

    @pytest.mark.asyncio
    async def test_summary_is_part_of_the_prompt(self) -> None:
        orchestrator, client, _ = _setup(["c1"])
        orchestrator.template = PromptTemplate(
            name="s", question_prompt="Q:{summary}", answer_prompt="A:"
        )
        orchestrator.session.summary = "the gist"

        await orchestrator.generate_questions()

        assert client.prompts == ["Q:the gist"]


class TestGenerateAnswers:
    @pytest.mark.asyncio
    async def test_records_without_question_are_skipped(self) -> None:
        orchestrator, client, store = _setup(["c1", "c2"])
        store.update_field(2, "question", "Why?")

        result = await orchestrator.generate_answers()

        assert result.completed == result.total == 2
        assert client.prompts == ["A:c2|Why?|"]
        assert store.get(1).answer == ""
        assert store.get(2).answer == "Because of it."
        assert store.get(2).question == "Why?"


class TestGenerateQA:
    @pytest.mark.asyncio
    async def test_question_then_answer(self) -> None:
        orchestrator, client, store = _setup(["c1", "c2"])

        result = await orchestrator.generate_qa()

        assert result.kind is GenerationKind.QA
        assert result.completed == 2
        assert client.prompts == [
            "Q:c1",
            "A:c1|What is c1?|",
            "Q:c2",
            "A:c2|What is c2?|",
        ]
        assert store.get(2).answer == "Because of it."

    @pytest.mark.asyncio
    async def test_failed_question_skips_answer(self) -> None:
        def script(prompt: str) -> list[str] | Exception:
            if prompt == "Q:c1":
                return RuntimeError("boom")
            return default_script(prompt)

        orchestrator, client, store = _setup(["c1", "c2"], script)

        result = await orchestrator.generate_qa()

        assert result.completed == 2
        assert len(result.failures) == 1
        assert "A:c1" not in " ".join(client.prompts)
        assert store.get(1).answer == ""
        assert store.get(2).answer == "Because of it."

    @pytest.mark.asyncio
    async def test_run_dispatches_by_kind(self) -> None:
        orchestrator, client, _ = _setup(["c1"])

        result = await orchestrator.run("qa")

        assert result.kind is GenerationKind.QA
        assert len(client.prompts) == 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_mid_batch_keeps_partial_text(self) -> None:
        script_fragments = {"Q:c2": ["partial ", "rest"]}

        def script(prompt: str) -> list[str] | Exception:
            return script_fragments.get(prompt) or default_script(prompt)

        orchestrator: GenerationOrchestrator

        def on_update(record: QARecord) -> None:
            if record.id == 2:
                orchestrator.cancel()

        orchestrator, client, store = _setup(["c1", "c2", "c3"], script, on_update=on_update)

        result = await orchestrator.generate_questions()

        assert result.cancelled
        assert result.completed == 1
        assert result.failures == ()
        assert store.get(1).question == "What is c1?"
        assert store.get(2).question == "partial "
        assert store.get(3).question == ""
        assert "Q:c3" not in client.prompts
        assert not any(r.is_generating for r in store)
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_starting_while_running_cancels(self) -> None:
        orchestrator, _, store = _setup(["c1", "c2", "c3"])

        task = asyncio.create_task(orchestrator.generate_questions())
        await asyncio.sleep(0)
        assert orchestrator.is_running

        assert await orchestrator.generate_answers() is None
        result = await task

        assert result.kind is GenerationKind.QUESTION
        assert result.cancelled
        assert result.completed < 3
        assert not orchestrator.is_running
        assert all(r.answer == "" for r in store)

    @pytest.mark.asyncio
    async def test_cancel_when_idle(self) -> None:
        orchestrator, _, _ = _setup(["c1"])

        assert orchestrator.cancel() is False


class TestGenerateSummary:
    @pytest.mark.asyncio
    async def test_summary_over_all_contexts(self) -> None:
        orchestrator, client, store = _setup(["ctx1", "ctx2"], summary_prompt="Summarize.")
        store.set_selected(1, True)

        result = await orchestrator.generate_summary()

        assert (result.kind, result.completed, result.total) == (GenerationKind.SUMMARY, 1, 1)
        assert orchestrator.session.summary == "Summary"
        assert client.prompts == ["Summarize.\n\nText to summarize:\nctx1\n\nctx2"]
        assert all(r.question == "" for r in store)

    @pytest.mark.asyncio
    async def test_summary_feeds_answer_prompts(self) -> None:
        orchestrator, client, store = _setup(["c1"])
        store.update_field(1, "question", "Q1")

        await orchestrator.run(GenerationKind.SUMMARY)
        await orchestrator.generate_answers()

        assert client.prompts[-1] == "A:c1|Q1|Summary"


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_empty_dataset(self) -> None:
        orchestrator, client, _ = _setup([])

        with pytest.raises(InputError):
            await orchestrator.generate_questions()
        with pytest.raises(InputError):
            await orchestrator.generate_summary()

        assert client.prompts == []
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_backend_unavailable_aborts_before_any_record(self) -> None:
        orchestrator, client, store = _setup(["c1", "c2"])
        client.probe_error = BackendUnavailable("Cannot connect")

        with pytest.raises(BackendUnavailable):
            await orchestrator.generate_qa()

        assert client.prompts == []
        assert all(r.question == "" for r in store)
        assert not orchestrator.is_running

    @pytest.mark.asyncio
    async def test_backend_checked_once_per_batch(self) -> None:
        orchestrator, client, _ = _setup(["c1", "c2", "c3"])

        await orchestrator.generate_qa()

        assert client.probe_calls == 1
        assert client.stream_probes == [False] * 6

    @pytest.mark.asyncio
    async def test_summary_checks_backend_once(self) -> None:
        orchestrator, client, _ = _setup(["c1", "c2"])

        await orchestrator.generate_summary()

        assert client.probe_calls == 1
        assert client.stream_probes == [False]


def _failing_once() -> Callable[[Progress], None]:
    calls: list[Progress] = []

    def on_progress(progress: Progress) -> None:
        calls.append(progress)
        if len(calls) == 1:
            raise RuntimeError("progress listener broke")

    return on_progress


class TestProgressCallbackErrors:
    @pytest.mark.asyncio
    async def test_batch_is_finished_when_callback_raises(self) -> None:
        orchestrator, client, store = _setup(["c1", "c2"], on_progress=_failing_once())

        with pytest.raises(RuntimeError, match="progress listener broke"):
            await orchestrator.generate_questions()

        assert not orchestrator.is_running
        assert client.prompts == []

        result = await orchestrator.generate_questions()

        assert result is not None
        assert (result.completed, result.total, result.cancelled) == (2, 2, False)
        assert [r.question for r in store] == ["What is c1?", "What is c2?"]

    @pytest.mark.asyncio
    async def test_summary_is_finished_when_callback_raises(self) -> None:
        orchestrator, _, _ = _setup(["c1"], on_progress=_failing_once())

        with pytest.raises(RuntimeError):
            await orchestrator.generate_summary()

        assert not orchestrator.is_running

        result = await orchestrator.generate_summary()

        assert result is not None
        assert result.completed == 1
        assert orchestrator.session.summary == "Summary"

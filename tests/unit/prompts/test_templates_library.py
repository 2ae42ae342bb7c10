from pathlib import Path

import pytest
from pydantic import ValidationError

from qa_kit.prompts import (
    DEFAULT_SUMMARY_PROMPT,
    PromptTemplate,
    PromptTemplatesLibrary,
    build_summary_prompt,
    render_prompt,
)


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Create a temp directory with sample YAML template files."""
    (tmp_path / "basic.yaml").write_text(
        """name: Basic
description: Plain question and answer
question_prompt: "Ask about: {chunk}"
answer_prompt: |-
  Answer {question}
  using {chunk}
"""
    )

    (tmp_path / "with_summary.yaml").write_text(
        """name: With Summary
question_prompt: "{summary} / {chunk}"
answer_prompt: "{summary} / {chunk} / {question}"
"""
    )

    # Not a template file
    (tmp_path / "notes.txt").write_text("ignored")

    return tmp_path


class TestPromptTemplatesLibrary:
    def test_loads_templates_from_directory(self, templates_dir: Path) -> None:
        library = PromptTemplatesLibrary(templates_dir)

        assert library.list() == ["Basic", "With Summary"]

    def test_get_template_by_name(self, templates_dir: Path) -> None:
        library = PromptTemplatesLibrary(str(templates_dir))

        template = library.get("Basic")

        assert template.description == "Plain question and answer"
        assert template.question_prompt == "Ask about: {chunk}"
        assert template.answer_prompt == "Answer {question}\nusing {chunk}"

    def test_get_raises_keyerror_for_unknown_template(self, templates_dir: Path) -> None:
        library = PromptTemplatesLibrary(templates_dir)

        with pytest.raises(KeyError, match="Prompt template 'unknown' not found"):
            library.get("unknown")

    def test_empty_directory_loads_no_templates(self, tmp_path: Path) -> None:
        assert PromptTemplatesLibrary(tmp_path).list() == []

    def test_unknown_fields_are_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "bad.yaml").write_text(
            "name: Bad\nquestion_prompt: q\nanswer_prompt: a\nversion: '1.0'\n"
        )

        with pytest.raises(ValidationError):
            PromptTemplatesLibrary(tmp_path)

    def test_add_rejects_duplicates(self, templates_dir: Path) -> None:
        library = PromptTemplatesLibrary(templates_dir)
        extra = PromptTemplate(name="Extra", question_prompt="q", answer_prompt="a")

        library.add(extra)

        assert library.get("Extra") is extra
        with pytest.raises(ValueError, match="already exists"):
            library.add(extra)

    def test_builtin_templates(self) -> None:
        library = PromptTemplatesLibrary()

        assert set(library.list()) == {
            "General Test",
            "Abstractive Test",
            "Extractive Test",
            "Hallucination Test",
            "Yes/No Questions",
        }
        for name in library.list():
            template = library.get(name)
            assert "{chunk}" in template.question_prompt
            assert "{question}" in template.answer_prompt


class TestRenderPrompt:
    def test_fills_placeholders(self) -> None:
        result = render_prompt(
            "{summary}|{chunk}|{question}", summary="S", chunk="C", question="Q"
        )

        assert result == "S|C|Q"

    def test_missing_values_render_empty(self) -> None:
        assert render_prompt("[{summary}] {chunk}", chunk="C") == "[] C"

    def test_other_braces_are_untouched(self) -> None:
        assert render_prompt('{"k": {chunk}}', chunk="1") == '{"k": 1}'

    def test_summary_prompt_layout(self) -> None:
        result = build_summary_prompt(DEFAULT_SUMMARY_PROMPT, ["one", "two"])

        assert result.startswith(DEFAULT_SUMMARY_PROMPT)
        assert result.endswith("\n\nText to summarize:\none\n\ntwo")

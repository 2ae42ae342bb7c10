# src/qa_kit/prompts/prompt.py

from pydantic import BaseModel

DEFAULT_SUMMARY_PROMPT = (
    "Create a focused, factual summary of the following text. The summary should "
    "capture key points and main ideas without adding external information. Output "
    "only the raw summary text without any greetings, markdown, or formatting."
)


class PromptTemplate(BaseModel):
    name: str
    question_prompt: str
    answer_prompt: str
    description: str = ""

    class Config:
        extra = "forbid"


def render_prompt(
    template: str,
    *,
    summary: str = "",
    chunk: str = "",
    question: str = "",
) -> str:
    """Fill the ``{summary}``, ``{chunk}`` and ``{question}`` placeholders.

    Plain replacement, so other braces in the template or the values are
    left alone.
    """
    return (
        template.replace("{summary}", summary or "")
        .replace("{chunk}", chunk or "")
        .replace("{question}", question or "")
    )


def build_summary_prompt(summary_prompt: str, contexts: list[str]) -> str:
    joined = "\n\n".join(contexts)
    return f"{summary_prompt.strip()}\n\nText to summarize:\n{joined}"

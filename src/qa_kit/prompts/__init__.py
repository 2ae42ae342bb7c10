from .prompt import (
    DEFAULT_SUMMARY_PROMPT,
    PromptTemplate,
    build_summary_prompt,
    render_prompt,
)
from .templates_library import BUILTIN_TEMPLATES_DIR, PromptTemplatesLibrary

__all__ = [
    "BUILTIN_TEMPLATES_DIR",
    "DEFAULT_SUMMARY_PROMPT",
    "PromptTemplate",
    "PromptTemplatesLibrary",
    "build_summary_prompt",
    "render_prompt",
]

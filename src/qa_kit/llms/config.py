# src/qa_kit/llms/config.py

from dataclasses import dataclass
from typing import Any, Literal


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling options passed through to the backend.

    ``seed`` is only sent when ``use_fixed_seed`` is set.
    """

    model: str
    temperature: float = 0.7
    top_p: float = 0.9
    use_fixed_seed: bool = False
    seed: int = 42
    num_ctx: int = 4096

    def to_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "num_ctx": self.num_ctx,
        }
        if self.use_fixed_seed:
            options["seed"] = self.seed
        return options


@dataclass(frozen=True)
class LLMConfig:
    """Configuration for streaming clients.

    Immutable. Explicit. No magic defaults from environment.
    """

    provider: Literal["ollama", "azure"]
    settings: GenerationSettings
    base_url: str = "http://localhost:11434"
    timeout: float | None = None  # None: streams wait until cancelled
    probe_timeout: float = 5.0

    # azure only
    api_key: str | None = None  # Falls back to AZURE_OPENAI_API_KEY
    azure_endpoint: str | None = None
    api_version: str = "2024-02-01"
    max_tokens: int | None = None

# src/qa_kit/llms/factory.py

from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import StreamingClient
from .config import LLMConfig


def create_streaming_client(
    config: LLMConfig,
    metrics_hook: MetricsHook = NoOpMetricsHook(),
) -> StreamingClient:
    """Create a streaming client from config.

    Args:
        config: Provider, sampling settings and connection details.
        metrics_hook: Optional metrics hook for observability.

    Returns:
        Configured StreamingClient implementation.

    Raises:
        ValueError: If provider is unknown, or Azure is missing its endpoint.

    Example:
        >>> config = LLMConfig(
        ...     provider="ollama", settings=GenerationSettings(model="llama3.2")
        ... )
        >>> client = create_streaming_client(config)
    """
    if config.provider == "ollama":
        from .ollama import OllamaStreamingClient

        return OllamaStreamingClient(
            settings=config.settings,
            base_url=config.base_url,
            timeout=config.timeout,
            probe_timeout=config.probe_timeout,
            metrics_hook=metrics_hook,
        )

    if config.provider == "azure":
        from .azure import AzureOpenAIStreamingClient

        if not config.azure_endpoint:
            raise ValueError("azure_endpoint is required for the azure provider")

        return AzureOpenAIStreamingClient(
            settings=config.settings,
            azure_endpoint=config.azure_endpoint,
            api_key=config.api_key,
            api_version=config.api_version,
            timeout=config.timeout,
            max_tokens=config.max_tokens,
            metrics_hook=metrics_hook,
        )

    raise ValueError(f"Unknown LLM provider: {config.provider}")

# src/qa_kit/llms/azure.py

import logging
from collections.abc import AsyncIterator
from time import monotonic
from typing import Any

from openai import NOT_GIVEN, AsyncAzureOpenAI, OpenAIError

from qa_kit.cancellation import CancelToken
from qa_kit.errors import BackendUnavailable
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import StreamingClient
from .buffering import FragmentBuffer, next_or_none
from .config import GenerationSettings

logger = logging.getLogger(__name__)


class AzureOpenAIStreamingClient(StreamingClient):
    """Azure OpenAI completions streaming client.

    ``settings.model`` is the deployment name. The SDK's own retries are
    disabled: generation is never retried.
    """

    def __init__(
        self,
        settings: GenerationSettings,
        azure_endpoint: str,
        api_key: str | None = None,
        api_version: str = "2024-02-01",
        timeout: float | None = None,
        max_tokens: int | None = None,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
    ) -> None:
        self._client = AsyncAzureOpenAI(
            api_key=api_key,
            azure_endpoint=azure_endpoint,
            api_version=api_version,
            timeout=timeout,
            max_retries=0,
        )
        self._settings = settings
        self._endpoint = azure_endpoint
        self._max_tokens = max_tokens
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized AzureOpenAIStreamingClient with deployment=%s, endpoint=%s",
            settings.model,
            azure_endpoint,
        )

    async def aclose(self) -> None:
        await self._client.close()

    async def probe(self) -> None:
        try:
            await self._client.models.list()
        except OpenAIError as exc:
            self.metrics_hook.increment(
                names.GENERATION_BACKEND_UNAVAILABLE_TOTAL, labels={"provider": "azure"}
            )
            logger.warning("Azure OpenAI probe failed at %s: %s", self._endpoint, exc)
            raise BackendUnavailable(
                f"Cannot connect to Azure OpenAI at {self._endpoint}"
            ) from exc

    async def stream(
        self, prompt: str, cancel_token: CancelToken, *, probe: bool = True
    ) -> AsyncIterator[str]:
        if probe:
            await cancel_token.interruptible(self.probe())
        cancel_token.raise_if_cancelled()

        start = monotonic()
        fragments = 0
        buffer = FragmentBuffer()
        logger.debug(
            "Calling Azure OpenAI: deployment=%s, prompt_chars=%d",
            self._settings.model,
            len(prompt),
        )

        events = await cancel_token.interruptible(self._create(prompt))
        try:
            iterator = events.__aiter__()
            while True:
                event = await cancel_token.interruptible(next_or_none(iterator))
                if event is None:
                    break
                text = event.choices[0].text if event.choices else ""
                if text:
                    fragments += 1
                    emitted = buffer.push(text)
                    if emitted:
                        yield emitted
                        cancel_token.raise_if_cancelled()

            tail = buffer.flush()
            if tail:
                yield tail
        finally:
            await events.close()

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.GENERATION_STREAM_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.GENERATION_REQUESTS_TOTAL,
            labels={"provider": "azure", "model": self._settings.model},
        )
        self.metrics_hook.increment(names.GENERATION_FRAGMENTS_TOTAL, fragments)
        logger.info(
            "Azure OpenAI stream finished: fragments=%d, latency=%.0fms",
            fragments,
            elapsed_ms,
        )

    async def _create(self, prompt: str) -> Any:
        settings = self._settings
        return await self._client.completions.create(
            model=settings.model,
            prompt=prompt,
            temperature=settings.temperature,
            top_p=settings.top_p,
            seed=settings.seed if settings.use_fixed_seed else NOT_GIVEN,
            max_tokens=self._max_tokens if self._max_tokens else NOT_GIVEN,
            stream=True,
        )

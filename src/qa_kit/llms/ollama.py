# src/qa_kit/llms/ollama.py

import json
import logging
from collections.abc import AsyncIterator
from time import monotonic
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from qa_kit.cancellation import CancelToken
from qa_kit.errors import BackendUnavailable
from qa_kit.observability import names
from qa_kit.observability.base import MetricsHook, NoOpMetricsHook

from .base import StreamingClient
from .buffering import FragmentBuffer, next_or_none
from .config import GenerationSettings

logger = logging.getLogger(__name__)


class OllamaStreamingClient(StreamingClient):
    """Ollama ``/api/generate`` streaming client.

    The response body is newline-delimited JSON, each object optionally
    carrying a ``response`` fragment and a ``done`` flag. Lines that do not
    parse are skipped. Generation is never retried.
    """

    def __init__(
        self,
        settings: GenerationSettings,
        base_url: str = "http://localhost:11434",
        timeout: float | None = None,
        probe_timeout: float = 5.0,
        metrics_hook: MetricsHook = NoOpMetricsHook(),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._base_url = base_url.rstrip("/")
        self._probe_timeout = probe_timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self.metrics_hook = metrics_hook
        logger.info(
            "Initialized OllamaStreamingClient with model=%s, base_url=%s",
            settings.model,
            self._base_url,
        )

    async def __aenter__(self) -> "OllamaStreamingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def probe(self) -> None:
        try:
            response = await self._client.get("/api/tags", timeout=self._probe_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.metrics_hook.increment(
                names.GENERATION_BACKEND_UNAVAILABLE_TOTAL, labels={"provider": "ollama"}
            )
            logger.warning("Ollama probe failed at %s: %s", self._base_url, exc)
            raise BackendUnavailable(
                f"Cannot connect to Ollama at {self._base_url}. "
                "Please make sure it is running."
            ) from exc

        if isinstance(data, dict) and data.get("error"):
            raise BackendUnavailable(str(data["error"]))

    async def list_models(self) -> list[str]:
        """Names of the models the backend advertises.

        Not a generation call, so transport errors are retried.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(3),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                response = await self._client.get("/api/tags", timeout=self._probe_timeout)
                response.raise_for_status()
                data = response.json()

        if data.get("error"):
            raise BackendUnavailable(str(data["error"]))
        return [model["name"] for model in data.get("models") or []]

    async def stream(
        self, prompt: str, cancel_token: CancelToken, *, probe: bool = True
    ) -> AsyncIterator[str]:
        if probe:
            await cancel_token.interruptible(self.probe())
        cancel_token.raise_if_cancelled()

        start = monotonic()
        fragments = 0
        buffer = FragmentBuffer()
        request = self._client.build_request(
            "POST", "/api/generate", json=self._build_payload(prompt)
        )
        logger.debug(
            "Calling Ollama: model=%s, prompt_chars=%d", self._settings.model, len(prompt)
        )

        response = await cancel_token.interruptible(self._client.send(request, stream=True))
        try:
            if response.is_error:
                await response.aread()
                response.raise_for_status()

            lines = response.aiter_lines()
            while True:
                line = await cancel_token.interruptible(next_or_none(lines))
                if line is None:
                    break
                data = _parse_line(line)
                if data is None:
                    continue

                text = data.get("response")
                if text:
                    fragments += 1
                    emitted = buffer.push(text)
                    if emitted:
                        yield emitted
                        cancel_token.raise_if_cancelled()

                if data.get("done"):
                    break

            tail = buffer.flush()
            if tail:
                yield tail
        finally:
            await response.aclose()

        elapsed_ms = 1000 * (monotonic() - start)
        self.metrics_hook.record_latency(names.GENERATION_STREAM_DURATION, elapsed_ms)
        self.metrics_hook.increment(
            names.GENERATION_REQUESTS_TOTAL,
            labels={"provider": "ollama", "model": self._settings.model},
        )
        self.metrics_hook.increment(names.GENERATION_FRAGMENTS_TOTAL, fragments)
        logger.info(
            "Ollama stream finished: fragments=%d, latency=%.0fms", fragments, elapsed_ms
        )

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._settings.model,
            "prompt": prompt,
            "stream": True,
            "options": self._settings.to_options(),
        }


def _parse_line(line: str) -> dict[str, Any] | None:
    if not line.strip():
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        # NDJSON framing may straddle transport chunks.
        logger.debug("Skipping malformed stream line: %r", line[:80])
        return None
    return data if isinstance(data, dict) else None

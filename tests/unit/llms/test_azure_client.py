from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from openai import NOT_GIVEN, APIConnectionError

from qa_kit.cancellation import CancelToken
from qa_kit.errors import BackendUnavailable, Cancelled
from qa_kit.llms.azure import AzureOpenAIStreamingClient
from qa_kit.llms.config import GenerationSettings


class _FakeEventStream:
    def __init__(self, texts: list[str]) -> None:
        self._events = [Mock(choices=[Mock(text=t)]) for t in texts]
        self._events.append(Mock(choices=[]))
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self._events:
            yield event

    async def close(self) -> None:
        self.closed = True


def _client(texts: list[str], **settings) -> tuple[AzureOpenAIStreamingClient, AsyncMock, _FakeEventStream]:
    client = AzureOpenAIStreamingClient(
        settings=GenerationSettings(model="gpt-35-turbo-instruct", **settings),
        azure_endpoint="https://example.openai.azure.com",
        api_key="test-key",
    )
    events = _FakeEventStream(texts)
    mock_sdk = AsyncMock()
    mock_sdk.completions.create.return_value = events
    client._client = mock_sdk
    return client, mock_sdk, events


class TestAzureOpenAIStreamingClient:
    @pytest.mark.asyncio
    async def test_stream_coalesces_and_closes(self) -> None:
        client, _, events = _client(["Hel", "lo", " there"])

        fragments = [f async for f in client.stream("prompt", CancelToken())]

        assert fragments == ["Hello there"]
        assert events.closed

    @pytest.mark.asyncio
    async def test_request_parameters(self) -> None:
        client, mock_sdk, _ = _client(["x"], temperature=0.1)

        [f async for f in client.stream("prompt", CancelToken())]

        kwargs = mock_sdk.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-35-turbo-instruct"
        assert kwargs["prompt"] == "prompt"
        assert kwargs["temperature"] == 0.1
        assert kwargs["stream"] is True
        assert kwargs["seed"] is NOT_GIVEN
        assert kwargs["max_tokens"] is NOT_GIVEN

    @pytest.mark.asyncio
    async def test_fixed_seed(self) -> None:
        client, mock_sdk, _ = _client(["x"], use_fixed_seed=True, seed=11)

        [f async for f in client.stream("prompt", CancelToken())]

        assert mock_sdk.completions.create.call_args.kwargs["seed"] == 11

    @pytest.mark.asyncio
    async def test_probe_failure(self) -> None:
        client, mock_sdk, _ = _client([])
        mock_sdk.models.list.side_effect = APIConnectionError(
            request=httpx.Request("GET", "https://example.openai.azure.com")
        )

        with pytest.raises(BackendUnavailable):
            [f async for f in client.stream("prompt", CancelToken())]

        mock_sdk.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_between_fragments(self) -> None:
        client, _, events = _client(["a" * 60, "b" * 60])
        token = CancelToken()
        received = []

        with pytest.raises(Cancelled):
            async for fragment in client.stream("prompt", token):
                received.append(fragment)
                token.cancel()

        assert received == ["a" * 60]
        assert events.closed

# src/qa_kit/llms/base.py

from collections.abc import AsyncIterator
from typing import Protocol

from qa_kit.cancellation import CancelToken
from qa_kit.observability.base import MetricsHook


class StreamingClient(Protocol):
    """Protocol for token-streaming generation backends.

    Design principles:
    - One request, one stream: no retries, no queuing
    - Fast fail: a reachability probe runs before every request
    - Cancellable: the token is honoured while waiting on the network and
      after every fragment, and the connection is closed before
      ``Cancelled`` propagates
    - Buffered: fragments are coalesced before they reach the caller
    """

    metrics_hook: MetricsHook

    async def probe(self) -> None:
        """Check the backend is reachable.

        Raises:
            BackendUnavailable: If the backend does not answer.
        """
        ...

    def stream(
        self, prompt: str, cancel_token: CancelToken, *, probe: bool = True
    ) -> AsyncIterator[str]:
        """Stream generated text for ``prompt`` as buffered fragments.

        With ``probe=False`` the reachability check is skipped; callers that
        already probed for the current batch pass it.

        Raises:
            Cancelled: If ``cancel_token`` fires before completion.
            BackendUnavailable: If the probe fails.
        """
        ...

    async def aclose(self) -> None: ...

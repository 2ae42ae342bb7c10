# src/qa_kit/llms/__init__.py

"""Streaming client layer for qa-kit.

Provides a thin, cancellable abstraction over token-streaming backends.

Design principles:
- Fast fail: every request is preceded by a reachability probe
- No retries: a failed generation is re-run by the caller, not here
- Cancellable: connections are closed before ``Cancelled`` propagates
- Buffered: fragments reach the caller in chunks of 50+ chars or at newlines

Example:
    >>> from qa_kit.cancellation import CancelToken
    >>> from qa_kit.llms import GenerationSettings, LLMConfig, create_streaming_client
    >>>
    >>> config = LLMConfig(provider="ollama", settings=GenerationSettings(model="llama3.2"))
    >>> client = create_streaming_client(config)
    >>>
    >>> async for fragment in client.stream("Hello!", CancelToken()):
    ...     print(fragment, end="")
"""

from .base import StreamingClient
from .buffering import FragmentBuffer, should_flush
from .config import GenerationSettings, LLMConfig
from .factory import create_streaming_client

__all__ = [
    # Factory
    "create_streaming_client",
    # Protocol
    "StreamingClient",
    # Config
    "GenerationSettings",
    "LLMConfig",
    # Buffering
    "FragmentBuffer",
    "should_flush",
]

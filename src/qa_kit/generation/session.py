# src/qa_kit/generation/session.py

import logging
from dataclasses import dataclass, replace
from enum import Enum

from qa_kit.cancellation import CancelToken

logger = logging.getLogger(__name__)


class GenerationKind(str, Enum):
    SUMMARY = "summary"
    QA = "qa"
    QUESTION = "question"
    ANSWER = "answer"


@dataclass(frozen=True)
class Progress:
    """Batch progress. ``completed`` counts whole units of work only."""

    completed: int = 0
    total: int = 0


class GenerationSession:
    """The single generation-in-progress state.

    Lifecycle: idle -> running(kind, progress) -> idle. Each run owns a fresh
    CancelToken; the session hands it out but does not wait on it.
    The document summary lives here too since question and answer prompts
    read it.
    """

    def __init__(self) -> None:
        self.kind: GenerationKind | None = None
        self.progress = Progress()
        self.summary = ""
        self._cancel_token: CancelToken | None = None

    @property
    def is_running(self) -> bool:
        return self.kind is not None

    @property
    def cancel_token(self) -> CancelToken | None:
        return self._cancel_token

    def begin(self, kind: GenerationKind, total: int) -> CancelToken:
        if self.is_running:
            raise RuntimeError(f"A '{self.kind}' generation is already running")
        self.kind = GenerationKind(kind)
        self.progress = Progress(completed=0, total=total)
        self._cancel_token = CancelToken()
        logger.debug("Session running: kind=%s, total=%d", self.kind.value, total)
        return self._cancel_token

    def advance(self) -> Progress:
        self.progress = replace(self.progress, completed=self.progress.completed + 1)
        return self.progress

    def request_cancel(self) -> bool:
        """Cancel the running generation. Returns False when idle."""
        if self._cancel_token is None:
            return False
        self._cancel_token.cancel()
        return True

    def finish(self) -> None:
        logger.debug("Session idle (was kind=%s)", self.kind)
        self.kind = None
        self.progress = Progress()
        self._cancel_token = None

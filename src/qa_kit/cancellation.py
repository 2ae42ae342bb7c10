# src/qa_kit/cancellation.py

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable
from typing import TypeVar

from .errors import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    """Cooperative cancellation capability for one generation session.

    Owned by the session that created it and handed to whatever does the
    waiting. Once cancelled, a token stays cancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.debug("Cancellation requested")
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled("Generation cancelled")

    async def wait(self) -> None:
        await self._event.wait()

    async def interruptible(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token is cancelled first.

        On cancellation the pending awaitable is cancelled and awaited so
        whatever it holds is released before ``Cancelled`` propagates.
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise Cancelled("Generation cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            return task.result()

        task.cancel()
        try:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        except Exception as exc:
            logger.debug("Interrupted operation raised while unwinding: %s", exc)
        raise Cancelled("Generation cancelled")

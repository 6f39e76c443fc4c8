"""
Cooperative cancellation for pipeline invocations.

One CancellationToken is created per extraction and passed explicitly to
every provider call. Cancelling a token wakes anything awaiting it; it
never affects other invocations.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Optional, TypeVar

from papergraph.exceptions import ExtractionCancelledError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    Invocation-scoped cancellation signal backed by an asyncio.Event.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(extractor.extract(
            paper, None, [], ExtractionOptions(cancellation_token=token)
        ))
        ...
        token.cancel()
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation. Safe to call more than once."""
        if not self._event.is_set():
            self._reason = reason
            logger.info(f"Cancellation requested{': ' + reason if reason else ''}")
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ExtractionCancelledError()

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the token is cancelled first.

        When the token fires before the awaitable finishes, the underlying
        task is cancelled and ExtractionCancelledError is raised.
        """
        if self._event.is_set():
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise ExtractionCancelledError()

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
            await task
        except asyncio.CancelledError:
            pass
        raise ExtractionCancelledError()

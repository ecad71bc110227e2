"""Cancellation tokens for dispatcher calls.

The caller creates a token before the call starts and keeps it; calling
cancel() aborts whatever the dispatcher is awaiting on the token's behalf.
"""

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from ..errors import DispatchCancelled

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared between caller and dispatcher."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Safe to call more than once."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise DispatchCancelled("Request cancelled")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable`, aborting it if the token is cancelled first.

        Raises:
            DispatchCancelled: If cancel() was called before it finished
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise DispatchCancelled("Request cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        finished = False
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
            finished = task.done()
        finally:
            waiter.cancel()
            # The awaitable never outlives run(), even when the caller is cancelled.
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if not finished:
            raise DispatchCancelled("Request cancelled")
        return task.result()

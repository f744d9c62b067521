"""Cooperative cancellation token for translation operations."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from feedglot.core.exceptions import TranslationAborted

logger = logging.getLogger("feedglot")

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation handle threaded through every suspending call.

    Usage:
        token = CancellationToken()
        chunk = await token.race(stream.__anext__())   # raises TranslationAborted
        ...
        token.cancel("superseded")                     # from anywhere on the loop
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None
        self._event = asyncio.Event()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Fire the token. Only the first call has any effect."""
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        self._event.set()

        callbacks = self._callbacks[:]
        self._callbacks.clear()
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Register a once-only abort callback.

        Runs immediately if the token has already fired.
        """
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise TranslationAborted(f"Translation aborted: {self._reason}")

    async def race(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first.

        The pending awaitable is cancelled when the token wins, and
        TranslationAborted is raised. A result that is already available
        wins over a simultaneous cancellation; callers re-check
        `cancelled` before acting on it.
        """
        if self._cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if task.cancelled():
            raise TranslationAborted(f"Translation aborted: {self._reason}")
        return task.result()

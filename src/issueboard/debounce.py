"""Single-slot debounced scheduling on an asyncio event loop.

Each :meth:`Debouncer.schedule` call cancels the pending invocation (if it
has not fired yet) and arms a new one, so only the latest arguments are ever
delivered. Nothing is queued.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable
from typing import Any


class Debouncer:
    def __init__(
        self,
        delay: float,
        callback: Callable[..., Any],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.delay = delay
        self.callback = callback
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, *args: Any) -> None:
        self.cancel()
        self._handle = self._get_loop().call_later(self.delay, self._fire, args)

    def cancel(self) -> bool:
        """Drop the pending invocation; True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self, args: tuple[Any, ...]) -> None:
        self._handle = None
        result = self.callback(*args)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=self._get_loop())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for callbacks that already fired and returned awaitables."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["Debouncer"]

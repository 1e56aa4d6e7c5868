"""
Debounce helper for the client-side controllers.

A Debouncer delays a coroutine call until `delay` seconds pass without a new
trigger. Each trigger cancels the pending timer, so only the latest call runs.
A call whose timer already fired is never interrupted.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional


class Debouncer:
    """Collapses rapid triggers into a single delayed call."""

    def __init__(self, delay: float):
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._last: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        """True while a timer is waiting to fire."""
        return self._timer is not None and not self._timer.done()

    def trigger(self, fn: Callable[..., Awaitable[Any]], *args, **kwargs) -> asyncio.Task:
        """(Re)start the timer; `fn(*args, **kwargs)` is awaited when it fires."""
        self.cancel()
        task = asyncio.ensure_future(self._wait_then_call(fn, args, kwargs))
        self._timer = task
        self._last = task
        return task

    def cancel(self):
        """Drop the waiting timer, if any."""
        if self.pending:
            self._timer.cancel()
        self._timer = None

    async def flush(self):
        """Wait until the most recent trigger has fired and its call finished."""
        task = self._last
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _wait_then_call(self, fn, args, kwargs):
        await asyncio.sleep(self.delay)
        if self._timer is asyncio.current_task():
            self._timer = None
        return await fn(*args, **kwargs)

"""Trailing-edge debounce for async callbacks."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional


class Debouncer:
    """Run ``callback`` once, ``delay`` seconds after the most recent call.

    Calling again before the delay elapses cancels the pending invocation
    and restarts the timer with the new arguments.
    """

    def __init__(self, callback: Callable[..., Awaitable[Any]], delay: float = 0.3):
        self.callback = callback
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Task:
        self.cancel()
        self._pending = asyncio.ensure_future(self._fire(args, kwargs))
        return self._pending

    async def _fire(self, args: tuple, kwargs: dict) -> Any:
        await asyncio.sleep(self.delay)
        return await self.callback(*args, **kwargs)

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def cancel(self) -> None:
        if self.pending:
            self._pending.cancel()
        self._pending = None

    async def flush(self) -> Any:
        """Wait for the pending invocation, if any, and return its result."""
        task = self._pending
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            return None

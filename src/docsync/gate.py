"""Mutual-exclusion gate guarding every mutation of the persisted index.

The gate is an async mutex with a FIFO wake order. Waiters are woken in the
order they called ``acquire()`` and ownership passes straight to the woken
waiter, so a newcomer never overtakes a queued one. The action passed to
``run_exclusive`` may itself suspend; the gate is released on every exit path.

The gate is not reentrant: an owner that calls ``run_exclusive`` again before
releasing waits on itself forever. It is meant for one event loop; sharing it
across threads needs a thread-safe lock instead.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")


class ExclusiveGate:
    """Single-owner critical section for coroutines."""

    def __init__(self):
        # asyncio.Lock wakes waiters first-come first-served and hands over
        # ownership without letting a fresh acquire() barge in.
        self._lock = asyncio.Lock()
        self.acquisitions = 0

    def locked(self) -> bool:
        return self._lock.locked()

    async def acquire(self) -> None:
        await self._lock.acquire()
        self.acquisitions += 1

    def release(self) -> None:
        self._lock.release()

    async def run_exclusive(
        self,
        action: Callable[..., T | Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Run ``action`` while holding the gate and return its result.

        ``action`` may be a plain callable or a coroutine function; awaitable
        results are awaited before the gate is released.
        """
        await self.acquire()
        try:
            result = action(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            self.release()

    async def __aenter__(self) -> "ExclusiveGate":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()

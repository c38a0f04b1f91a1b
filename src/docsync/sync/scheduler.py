"""Cyclic trigger for update passes."""

import asyncio
import contextlib
import logging

from .engine import SyncEngine

logger = logging.getLogger(__name__)


class CyclicUpdater:
    """Runs ``engine.update()`` every ``interval`` seconds.

    With ``allow_overlap`` off, a tick that finds the previous pass still
    running is skipped. With it on, passes may overlap; the engine's gate
    still serializes their append + persist step, but the same stale file
    may be extracted by both.
    """

    def __init__(self, engine: SyncEngine, interval: float = 60.0, allow_overlap: bool = False):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.engine = engine
        self.interval = interval
        self.allow_overlap = allow_overlap
        self.passes_started = 0
        self.passes_skipped = 0
        self._loop_task: asyncio.Task | None = None
        self._passes: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> asyncio.Task:
        """Start ticking in the background. Must be called from a running event loop."""
        if not self.running:
            self._loop_task = asyncio.get_running_loop().create_task(self.run_forever())
            logger.info("Cyclic updater started (every %.0fs)", self.interval)
        return self._loop_task

    async def stop(self) -> None:
        """Stop ticking and wait for in-flight passes to finish."""
        if self._loop_task is not None:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
        if self._passes:
            await asyncio.gather(*self._passes, return_exceptions=True)
        logger.info("Cyclic updater stopped")

    async def run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    def tick(self) -> asyncio.Task | None:
        """Trigger one pass now, unless overlap is disallowed and one is running."""
        if self._passes and not self.allow_overlap:
            self.passes_skipped += 1
            logger.info("Previous update pass still running, skipping this cycle")
            return None
        task = asyncio.get_running_loop().create_task(self._run_pass())
        self._passes.add(task)
        task.add_done_callback(self._passes.discard)
        self.passes_started += 1
        return task

    async def _run_pass(self) -> None:
        try:
            await self.engine.update()
        except Exception:
            logger.exception("Update pass failed, retrying next cycle")

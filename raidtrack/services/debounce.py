"""Per-key debounce for announcement re-renders."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict


logger = logging.getLogger("raidtrack.debounce")


class RenderDebouncer:
    """
    Collapses bursts of render requests into one call per key.

    Each ``schedule`` restarts the key's timer; the callback runs once the
    key has been quiet for ``delay`` seconds.
    """

    def __init__(self, delay: float = 1.2):
        self.delay = delay
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def schedule(self, key: str, callback: Callable[[], Awaitable[object]]) -> None:
        existing = self._tasks.get(key)
        if existing and not existing.done():
            existing.cancel()
        self._tasks[key] = asyncio.create_task(self._run(key, callback))

    async def _run(self, key: str, callback: Callable[[], Awaitable[object]]) -> None:
        await asyncio.sleep(self.delay)

        # A render in progress is not cancelled by later requests.
        if self._tasks.get(key) is asyncio.current_task():
            del self._tasks[key]

        try:
            await callback()
        except Exception:
            logger.warning("Debounced render for %s failed", key, exc_info=True)

    async def close(self) -> None:
        """Cancel all pending renders."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d pending renders", len(tasks))

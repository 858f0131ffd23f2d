"""
Fire-and-forget side effects.

Avatar refreshes and title-image composition run after the triggering
operation has already succeeded. spawn() schedules them as asyncio tasks that
are tracked (so they are not garbage-collected mid-flight and can be awaited
with drain()); a failure is logged and never reaches the caller.
With eager=True the work runs inline instead, which makes it observable in
tests without sleeping.
"""
import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)


class BackgroundRunner:
    def __init__(self, eager: bool = False):
        self.eager = eager
        self._tasks: Set[asyncio.Task] = set()

    async def _guard(self, work: Awaitable[None], label: str) -> None:
        try:
            await work
        except Exception:
            logger.warning("Background task '%s' failed", label, exc_info=True)

    async def spawn(self, work: Awaitable[None], label: str) -> None:
        if self.eager:
            await self._guard(work, label)
            return
        task = asyncio.create_task(self._guard(work, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every task spawned so far (and any they spawn)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

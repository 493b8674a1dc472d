"""
Background task scheduler.

Detached work (notifications, webhook processing) runs as asyncio tasks
owned by this scheduler. Each task has its own error boundary; ``drain`` is
awaited at shutdown so nothing is cut off mid-send.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Set

from core.application.interfaces import ITaskScheduler


logger = logging.getLogger(__name__)


class BackgroundTaskScheduler(ITaskScheduler):

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        task: Callable[[], Awaitable[None]],
        *,
        name: str,
        delay: float = 0.0,
    ) -> None:
        """Start ``task`` on the running loop, optionally after ``delay`` seconds."""
        runner = asyncio.get_running_loop().create_task(self._run(task, name, delay), name=name)
        self._tasks.add(runner)
        runner.add_done_callback(self._tasks.discard)
        logger.debug(f"Scheduled background task {name} (delay={delay}s)")

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for scheduled tasks; cancel whatever is still running after ``timeout``."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        logger.info(f"Waiting for {len(pending)} background task(s)...")
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            logger.warning(f"Cancelling background task {task.get_name()} on shutdown")
            task.cancel()

    @staticmethod
    async def _run(task: Callable[[], Awaitable[None]], name: str, delay: float) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            await task()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Background task {name} failed: {e!r}", exc_info=True)

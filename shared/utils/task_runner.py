import asyncio
import logging
from typing import Awaitable, Set

logger = logging.getLogger(__name__)


class TaskRunner:
    """
    Owns detached background work (import batch loops).

    Each task runs inside its own error boundary, so a crash is logged instead of
    surfacing as "Task exception was never retrieved". References are held until
    the task finishes, and drain() lets the app lifespan wait for in-flight work.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Awaitable, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guard(self, coro: Awaitable, name: str | None):
        try:
            return await coro
        except asyncio.CancelledError:
            logger.warning("Background task %s cancelled", name)
            raise
        except Exception:
            logger.exception("Background task %s crashed", name)
            return None

    async def drain(self):
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

"""
Background Tasks - Financial Clinic Survey Service
finclinic/services/background.py

Fire-and-forget runner for best-effort remote bookkeeping. Tasks are
detached asyncio tasks; failures are logged and never reach the caller.
drain() awaits everything outstanding (tests, shutdown).
"""
import asyncio
from typing import Awaitable, Optional, Set

import structlog

from finclinic.shutdown import is_shutting_down

logger = structlog.get_logger(__name__)


class BackgroundTasks:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable, name: str) -> Optional[asyncio.Task]:
        """Schedule coro on the running loop. Returns None when shutting down."""
        if is_shutting_down():
            logger.warning("background_task_skipped", task=name, reason="shutting_down")
            coro.close()
            return None
        task = asyncio.ensure_future(self._run(coro, name))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, coro: Awaitable, name: str) -> None:
        try:
            await coro
        except asyncio.CancelledError:
            logger.info("background_task_cancelled", task=name)
            raise
        except Exception as e:
            logger.warning("background_task_failed", task=name, error=str(e), error_type=type(e).__name__)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for every outstanding task, including ones spawned while draining."""
        while self._tasks:
            tasks = list(self._tasks)
            _, not_done = await asyncio.wait(tasks, timeout=timeout)
            if not_done:
                logger.warning("background_drain_timeout", pending=len(not_done))
                for task in not_done:
                    task.cancel()
                await asyncio.gather(*not_done, return_exceptions=True)
                return

"""
Delayed job runner.

Runs a coroutine function after a delay, outside the request that
scheduled it, so the response goes out first. Under the test suite jobs
run inline instead. Jobs live in this process only: anything still
waiting at shutdown is cancelled.
"""

import asyncio
from typing import Any, Awaitable, Callable

from scripthub.utils import is_test, logger


class SchedulerService:
    """In-process delayed job runner started and stopped with the application."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def start(self):
        """Start accepting delayed jobs."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        self._running = True
        logger.info("Delayed job runner started")

    async def stop(self):
        """Cancel jobs that haven't run yet and stop."""
        if not self._running:
            return

        self._running = False
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.warning(f"Cancelled {len(tasks)} pending delayed job(s) on shutdown")
        self._tasks.clear()
        logger.info("Delayed job runner stopped")

    async def schedule(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        delay: float = 0,
        **kwargs: Any,
    ) -> asyncio.Task | None:
        """Run func(*args, **kwargs) after delay seconds.

        Under the test suite the job runs immediately and its exceptions
        propagate to the caller. Returns the background task otherwise.
        """
        name = getattr(func, "__name__", repr(func))

        if is_test():
            logger.debug(f"Running job {name} inline")
            await func(*args, **kwargs)
            return None

        if not self._running:
            logger.warning(f"Scheduling job {name} while the runner is stopped")

        task = asyncio.create_task(self._run_later(func, delay, args, kwargs), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info(f"Scheduled job {name} in {delay}s")
        return task

    async def _run_later(
        self,
        func: Callable[..., Awaitable[Any]],
        delay: float,
        args: tuple,
        kwargs: dict,
    ):
        await asyncio.sleep(delay)
        try:
            await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Delayed job {func.__name__} failed: {e}", exc_info=True)


# Global scheduler instance
scheduler_service = SchedulerService()

"""Interval scheduler for recurring background jobs."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Awaitable[None]]

class RefreshScheduler:
    """Runs named async jobs on a fixed interval."""

    def __init__(self):
        self._jobs: Dict[str, JobFunc] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def add_job(self, name: str, interval_seconds: float, func: JobFunc) -> None:
        """Schedule `func` every `interval_seconds`, replacing a job with the same name.

        Args:
            name: Job name
            interval_seconds: Seconds between runs, the first run is one interval away
            func: Coroutine function to run
        """
        self.remove_job(name)
        self._jobs[name] = func
        self._tasks[name] = asyncio.get_running_loop().create_task(
            self._run(name, interval_seconds, func)
        )
        logger.info(f"Scheduled job {name} every {interval_seconds} seconds")

    async def _run(self, name: str, interval_seconds: float, func: JobFunc) -> None:
        while self._jobs.get(name) is func:
            await asyncio.sleep(interval_seconds)
            if self._jobs.get(name) is not func:
                break
            try:
                await func()
            except Exception as e:
                logger.error(f"Error in scheduled job {name}: {str(e)}")

    def remove_job(self, name: str) -> None:
        """Stop a job. Safe to call from inside the job itself."""
        self._jobs.pop(name, None)
        task = self._tasks.pop(name, None)
        if task is None:
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A job removing itself ends when its loop checks the job table
        if task is not current and not task.done():
            task.cancel()
        logger.info(f"Removed job {name}")

    def has_job(self, name: str) -> bool:
        return name in self._jobs

    async def run_job(self, name: str) -> None:
        """Run a scheduled job once, right now."""
        func: Optional[JobFunc] = self._jobs.get(name)
        if func is None:
            raise KeyError(f"No job named {name}")
        await func()

    async def shutdown(self) -> None:
        """Stop every job and wait for their tasks to finish."""
        tasks = list(self._tasks.values())
        for name in list(self._jobs):
            self.remove_job(name)
        current = asyncio.current_task()
        pending = [task for task in tasks if task is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

"""Background job manager using asyncio tasks."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..config import MAX_CONCURRENT_JOBS

logger = logging.getLogger(__name__)


class JobManager:
    """Runs generation jobs as background tasks in the API process."""

    def __init__(self, max_concurrent: int = 2):
        """
        Args:
            max_concurrent: Maximum jobs generating at once. Extra jobs wait
                            their turn; each job still runs its shots in order.
        """
        self.max_concurrent = max_concurrent
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._tasks: dict[str, asyncio.Task] = {}

    def submit(self, job_id: str, fn: Callable[..., Awaitable[Any]], *args, **kwargs) -> bool:
        """
        Start a job in the background.

        Returns:
            False (and starts nothing) if the job is already active
        """
        if self.is_active(job_id):
            logger.warning(f"Job {job_id} is already running, ignoring dispatch", extra={"job_id": job_id})
            return False

        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)

        task = asyncio.create_task(self._run(fn, *args, **kwargs), name=f"generation_job_{job_id}")
        self._tasks[job_id] = task

        # Clean up completed task when done
        def cleanup(t: asyncio.Task) -> None:
            if self._tasks.get(job_id) is t:
                del self._tasks[job_id]
            if not t.cancelled() and t.exception() is not None:
                logger.error(
                    f"Job {job_id} crashed: {t.exception()}",
                    extra={"job_id": job_id, "error_type": type(t.exception()).__name__},
                )

        task.add_done_callback(cleanup)
        return True

    def is_active(self, job_id: str) -> bool:
        task = self._tasks.get(job_id)
        return task is not None and not task.done()

    @property
    def active_jobs(self) -> list[str]:
        return [job_id for job_id, task in self._tasks.items() if not task.done()]

    async def _run(self, fn: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        async with self._semaphore:
            return await fn(*args, **kwargs)

    async def shutdown(self, wait: bool = True) -> None:
        """Wait for running jobs, or cancel them when wait is False."""
        tasks = list(self._tasks.values())
        if not wait:
            for task in tasks:
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


# Global instance - generation is provider-bound, limit concurrency
job_manager = JobManager(max_concurrent=MAX_CONCURRENT_JOBS)

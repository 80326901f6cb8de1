"""Progress tracker for reference set jobs."""

import logging
import time
from typing import Optional

from .job_store import JobStore

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Publishes job progress to the job store.

    Every change to the completed-shot count is written immediately. Task-only
    updates (a new status message without a finished shot) are debounced to
    limit store writes.
    """

    def __init__(
        self,
        store: JobStore,
        job_id: str,
        total: int,
        min_update_interval: float = 0.5,
    ):
        self.store = store
        self.job_id = job_id
        self.total = total
        self.min_update_interval = min_update_interval

        self.current = 0
        self.last_update_time: Optional[float] = None

    async def shot_finished(self, index: int, detail: str) -> None:
        """A shot has a recorded result; index is 1-based."""
        self.current = max(self.current, min(index, self.total))
        await self._write(detail)

    async def task(self, detail: str) -> None:
        """Describe what is happening now without advancing the count."""
        now = time.monotonic()
        if self.last_update_time and now - self.last_update_time < self.min_update_interval:
            return  # Skip - too soon after last update
        await self._write(detail)

    async def _write(self, detail: str) -> None:
        try:
            await self.store.update_progress(self.job_id, self.current, detail)
        except Exception as e:
            # Progress writes are non-critical; the job result is still recorded
            logger.warning(f"Failed to update progress for {self.job_id}: {e}", extra={"job_id": self.job_id})
        self.last_update_time = time.monotonic()

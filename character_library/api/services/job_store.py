"""
Generation job records and the in-memory job store.

Status changes go through transition(), a compare-and-set on the current
status, so two writers can never both move a job out of the same state and a
terminal record never changes again.
"""

import asyncio
import copy
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Protocol

from ...config import GENERATION_CONSTANTS
from ...core.errors import AlreadyTerminal, NotFound
from ...core.types import GenerationResult, utc_now
from ..config import STALE_PENDING_MINUTES, STALE_PROCESSING_MINUTES
from ..models.enums import JobStatus, JobType

MAX_PAGE_SIZE = 100


@dataclass
class JobProgress:
    current: int = 0
    total: int = 0
    percentage: int = 0
    current_task: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class JobRequest:
    """Generation parameters captured at request time."""

    shot_count: Optional[int] = None
    quality_threshold: float = GENERATION_CONSTANTS["quality_threshold"]
    max_retries: int = GENERATION_CONSTANTS["max_retries"]
    seed: Optional[int] = None
    shot_ids: Optional[list[str]] = None
    strict_quality: bool = GENERATION_CONSTANTS["strict_quality"]
    use_prior_references: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRequest":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class GenerationJob:
    job_id: str
    subject_id: str
    job_type: JobType
    status: JobStatus = JobStatus.PENDING
    progress: JobProgress = field(default_factory=JobProgress)
    request_params: JobRequest = field(default_factory=JobRequest)
    results: Optional[GenerationResult] = None  # Terminal only
    error: Optional[str] = None  # Failed only
    cancel_requested: bool = False
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass
class JobPage:
    jobs: list[GenerationJob]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def percentage_for(current: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(current * 100 / total)


def clamp_page(page: int, page_size: int) -> tuple[int, int]:
    return max(1, page), max(1, min(MAX_PAGE_SIZE, page_size))


class JobStore(Protocol):
    """Persistence for generation jobs. Implemented in memory and on Postgres."""

    async def create(self, job: GenerationJob) -> None:
        ...

    async def get(self, job_id: str) -> GenerationJob:
        ...

    async def transition(
        self,
        job_id: str,
        from_statuses: Iterable[JobStatus],
        to_status: JobStatus,
        **fields: Any,
    ) -> Optional[GenerationJob]:
        ...

    async def update_progress(self, job_id: str, current: int, current_task: str) -> bool:
        ...

    async def request_cancel(self, job_id: str) -> GenerationJob:
        ...

    async def is_cancel_requested(self, job_id: str) -> bool:
        ...

    async def list(
        self,
        subject_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JobPage:
        ...

    async def cleanup_stale(self, now: Optional[datetime] = None, queued_ids: Iterable[str] = ()) -> int:
        ...


class InMemoryJobStore:
    """
    Job store kept in process memory.

    Used when DATABASE_URL is unset and in tests. Every read returns a copy,
    so callers can never mutate a stored record.
    """

    def __init__(self):
        self._jobs: dict[str, GenerationJob] = {}
        self._lock = asyncio.Lock()

    async def create(self, job: GenerationJob) -> None:
        async with self._lock:
            if job.job_id in self._jobs:
                raise ValueError(f"Job {job.job_id} already exists")
            self._jobs[job.job_id] = copy.deepcopy(job)

    async def get(self, job_id: str) -> GenerationJob:
        async with self._lock:
            return copy.deepcopy(self._get(job_id))

    async def transition(
        self,
        job_id: str,
        from_statuses: Iterable[JobStatus],
        to_status: JobStatus,
        **fields: Any,
    ) -> Optional[GenerationJob]:
        """
        Move a job to to_status if it is currently in one of from_statuses.

        Returns:
            The updated job, or None if the current status did not match
        """
        async with self._lock:
            job = self._get(job_id)
            if job.status not in set(from_statuses):
                return None
            job.status = to_status
            for name, value in fields.items():
                setattr(job, name, value)
            return copy.deepcopy(job)

    async def update_progress(self, job_id: str, current: int, current_task: str) -> bool:
        """Progress only moves forward, and only while the job is live."""
        async with self._lock:
            job = self._get(job_id)
            if job.is_terminal:
                return False
            progress = job.progress
            progress.current = min(max(progress.current, current), progress.total)
            progress.percentage = percentage_for(progress.current, progress.total)
            progress.current_task = current_task
            return True

    async def request_cancel(self, job_id: str) -> GenerationJob:
        """
        Cancel a pending job outright, or flag a processing one.

        Raises:
            AlreadyTerminal: If the job already finished
        """
        async with self._lock:
            job = self._get(job_id)
            if job.is_terminal:
                raise AlreadyTerminal(job_id, job.status.value)
            if job.status == JobStatus.PENDING:
                job.status = JobStatus.CANCELLED
                job.completed_at = utc_now()
                job.progress.current_task = "Cancelled before start"
            job.cancel_requested = True
            return copy.deepcopy(job)

    async def is_cancel_requested(self, job_id: str) -> bool:
        async with self._lock:
            return self._get(job_id).cancel_requested

    async def list(
        self,
        subject_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JobPage:
        page, page_size = clamp_page(page, page_size)
        async with self._lock:
            jobs = [
                job for job in self._jobs.values()
                if (subject_id is None or job.subject_id == subject_id)
                and (status is None or job.status == status)
                and (job_type is None or job.job_type == job_type)
            ]
            jobs.sort(key=lambda j: j.created_at, reverse=True)
            start = (page - 1) * page_size
            window = [copy.deepcopy(j) for j in jobs[start:start + page_size]]
        return JobPage(jobs=window, total=len(jobs), page=page, page_size=page_size)

    async def cleanup_stale(self, now: Optional[datetime] = None, queued_ids: Iterable[str] = ()) -> int:
        """
        Fail jobs stuck pending or processing past their thresholds.

        Pending jobs listed in queued_ids are still waiting for a worker slot
        and are left alone.
        """
        now = now or utc_now()
        queued = set(queued_ids)
        pending_cutoff = now - timedelta(minutes=STALE_PENDING_MINUTES)
        processing_cutoff = now - timedelta(minutes=STALE_PROCESSING_MINUTES)
        count = 0
        async with self._lock:
            for job in self._jobs.values():
                stale_pending = (
                    job.status == JobStatus.PENDING
                    and job.created_at < pending_cutoff
                    and job.job_id not in queued
                )
                stale_processing = (
                    job.status == JobStatus.PROCESSING
                    and (job.started_at or job.created_at) < processing_cutoff
                )
                if stale_pending or stale_processing:
                    job.status = JobStatus.FAILED
                    job.error = f"Job timed out while {'pending' if stale_pending else 'processing'}"
                    job.completed_at = now
                    count += 1
        return count

    def _get(self, job_id: str) -> GenerationJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFound("Job", job_id)
        return job

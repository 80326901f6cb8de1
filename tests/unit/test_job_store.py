"""Unit tests for the in-memory job store."""

from datetime import timedelta

import pytest

from character_library.api.models.enums import JobStatus, JobType
from character_library.api.services.job_store import (
    GenerationJob,
    InMemoryJobStore,
    JobPage,
    JobProgress,
    JobRequest,
    percentage_for,
)
from character_library.core.errors import AlreadyTerminal, NotFound
from character_library.core.types import utc_now


def _job(job_id: str = "job-1", subject_id: str = "maya", total: int = 9, **overrides) -> GenerationJob:
    values = {
        "job_id": job_id,
        "subject_id": subject_id,
        "job_type": JobType.CORE_SET,
        "progress": JobProgress(total=total),
    }
    values.update(overrides)
    return GenerationJob(**values)


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_get_returns_copy(self, job_store):
        await job_store.create(_job())

        job = await job_store.get("job-1")
        job.status = JobStatus.COMPLETED

        assert (await job_store.get("job-1")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, job_store):
        await job_store.create(_job())

        with pytest.raises(ValueError, match="already exists"):
            await job_store.create(_job())

    @pytest.mark.asyncio
    async def test_unknown_id_raises_not_found(self, job_store):
        with pytest.raises(NotFound):
            await job_store.get("missing")


class TestTransition:
    @pytest.mark.asyncio
    async def test_transition_from_matching_status(self, job_store):
        await job_store.create(_job())

        job = await job_store.transition("job-1", [JobStatus.PENDING], JobStatus.PROCESSING, started_at=utc_now())

        assert job.status == JobStatus.PROCESSING
        assert job.started_at is not None

    @pytest.mark.asyncio
    async def test_transition_from_other_status_is_refused(self, job_store):
        await job_store.create(_job())
        await job_store.transition("job-1", [JobStatus.PENDING], JobStatus.PROCESSING)
        await job_store.transition("job-1", [JobStatus.PROCESSING], JobStatus.COMPLETED)

        second = await job_store.transition("job-1", [JobStatus.PROCESSING], JobStatus.FAILED, error="late")

        assert second is None
        job = await job_store.get("job-1")
        assert job.status == JobStatus.COMPLETED
        assert job.error is None


class TestProgress:
    @pytest.mark.asyncio
    async def test_progress_never_moves_backwards(self, job_store):
        await job_store.create(_job(total=4))

        await job_store.update_progress("job-1", 3, "third")
        await job_store.update_progress("job-1", 1, "stale write")

        progress = (await job_store.get("job-1")).progress
        assert progress.current == 3
        assert progress.percentage == 75
        assert progress.current_task == "stale write"

    @pytest.mark.asyncio
    async def test_progress_is_capped_at_total(self, job_store):
        await job_store.create(_job(total=2))

        await job_store.update_progress("job-1", 5, "overflow")

        assert (await job_store.get("job-1")).progress.current == 2

    @pytest.mark.asyncio
    async def test_terminal_job_ignores_progress(self, job_store):
        await job_store.create(_job())
        await job_store.request_cancel("job-1")

        assert await job_store.update_progress("job-1", 1, "too late") is False

    def test_percentage_for_empty_job(self):
        assert percentage_for(0, 0) == 0
        assert percentage_for(1, 3) == 33


class TestCancel:
    @pytest.mark.asyncio
    async def test_pending_job_is_cancelled_immediately(self, job_store):
        await job_store.create(_job())

        job = await job_store.request_cancel("job-1")

        assert job.status == JobStatus.CANCELLED
        assert job.cancel_requested
        assert job.completed_at is not None

    @pytest.mark.asyncio
    async def test_processing_job_is_flagged(self, job_store):
        await job_store.create(_job())
        await job_store.transition("job-1", [JobStatus.PENDING], JobStatus.PROCESSING)

        job = await job_store.request_cancel("job-1")

        assert job.status == JobStatus.PROCESSING
        assert await job_store.is_cancel_requested("job-1")

    @pytest.mark.asyncio
    async def test_terminal_job_raises(self, job_store):
        await job_store.create(_job())
        await job_store.request_cancel("job-1")

        with pytest.raises(AlreadyTerminal):
            await job_store.request_cancel("job-1")


class TestList:
    @pytest.mark.asyncio
    async def test_newest_first_with_filters(self, job_store):
        now = utc_now()
        await job_store.create(_job("a", created_at=now - timedelta(minutes=2)))
        await job_store.create(_job("b", created_at=now - timedelta(minutes=1)))
        await job_store.create(_job("c", subject_id="other", created_at=now))

        page = await job_store.list(subject_id="maya")

        assert [j.job_id for j in page.jobs] == ["b", "a"]
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_pagination(self, job_store):
        for i in range(5):
            await job_store.create(_job(f"job-{i}"))

        page = await job_store.list(page=2, page_size=2)

        assert len(page.jobs) == 2
        assert page.total_pages == 3
        assert page.has_next
        assert page.has_prev

    @pytest.mark.asyncio
    async def test_page_size_is_capped(self, job_store):
        page = await job_store.list(page_size=500)

        assert page.page_size == 100

    def test_empty_page(self):
        page = JobPage(jobs=[], total=0, page=1, page_size=20)

        assert page.total_pages == 0
        assert not page.has_next
        assert not page.has_prev


class TestCleanupStale:
    @pytest.mark.asyncio
    async def test_fails_old_pending_and_processing_jobs(self):
        store = InMemoryJobStore()
        now = utc_now()
        await store.create(_job("old-pending", created_at=now - timedelta(minutes=10)))
        await store.create(_job("fresh-pending", created_at=now))
        await store.create(_job(
            "old-processing",
            status=JobStatus.PROCESSING,
            created_at=now - timedelta(hours=3),
            started_at=now - timedelta(hours=2),
        ))

        count = await store.cleanup_stale(now=now)

        assert count == 2
        assert (await store.get("old-pending")).error == "Job timed out while pending"
        assert (await store.get("old-processing")).error == "Job timed out while processing"
        assert (await store.get("fresh-pending")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_pending_job_still_queued_is_not_failed(self):
        store = InMemoryJobStore()
        now = utc_now()
        await store.create(_job("queued", created_at=now - timedelta(minutes=6)))
        await store.create(_job("lost", created_at=now - timedelta(minutes=6)))

        count = await store.cleanup_stale(now=now, queued_ids=["queued"])

        assert count == 1
        assert (await store.get("queued")).status == JobStatus.PENDING
        assert (await store.get("lost")).error == "Job timed out while pending"

    @pytest.mark.asyncio
    async def test_queued_ids_do_not_protect_processing_jobs(self):
        store = InMemoryJobStore()
        now = utc_now()
        await store.create(_job(
            "running",
            status=JobStatus.PROCESSING,
            created_at=now - timedelta(hours=2),
            started_at=now - timedelta(hours=2),
        ))

        assert await store.cleanup_stale(now=now, queued_ids=["running"]) == 1


class TestJobRequest:
    def test_from_dict_ignores_unknown_keys(self):
        request = JobRequest.from_dict({"quality_threshold": 80, "legacy_field": True})

        assert request.quality_threshold == 80
        assert request.max_retries == 3

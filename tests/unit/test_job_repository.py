"""Unit tests for the asyncpg job and character repositories."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from character_library.api.database.repository import CharacterRepository, JobRepository
from character_library.api.models.enums import JobStatus, JobType
from character_library.api.services.job_store import GenerationJob, JobProgress, JobRequest
from character_library.core.errors import AlreadyTerminal, NotFound
from tests.unit.fakes import make_image

TEST_JOB_ID = "job-abc"
CREATED = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _row(**overrides) -> dict:
    row = {
        "id": TEST_JOB_ID,
        "subject_id": "maya",
        "job_type": "core-set",
        "status": "pending",
        "progress_current": 0,
        "progress_total": 9,
        "progress_percentage": 0,
        "current_task": "Queued",
        "request_json": json.dumps({"quality_threshold": 80, "max_retries": 2}),
        "results_json": None,
        "error_message": None,
        "cancel_requested": False,
        "created_at": CREATED,
        "started_at": None,
        "completed_at": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def mock_connection():
    """Create a mock asyncpg connection."""
    conn = MagicMock()
    conn.execute = AsyncMock(return_value="UPDATE 1")
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=None)
    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock()
    transaction.__aexit__ = AsyncMock(return_value=False)
    conn.transaction = MagicMock(return_value=transaction)
    return conn


@pytest.fixture
def repository(mock_connection):
    return JobRepository(mock_connection)


class TestCreateJob:
    @pytest.mark.asyncio
    async def test_inserts_pending_job(self, repository, mock_connection):
        job = GenerationJob(
            job_id=TEST_JOB_ID,
            subject_id="maya",
            job_type=JobType.CORE_SET,
            progress=JobProgress(total=9),
            request_params=JobRequest(seed=5),
        )

        await repository.create_job(job)

        sql, *args = mock_connection.execute.call_args.args
        assert "INSERT INTO generation_jobs" in sql
        assert args[:4] == [TEST_JOB_ID, "maya", "core-set", "pending"]
        assert json.loads(args[8])["seed"] == 5


class TestGetJob:
    @pytest.mark.asyncio
    async def test_returns_none_when_missing(self, repository):
        assert await repository.get_job("missing") is None

    @pytest.mark.asyncio
    async def test_converts_row(self, repository, mock_connection):
        mock_connection.fetchrow = AsyncMock(return_value=_row(status="processing", progress_current=3))

        job = await repository.get_job(TEST_JOB_ID)

        assert job.status == JobStatus.PROCESSING
        assert job.job_type == JobType.CORE_SET
        assert job.progress.current == 3
        assert job.request_params.quality_threshold == 80
        assert job.results is None

    @pytest.mark.asyncio
    async def test_decodes_results(self, repository, mock_connection):
        results = {"generated_images": [make_image().to_dict()], "failed_images": [], "total_attempts": 1}
        mock_connection.fetchrow = AsyncMock(return_value=_row(status="completed", results_json=json.dumps(results)))

        job = await repository.get_job(TEST_JOB_ID)

        assert job.results.generated_images[0].shot_template_id == "50_front_cu"


class TestTransition:
    @pytest.mark.asyncio
    async def test_guards_on_current_status(self, repository, mock_connection):
        mock_connection.fetchrow = AsyncMock(return_value=_row(status="processing"))

        job = await repository.transition(TEST_JOB_ID, [JobStatus.PENDING], JobStatus.PROCESSING, started_at=CREATED)

        sql, *args = mock_connection.fetchrow.call_args.args
        assert "status = ANY($3::text[])" in sql
        assert "started_at = $4" in sql
        assert args == [TEST_JOB_ID, "processing", ["pending"], CREATED]
        assert job.status == JobStatus.PROCESSING

    @pytest.mark.asyncio
    async def test_returns_none_on_status_mismatch(self, repository, mock_connection):
        mock_connection.fetchval = AsyncMock(return_value=1)

        assert await repository.transition(TEST_JOB_ID, [JobStatus.PENDING], JobStatus.FAILED) is None

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self, repository):
        with pytest.raises(NotFound):
            await repository.transition("missing", [JobStatus.PENDING], JobStatus.FAILED)


class TestUpdateProgress:
    @pytest.mark.asyncio
    async def test_update_is_monotonic_in_sql(self, repository, mock_connection):
        assert await repository.update_progress(TEST_JOB_ID, 4, "shot 4") is True

        sql = mock_connection.execute.call_args.args[0]
        assert "GREATEST(progress_current, $2)" in sql
        assert "status IN ('pending', 'processing')" in sql

    @pytest.mark.asyncio
    async def test_terminal_job_returns_false(self, repository, mock_connection):
        mock_connection.execute = AsyncMock(return_value="UPDATE 0")
        mock_connection.fetchval = AsyncMock(return_value=1)

        assert await repository.update_progress(TEST_JOB_ID, 4, "shot 4") is False


class TestRequestCancel:
    @pytest.mark.asyncio
    async def test_terminal_job_raises(self, repository, mock_connection):
        mock_connection.fetchrow = AsyncMock(return_value={"status": "completed"})

        with pytest.raises(AlreadyTerminal):
            await repository.request_cancel(TEST_JOB_ID)

    @pytest.mark.asyncio
    async def test_pending_job_is_cancelled(self, repository, mock_connection):
        mock_connection.fetchrow = AsyncMock(
            side_effect=[{"status": "pending"}, _row(status="cancelled", cancel_requested=True)]
        )

        job = await repository.request_cancel(TEST_JOB_ID)

        assert "status = 'cancelled'" in mock_connection.execute.call_args.args[0]
        assert job.status == JobStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self, repository):
        with pytest.raises(NotFound):
            await repository.request_cancel("missing")


class TestListJobs:
    @pytest.mark.asyncio
    async def test_builds_filters_and_pagination(self, repository, mock_connection):
        mock_connection.fetchval = AsyncMock(return_value=1)
        mock_connection.fetch = AsyncMock(return_value=[_row()])

        page = await repository.list_jobs(subject_id="maya", status=JobStatus.PENDING, page=2, page_size=10)

        sql, *args = mock_connection.fetch.call_args.args
        assert "WHERE subject_id = $1 AND status = $2" in sql
        assert "LIMIT $3 OFFSET $4" in sql
        assert args == ["maya", "pending", 10, 10]
        assert page.total == 1


class TestCleanupStaleJobs:
    @pytest.mark.asyncio
    async def test_returns_updated_count(self, repository, mock_connection):
        mock_connection.execute = AsyncMock(return_value="UPDATE 3")

        assert await repository.cleanup_stale_jobs(now=CREATED) == 3

    @pytest.mark.asyncio
    async def test_passes_queued_ids_to_pending_clause(self, repository, mock_connection):
        mock_connection.execute = AsyncMock(return_value="UPDATE 0")

        await repository.cleanup_stale_jobs(now=CREATED, queued_ids={"job-1"})

        query, *params = mock_connection.execute.call_args.args
        assert "NOT (id = ANY($4::text[]))" in query
        assert params[3] == ["job-1"]


class TestCharacterRepository:
    @pytest.mark.asyncio
    async def test_get_character_maps_row(self, mock_connection):
        mock_connection.fetchrow = AsyncMock(return_value={
            "id": "maya",
            "name": "Maya",
            "traits": None,
            "personality": "brave",
            "master_reference": "maya/master.png",
        })

        subject = await CharacterRepository(mock_connection).get_character("maya")

        assert subject.master_reference == "maya/master.png"
        assert subject.traits == ""

    @pytest.mark.asyncio
    async def test_list_images_decodes_json(self, mock_connection):
        mock_connection.fetch = AsyncMock(return_value=[{"image_json": json.dumps(make_image().to_dict())}])

        images = await CharacterRepository(mock_connection).list_images("maya")

        assert images[0].lens_mm == 50

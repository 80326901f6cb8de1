"""Repositories for jobs and characters using raw asyncpg SQL."""

import json
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

import asyncpg

from ...core.errors import AlreadyTerminal, NotFound
from ...core.types import GeneratedImage, GenerationResult, Subject, utc_now
from ..config import STALE_PENDING_MINUTES, STALE_PROCESSING_MINUTES
from ..models.enums import JobStatus, JobType
from ..services.job_store import (
    GenerationJob,
    JobPage,
    JobProgress,
    JobRequest,
    clamp_page,
)

# Job fields transition() may set, mapped to (column, encoder)
TRANSITION_FIELDS = {
    "started_at": ("started_at", lambda v: v),
    "completed_at": ("completed_at", lambda v: v),
    "error": ("error_message", lambda v: v),
    "results": ("results_json", lambda v: json.dumps(v.to_dict()) if v is not None else None),
    "cancel_requested": ("cancel_requested", lambda v: v),
}


class JobRepository:
    """Repository for generation job persistence operations."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def create_job(self, job: GenerationJob) -> None:
        """Create a new job record in pending status."""
        await self.conn.execute(
            """
            INSERT INTO generation_jobs
                (id, subject_id, job_type, status, progress_current, progress_total,
                 progress_percentage, current_task, request_json, cancel_requested, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            """,
            job.job_id,
            job.subject_id,
            job.job_type.value,
            job.status.value,
            job.progress.current,
            job.progress.total,
            job.progress.percentage,
            job.progress.current_task,
            json.dumps(job.request_params.to_dict()),
            job.cancel_requested,
            job.created_at,
        )

    async def get_job(self, job_id: str) -> Optional[GenerationJob]:
        row = await self.conn.fetchrow("SELECT * FROM generation_jobs WHERE id = $1", job_id)
        return self._record_to_job(row) if row else None

    async def transition(
        self,
        job_id: str,
        from_statuses: Iterable[JobStatus],
        to_status: JobStatus,
        **fields: Any,
    ) -> Optional[GenerationJob]:
        """Compare-and-set on status. Returns None when the status did not match."""
        assignments = ["status = $2"]
        values: list[Any] = [job_id, to_status.value, [s.value for s in from_statuses]]
        for name, value in fields.items():
            column, encode = TRANSITION_FIELDS[name]
            values.append(encode(value))
            assignments.append(f"{column} = ${len(values)}")

        row = await self.conn.fetchrow(
            f"""
            UPDATE generation_jobs
            SET {", ".join(assignments)}
            WHERE id = $1 AND status = ANY($3::text[])
            RETURNING *
            """,
            *values,
        )
        if row is None:
            if not await self._exists(job_id):
                raise NotFound("Job", job_id)
            return None
        return self._record_to_job(row)

    async def update_progress(self, job_id: str, current: int, current_task: str) -> bool:
        """Move progress forward (never back, never past total) while the job is live."""
        result = await self.conn.execute(
            """
            UPDATE generation_jobs
            SET progress_current = LEAST(GREATEST(progress_current, $2), progress_total),
                progress_percentage = CASE
                    WHEN progress_total > 0
                    THEN LEAST(GREATEST(progress_current, $2), progress_total) * 100 / progress_total
                    ELSE 0
                END,
                current_task = $3
            WHERE id = $1 AND status IN ('pending', 'processing')
            """,
            job_id,
            current,
            current_task,
        )
        # Result is like "UPDATE 1" or "UPDATE 0"
        if result.split()[-1] == "0":
            if not await self._exists(job_id):
                raise NotFound("Job", job_id)
            return False
        return True

    async def request_cancel(self, job_id: str) -> GenerationJob:
        async with self.conn.transaction():
            row = await self.conn.fetchrow(
                "SELECT status FROM generation_jobs WHERE id = $1 FOR UPDATE",
                job_id,
            )
            if row is None:
                raise NotFound("Job", job_id)

            status = JobStatus(row["status"])
            if status.is_terminal:
                raise AlreadyTerminal(job_id, status.value)

            if status == JobStatus.PENDING:
                await self.conn.execute(
                    """
                    UPDATE generation_jobs
                    SET status = 'cancelled',
                        cancel_requested = TRUE,
                        completed_at = $2,
                        current_task = 'Cancelled before start'
                    WHERE id = $1
                    """,
                    job_id,
                    utc_now(),
                )
            else:
                await self.conn.execute(
                    "UPDATE generation_jobs SET cancel_requested = TRUE WHERE id = $1",
                    job_id,
                )

            row = await self.conn.fetchrow("SELECT * FROM generation_jobs WHERE id = $1", job_id)
        return self._record_to_job(row)

    async def is_cancel_requested(self, job_id: str) -> bool:
        value = await self.conn.fetchval(
            "SELECT cancel_requested FROM generation_jobs WHERE id = $1",
            job_id,
        )
        if value is None:
            raise NotFound("Job", job_id)
        return value

    async def list_jobs(
        self,
        subject_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JobPage:
        """List jobs newest first with pagination and optional filters."""
        page, page_size = clamp_page(page, page_size)

        conditions = []
        values: list[Any] = []
        for column, value in (
            ("subject_id", subject_id),
            ("status", status.value if status else None),
            ("job_type", job_type.value if job_type else None),
        ):
            if value is not None:
                values.append(value)
                conditions.append(f"{column} = ${len(values)}")
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await self.conn.fetchval(f"SELECT COUNT(*) FROM generation_jobs {where}", *values)
        rows = await self.conn.fetch(
            f"""
            SELECT * FROM generation_jobs
            {where}
            ORDER BY created_at DESC
            LIMIT ${len(values) + 1} OFFSET ${len(values) + 2}
            """,
            *values,
            page_size,
            (page - 1) * page_size,
        )
        return JobPage(
            jobs=[self._record_to_job(r) for r in rows],
            total=total or 0,
            page=page,
            page_size=page_size,
        )

    async def cleanup_stale_jobs(self, now: Optional[datetime] = None, queued_ids: Iterable[str] = ()) -> int:
        """
        Mark jobs as failed if they've been:
        - pending for > 5 minutes and not waiting in queued_ids
        - processing for > 60 minutes
        """
        now = now or utc_now()
        result = await self.conn.execute(
            """
            UPDATE generation_jobs
            SET error_message = CASE
                    WHEN status = 'pending' THEN 'Job timed out while pending'
                    ELSE 'Job timed out while processing'
                END,
                status = 'failed',
                completed_at = $1
            WHERE (status = 'pending' AND created_at < $2 AND NOT (id = ANY($4::text[])))
               OR (status = 'processing' AND COALESCE(started_at, created_at) < $3)
            """,
            now,
            now - timedelta(minutes=STALE_PENDING_MINUTES),
            now - timedelta(minutes=STALE_PROCESSING_MINUTES),
            list(queued_ids),
        )
        return int(result.split()[-1])

    async def _exists(self, job_id: str) -> bool:
        return bool(await self.conn.fetchval("SELECT 1 FROM generation_jobs WHERE id = $1", job_id))

    def _record_to_job(self, row: asyncpg.Record) -> GenerationJob:
        """Convert a database row to a GenerationJob."""
        results = None
        if row["results_json"]:
            results = GenerationResult.from_dict(json.loads(row["results_json"]))

        return GenerationJob(
            job_id=row["id"],
            subject_id=row["subject_id"],
            job_type=JobType(row["job_type"]),
            status=JobStatus(row["status"]),
            progress=JobProgress(
                current=row["progress_current"],
                total=row["progress_total"],
                percentage=row["progress_percentage"],
                current_task=row["current_task"] or "",
            ),
            request_params=JobRequest.from_dict(json.loads(row["request_json"])),
            results=results,
            error=row["error_message"],
            cancel_requested=row["cancel_requested"],
            created_at=row["created_at"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        )


class CharacterRepository:
    """Repository for characters and their image pools."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def upsert_character(self, subject: Subject) -> None:
        await self.conn.execute(
            """
            INSERT INTO characters (id, name, traits, personality, master_reference)
            VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (id) DO UPDATE
            SET name = EXCLUDED.name,
                traits = EXCLUDED.traits,
                personality = EXCLUDED.personality,
                master_reference = EXCLUDED.master_reference
            """,
            subject.subject_id,
            subject.name,
            subject.traits,
            subject.personality,
            subject.master_reference,
        )

    async def get_character(self, subject_id: str) -> Optional[Subject]:
        row = await self.conn.fetchrow("SELECT * FROM characters WHERE id = $1", subject_id)
        if not row:
            return None
        return Subject(
            subject_id=row["id"],
            name=row["name"],
            traits=row["traits"] or "",
            personality=row["personality"] or "",
            master_reference=row["master_reference"],
        )

    async def add_image(self, subject_id: str, image: GeneratedImage) -> None:
        await self.conn.execute(
            """
            INSERT INTO generated_images
                (character_id, shot_template_id, asset_ref, quality_score, consistency_score, image_json, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            subject_id,
            image.shot_template_id,
            image.asset_ref,
            image.quality_score,
            image.consistency_score,
            json.dumps(image.to_dict()),
            image.created_at,
        )

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        rows = await self.conn.fetch(
            """
            SELECT image_json FROM generated_images
            WHERE character_id = $1
            ORDER BY created_at, id
            """,
            subject_id,
        )
        return [GeneratedImage.from_dict(json.loads(r["image_json"])) for r in rows]


class PostgresJobStore:
    """JobStore over an asyncpg pool; one connection per operation."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(self, job: GenerationJob) -> None:
        async with self.pool.acquire() as conn:
            await JobRepository(conn).create_job(job)

    async def get(self, job_id: str) -> GenerationJob:
        async with self.pool.acquire() as conn:
            job = await JobRepository(conn).get_job(job_id)
        if job is None:
            raise NotFound("Job", job_id)
        return job

    async def transition(self, job_id, from_statuses, to_status, **fields) -> Optional[GenerationJob]:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).transition(job_id, list(from_statuses), to_status, **fields)

    async def update_progress(self, job_id: str, current: int, current_task: str) -> bool:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).update_progress(job_id, current, current_task)

    async def request_cancel(self, job_id: str) -> GenerationJob:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).request_cancel(job_id)

    async def is_cancel_requested(self, job_id: str) -> bool:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).is_cancel_requested(job_id)

    async def list(self, subject_id=None, status=None, job_type=None, page=1, page_size=20) -> JobPage:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).list_jobs(subject_id, status, job_type, page, page_size)

    async def cleanup_stale(self, now: Optional[datetime] = None, queued_ids: Iterable[str] = ()) -> int:
        async with self.pool.acquire() as conn:
            return await JobRepository(conn).cleanup_stale_jobs(now, queued_ids)


class PostgresCharacterRepository:
    """SubjectProvider and ImagePool over an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def add_subject(self, subject: Subject) -> None:
        async with self.pool.acquire() as conn:
            await CharacterRepository(conn).upsert_character(subject)

    async def get_subject(self, subject_id: str) -> Subject:
        async with self.pool.acquire() as conn:
            subject = await CharacterRepository(conn).get_character(subject_id)
        if subject is None:
            raise NotFound("Subject", subject_id)
        return subject

    async def add_image(self, subject_id: str, image: GeneratedImage) -> None:
        await self.get_subject(subject_id)
        async with self.pool.acquire() as conn:
            await CharacterRepository(conn).add_image(subject_id, image)

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        await self.get_subject(subject_id)
        async with self.pool.acquire() as conn:
            return await CharacterRepository(conn).list_images(subject_id)

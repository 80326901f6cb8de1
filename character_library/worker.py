"""
ARQ worker for background reference set generation.

Run with: arq character_library.worker.WorkerSettings
"""

import logging
from typing import Any

from arq import cron
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

from character_library.api.arq_pool import redis_settings  # noqa: E402
from character_library.api.config import DATABASE_URL, LOG_JSON, MAX_CONCURRENT_JOBS  # noqa: E402
from character_library.api.logging import configure_logging  # noqa: E402
from character_library.api.services.registry import build_services  # noqa: E402

logger = logging.getLogger(__name__)


async def run_generation_job_task(ctx: dict[str, Any], job_id: str) -> dict[str, Any]:
    """
    ARQ task for running one generation job.

    This is a thin wrapper around JobOrchestrator.run_job, which records the
    job's own outcome. Anything escaping it (e.g. the database going away) is
    re-raised so ARQ marks the task as failed.

    Args:
        ctx: ARQ context (contains job_id, redis connection, services)
        job_id: ID of the pending generation job

    Returns:
        Dict with job_id and final status
    """
    arq_job_id = ctx.get("job_id", "unknown")
    logger.info(f"Starting generation job {arq_job_id}", extra={"job_id": job_id})

    orchestrator = ctx["services"].orchestrator
    try:
        await orchestrator.run_job(job_id)
        job = await orchestrator.get_status(job_id)
        logger.info(f"Finished generation job {arq_job_id}: {job.status.value}", extra={"job_id": job_id})
        return {"job_id": job_id, "status": job.status.value}

    except Exception as e:
        logger.error(f"Failed generation job {arq_job_id}: {e}", extra={"job_id": job_id})
        # Re-raise so ARQ marks the job as failed
        raise


async def cleanup_stale_jobs_task(ctx: dict[str, Any]) -> dict[str, Any]:
    """
    Cron task to fail stale jobs.

    Runs every minute to mark jobs as failed if they've been:
    - pending for > 5 minutes without sitting in the ARQ queue
    - processing for > 60 minutes
    """
    try:
        queued_ids: set[str] = set()
        redis = ctx.get("redis")
        if redis is not None:
            queued_ids = {job.job_id for job in await redis.queued_jobs()}
        count = await ctx["services"].orchestrator.cleanup_stale_jobs(queued_ids=queued_ids)
        return {"cleaned_jobs": count}
    except Exception as e:
        logger.error(f"Failed to cleanup stale jobs: {e}")
        return {"cleaned_jobs": 0, "error": str(e)}


async def startup(ctx: dict[str, Any]) -> None:
    """Called when worker starts up."""
    configure_logging(json_format=LOG_JSON)
    logger.info("ARQ worker starting up")

    pool = None
    if DATABASE_URL:
        from character_library.api.database.db import create_pool, init_db

        await init_db()
        pool = await create_pool()
    else:
        logger.warning("DATABASE_URL not set - worker jobs are not visible to the API")

    ctx["db_pool"] = pool
    # The worker executes jobs itself, so its orchestrator uses the local backend
    ctx["services"] = build_services(pool=pool, backend="local")

    # Cleanup any jobs left in bad state from previous crash
    count = await cleanup_stale_jobs_task(ctx)
    if count.get("cleaned_jobs"):
        logger.info(f"Startup cleanup: marked {count['cleaned_jobs']} stale job(s) as failed")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Called when worker shuts down."""
    logger.info("ARQ worker shutting down")
    pool = ctx.get("db_pool")
    if pool is not None:
        await pool.close()


class WorkerSettings:
    """ARQ worker configuration."""

    # Task functions to register
    functions = [run_generation_job_task]

    # Cron jobs for periodic maintenance
    cron_jobs = [
        # Run stale job cleanup every minute
        cron(cleanup_stale_jobs_task, minute=set(range(60))),
    ]

    # Lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Redis connection settings
    redis_settings = redis_settings()

    # Job settings
    max_jobs = MAX_CONCURRENT_JOBS
    job_timeout = 3600  # Matches the stale processing threshold
    max_tries = 1  # run_job is not re-entrant: a retried task finds the job no longer pending

    # Health check
    health_check_interval = 30

"""ARQ Redis pool management.

Holds the Redis connection pool the API uses to hand generation jobs to the
ARQ worker when JOB_BACKEND=arq.
"""

import os
from typing import Optional

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

# Global ARQ Redis pool (set during API startup)
_pool: Optional[ArqRedis] = None

GENERATION_TASK = "run_generation_job_task"


def redis_settings() -> RedisSettings:
    """Redis settings from REDIS_URL, defaulting to localhost."""
    return RedisSettings.from_dsn(os.getenv("REDIS_URL", "redis://localhost:6379"))


async def open_pool() -> ArqRedis:
    """Create and register the pool. Called during API startup."""
    pool = await create_pool(redis_settings())
    set_pool(pool)
    return pool


def set_pool(pool: ArqRedis) -> None:
    global _pool
    _pool = pool


def get_pool() -> ArqRedis:
    """Get the ARQ Redis pool. Raises if not initialized."""
    if _pool is None:
        raise RuntimeError("ARQ pool not initialized. Set JOB_BACKEND=arq and start the API.")
    return _pool


async def enqueue_generation_job(job_id: str) -> bool:
    """
    Enqueue one job for the worker.

    The ARQ job id is the generation job id, so a second enqueue of a job
    that is still queued or running is rejected by Redis.

    Returns:
        False if the job was already enqueued
    """
    job = await get_pool().enqueue_job(GENERATION_TASK, job_id=job_id, _job_id=job_id)
    return job is not None


async def close_pool() -> None:
    """Close the ARQ pool. Called during API shutdown."""
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None

"""FastAPI application for the Character Reference Library."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import DATABASE_URL, JOB_BACKEND, LOG_JSON
from .logging import configure_logging
from .routes import characters, jobs, reference_shots
from .services.job_manager import job_manager
from .services.registry import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging(json_format=LOG_JSON)

    # Startup: Initialize database (only if DATABASE_URL is configured)
    db_pool = None
    if DATABASE_URL:
        from .database.db import create_pool, init_db

        await init_db()
        db_pool = await create_pool()
        logger.info("Database initialized")
    else:
        logger.warning("DATABASE_URL not set - jobs and characters are kept in memory")

    if JOB_BACKEND == "arq":
        from .arq_pool import open_pool

        await open_pool()
        logger.info("ARQ pool opened")

    app.state.services = build_services(pool=db_pool, backend=JOB_BACKEND, job_manager=job_manager)

    yield

    # Shutdown: let running jobs reach a terminal state, then release pools
    await job_manager.shutdown(wait=True)
    if JOB_BACKEND == "arq":
        from .arq_pool import close_pool

        await close_pool()
    if db_pool is not None:
        await db_pool.close()


app = FastAPI(
    title="Character Reference Library API",
    description="""
Generate and select consistent reference images for characters.

## Features
- **Reference sets**: camera-accurate shots (35/50/85mm, multiple angles and crops) validated against a master image
- **Quality gating**: each shot is retried until it passes the quality threshold, or the best attempt is kept
- **Scene selection**: describe a scene in plain words and get the best matching reference image

## Workflow
1. POST `/characters/{subjectId}/reference-sets` (or POST `/jobs`) to start generation
2. Poll GET `/jobs/{jobId}` until status is `completed`, `failed` or `cancelled`
3. POST `/characters/{subjectId}/scene-selection` with a scene description
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])
app.include_router(characters.router, prefix="/characters", tags=["Characters"])
app.include_router(reference_shots.router, prefix="/reference-shots", tags=["Reference Shots"])


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

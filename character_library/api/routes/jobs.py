"""Generation job endpoints."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from ...core.errors import NotFound
from ..dependencies import Orchestrator
from ..models.enums import JobStatus, JobType
from ..models.requests import GenerationParams, StartJobRequest
from ..models.responses import (
    CancelJobResponse,
    JobListResponse,
    JobResponse,
    StartJobResponse,
)
from ..services.job_store import JobRequest

router = APIRouter()


def job_request_from(params: GenerationParams) -> JobRequest:
    """Copy the generation policy fields of a request body."""
    return JobRequest(**params.model_dump(include=set(GenerationParams.model_fields)))


async def start_generation(
    orchestrator,
    subject_id: str,
    job_type: JobType,
    params: GenerationParams,
) -> StartJobResponse:
    """Start a job, mapping domain errors to HTTP errors."""
    try:
        job_id = await orchestrator.start_job(subject_id, job_type, job_request_from(params))
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return StartJobResponse(
        job_id=job_id,
        status=JobStatus.PENDING,
        message=f"{job_type.value} generation started for {subject_id}",
    )


@router.post(
    "",
    response_model=StartJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a generation job",
    description="Create a pending job and start it in the background. Poll GET /jobs/{jobId} for progress.",
)
async def start_job(request: StartJobRequest, orchestrator: Orchestrator):
    return await start_generation(orchestrator, request.subject_id, request.job_type, request)


@router.get(
    "",
    response_model=JobListResponse,
    summary="List jobs",
    description="Paginated jobs, newest first, optionally filtered by subject, status and type.",
)
async def list_jobs(
    orchestrator: Orchestrator,
    subject_id: Optional[str] = Query(default=None, alias="subjectId"),
    job_status: Optional[JobStatus] = Query(default=None, alias="status"),
    job_type: Optional[JobType] = Query(default=None, alias="jobType"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100, alias="pageSize"),
):
    page_result = await orchestrator.list_jobs(
        subject_id=subject_id,
        status=job_status,
        job_type=job_type,
        page=page,
        page_size=page_size,
    )
    return JobListResponse.from_page(page_result)


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get a job",
    description="Status, progress and (once terminal) results of a job.",
)
async def get_job(job_id: str, orchestrator: Orchestrator):
    try:
        job = await orchestrator.get_status(job_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return JobResponse.from_job(job)


@router.post(
    "/{job_id}/cancel",
    response_model=CancelJobResponse,
    summary="Cancel a job",
    description="Pending jobs stop immediately; processing jobs stop after the current shot.",
)
async def cancel_job(job_id: str, orchestrator: Orchestrator):
    try:
        cancelled = await orchestrator.cancel_job(job_id)
        job = await orchestrator.get_status(job_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return CancelJobResponse(job_id=job_id, cancelled=cancelled, status=job.status)

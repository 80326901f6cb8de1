"""Pydantic models for API requests and responses."""

from .enums import JobStatus, JobType
from .requests import GenerationParams, StartJobRequest, SceneSelectionRequest
from .responses import (
    StartJobResponse,
    CancelJobResponse,
    JobResponse,
    JobListResponse,
    GeneratedImageResponse,
    ShotTemplateResponse,
    SceneSelectionResponse,
)

__all__ = [
    "JobStatus",
    "JobType",
    "GenerationParams",
    "StartJobRequest",
    "SceneSelectionRequest",
    "StartJobResponse",
    "CancelJobResponse",
    "JobResponse",
    "JobListResponse",
    "GeneratedImageResponse",
    "ShotTemplateResponse",
    "SceneSelectionResponse",
]

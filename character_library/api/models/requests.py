"""Pydantic models for API requests."""

from typing import Optional

from pydantic import Field

from ...core.types import Crop
from .base import CamelModel
from .enums import JobType


class GenerationParams(CamelModel):
    """Per-job generation policy. Unset fields use the service defaults."""

    shot_count: Optional[int] = Field(
        default=None,
        ge=1,
        le=30,
        description="Custom sets only: how many catalog shots to generate, in priority order",
    )
    quality_threshold: float = Field(default=75, ge=0, le=100)
    max_retries: int = Field(default=3, ge=1, le=10, description="Total attempts per shot")
    seed: Optional[int] = Field(default=None, ge=0)
    shot_ids: Optional[list[str]] = Field(
        default=None,
        description="Explicit shot template ids (custom-set and single-image jobs)",
    )
    strict_quality: bool = Field(
        default=False,
        description="Fail shots that never reach the threshold instead of keeping the best attempt",
    )
    use_prior_references: bool = True


class StartJobRequest(GenerationParams):
    """Request body for POST /jobs."""

    subject_id: str = Field(..., min_length=1, max_length=100)
    job_type: JobType = JobType.CORE_SET


class SceneSelectionRequest(CamelModel):
    """Request body for scene-driven reference selection."""

    scene_description: str = Field(
        ...,
        min_length=3,
        max_length=2000,
        examples=["intimate dialogue, emotional revelation"],
    )
    min_quality_score: Optional[float] = Field(default=None, ge=0, le=100)
    lens_mm: Optional[int] = None
    crop: Optional[Crop] = None
    include_alternatives: bool = True
    max_alternatives: int = Field(default=3, ge=0, le=3)

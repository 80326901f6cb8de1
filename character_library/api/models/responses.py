"""Pydantic models for API responses."""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from ...core.types import (
    CalculatedParameters,
    Crop,
    DepthOfField,
    EmotionalTone,
    Gaze,
    GeneratedImage,
    GenerationResult,
    Headroom,
    NoCandidates,
    ScenePreferenceProfile,
    SceneSelection,
    SceneType,
    ScoredReference,
    ShotTemplate,
    Thirds,
)
from .base import CamelModel
from .enums import JobStatus, JobType
from .requests import GenerationParams

if TYPE_CHECKING:
    from ..services.job_store import GenerationJob, JobPage


class AttributeModel(CamelModel):
    """CamelModel that can be built straight from domain dataclasses."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =============================================================================
# Jobs
# =============================================================================


class StartJobResponse(CamelModel):
    """Response after starting a generation job."""

    job_id: str
    status: JobStatus = JobStatus.PENDING
    message: str


class CancelJobResponse(CamelModel):
    job_id: str
    cancelled: bool
    status: JobStatus


class JobProgressResponse(AttributeModel):
    current: int
    total: int
    percentage: int
    current_task: str = ""


class GeneratedImageResponse(AttributeModel):
    """One accepted reference image."""

    shot_template_id: str
    asset_ref: str
    quality_score: float
    consistency_score: Optional[float] = None
    quality_note: Optional[str] = None
    prompt_used: str
    attempts_used: int
    seed: Optional[int] = None
    lens_mm: Optional[int] = None
    angle: Optional[str] = None
    crop: Optional[str] = None
    expression: Optional[str] = None
    azimuth_deg: Optional[float] = None
    elevation_deg: Optional[float] = None
    distance_m: Optional[float] = None
    gaze: Optional[str] = None
    scene_types: list[str] = []
    priority: Optional[int] = None
    created_at: datetime

    @classmethod
    def from_image(cls, image: GeneratedImage) -> "GeneratedImageResponse":
        data = image.to_dict()
        data["created_at"] = image.created_at
        return cls.model_validate(data)


class FailedAttemptResponse(AttributeModel):
    shot_template_id: str
    error_type: str
    error: str
    attempts: int


class ShotBreakdownResponse(CamelModel):
    essential: int
    comprehensive: int
    failed: int


class JobResultsResponse(CamelModel):
    """Terminal job results. Partial success lists the failed shots too."""

    generated_images: list[GeneratedImageResponse]
    failed_images: list[FailedAttemptResponse]
    total_attempts: int
    elapsed_ms: int
    success_rate: float
    average_quality: Optional[float] = None
    shot_breakdown: ShotBreakdownResponse

    @classmethod
    def from_result(cls, result: GenerationResult) -> "JobResultsResponse":
        return cls(
            generated_images=[GeneratedImageResponse.from_image(img) for img in result.generated_images],
            failed_images=[FailedAttemptResponse.model_validate(f) for f in result.failed_images],
            total_attempts=result.total_attempts,
            elapsed_ms=result.elapsed_ms,
            success_rate=result.success_rate,
            average_quality=result.average_quality,
            shot_breakdown=ShotBreakdownResponse(**result.shot_breakdown()),
        )


class JobResponse(CamelModel):
    """Full job record. Poll GET /jobs/{jobId} until status is terminal."""

    job_id: str
    subject_id: str
    job_type: JobType
    status: JobStatus
    progress: JobProgressResponse
    request_params: GenerationParams
    results: Optional[JobResultsResponse] = None
    error: Optional[str] = None
    cancel_requested: bool = False
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: "GenerationJob") -> "JobResponse":
        return cls(
            job_id=job.job_id,
            subject_id=job.subject_id,
            job_type=job.job_type,
            status=job.status,
            progress=JobProgressResponse.model_validate(job.progress),
            request_params=GenerationParams(**job.request_params.to_dict()),
            results=JobResultsResponse.from_result(job.results) if job.results is not None else None,
            error=job.error,
            cancel_requested=job.cancel_requested,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )


class JobListResponse(CamelModel):
    """Paginated list of jobs, newest first."""

    jobs: list[JobResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page(cls, page: "JobPage") -> "JobListResponse":
        return cls(
            jobs=[JobResponse.from_job(j) for j in page.jobs],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages,
            has_next=page.has_next,
            has_prev=page.has_prev,
        )


# =============================================================================
# Shot catalog
# =============================================================================


class CameraParametersResponse(AttributeModel):
    azimuth_deg: float
    elevation_deg: float
    distance_m: float


class SubjectParametersResponse(AttributeModel):
    yaw_deg: int
    gaze: Gaze
    pose: str


class CompositionParametersResponse(AttributeModel):
    thirds: Thirds
    headroom: Headroom
    eye_level_pct: int


class TechnicalParametersResponse(AttributeModel):
    f_stop: float
    iso: int
    shutter_speed: str
    depth_of_field: DepthOfField


class ParameterValidationResponse(AttributeModel):
    valid: bool
    warnings: list[str]
    suggestions: list[str]


class ShotParametersResponse(AttributeModel):
    """Derived camera, subject, composition and technical settings."""

    camera: CameraParametersResponse
    subject: SubjectParametersResponse
    composition: CompositionParametersResponse
    technical: TechnicalParametersResponse
    validation: ParameterValidationResponse


class ShotTemplateResponse(CamelModel):
    id: str
    name: str
    lens_mm: int
    angle: str
    crop: str
    expression: str
    pose: str
    priority: int
    pack: str
    reference_weight: float
    scene_types: list[str]
    description: str = ""
    composition_notes: str = ""
    parameters: ShotParametersResponse

    @classmethod
    def from_shot(cls, shot: ShotTemplate, params: CalculatedParameters) -> "ShotTemplateResponse":
        return cls(
            id=shot.id,
            name=shot.name,
            lens_mm=shot.lens_mm,
            angle=shot.angle.value,
            crop=shot.crop.value,
            expression=shot.expression,
            pose=shot.pose,
            priority=shot.priority,
            pack=shot.pack,
            reference_weight=shot.reference_weight,
            scene_types=[s.value for s in shot.scene_types],
            description=shot.description,
            composition_notes=shot.composition_notes,
            parameters=ShotParametersResponse.model_validate(params),
        )


class ShotTemplateListResponse(CamelModel):
    shots: list[ShotTemplateResponse]
    total: int


# =============================================================================
# Scene selection
# =============================================================================


class ScoreBreakdownResponse(AttributeModel):
    scene_type_match: float
    lens_preference: float
    crop_preference: float
    angle_preference: float
    emotional_tone_match: float
    composition_match: float
    quality_score: float


class ScoredReferenceResponse(CamelModel):
    image: GeneratedImageResponse
    score: float
    breakdown: ScoreBreakdownResponse
    reasoning: str

    @classmethod
    def from_scored(cls, scored: ScoredReference) -> "ScoredReferenceResponse":
        return cls(
            image=GeneratedImageResponse.from_image(scored.image),
            score=scored.score,
            breakdown=ScoreBreakdownResponse.model_validate(scored.breakdown),
            reasoning=scored.reasoning,
        )


class CompositionNeedsResponse(AttributeModel):
    eye_contact: bool
    profile_work: bool
    full_body_needed: bool
    hands_important: bool


class SceneAnalysisResponse(AttributeModel):
    scene_type: SceneType
    emotional_tone: EmotionalTone
    preferred_lens: list[int]
    preferred_crop: list[Crop]
    preferred_azimuths: list[float]
    intimacy_level: int
    dynamism_level: int
    emotional_intensity: int
    confidence: int
    keywords: list[str]
    composition_needs: CompositionNeedsResponse
    reasoning: str


class SceneSelectionResponse(CamelModel):
    """Best match for a scene, or found=false with a reason for an empty pool."""

    found: bool
    selected: Optional[ScoredReferenceResponse] = None
    alternatives: list[ScoredReferenceResponse] = []
    scene_analysis: SceneAnalysisResponse
    confidence: float = 0.0
    total_evaluated: int = 0
    average_score: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome) -> "SceneSelectionResponse":
        analysis = cls._analysis(outcome.scene_analysis)
        if isinstance(outcome, NoCandidates):
            return cls(
                found=False,
                scene_analysis=analysis,
                total_evaluated=outcome.total_evaluated,
                reason=outcome.reason,
            )

        selection: SceneSelection = outcome
        return cls(
            found=True,
            selected=ScoredReferenceResponse.from_scored(selection.selected),
            alternatives=[ScoredReferenceResponse.from_scored(a) for a in selection.alternatives],
            scene_analysis=analysis,
            confidence=selection.confidence,
            total_evaluated=selection.total_evaluated,
            average_score=selection.average_score,
        )

    @staticmethod
    def _analysis(profile: ScenePreferenceProfile) -> SceneAnalysisResponse:
        return SceneAnalysisResponse.model_validate(profile)

"""Per-character endpoints: reference set shortcut and scene selection."""

from fastapi import APIRouter, HTTPException, status

from ...core.errors import NotFound
from ...core.modules.reference_selector import SelectionFilters
from ..dependencies import Characters, Orchestrator, Selector
from ..models.enums import JobType
from ..models.requests import GenerationParams, SceneSelectionRequest
from ..models.responses import SceneSelectionResponse, StartJobResponse
from .jobs import start_generation

router = APIRouter()


@router.post(
    "/{subject_id}/reference-sets",
    response_model=StartJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate a core reference set",
    description="Shortcut for POST /jobs with jobType=core-set.",
)
async def generate_reference_set(
    subject_id: str,
    orchestrator: Orchestrator,
    params: GenerationParams | None = None,
):
    return await start_generation(orchestrator, subject_id, JobType.CORE_SET, params or GenerationParams())


@router.post(
    "/{subject_id}/scene-selection",
    response_model=SceneSelectionResponse,
    summary="Pick reference images for a scene",
    description="Score the character's generated images against a free-text scene description.",
)
async def select_for_scene(
    subject_id: str,
    request: SceneSelectionRequest,
    characters: Characters,
    selector: Selector,
):
    try:
        images = await characters.list_images(subject_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    outcome = selector.select(
        request.scene_description,
        images,
        SelectionFilters(
            min_quality_score=request.min_quality_score,
            lens_mm=request.lens_mm,
            crop=request.crop,
            include_alternatives=request.include_alternatives,
            max_alternatives=request.max_alternatives,
        ),
    )
    return SceneSelectionResponse.from_outcome(outcome)

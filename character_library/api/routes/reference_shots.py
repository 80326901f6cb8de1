"""Shot template catalog endpoints."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from ...core.cinematic_calculator import resolve_shot_parameters
from ...core.errors import NotFound
from ...core.types import Angle, Crop, SceneType, ShotFilter
from ..dependencies import Catalog
from ..models.responses import ShotTemplateListResponse, ShotTemplateResponse

router = APIRouter()


@router.get(
    "",
    response_model=ShotTemplateListResponse,
    summary="List shot templates",
    description="Catalog shots ordered by priority, each with its derived camera parameters.",
)
async def list_reference_shots(
    catalog: Catalog,
    lens_mm: Optional[int] = Query(default=None, alias="lensMm"),
    crop: Optional[Crop] = Query(default=None),
    angle: Optional[Angle] = Query(default=None),
    scene_type: Optional[SceneType] = Query(default=None, alias="sceneType"),
    max_priority: Optional[int] = Query(default=None, ge=1, le=10, alias="maxPriority"),
    pack: Optional[str] = Query(default=None),
):
    shots = catalog.list_templates(
        ShotFilter(
            lens_mm=lens_mm,
            crop=crop,
            angle=angle,
            scene_type=scene_type,
            max_priority=max_priority,
            pack=pack,
        )
    )
    return ShotTemplateListResponse(
        shots=[ShotTemplateResponse.from_shot(s, resolve_shot_parameters(s)) for s in shots],
        total=len(shots),
    )


@router.get(
    "/{shot_id}",
    response_model=ShotTemplateResponse,
    summary="Get a shot template",
)
async def get_reference_shot(shot_id: str, catalog: Catalog):
    try:
        shot = catalog.get_template(shot_id)
    except NotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ShotTemplateResponse.from_shot(shot, resolve_shot_parameters(shot))

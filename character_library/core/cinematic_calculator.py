"""
Cinematographic parameter calculator.

Pure functions that derive camera, subject, composition and technical settings
from a shot's lens, crop and angle, and flag implausible combinations. All
lookup tables are keyed by the closed enums in types.py and cover every member.

Rounding is done in decimal arithmetic, half away from zero, so table values
such as 2.1 * 0.55 land on the same result every time.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..config import GENERATION_CONSTANTS
from .types import (
    Angle,
    CalculatedParameters,
    CameraParameters,
    CompositionParameters,
    Crop,
    DepthOfField,
    Gaze,
    Headroom,
    ParameterValidation,
    SceneType,
    ShotRequirements,
    ShotTemplate,
    SubjectParameters,
    TechnicalParameters,
    Thirds,
)

# =============================================================================
# Lookup tables
# =============================================================================

AZIMUTH_BY_ANGLE: dict[Angle, int] = {
    Angle.FRONT: 0,
    Angle.THREE_QUARTER_LEFT: -35,
    Angle.THREE_QUARTER_RIGHT: 35,
    Angle.PROFILE_LEFT: -90,
    Angle.PROFILE_RIGHT: 90,
    Angle.BACK: 180,
    Angle.FORTY_FIVE_LEFT: -45,
    Angle.FORTY_FIVE_RIGHT: 45,
    Angle.ONE_THIRTY_FIVE_LEFT: -135,
    Angle.ONE_THIRTY_FIVE_RIGHT: 135,
}

BASE_DISTANCE_M: dict[int, Decimal] = {
    35: Decimal("3.4"),
    50: Decimal("2.1"),
    85: Decimal("1.5"),
}

CROP_DISTANCE_MULTIPLIER: dict[Crop, Decimal] = {
    Crop.FULL: Decimal("1.0"),
    Crop.THREE_QUARTER: Decimal("0.8"),
    Crop.MEDIUM_CLOSE_UP: Decimal("0.65"),
    Crop.CLOSE_UP: Decimal("0.55"),
    Crop.HANDS: Decimal("0.4"),
}

CROP_ELEVATION: dict[Crop, int] = {
    Crop.FULL: -5,
    Crop.THREE_QUARTER: 0,
    Crop.MEDIUM_CLOSE_UP: 0,
    Crop.CLOSE_UP: 2,  # Slightly above eye line is flattering
    Crop.HANDS: 0,
}

SCENE_ELEVATION: dict[SceneType, int] = {
    SceneType.EMOTIONAL: 3,  # Tilt up for vulnerability
    SceneType.ACTION: -3,  # Tilt down for power
    SceneType.DIALOGUE: 0,
    SceneType.ESTABLISHING: 0,
    SceneType.TRANSITION: 0,
}

YAW_COMPENSATION: dict[Optional[SceneType], Decimal] = {
    SceneType.DIALOGUE: Decimal("0.8"),
    SceneType.EMOTIONAL: Decimal("0.6"),
}
DEFAULT_YAW_COMPENSATION = Decimal("0.7")

HEADROOM_BY_CROP: dict[Crop, Headroom] = {
    Crop.CLOSE_UP: Headroom.TIGHT,
    Crop.MEDIUM_CLOSE_UP: Headroom.EQUAL,
    Crop.THREE_QUARTER: Headroom.LOOSE,
    Crop.FULL: Headroom.LOOSE,
    Crop.HANDS: Headroom.TIGHT,
}

EYE_LEVEL_BY_CROP: dict[Crop, int] = {
    Crop.CLOSE_UP: 65,
    Crop.MEDIUM_CLOSE_UP: 60,
    Crop.THREE_QUARTER: 55,
    Crop.FULL: 50,
    Crop.HANDS: 50,
}

BASE_F_STOP: dict[int, Decimal] = {
    35: Decimal("2.8"),
    50: Decimal("2.0"),
    85: Decimal("1.8"),
}

ISO_BY_SCENE: dict[SceneType, int] = {
    SceneType.ACTION: 400,  # Faster shutter needs more light
    SceneType.EMOTIONAL: 100,
}
DEFAULT_ISO = 200

# Scene-level dials (0-10) used when a caller gives none
DEFAULT_INTIMACY = GENERATION_CONSTANTS["default_intimacy"]
DEFAULT_DYNAMISM = GENERATION_CONSTANTS["default_dynamism"]

ELEVATION_LIMIT = 15
EYE_LEVEL_RANGE = (40, 70)
MIN_F_STOP = Decimal("1.4")
MAX_F_STOP = Decimal("4.0")

# Validation bounds
MIN_DISTANCE_M = 0.5
MAX_DISTANCE_M = 5.0
MAX_ELEVATION_DEG = 20
MAX_TO_CAMERA_AZIMUTH = 60


def _round(value: Decimal, places: str = "0.1") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def _clamp(value, low, high):
    return max(low, min(high, value))


def _lens_entry(table: dict[int, Decimal], lens_mm: int) -> Decimal:
    try:
        return table[lens_mm]
    except KeyError:
        raise ValueError(f"Unsupported lens: {lens_mm}mm (expected one of {sorted(table)})") from None


# =============================================================================
# Camera
# =============================================================================


def azimuth_for_angle(angle: Angle) -> int:
    """Camera azimuth in degrees. Negative is camera-left."""
    return AZIMUTH_BY_ANGLE[Angle(angle)]


def elevation_for(crop: Crop, scene_type: Optional[SceneType] = None) -> int:
    """Camera elevation in degrees, clamped to ±15."""
    elevation = CROP_ELEVATION[Crop(crop)]
    if scene_type is not None:
        elevation += SCENE_ELEVATION[SceneType(scene_type)]
    return _clamp(elevation, -ELEVATION_LIMIT, ELEVATION_LIMIT)


def distance_for(lens_mm: int, crop: Crop, intimacy_level: int = 5) -> float:
    """
    Camera-to-subject distance in meters.

    base[lens] * crop multiplier * (1 + (5 - intimacy) * 0.1), one decimal.
    Higher intimacy moves the camera closer.
    """
    base = _lens_entry(BASE_DISTANCE_M, lens_mm)
    intimacy_factor = 1 + Decimal(5 - intimacy_level) * Decimal("0.1")
    return _round(base * CROP_DISTANCE_MULTIPLIER[Crop(crop)] * intimacy_factor)


# =============================================================================
# Subject
# =============================================================================


def subject_yaw(azimuth_deg: float, scene_type: Optional[SceneType] = None) -> int:
    """Shoulder yaw that partially turns the subject back toward the camera."""
    factor = YAW_COMPENSATION.get(
        SceneType(scene_type) if scene_type is not None else None,
        DEFAULT_YAW_COMPENSATION,
    )
    yaw = -Decimal(str(azimuth_deg)) * factor
    return int(_round(yaw, "1"))


def gaze_for(
    azimuth_deg: float,
    scene_type: Optional[SceneType] = None,
    intimacy_level: int = 5,
) -> Gaze:
    """Eye direction for the camera angle. Dialogue keeps eye contact even in profile."""
    magnitude = abs(azimuth_deg)
    if magnitude <= 15:
        return Gaze.TO_CAMERA
    if magnitude >= 75:
        return Gaze.TO_CAMERA if scene_type == SceneType.DIALOGUE else Gaze.AWAY
    return Gaze.TO_CAMERA


def pose_for(crop: Crop, expression: str = "neutral", dynamism_level: int = 5) -> str:
    """Suggested pose when a shot does not name one."""
    crop = Crop(crop)
    if crop == Crop.HANDS:
        return "hand_centered"
    if crop == Crop.FULL:
        if expression == "neutral":
            return "a_pose"
        if dynamism_level > 7:
            return "dynamic_stance"
    if crop in (Crop.CLOSE_UP, Crop.MEDIUM_CLOSE_UP):
        return "relaxed"
    return "natural"


# =============================================================================
# Composition
# =============================================================================


def thirds_for(azimuth_deg: float, scene_type: Optional[SceneType] = None) -> Thirds:
    """Place the subject on the third opposite the direction they face."""
    if azimuth_deg == 0 and scene_type != SceneType.DIALOGUE:
        return Thirds.CENTERED
    if azimuth_deg < 0:
        return Thirds.RIGHT_THIRD
    if azimuth_deg > 0:
        return Thirds.LEFT_THIRD
    return Thirds.CENTERED


def headroom_for(crop: Crop, scene_type: Optional[SceneType] = None) -> Headroom:
    crop = Crop(crop)
    if scene_type == SceneType.EMOTIONAL and crop == Crop.CLOSE_UP:
        return Headroom.TIGHT
    if scene_type == SceneType.ESTABLISHING:
        return Headroom.LOOSE
    return HEADROOM_BY_CROP[crop]


def eye_level_for(crop: Crop, elevation_deg: float = 0) -> int:
    """Eye line height as a percentage of frame height, clamped to 40-70."""
    level = Decimal(EYE_LEVEL_BY_CROP[Crop(crop)]) + Decimal(str(elevation_deg)) * Decimal("0.5")
    return int(_clamp(_round(level, "1"), *EYE_LEVEL_RANGE))


# =============================================================================
# Technical
# =============================================================================


def f_stop_for(lens_mm: int, crop: Crop, intimacy_level: int = 5) -> float:
    """Aperture: wider for close-ups and intimate shots, narrower for full body."""
    crop = Crop(crop)
    f_stop = _lens_entry(BASE_F_STOP, lens_mm)
    if crop == Crop.CLOSE_UP:
        f_stop = max(MIN_F_STOP, f_stop - Decimal("0.4"))
    elif crop == Crop.FULL:
        f_stop = min(MAX_F_STOP, f_stop + Decimal("0.8"))
    if intimacy_level > 7:
        f_stop = max(MIN_F_STOP, f_stop - Decimal("0.2"))
    return _round(f_stop)


def iso_for(scene_type: Optional[SceneType] = None) -> int:
    if scene_type is None:
        return DEFAULT_ISO
    return ISO_BY_SCENE.get(SceneType(scene_type), DEFAULT_ISO)


def shutter_for(dynamism_level: int = 5) -> str:
    if dynamism_level > 7:
        return "1/500"
    if dynamism_level < 3:
        return "1/125"
    return "1/250"


def depth_of_field_for(lens_mm: int, f_stop: float) -> DepthOfField:
    ratio = lens_mm / f_stop
    if ratio > 40:
        return DepthOfField.VERY_SHALLOW
    if ratio > 25:
        return DepthOfField.SHALLOW
    if ratio > 15:
        return DepthOfField.MODERATE
    return DepthOfField.DEEP


# =============================================================================
# Validation
# =============================================================================


def validate(
    requirements: ShotRequirements,
    camera: CameraParameters,
    subject: SubjectParameters,
    composition: CompositionParameters,
) -> ParameterValidation:
    """Annotate implausible combinations. Never raises."""
    warnings: list[str] = []
    suggestions: list[str] = []

    if camera.distance_m < MIN_DISTANCE_M:
        warnings.append(f"Camera distance {camera.distance_m}m is very close (< {MIN_DISTANCE_M}m)")
    elif camera.distance_m > MAX_DISTANCE_M:
        warnings.append(f"Camera distance {camera.distance_m}m is very far (> {MAX_DISTANCE_M}m)")

    if abs(camera.elevation_deg) > MAX_ELEVATION_DEG:
        warnings.append(f"Extreme camera elevation {camera.elevation_deg}° may distort features")

    if subject.gaze == Gaze.TO_CAMERA and abs(camera.azimuth_deg) > MAX_TO_CAMERA_AZIMUTH:
        suggestions.append('Consider "away" gaze for extreme angles')

    crop = Crop(requirements.crop)
    if composition.headroom == Headroom.TIGHT and crop in (Crop.FULL, Crop.THREE_QUARTER):
        suggestions.append("Consider looser headroom for wide crops")
    if composition.headroom == Headroom.LOOSE and crop == Crop.CLOSE_UP:
        suggestions.append("Consider tighter headroom for close-up shots")

    return ParameterValidation(valid=not warnings, warnings=warnings, suggestions=suggestions)


# =============================================================================
# Full parameter sets
# =============================================================================


def calculate_parameters(requirements: ShotRequirements) -> CalculatedParameters:
    """Derive every parameter from lens, crop, angle, scene type and sliders."""
    scene_type = requirements.scene_type
    azimuth = azimuth_for_angle(requirements.angle)

    camera = CameraParameters(
        azimuth_deg=azimuth,
        elevation_deg=elevation_for(requirements.crop, scene_type),
        distance_m=distance_for(requirements.lens_mm, requirements.crop, requirements.intimacy_level),
    )
    subject = SubjectParameters(
        yaw_deg=subject_yaw(azimuth, scene_type),
        gaze=gaze_for(azimuth, scene_type, requirements.intimacy_level),
        pose=pose_for(requirements.crop, requirements.expression, requirements.dynamism_level),
    )
    composition = CompositionParameters(
        thirds=thirds_for(azimuth, scene_type),
        headroom=headroom_for(requirements.crop, scene_type),
        eye_level_pct=eye_level_for(requirements.crop, camera.elevation_deg),
    )
    f_stop = f_stop_for(requirements.lens_mm, requirements.crop, requirements.intimacy_level)
    technical = TechnicalParameters(
        f_stop=f_stop,
        iso=iso_for(scene_type),
        shutter_speed=shutter_for(requirements.dynamism_level),
        depth_of_field=depth_of_field_for(requirements.lens_mm, f_stop),
    )

    return CalculatedParameters(
        camera=camera,
        subject=subject,
        composition=composition,
        technical=technical,
        validation=validate(requirements, camera, subject, composition),
    )


def requirements_for_shot(
    shot: ShotTemplate,
    scene_type: Optional[SceneType] = None,
    intimacy_level: int = DEFAULT_INTIMACY,
    dynamism_level: int = DEFAULT_DYNAMISM,
) -> ShotRequirements:
    """Requirements for a template. Scene type defaults to the shot's first tag."""
    if scene_type is None and shot.scene_types:
        scene_type = shot.scene_types[0]
    return ShotRequirements(
        lens_mm=shot.lens_mm,
        crop=shot.crop,
        angle=shot.angle,
        expression=shot.expression,
        scene_type=scene_type,
        intimacy_level=intimacy_level,
        dynamism_level=dynamism_level,
    )


def resolve_shot_parameters(
    shot: ShotTemplate,
    scene_type: Optional[SceneType] = None,
    intimacy_level: int = DEFAULT_INTIMACY,
    dynamism_level: int = DEFAULT_DYNAMISM,
) -> CalculatedParameters:
    """
    Complete parameter set for a template.

    Values the template specifies win; everything else is derived. Subject
    yaw, thirds and eye level follow the final azimuth and elevation.
    """
    requirements = requirements_for_shot(shot, scene_type, intimacy_level, dynamism_level)
    scene_type = requirements.scene_type
    derived = calculate_parameters(requirements)

    azimuth = shot.azimuth_deg if shot.azimuth_deg is not None else derived.camera.azimuth_deg
    elevation = shot.elevation_deg if shot.elevation_deg is not None else derived.camera.elevation_deg
    camera = CameraParameters(
        azimuth_deg=azimuth,
        elevation_deg=elevation,
        distance_m=shot.distance_m if shot.distance_m is not None else derived.camera.distance_m,
    )
    subject = SubjectParameters(
        yaw_deg=subject_yaw(azimuth, scene_type),
        gaze=shot.gaze or gaze_for(azimuth, scene_type, intimacy_level),
        pose=shot.pose or derived.subject.pose,
    )
    composition = CompositionParameters(
        thirds=shot.thirds or thirds_for(azimuth, scene_type),
        headroom=shot.headroom or derived.composition.headroom,
        eye_level_pct=eye_level_for(shot.crop, elevation),
    )
    f_stop = shot.f_stop if shot.f_stop is not None else derived.technical.f_stop
    technical = TechnicalParameters(
        f_stop=f_stop,
        iso=shot.iso if shot.iso is not None else derived.technical.iso,
        shutter_speed=shot.shutter_speed or derived.technical.shutter_speed,
        depth_of_field=depth_of_field_for(shot.lens_mm, f_stop),
    )

    return CalculatedParameters(
        camera=camera,
        subject=subject,
        composition=composition,
        technical=technical,
        validation=validate(requirements, camera, subject, composition),
    )

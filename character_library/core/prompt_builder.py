"""
Prompt rendering for reference shots.

Fills a shot's prompt template (or the default cinematic template) with the
subject's description and the shot's resolved camera parameters, and derives
negative prompts that steer the model away from the common failure modes of
each lens, crop and angle.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .types import CalculatedParameters, Crop, ShotTemplate, Subject

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Z_]+)\}")

CINEMATIC_TEMPLATE = """Character reference photograph of {CHARACTER}.

SUBJECT: {PHYSIQUE_TRAITS}
PERSONALITY: {PERSONALITY}
EXPRESSION: {EXPRESSION}

CAMERA:
- focal length: {LENS}mm
- physical distance: {DISTANCE}m
- azimuth: {AZIMUTH}° ({ANGLE})
- elevation: {ELEVATION}°

COMPOSITION:
- crop: {CROP} | thirds: {THIRDS} | headroom: {HEADROOM}

SUBJECT DIRECTION:
- shoulder yaw: {SUBJECT_YAW}° | gaze: {GAZE} | pose: {POSE}

EXPOSURE: f/{FSTOP}, ISO {ISO}, {SHUTTER}s

NOTES: {COMPOSITION_NOTES}

reference_image: {REF_URL} (weight {REF_WEIGHT}), keep identity, face, hair and costume identical.
NEGATIVE: {NEGATIVE_PROMPTS}"""

# Sections the default template carries; custom templates are warned when missing them
EXPECTED_SECTIONS = ("CAMERA:", "COMPOSITION:", "EXPOSURE:", "NEGATIVE:")

CROP_LABELS = {
    Crop.FULL: "full body",
    Crop.THREE_QUARTER: "three-quarter body",
    Crop.MEDIUM_CLOSE_UP: "medium close-up",
    Crop.CLOSE_UP: "close-up",
    Crop.HANDS: "hands detail",
}


@dataclass
class PromptValidation:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def negative_prompts_for(shot: ShotTemplate, params: CalculatedParameters) -> list[str]:
    """Failure modes to steer away from for this lens, crop, angle and expression."""
    negatives: list[str] = []

    if params.camera.azimuth_deg != 0:
        negatives += ["front_facing", "centered_composition"]

    if shot.crop == Crop.CLOSE_UP:
        negatives += ["full_body", "wide_shot", "hands_visible"]
    elif shot.crop == Crop.FULL:
        negatives += ["cropped_limbs", "tight_crop"]
    elif shot.crop == Crop.HANDS:
        negatives += ["face_visible", "full_body"]

    if shot.lens_mm == 85:
        negatives.append("wide_angle_distortion")
    elif shot.lens_mm == 35:
        negatives.append("telephoto_compression")

    if shot.expression == "neutral":
        negatives += ["exaggerated_expression", "dramatic_emotion"]

    negatives += ["text", "watermark", "extra_characters"]
    return negatives


def build_placeholders(
    shot: ShotTemplate,
    subject: Subject,
    params: CalculatedParameters,
    reference_url: Optional[str] = None,
) -> dict[str, str]:
    """Values for every placeholder the templates use."""
    return {
        "CHARACTER": subject.name,
        "PHYSIQUE_TRAITS": subject.traits or "as shown in the reference image",
        "PERSONALITY": subject.personality or "not specified",
        "EXPRESSION": shot.expression.replace("_", " "),
        "LENS": str(shot.lens_mm),
        "DISTANCE": f"{params.camera.distance_m:g}",
        "AZIMUTH": f"{params.camera.azimuth_deg:g}",
        "ELEVATION": f"{params.camera.elevation_deg:g}",
        "ANGLE": shot.angle.value,
        "CROP": CROP_LABELS[shot.crop],
        "THIRDS": params.composition.thirds.value,
        "HEADROOM": params.composition.headroom.value,
        "SUBJECT_YAW": str(params.subject.yaw_deg),
        "GAZE": params.subject.gaze.value,
        "POSE": params.subject.pose.replace("_", " "),
        "FSTOP": f"{params.technical.f_stop:g}",
        "ISO": str(params.technical.iso),
        "SHUTTER": params.technical.shutter_speed,
        "REF_URL": reference_url or subject.master_reference or "",
        "REF_WEIGHT": f"{shot.reference_weight:g}",
        "NEGATIVE_PROMPTS": ", ".join(negative_prompts_for(shot, params)),
        "COMPOSITION_NOTES": shot.composition_notes or shot.description or "none",
    }


def render_template(template: str, values: dict[str, str]) -> str:
    """Substitute known placeholders. Unknown ones are left in place for validation."""
    return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_prompt(
    shot: ShotTemplate,
    subject: Subject,
    params: CalculatedParameters,
    reference_url: Optional[str] = None,
) -> str:
    """Render the shot's own template, or the cinematic template when it has none."""
    template = shot.prompt_template or CINEMATIC_TEMPLATE
    return render_template(template, build_placeholders(shot, subject, params, reference_url))


def validate_prompt(prompt: str) -> PromptValidation:
    """Unreplaced placeholders and a missing reference line are errors."""
    errors: list[str] = []
    warnings: list[str] = []

    leftover = sorted(set(PLACEHOLDER_PATTERN.findall(prompt)))
    if leftover:
        errors.append(f"Unreplaced placeholders: {', '.join(leftover)}")

    if "reference_image:" not in prompt:
        errors.append("Missing reference_image line")
    elif re.search(r"reference_image:\s*\(", prompt):
        errors.append("Reference image URL is empty")

    for section in EXPECTED_SECTIONS:
        if section not in prompt:
            warnings.append(f"Missing section: {section.rstrip(':')}")

    return PromptValidation(valid=not errors, errors=errors, warnings=warnings)


def asset_file_name(
    shot: ShotTemplate,
    subject: Subject,
    attempt: int,
    timestamp: Optional[datetime] = None,
) -> str:
    """File name for a generated shot: {subject}_{lens}mm_{angle}_{crop}_{expression}_v{n}_{ts}.png"""
    timestamp = timestamp or datetime.now(timezone.utc)
    subject_slug = re.sub(r"[^a-z0-9]+", "_", subject.name.lower()).strip("_") or subject.subject_id
    expression = re.sub(r"[^a-z0-9]+", "_", shot.expression.lower()).strip("_")
    return (
        f"{subject_slug}_{shot.lens_mm}mm_{shot.angle.value}_{shot.crop.value}_"
        f"{expression}_v{attempt}_{timestamp.strftime('%Y%m%dT%H%M%S')}.png"
    )

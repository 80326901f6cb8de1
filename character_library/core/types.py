"""
Centralized domain types for the Character Reference Library.

All enums and dataclasses that are used across multiple modules are defined
here to make data flow explicit and avoid circular imports.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from .errors import InvalidShot


# =============================================================================
# Shot Vocabulary
# =============================================================================

VALID_LENSES = (35, 50, 85)


class Angle(str, Enum):
    """Camera position around the subject."""

    FRONT = "front"
    THREE_QUARTER_LEFT = "3q_left"
    THREE_QUARTER_RIGHT = "3q_right"
    PROFILE_LEFT = "profile_left"
    PROFILE_RIGHT = "profile_right"
    BACK = "back"
    FORTY_FIVE_LEFT = "45_left"
    FORTY_FIVE_RIGHT = "45_right"
    ONE_THIRTY_FIVE_LEFT = "135_left"
    ONE_THIRTY_FIVE_RIGHT = "135_right"


class Crop(str, Enum):
    """How much of the subject is in frame."""

    FULL = "full"
    THREE_QUARTER = "3q"
    MEDIUM_CLOSE_UP = "mcu"
    CLOSE_UP = "cu"
    HANDS = "hands"


class Gaze(str, Enum):
    TO_CAMERA = "to_camera"
    AWAY = "away"
    LEFT = "left"
    RIGHT = "right"


class Thirds(str, Enum):
    CENTERED = "centered"
    LEFT_THIRD = "left_third"
    RIGHT_THIRD = "right_third"


class Headroom(str, Enum):
    TIGHT = "tight"
    EQUAL = "equal"
    LOOSE = "loose"


class SceneType(str, Enum):
    """Kind of scene a reference shot is meant to support."""

    DIALOGUE = "dialogue"
    ACTION = "action"
    EMOTIONAL = "emotional"
    ESTABLISHING = "establishing"
    TRANSITION = "transition"


class EmotionalTone(str, Enum):
    NEUTRAL = "neutral"
    TENSE = "tense"
    INTIMATE = "intimate"
    DRAMATIC = "dramatic"
    CONTEMPLATIVE = "contemplative"


class DepthOfField(str, Enum):
    VERY_SHALLOW = "very_shallow"
    SHALLOW = "shallow"
    MODERATE = "moderate"
    DEEP = "deep"


# =============================================================================
# Shot Templates
# =============================================================================


def _coerce(enum_cls, value, field_name: str, problems: list[str]):
    """Convert a raw string into an enum member, collecting the problem on failure."""
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        problems.append(f"{field_name} must be one of {[m.value for m in enum_cls]}, got {value!r}")
        return value


@dataclass(frozen=True)
class ShotTemplate:
    """
    Immutable definition of one reference shot.

    Camera and composition fields are optional. Missing values are derived by
    the cinematic calculator before a shot is rendered.
    """

    id: str
    name: str
    lens_mm: int
    angle: Angle
    crop: Crop
    expression: str = "neutral"
    pose: str = "relaxed"

    # Camera
    azimuth_deg: Optional[float] = None
    elevation_deg: Optional[float] = None
    distance_m: Optional[float] = None

    # Composition
    thirds: Optional[Thirds] = None
    headroom: Optional[Headroom] = None
    gaze: Optional[Gaze] = None

    # Technical
    f_stop: Optional[float] = None
    iso: Optional[int] = None
    shutter_speed: Optional[str] = None

    reference_weight: float = 0.9
    priority: int = 5  # 1 = essential .. 10 = optional
    pack: str = "core"
    prompt_template: str = ""
    scene_types: tuple[SceneType, ...] = ()
    description: str = ""
    composition_notes: str = ""

    def __post_init__(self):
        problems: list[str] = []

        object.__setattr__(self, "angle", _coerce(Angle, self.angle, "angle", problems))
        object.__setattr__(self, "crop", _coerce(Crop, self.crop, "crop", problems))
        object.__setattr__(self, "thirds", _coerce(Thirds, self.thirds, "thirds", problems))
        object.__setattr__(self, "headroom", _coerce(Headroom, self.headroom, "headroom", problems))
        object.__setattr__(self, "gaze", _coerce(Gaze, self.gaze, "gaze", problems))
        object.__setattr__(
            self,
            "scene_types",
            tuple(_coerce(SceneType, s, "scene_types", problems) for s in self.scene_types),
        )

        if not self.id:
            problems.append("id is required")
        if self.lens_mm not in VALID_LENSES:
            problems.append(f"lens_mm must be one of {VALID_LENSES}, got {self.lens_mm}")
        if self.azimuth_deg is not None and not -180 <= self.azimuth_deg <= 180:
            problems.append(f"azimuth_deg must be in [-180, 180], got {self.azimuth_deg}")
        if self.elevation_deg is not None and not -90 <= self.elevation_deg <= 90:
            problems.append(f"elevation_deg must be in [-90, 90], got {self.elevation_deg}")
        if self.distance_m is not None and not 0 < self.distance_m <= 10:
            problems.append(f"distance_m must be in (0, 10], got {self.distance_m}")
        if not 0.85 <= self.reference_weight <= 0.95:
            problems.append(f"reference_weight must be in [0.85, 0.95], got {self.reference_weight}")
        if not 1 <= self.priority <= 10:
            problems.append(f"priority must be in [1, 10], got {self.priority}")
        if self.f_stop is not None and self.f_stop <= 0:
            problems.append(f"f_stop must be positive, got {self.f_stop}")
        if self.iso is not None and self.iso <= 0:
            problems.append(f"iso must be positive, got {self.iso}")

        if problems:
            raise InvalidShot(self.id, problems)

    @property
    def is_core(self) -> bool:
        """Core set membership (highest priority)."""
        return self.priority == 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShotTemplate":
        """Build a template from a plain definition dict (enum values as strings)."""
        data = dict(data)
        if "scene_types" in data:
            data["scene_types"] = tuple(data["scene_types"])
        try:
            return cls(**data)
        except TypeError as e:
            raise InvalidShot(data.get("id"), [str(e)]) from e

    def to_dict(self) -> dict[str, Any]:
        """Serialize with enum values as plain strings."""
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
        data["scene_types"] = [s.value for s in self.scene_types]
        return data


@dataclass
class ShotFilter:
    """Optional catalog filter. Unset fields match everything."""

    lens_mm: Optional[int] = None
    crop: Optional[Crop] = None
    angle: Optional[Angle] = None
    scene_type: Optional[SceneType] = None
    max_priority: Optional[int] = None
    pack: Optional[str] = None

    def matches(self, shot: ShotTemplate) -> bool:
        if self.lens_mm is not None and shot.lens_mm != self.lens_mm:
            return False
        if self.crop is not None and shot.crop != self.crop:
            return False
        if self.angle is not None and shot.angle != self.angle:
            return False
        if self.scene_type is not None and self.scene_type not in shot.scene_types:
            return False
        if self.max_priority is not None and shot.priority > self.max_priority:
            return False
        if self.pack is not None and shot.pack != self.pack:
            return False
        return True


# =============================================================================
# Cinematic Parameters
# =============================================================================


@dataclass
class ShotRequirements:
    """Inputs to the cinematic calculator."""

    lens_mm: int
    crop: Crop
    angle: Angle
    expression: str = "neutral"
    scene_type: Optional[SceneType] = None
    intimacy_level: int = 5  # 1-10
    dynamism_level: int = 5  # 1-10


@dataclass
class CameraParameters:
    azimuth_deg: float
    elevation_deg: float
    distance_m: float


@dataclass
class SubjectParameters:
    yaw_deg: int
    gaze: Gaze
    pose: str


@dataclass
class CompositionParameters:
    thirds: Thirds
    headroom: Headroom
    eye_level_pct: int  # Eye line height as percentage of frame


@dataclass
class TechnicalParameters:
    f_stop: float
    iso: int
    shutter_speed: str
    depth_of_field: DepthOfField


@dataclass
class ParameterValidation:
    """Annotations on a parameter set. Validation never raises."""

    valid: bool = True
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class CalculatedParameters:
    """Full camera/subject/composition/technical parameter set for one shot."""

    camera: CameraParameters
    subject: SubjectParameters
    composition: CompositionParameters
    technical: TechnicalParameters
    validation: ParameterValidation = field(default_factory=ParameterValidation)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for section in data.values():
            for key, value in section.items():
                if isinstance(value, Enum):
                    section[key] = value.value
        return data


# =============================================================================
# Subjects
# =============================================================================


@dataclass
class Subject:
    """A character that reference images are generated for."""

    subject_id: str
    name: str
    traits: str = ""  # Physical description
    personality: str = ""
    master_reference: Optional[str] = None  # Asset ref of the master image

    @property
    def has_master_reference(self) -> bool:
        return bool(self.master_reference)


# =============================================================================
# Generation Results
# =============================================================================


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class GeneratedImage:
    """One accepted reference image plus the shot metadata used to find it later."""

    shot_template_id: str
    asset_ref: str
    quality_score: float
    prompt_used: str
    attempts_used: int
    consistency_score: Optional[float] = None
    quality_note: Optional[str] = None  # Set when kept below the quality threshold
    seed: Optional[int] = None

    # Shot metadata
    lens_mm: Optional[int] = None
    angle: Optional[str] = None
    crop: Optional[str] = None
    expression: Optional[str] = None
    azimuth_deg: Optional[float] = None
    elevation_deg: Optional[float] = None
    distance_m: Optional[float] = None
    gaze: Optional[str] = None
    scene_types: tuple[str, ...] = ()
    priority: Optional[int] = None
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["scene_types"] = list(self.scene_types)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratedImage":
        data = dict(data)
        data["scene_types"] = tuple(data.get("scene_types") or ())
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            data["created_at"] = datetime.fromisoformat(created_at)
        elif created_at is None:
            data.pop("created_at", None)
        return cls(**data)


@dataclass(frozen=True)
class FailedAttempt:
    """A shot that could not be generated. Kept only in the job result."""

    shot_template_id: str
    error_type: str  # SynthesisFailure or QualityRejected
    error: str
    attempts: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FailedAttempt":
        return cls(**data)


@dataclass
class GenerationResult:
    """Aggregate outcome of a reference set run."""

    generated_images: list[GeneratedImage] = field(default_factory=list)
    failed_images: list[FailedAttempt] = field(default_factory=list)
    total_attempts: int = 0
    elapsed_ms: int = 0

    @property
    def success(self) -> bool:
        return len(self.generated_images) > 0

    @property
    def shots_attempted(self) -> int:
        return len(self.generated_images) + len(self.failed_images)

    @property
    def success_rate(self) -> float:
        if self.shots_attempted == 0:
            return 0.0
        return round(len(self.generated_images) / self.shots_attempted, 3)

    @property
    def average_quality(self) -> Optional[float]:
        if not self.generated_images:
            return None
        total = sum(img.quality_score for img in self.generated_images)
        return round(total / len(self.generated_images), 1)

    def shot_breakdown(self) -> dict[str, int]:
        """Essential (core) vs comprehensive (other) successes, plus failures."""
        essential = sum(1 for img in self.generated_images if img.priority == 1)
        return {
            "essential": essential,
            "comprehensive": len(self.generated_images) - essential,
            "failed": len(self.failed_images),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_images": [img.to_dict() for img in self.generated_images],
            "failed_images": [f.to_dict() for f in self.failed_images],
            "total_attempts": self.total_attempts,
            "elapsed_ms": self.elapsed_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationResult":
        return cls(
            generated_images=[GeneratedImage.from_dict(d) for d in data.get("generated_images", [])],
            failed_images=[FailedAttempt.from_dict(d) for d in data.get("failed_images", [])],
            total_attempts=data.get("total_attempts", 0),
            elapsed_ms=data.get("elapsed_ms", 0),
        )


# =============================================================================
# Scene Selection
# =============================================================================


@dataclass
class CompositionNeeds:
    eye_contact: bool = False
    profile_work: bool = False
    full_body_needed: bool = False
    hands_important: bool = False


@dataclass
class ScenePreferenceProfile:
    """What a scene description asks of a reference image. Recomputed per query."""

    scene_type: SceneType
    emotional_tone: EmotionalTone
    preferred_lens: list[int]
    preferred_crop: list[Crop]
    preferred_azimuths: list[float]
    intimacy_level: int
    dynamism_level: int
    emotional_intensity: int
    confidence: int  # 0-100
    keywords: list[str] = field(default_factory=list)
    composition_needs: CompositionNeeds = field(default_factory=CompositionNeeds)
    reasoning: str = ""


@dataclass
class ScoreBreakdown:
    """Per-factor sub-scores, each 0-100."""

    scene_type_match: float
    lens_preference: float
    crop_preference: float
    angle_preference: float
    emotional_tone_match: float
    composition_match: float
    quality_score: float


@dataclass
class ScoredReference:
    image: GeneratedImage
    score: float
    breakdown: ScoreBreakdown
    reasoning: str = ""


@dataclass
class SceneSelection:
    """Best reference image for a scene plus alternatives."""

    selected: ScoredReference
    alternatives: list[ScoredReference]
    scene_analysis: ScenePreferenceProfile
    confidence: float  # Top score / 100
    total_evaluated: int
    average_score: float


@dataclass
class NoCandidates:
    """Expected empty outcome: the subject has no usable images."""

    scene_analysis: ScenePreferenceProfile
    reason: str
    total_evaluated: int = 0

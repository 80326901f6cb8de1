"""
Scene reference selection.

Scores a subject's generated images against a scene description and returns
the best match, up to three alternatives, and a short explanation of why each
one fits.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from ..types import (
    Crop,
    EmotionalTone,
    GeneratedImage,
    NoCandidates,
    ScenePreferenceProfile,
    SceneSelection,
    ScoreBreakdown,
    ScoredReference,
)
from .scene_analyzer import SceneAnalyzer

WEIGHTS = {
    "scene_type_match": 0.25,
    "lens_preference": 0.20,
    "crop_preference": 0.20,
    "angle_preference": 0.15,
    "emotional_tone_match": 0.10,
    "composition_match": 0.05,
    "quality_score": 0.05,
}

NEUTRAL_SCORE = 50.0

SIMILAR_CROPS: dict[Crop, tuple[Crop, ...]] = {
    Crop.CLOSE_UP: (Crop.MEDIUM_CLOSE_UP,),
    Crop.MEDIUM_CLOSE_UP: (Crop.CLOSE_UP, Crop.THREE_QUARTER),
    Crop.THREE_QUARTER: (Crop.MEDIUM_CLOSE_UP, Crop.FULL),
    Crop.FULL: (Crop.THREE_QUARTER,),
    Crop.HANDS: (),
}

TONE_EXPRESSIONS: dict[EmotionalTone, tuple[str, ...]] = {
    EmotionalTone.NEUTRAL: ("neutral",),
    EmotionalTone.TENSE: ("concerned", "worried", "tense"),
    EmotionalTone.INTIMATE: ("gentle", "soft", "vulnerable"),
    EmotionalTone.DRAMATIC: ("determined", "intense", "strong", "resolute"),
    EmotionalTone.CONTEMPLATIVE: ("thoughtful", "contemplative", "pondering"),
}

LENS_PURPOSE = {
    35: "action/body",
    50: "conversation",
    85: "emotional",
}

CROP_PURPOSE = {
    Crop.CLOSE_UP: "close-up intimacy",
    Crop.MEDIUM_CLOSE_UP: "medium close-up balance",
    Crop.THREE_QUARTER: "three-quarter body context",
    Crop.FULL: "full body coverage",
    Crop.HANDS: "detailed hand work",
}

MAX_ALTERNATIVES = 3


@dataclass
class SelectionFilters:
    """Optional narrowing of the candidate pool."""

    min_quality_score: Optional[float] = None
    lens_mm: Optional[int] = None
    crop: Optional[Crop] = None
    include_alternatives: bool = True
    max_alternatives: int = MAX_ALTERNATIVES

    def matches(self, image: GeneratedImage) -> bool:
        if self.min_quality_score is not None and image.quality_score < self.min_quality_score:
            return False
        if self.lens_mm is not None and image.lens_mm != self.lens_mm:
            return False
        if self.crop is not None and image.crop != Crop(self.crop).value:
            return False
        return True


def _to_crop(value: Optional[str]) -> Optional[Crop]:
    try:
        return Crop(value) if value else None
    except ValueError:
        return None


class ReferenceSelector:
    """Rank a subject's images for a scene description."""

    def __init__(self, analyzer: Optional[SceneAnalyzer] = None):
        self.analyzer = analyzer or SceneAnalyzer()

    def select(
        self,
        description: str,
        images: Sequence[GeneratedImage],
        filters: Optional[SelectionFilters] = None,
    ) -> Union[SceneSelection, NoCandidates]:
        """
        Pick the best image for a scene.

        An empty pool is an expected outcome and returns NoCandidates.
        """
        filters = filters or SelectionFilters()
        profile = self.analyzer.analyze(description)

        if not images:
            return NoCandidates(scene_analysis=profile, reason="Subject has no generated images")

        candidates = [img for img in images if filters.matches(img)]
        if not candidates:
            return NoCandidates(
                scene_analysis=profile,
                reason=f"None of {len(images)} image(s) match the selection filters",
                total_evaluated=0,
            )

        ranked = self.rank(candidates, profile)
        top = ranked[0]
        alternatives = []
        if filters.include_alternatives:
            alternatives = ranked[1:1 + min(filters.max_alternatives, MAX_ALTERNATIVES)]

        average = sum(r.score for r in ranked) / len(ranked)
        return SceneSelection(
            selected=top,
            alternatives=alternatives,
            scene_analysis=profile,
            confidence=round(top.score / 100, 3),
            total_evaluated=len(ranked),
            average_score=round(average, 1),
        )

    def rank(self, images: Sequence[GeneratedImage], profile: ScenePreferenceProfile) -> list[ScoredReference]:
        """Score every image; highest first, ties broken by quality."""
        scored = [self.score_image(img, profile) for img in images]
        scored.sort(key=lambda r: (-r.score, -r.image.quality_score))
        return scored

    def score_image(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> ScoredReference:
        breakdown = ScoreBreakdown(
            scene_type_match=self.scene_type_score(image, profile),
            lens_preference=self.lens_score(image, profile),
            crop_preference=self.crop_score(image, profile),
            angle_preference=self.angle_score(image, profile),
            emotional_tone_match=self.tone_score(image, profile),
            composition_match=self.composition_score(image, profile),
            quality_score=max(0.0, min(100.0, float(image.quality_score))),
        )
        total = sum(getattr(breakdown, name) * weight for name, weight in WEIGHTS.items())
        score = round(total, 1)
        return ScoredReference(
            image=image,
            score=score,
            breakdown=breakdown,
            reasoning=self.explain(image, breakdown, profile, score),
        )

    # -------------------------------------------------------------------------
    # Sub-scores, each 0-100
    # -------------------------------------------------------------------------

    def scene_type_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        if not image.scene_types:
            return NEUTRAL_SCORE
        return 90.0 if profile.scene_type.value in image.scene_types else 40.0

    def lens_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        if image.lens_mm is None or not profile.preferred_lens:
            return NEUTRAL_SCORE
        if image.lens_mm in profile.preferred_lens:
            return 95.0
        diff = min(abs(image.lens_mm - lens) for lens in profile.preferred_lens)
        return float(max(20, 95 - diff * 10))

    def crop_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        crop = _to_crop(image.crop)
        if crop is None or not profile.preferred_crop:
            return NEUTRAL_SCORE
        if crop in profile.preferred_crop:
            return 95.0
        if any(similar in profile.preferred_crop for similar in SIMILAR_CROPS[crop]):
            return 70.0
        return 30.0

    def angle_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        if image.azimuth_deg is None or not profile.preferred_azimuths:
            return NEUTRAL_SCORE
        if image.azimuth_deg in profile.preferred_azimuths:
            return 95.0
        diff = min(abs(image.azimuth_deg - az) for az in profile.preferred_azimuths)
        return float(max(20, 95 - diff * 0.5))

    def tone_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        if not image.expression:
            return NEUTRAL_SCORE
        expression = image.expression.lower()
        if any(e in expression for e in TONE_EXPRESSIONS[profile.emotional_tone]):
            return 85.0
        return 45.0

    def composition_score(self, image: GeneratedImage, profile: ScenePreferenceProfile) -> float:
        needs = profile.composition_needs
        score = NEUTRAL_SCORE
        if needs.eye_contact and image.gaze == "to_camera":
            score += 15
        if not needs.eye_contact and image.gaze and image.gaze != "to_camera":
            score += 10
        if needs.profile_work and image.azimuth_deg is not None and abs(image.azimuth_deg) >= 75:
            score += 15
        if needs.full_body_needed and image.crop == Crop.FULL.value:
            score += 15
        if needs.hands_important and image.crop == Crop.HANDS.value:
            score += 20
        return min(100.0, score)

    # -------------------------------------------------------------------------
    # Explanation
    # -------------------------------------------------------------------------

    def explain(
        self,
        image: GeneratedImage,
        breakdown: ScoreBreakdown,
        profile: ScenePreferenceProfile,
        score: float,
    ) -> str:
        """Sentence fragments for the factors that scored well, in weight order."""
        reasons: list[str] = []
        scene = profile.scene_type.value

        if breakdown.scene_type_match > 80:
            reasons.append(f"Perfect match for {scene} scenes")
        elif breakdown.scene_type_match > 60:
            reasons.append(f"Good fit for {scene} scenes")

        if breakdown.lens_preference > 80 and image.lens_mm in LENS_PURPOSE:
            reasons.append(f"{image.lens_mm}mm lens ideal for {LENS_PURPOSE[image.lens_mm]} work")

        crop = _to_crop(image.crop)
        if breakdown.crop_preference > 80 and crop is not None:
            reasons.append(f"{crop.value.upper()} crop provides {CROP_PURPOSE[crop]}")

        if breakdown.angle_preference > 80:
            reasons.append(f"{image.azimuth_deg:g}° camera angle suits {scene} coverage")

        if breakdown.emotional_tone_match > 80:
            reasons.append(f"{image.expression} expression fits a {profile.emotional_tone.value} tone")

        if breakdown.quality_score > 85:
            reasons.append(f"High quality score ({breakdown.quality_score:g}/100)")

        reasons.append(f"Overall compatibility score: {round(score)}/100")
        return ". ".join(reasons)

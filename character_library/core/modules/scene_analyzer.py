"""
Scene description analysis.

Classifies free text into a scene type and emotional tone by keyword matching,
then derives a preference profile (lenses, crops, camera azimuths and three
1-10 sliders) used to score reference images.
"""

import re

from ..types import (
    CompositionNeeds,
    Crop,
    EmotionalTone,
    ScenePreferenceProfile,
    SceneType,
)

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "being", "have", "has", "had", "do", "does", "did",
    "will", "would", "could", "should", "may", "might", "can", "must", "shall",
})

# Dict order matters: on equal counts the earlier entry wins, so dialogue is the default
SCENE_TYPE_KEYWORDS: dict[SceneType, list[str]] = {
    SceneType.DIALOGUE: ["conversation", "talking", "speaking", "dialogue", "discussion", "chat",
                         "words", "says", "tells", "asks", "responds", "replies"],
    SceneType.ACTION: ["fight", "running", "chase", "movement", "action", "dynamic", "fast",
                       "quick", "rush", "battle", "combat", "moves"],
    SceneType.EMOTIONAL: ["crying", "sad", "happy", "angry", "emotional", "feeling", "reaction",
                          "tears", "joy", "fear", "love", "hate", "pain"],
    SceneType.ESTABLISHING: ["wide", "establishing", "location", "setting", "environment", "place",
                             "room", "building", "landscape", "overview"],
    SceneType.TRANSITION: ["walking", "moving", "transition", "between", "connecting", "goes",
                           "leaves", "enters", "approaches", "departs"],
}

TONE_KEYWORDS: dict[EmotionalTone, list[str]] = {
    EmotionalTone.TENSE: ["tense", "nervous", "anxious", "worried", "stressed", "pressure",
                          "conflict", "argument", "confrontation"],
    EmotionalTone.INTIMATE: ["intimate", "close", "personal", "private", "quiet", "whisper",
                             "gentle", "tender", "soft"],
    EmotionalTone.DRAMATIC: ["dramatic", "intense", "powerful", "strong", "climax", "peak",
                             "crucial", "critical", "important"],
    EmotionalTone.CONTEMPLATIVE: ["thoughtful", "thinking", "contemplative", "reflective",
                                  "pondering", "considering", "wondering", "musing"],
}

# Base preferences per scene type: (lenses, crops, azimuths)
SCENE_PREFERENCES: dict[SceneType, tuple[list[int], list[Crop], list[float]]] = {
    SceneType.DIALOGUE: ([50, 85], [Crop.CLOSE_UP, Crop.MEDIUM_CLOSE_UP], [0, -35, 35]),
    SceneType.ACTION: ([35, 50], [Crop.FULL, Crop.THREE_QUARTER], [-45, 0, 45]),
    SceneType.EMOTIONAL: ([85], [Crop.CLOSE_UP, Crop.MEDIUM_CLOSE_UP], [-25, 0, 25]),
    SceneType.ESTABLISHING: ([35], [Crop.FULL], [0]),
    SceneType.TRANSITION: ([35, 50], [Crop.FULL, Crop.THREE_QUARTER], [-35, 35]),
}

# (intimacy, dynamism, emotional intensity)
SCENE_SLIDERS: dict[SceneType, tuple[int, int, int]] = {
    SceneType.DIALOGUE: (7, 3, 6),
    SceneType.ACTION: (3, 9, 4),
    SceneType.EMOTIONAL: (8, 2, 9),
    SceneType.ESTABLISHING: (2, 4, 3),
    SceneType.TRANSITION: (4, 6, 4),
}

TONE_SLIDER_ADJUSTMENTS: dict[EmotionalTone, tuple[int, int, int]] = {
    EmotionalTone.NEUTRAL: (0, 0, 0),
    EmotionalTone.INTIMATE: (2, -2, 0),
    EmotionalTone.DRAMATIC: (0, 1, 2),
    EmotionalTone.TENSE: (0, 2, 1),
    EmotionalTone.CONTEMPLATIVE: (1, -3, 0),
}

CLOSE_UP_KEYWORDS = ["close", "intimate", "face", "expression", "eyes", "detail", "emotion"]
FULL_BODY_KEYWORDS = ["full", "body", "movement", "action", "standing", "walking", "posture"]
PROFILE_KEYWORDS = ["profile", "side", "silhouette", "contemplative", "thinking"]

INTENSITY_KEYWORDS = ["intense", "powerful", "strong", "dramatic"]
QUIET_KEYWORDS = ["quiet", "gentle", "soft", "subtle"]
FAST_KEYWORDS = ["fast", "quick", "rapid", "sudden"]

EYE_CONTACT_KEYWORDS = ["looking", "staring", "gazing", "eye", "contact", "direct"]
PROFILE_NEED_KEYWORDS = ["profile", "side", "silhouette", "contemplative", "thinking", "pondering"]
FULL_BODY_NEED_KEYWORDS = ["standing", "walking", "posture", "movement", "full", "body"]
HAND_KEYWORDS = ["hands", "gesture", "touching", "holding", "props", "object", "pointing"]

STRONG_INDICATORS: dict[SceneType, list[str]] = {
    SceneType.DIALOGUE: ["conversation", "talking", "dialogue"],
    SceneType.ACTION: ["action", "fight", "chase"],
    SceneType.EMOTIONAL: ["emotional", "crying", "feeling"],
    SceneType.ESTABLISHING: ["establishing", "wide", "location"],
    SceneType.TRANSITION: ["transition", "moving", "walking"],
}

SCENE_REASONS: dict[SceneType, str] = {
    SceneType.DIALOGUE: "Recommending 50mm and 85mm lenses for natural conversation perspective",
    SceneType.ACTION: "Recommending 35mm lens and wider shots for dynamic movement capture",
    SceneType.EMOTIONAL: "Recommending 85mm lens and close-ups for emotional intimacy",
    SceneType.ESTABLISHING: "Recommending 35mm lens and full body shots for context establishment",
    SceneType.TRANSITION: "Recommending varied angles and medium shots for movement continuity",
}


def extract_keywords(description: str) -> list[str]:
    """Lowercased words longer than two letters, minus stopwords, first occurrence order."""
    words = re.sub(r"[^\w\s]", " ", description.lower()).split()
    keywords: list[str] = []
    for word in words:
        if len(word) > 2 and word not in STOPWORDS and word not in keywords:
            keywords.append(word)
    return keywords


def _matches(keywords: list[str], target: str) -> bool:
    return any(target in k or k in target for k in keywords)


def _match_count(keywords: list[str], targets: list[str]) -> int:
    return sum(1 for target in targets if _matches(keywords, target))


def _has_any(keywords: list[str], targets: list[str]) -> bool:
    return any(_matches(keywords, target) for target in targets)


def _clamp_slider(value: int) -> int:
    return max(1, min(10, value))


class SceneAnalyzer:
    """Turn a scene description into a ScenePreferenceProfile."""

    def analyze(self, description: str) -> ScenePreferenceProfile:
        keywords = extract_keywords(description)
        scene_type = self.detect_scene_type(keywords)
        tone = self.detect_emotional_tone(keywords)
        lenses, crops, azimuths = self.preferred_shots(keywords, scene_type, tone)
        intimacy, dynamism, intensity = self.sliders(keywords, scene_type, tone)

        return ScenePreferenceProfile(
            scene_type=scene_type,
            emotional_tone=tone,
            preferred_lens=lenses,
            preferred_crop=crops,
            preferred_azimuths=azimuths,
            intimacy_level=intimacy,
            dynamism_level=dynamism,
            emotional_intensity=intensity,
            confidence=self.confidence(keywords, scene_type),
            keywords=keywords,
            composition_needs=self.composition_needs(keywords, scene_type, tone),
            reasoning=self.reasoning(keywords, scene_type, tone),
        )

    def detect_scene_type(self, keywords: list[str]) -> SceneType:
        """Most matched keyword list wins. Ties and no matches fall back to dialogue."""
        best, best_count = SceneType.DIALOGUE, 0
        for scene_type, targets in SCENE_TYPE_KEYWORDS.items():
            count = _match_count(keywords, targets)
            if count > best_count:
                best, best_count = scene_type, count
        return best

    def detect_emotional_tone(self, keywords: list[str]) -> EmotionalTone:
        best, best_count = EmotionalTone.NEUTRAL, 0
        for tone, targets in TONE_KEYWORDS.items():
            count = _match_count(keywords, targets)
            if count > best_count:
                best, best_count = tone, count
        return best

    def preferred_shots(
        self,
        keywords: list[str],
        scene_type: SceneType,
        tone: EmotionalTone,
    ) -> tuple[list[int], list[Crop], list[float]]:
        base_lenses, base_crops, base_azimuths = SCENE_PREFERENCES[scene_type]
        lenses, crops, azimuths = list(base_lenses), list(base_crops), list(base_azimuths)

        if tone == EmotionalTone.INTIMATE:
            lenses, crops, azimuths = [85], [Crop.CLOSE_UP], [0, -15, 15]
        elif tone == EmotionalTone.DRAMATIC:
            azimuths += [-15, 15]

        if _has_any(keywords, CLOSE_UP_KEYWORDS):
            lenses.append(85)
            crops.append(Crop.CLOSE_UP)
        if _has_any(keywords, FULL_BODY_KEYWORDS):
            lenses.append(35)
            crops.append(Crop.FULL)
        if _has_any(keywords, PROFILE_KEYWORDS):
            azimuths += [-90, 90]

        return (
            sorted(set(lenses)),
            list(dict.fromkeys(crops)),
            sorted(set(azimuths)),
        )

    def sliders(
        self,
        keywords: list[str],
        scene_type: SceneType,
        tone: EmotionalTone,
    ) -> tuple[int, int, int]:
        """(intimacy, dynamism, emotional intensity), each clamped to 1-10."""
        intimacy, dynamism, intensity = SCENE_SLIDERS[scene_type]
        d_intimacy, d_dynamism, d_intensity = TONE_SLIDER_ADJUSTMENTS[tone]
        intimacy = _clamp_slider(intimacy + d_intimacy)
        dynamism = _clamp_slider(dynamism + d_dynamism)
        intensity = _clamp_slider(intensity + d_intensity)

        if _has_any(keywords, INTENSITY_KEYWORDS):
            intensity = _clamp_slider(intensity + 1)
        if _has_any(keywords, QUIET_KEYWORDS):
            intimacy = _clamp_slider(intimacy + 1)
            dynamism = _clamp_slider(dynamism - 1)
        if _has_any(keywords, FAST_KEYWORDS):
            dynamism = _clamp_slider(dynamism + 2)

        return intimacy, dynamism, intensity

    def composition_needs(
        self,
        keywords: list[str],
        scene_type: SceneType,
        tone: EmotionalTone,
    ) -> CompositionNeeds:
        return CompositionNeeds(
            eye_contact=scene_type == SceneType.DIALOGUE or _has_any(keywords, EYE_CONTACT_KEYWORDS),
            profile_work=_has_any(keywords, PROFILE_NEED_KEYWORDS) or tone == EmotionalTone.CONTEMPLATIVE,
            full_body_needed=(
                scene_type in (SceneType.ACTION, SceneType.ESTABLISHING)
                or _has_any(keywords, FULL_BODY_NEED_KEYWORDS)
            ),
            hands_important=_has_any(keywords, HAND_KEYWORDS),
        )

    def confidence(self, keywords: list[str], scene_type: SceneType) -> int:
        """50 base, +2 per keyword (max +30), +20 for a strong indicator, capped at 95."""
        confidence = 50 + min(30, len(keywords) * 2)
        if any(indicator in k for indicator in STRONG_INDICATORS[scene_type] for k in keywords):
            confidence += 20
        return min(95, confidence)

    def reasoning(self, keywords: list[str], scene_type: SceneType, tone: EmotionalTone) -> str:
        reasons = [f"Detected scene type: {scene_type.value}", f"Emotional tone: {tone.value}"]
        if keywords:
            reasons.append(f"Key indicators: {', '.join(keywords[:5])}")
        reasons.append(SCENE_REASONS[scene_type])
        return ". ".join(reasons) + "."

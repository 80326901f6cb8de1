# Reference set generation
from .shot_attempt import ShotAttempt, AttemptState, Candidate
from .reference_set_generator import ReferenceSetGenerator, GenerationOptions, ShotOutcome, add_outcome

# Scene-driven selection
from .scene_analyzer import SceneAnalyzer
from .reference_selector import ReferenceSelector, SelectionFilters

# Provider adapters
from .asset_store import FileAssetStore
from .gemini_synthesizer import GeminiImageSynthesizer
from .consistency_judge import GeminiConsistencyJudge

__all__ = [
    # Reference set generation
    "ShotAttempt",
    "AttemptState",
    "Candidate",
    "ReferenceSetGenerator",
    "GenerationOptions",
    "ShotOutcome",
    "add_outcome",
    # Scene-driven selection
    "SceneAnalyzer",
    "ReferenceSelector",
    "SelectionFilters",
    # Provider adapters
    "FileAssetStore",
    "GeminiImageSynthesizer",
    "GeminiConsistencyJudge",
]

# Character Reference Library - Core Domain

# Re-export types for convenient access
from .types import (
    ShotTemplate,
    ShotFilter,
    ShotRequirements,
    CalculatedParameters,
    Subject,
    GeneratedImage,
    FailedAttempt,
    GenerationResult,
    ScenePreferenceProfile,
    SceneSelection,
    NoCandidates,
)
from .errors import (
    CharacterLibraryError,
    InvalidShot,
    PreconditionFailure,
    SynthesisFailure,
    QualityRejected,
    NotFound,
    AlreadyTerminal,
)
from .shot_catalog import ShotTemplateCatalog, default_catalog

__all__ = [
    "ShotTemplate",
    "ShotFilter",
    "ShotRequirements",
    "CalculatedParameters",
    "Subject",
    "GeneratedImage",
    "FailedAttempt",
    "GenerationResult",
    "ScenePreferenceProfile",
    "SceneSelection",
    "NoCandidates",
    "CharacterLibraryError",
    "InvalidShot",
    "PreconditionFailure",
    "SynthesisFailure",
    "QualityRejected",
    "NotFound",
    "AlreadyTerminal",
    "ShotTemplateCatalog",
    "default_catalog",
]

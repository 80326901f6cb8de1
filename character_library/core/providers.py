"""External collaborator protocols.

The pipeline and orchestrator only talk to these interfaces. Concrete
adapters live in core/modules (Gemini, filesystem) and api/database
(Postgres); tests substitute fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .types import GeneratedImage, Subject


@dataclass(frozen=True)
class SynthesisResult:
    asset_ref: str
    description: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    quality_score: float  # 0-100
    consistency_score: Optional[float] = None  # 0-100, None without a master reference


class ImageSynthesizer(Protocol):
    """Protocol for image synthesis providers."""

    async def synthesize(
        self,
        prompt: str,
        reference_assets: Sequence[str],
        seed: Optional[int] = None,
    ) -> SynthesisResult:
        ...


class ConsistencyAnalyzer(Protocol):
    """Protocol for visual quality and consistency scoring."""

    async def analyze(self, asset_ref: str, master_ref: Optional[str] = None) -> AnalysisResult:
        ...


class AssetStore(Protocol):
    """Opaque reference-by-id storage for image bytes."""

    async def store(self, data: bytes, name: Optional[str] = None) -> str:
        ...

    async def fetch(self, asset_ref: str) -> bytes:
        ...


class SubjectProvider(Protocol):
    """Character lookup. Raises NotFound for unknown ids."""

    async def get_subject(self, subject_id: str) -> Subject:
        ...


class ImagePool(Protocol):
    """A subject's permanent collection of accepted reference images."""

    async def add_image(self, subject_id: str, image: GeneratedImage) -> None:
        ...

    async def list_images(self, subject_id: str) -> list[GeneratedImage]:
        ...

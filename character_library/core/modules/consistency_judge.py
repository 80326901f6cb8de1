"""
VLM-as-judge scoring for generated reference shots.

Uses Gemini Flash to rate a generated image for technical quality and, when a
master reference is available, for identity consistency with it. Scores are
0-100 so they compare directly against the quality threshold.
"""

import asyncio
import json
import logging
from io import BytesIO
from typing import Optional

from PIL import Image

from ...config import get_image_client, get_judge_model, image_retry
from ..providers import AnalysisResult, AssetStore

logger = logging.getLogger(__name__)

JUDGE_PROMPT = """Evaluate this character reference image for a production reference library.

{consistency_instructions}
Respond with valid JSON only. No markdown, no explanation, just the JSON object.

Return this exact JSON structure:
{{
  "quality_score": 0-100 (sharpness, anatomy, lighting, clean background, no text or watermarks),
  {consistency_field}"issues": ["specific", "problems"] (empty array if none)
}}"""

CONSISTENCY_INSTRUCTIONS = (
    "The FIRST image is the master reference. The SECOND image is the candidate. "
    "Compare the candidate's face, hair, build, age and costume against the master."
)

CONSISTENCY_FIELD = (
    '"consistency_score": 0-100 (100 = unmistakably the same character as the master; '
    "score below 50 if hair, face shape or apparent age differ),\n  "
)


def _clamp_score(value) -> float:
    return max(0.0, min(100.0, float(value)))


class GeminiConsistencyJudge:
    """ConsistencyAnalyzer backed by a Gemini vision model."""

    def __init__(self, asset_store: AssetStore, model: Optional[str] = None):
        self.asset_store = asset_store
        self.model = model or get_judge_model()
        self._client = None

    @property
    def client(self):
        """Lazy load the client."""
        if self._client is None:
            self._client = get_image_client()
        return self._client

    async def analyze(self, asset_ref: str, master_ref: Optional[str] = None) -> AnalysisResult:
        candidate = await self.asset_store.fetch(asset_ref)
        master = await self.asset_store.fetch(master_ref) if master_ref else None
        raw = await asyncio.to_thread(self._evaluate, candidate, master)
        return self._parse_response(raw, has_master=master is not None)

    def _build_contents(self, candidate: bytes, master: Optional[bytes]) -> list:
        contents = []
        if master is not None:
            contents.append(self._to_rgb(master))
        contents.append(self._to_rgb(candidate))
        contents.append(JUDGE_PROMPT.format(
            consistency_instructions=CONSISTENCY_INSTRUCTIONS if master is not None else "",
            consistency_field=CONSISTENCY_FIELD if master is not None else "",
        ))
        return contents

    @staticmethod
    def _to_rgb(data: bytes) -> Image.Image:
        img = Image.open(BytesIO(data))
        if img.mode != "RGB":
            img = img.convert("RGB")
        return img

    @image_retry
    def _evaluate(self, candidate: bytes, master: Optional[bytes]) -> str:
        response = self.client.models.generate_content(
            model=self.model,
            contents=self._build_contents(candidate, master),
        )
        return response.text or ""

    def _parse_response(self, response_text: str, has_master: bool = True) -> AnalysisResult:
        """
        Parse the judge's JSON reply.

        Raises:
            ValueError: If no usable JSON object is present. The pipeline
                counts this as a failed attempt rather than guessing a score.
        """
        text = response_text.strip()
        if text.startswith("```"):
            # Remove markdown code block
            lines = text.split("\n")
            text = "\n".join(lines[1:-1] if lines[-1] == "```" else lines[1:])

        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end == 0:
            raise ValueError("No JSON object found in judge response")

        try:
            data = json.loads(text[start:end])
            quality = _clamp_score(data["quality_score"])
            consistency = None
            if has_master and data.get("consistency_score") is not None:
                consistency = _clamp_score(data["consistency_score"])
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Could not parse judge response: {str(e)[:100]}") from e

        for issue in data.get("issues", []) or []:
            logger.debug(f"Judge issue: {issue}")

        return AnalysisResult(quality_score=quality, consistency_score=consistency)

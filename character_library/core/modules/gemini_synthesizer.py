"""
Reference shot synthesis using Nano Banana Pro.

Sends the rendered shot prompt together with the subject's reference images
and stores the returned image bytes in the asset store.
"""

import asyncio
from io import BytesIO
from typing import Optional, Sequence

from PIL import Image

from ...config import (
    extract_image_from_response,
    extract_text_from_response,
    get_image_client,
    get_image_config,
    get_image_model,
    image_retry,
)
from ..providers import AssetStore, SynthesisResult


class GeminiImageSynthesizer:
    """
    ImageSynthesizer backed by the Gemini image model.

    The SDK call is synchronous, so it runs in a worker thread; transient
    errors are retried by image_retry before the pipeline sees them.
    """

    def __init__(self, asset_store: AssetStore, model: Optional[str] = None):
        self.asset_store = asset_store
        self.model = model or get_image_model()
        self._client = None

    @property
    def client(self):
        """Lazy load the client."""
        if self._client is None:
            self._client = get_image_client()
        return self._client

    async def synthesize(
        self,
        prompt: str,
        reference_assets: Sequence[str],
        seed: Optional[int] = None,
    ) -> SynthesisResult:
        references = [await self.asset_store.fetch(ref) for ref in reference_assets]
        image_data, description = await asyncio.to_thread(
            self._generate_image, prompt, references, seed
        )
        asset_ref = await self.asset_store.store(image_data)
        return SynthesisResult(asset_ref=asset_ref, description=description)

    def _build_contents(self, prompt: str, references: Sequence[bytes]) -> list:
        """Reference images first, labelled, then the shot prompt."""
        contents = []
        for i, data in enumerate(references, start=1):
            img = Image.open(BytesIO(data))
            if img.mode != "RGB":
                img = img.convert("RGB")
            contents.append(img)
            label = "master reference" if i == 1 else f"accepted reference {i - 1}"
            contents.append(f"Reference image {i} ({label}): keep this character's identity exactly.")
        contents.append(prompt)
        return contents

    @image_retry
    def _generate_image(
        self,
        prompt: str,
        references: Sequence[bytes],
        seed: Optional[int],
    ) -> tuple[bytes, str]:
        """Generate one image with retry for network errors."""
        response = self.client.models.generate_content(
            model=self.model,
            contents=self._build_contents(prompt, references),
            config=get_image_config(seed=seed),
        )
        return extract_image_from_response(response), extract_text_from_response(response)

"""
Integration tests for reference shot synthesis with real API calls.

Run with: pytest tests/integration/test_image_generation.py -v
"""

from io import BytesIO

import pytest
from PIL import Image

from character_library.config import extract_image_from_response, get_image_client, get_image_config, get_image_model
from character_library.core.modules.asset_store import FileAssetStore
from character_library.core.modules.consistency_judge import GeminiConsistencyJudge
from character_library.core.modules.gemini_synthesizer import GeminiImageSynthesizer
from character_library.core.modules.reference_set_generator import GenerationOptions, ReferenceSetGenerator
from character_library.core.shot_catalog import default_catalog
from character_library.core.types import Subject


@pytest.mark.requires_google_api
@pytest.mark.slow
class TestExtractImageFromResponseReal:
    """Exercises extract_image_from_response with a real API response."""

    def test_extracts_image_from_real_response(self):
        response = get_image_client().models.generate_content(
            model=get_image_model(),
            contents="Generate a simple red circle on white background",
            config=get_image_config(),
        )

        image_bytes = extract_image_from_response(response)

        assert len(image_bytes) > 1000
        img = Image.open(BytesIO(image_bytes))
        assert img.size[0] > 0


@pytest.mark.requires_google_api
@pytest.mark.slow
class TestReferenceSetReal:
    """One real shot, end to end: master image, synthesis, judge."""

    @pytest.fixture
    def asset_store(self, tmp_path):
        return FileAssetStore(tmp_path / "assets")

    @pytest.fixture
    async def subject(self, asset_store):
        response = get_image_client().models.generate_content(
            model=get_image_model(),
            contents=(
                "Full body character design of a young girl with short curly black hair, "
                "round glasses and a yellow raincoat, plain white background"
            ),
            config=get_image_config(),
        )
        master = await asset_store.store(extract_image_from_response(response), "maya/master.png")
        return Subject(
            subject_id="maya",
            name="Maya",
            traits="short curly black hair, round glasses, yellow raincoat",
            personality="curious and brave",
            master_reference=master,
        )

    @pytest.mark.asyncio
    async def test_generates_one_core_shot(self, asset_store, subject):
        generator = ReferenceSetGenerator(
            GeminiImageSynthesizer(asset_store),
            GeminiConsistencyJudge(asset_store),
            GenerationOptions(quality_threshold=50, max_retries=2, call_timeout=180.0),
        )
        shot = default_catalog().get_template("50_front_cu")

        outcomes = [o async for o in generator.iter_shots(subject, [shot])]

        image = outcomes[0].image
        assert image is not None
        assert 0 <= image.quality_score <= 100
        assert image.consistency_score is not None
        assert await asset_store.fetch(image.asset_ref)

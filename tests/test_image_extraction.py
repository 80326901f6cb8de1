"""Unit tests for image and text extraction from Gemini API responses."""

import base64
from unittest.mock import MagicMock

import pytest

from character_library.config.image import extract_image_from_response, extract_text_from_response


class FakePart:
    """Fake Gemini response part."""

    def __init__(self, image_data=None, text=None):
        if image_data is not None:
            self.inline_data = MagicMock()
            self.inline_data.data = image_data
        else:
            self.inline_data = None
        self.text = text


class FakeCandidate:
    def __init__(self, parts):
        self.content = MagicMock()
        self.content.parts = parts


class FakeResponse:
    def __init__(self, parts, candidates=True):
        self.candidates = [FakeCandidate(parts)] if candidates else []


class TestExtractImageFromResponse:
    """Tests for extract_image_from_response()."""

    def test_extracts_raw_bytes(self):
        image_bytes = b"\x89PNG\r\n\x1a\n fake image data"

        assert extract_image_from_response(FakeResponse([FakePart(image_bytes)])) == image_bytes

    def test_decodes_base64_string(self):
        original_bytes = b"\x89PNG\r\n\x1a\n fake image data"
        encoded = base64.b64encode(original_bytes).decode("utf-8")

        assert extract_image_from_response(FakeResponse([FakePart(encoded)])) == original_bytes

    def test_raises_when_no_image_in_response(self):
        with pytest.raises(ValueError, match="No image found"):
            extract_image_from_response(FakeResponse([FakePart(text="I can't draw that")]))

    def test_raises_when_no_candidates(self):
        with pytest.raises(ValueError, match="No candidates"):
            extract_image_from_response(FakeResponse([], candidates=False))

    def test_skips_non_image_parts(self):
        image_bytes = b"the actual image"
        response = FakeResponse([FakePart(text="Here is your shot"), FakePart(image_bytes)])

        assert extract_image_from_response(response) == image_bytes

    def test_extracts_first_image_when_multiple_parts(self):
        response = FakeResponse([FakePart(b"first image"), FakePart(b"second image")])

        assert extract_image_from_response(response) == b"first image"


class TestExtractTextFromResponse:
    def test_joins_text_parts(self):
        response = FakeResponse([FakePart(text="Maya, front view."), FakePart(b"img"), FakePart(text="85mm.")])

        assert extract_text_from_response(response) == "Maya, front view. 85mm."

    def test_empty_without_candidates(self):
        assert extract_text_from_response(FakeResponse([], candidates=False)) == ""

"""
Image provider configuration for the Character Reference Library.

Uses Nano Banana Pro (Gemini 3 Pro Image) for reference shot synthesis and
Gemini Flash as the visual consistency judge.

Includes:
- Retry with exponential backoff for transient provider errors
- Rate limit (429) handling; other client errors fail fast
"""

import base64
import logging
import os

from dotenv import load_dotenv
from google import genai
from google.genai.errors import ClientError, ServerError
from google.genai.types import GenerateContentConfig, Modality
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

# Image generation constants
IMAGE_CONSTANTS = {
    "model": os.getenv("IMAGE_MODEL", "gemini-3-pro-image-preview"),  # Nano Banana Pro
    "judge_model": os.getenv("JUDGE_MODEL", "gemini-3-flash-preview"),
    "max_reference_images": 14,  # Nano Banana Pro supports up to 14
    "retry_attempts": 3,
    "retry_min_wait": 2,
    "retry_max_wait": 30,
}

# Errors that should trigger a retry of the raw SDK call
RETRYABLE_EXCEPTIONS = (
    ServerError,  # 5xx, model overloaded
    ConnectionError,
    TimeoutError,
    BrokenPipeError,
    OSError,  # Catches [Errno 32] Broken pipe
)


def _is_retryable(exc: BaseException) -> bool:
    """Transient errors plus rate limiting. Other 4xx responses are permanent."""
    if isinstance(exc, ClientError):
        return getattr(exc, "code", None) == 429
    return isinstance(exc, RETRYABLE_EXCEPTIONS)


image_retry = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(IMAGE_CONSTANTS["retry_attempts"]),
    wait=wait_exponential(
        multiplier=1,
        min=IMAGE_CONSTANTS["retry_min_wait"],
        max=IMAGE_CONSTANTS["retry_max_wait"],
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def get_image_client() -> genai.Client:
    """
    Get the Gemini client used for synthesis and judging.

    Uses GOOGLE_API_KEY from environment.
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise ValueError("GOOGLE_API_KEY not found in environment. Set it in .env file.")

    return genai.Client(api_key=api_key)


def get_image_model() -> str:
    """Get the image model ID."""
    return IMAGE_CONSTANTS["model"]


def get_judge_model() -> str:
    """Get the consistency judge model ID."""
    return IMAGE_CONSTANTS["judge_model"]


def get_image_config(seed: int | None = None) -> GenerateContentConfig:
    """Get the config for one image generation call."""
    return GenerateContentConfig(
        response_modalities=[Modality.TEXT, Modality.IMAGE],
        seed=seed,
    )


def extract_image_from_response(response) -> bytes:
    """
    Extract image bytes from a Gemini API response.

    Args:
        response: The response from genai.Client.models.generate_content()

    Returns:
        Image bytes (PNG/JPEG)

    Raises:
        ValueError: If no image found in response
    """
    if not response.candidates:
        raise ValueError("No candidates in response")

    for part in response.candidates[0].content.parts:
        if hasattr(part, "inline_data") and part.inline_data:
            data = part.inline_data.data
            return base64.b64decode(data) if isinstance(data, str) else data

    raise ValueError("No image found in response")


def extract_text_from_response(response) -> str:
    """Collect any text parts the model returned alongside the image."""
    if not response.candidates:
        return ""
    texts = [
        part.text
        for part in response.candidates[0].content.parts
        if getattr(part, "text", None)
    ]
    return " ".join(texts).strip()

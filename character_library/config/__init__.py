"""
Configuration module for the Character Reference Library.

Re-exports image provider and generation policy configuration.
"""

from .generation import GENERATION_CONSTANTS, retry_wait, wait_seconds
from .image import (
    IMAGE_CONSTANTS,
    RETRYABLE_EXCEPTIONS,
    get_image_client,
    get_image_model,
    get_judge_model,
    get_image_config,
    extract_image_from_response,
    extract_text_from_response,
    image_retry,
)

__all__ = [
    # Generation policy
    "GENERATION_CONSTANTS",
    "retry_wait",
    "wait_seconds",
    # Image
    "IMAGE_CONSTANTS",
    "RETRYABLE_EXCEPTIONS",
    "get_image_client",
    "get_image_model",
    "get_judge_model",
    "get_image_config",
    "extract_image_from_response",
    "extract_text_from_response",
    "image_retry",
]

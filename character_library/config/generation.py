"""
Generation policy constants for the Character Reference Library.

Defaults for the per-shot quality gate, retry budget and external call timeouts.
Request parameters override the first two per job.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from tenacity import RetryCallState, wait_exponential

load_dotenv()

GENERATION_CONSTANTS = {
    "quality_threshold": 75,  # 0-100, analyzer quality score required to accept a shot
    "max_retries": 3,  # Total attempts per shot, synthesis failures and quality rejections both count
    "call_timeout": float(os.getenv("PROVIDER_CALL_TIMEOUT", "120")),  # Seconds per external call
    "backoff_base": 2.0,  # Seconds before the second attempt, doubled per attempt
    "backoff_max": 30.0,
    "max_reference_images": 14,  # Master reference + accepted core shots
    "strict_quality": False,  # Hard-fail shots that never reach the threshold
    "default_intimacy": 5,  # 0-10, higher moves the camera closer and the gaze to camera
    "default_dynamism": 5,  # 0-10, drives pose energy and shutter speed
}


def retry_wait(base: Optional[float] = None, maximum: Optional[float] = None) -> wait_exponential:
    """
    Wait strategy between attempts at one shot.

    Waits base seconds after the first attempt, doubling per attempt up to
    maximum. A base of 0 disables the wait.
    """
    base = GENERATION_CONSTANTS["backoff_base"] if base is None else base
    maximum = GENERATION_CONSTANTS["backoff_max"] if maximum is None else maximum
    return wait_exponential(multiplier=base, max=maximum)


def wait_seconds(wait: wait_exponential, attempts: int) -> float:
    """Seconds the wait strategy asks for after the given number of attempts."""
    state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
    state.attempt_number = attempts
    return wait(state)

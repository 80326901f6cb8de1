"""Structured logging infrastructure for the API layer.

Provides JSON-formatted logging for production and human-readable
logging for development, plus a GenerationLogger helper for job events.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

# Structured fields copied from `extra=` into the JSON payload
EXTRA_FIELDS = (
    "job_id",
    "subject_id",
    "shot_id",
    "stage",
    "attempt",
    "duration",
    "error_type",
    "job_type",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


class GenerationLogger:
    """Logger for reference set job events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("reference_generation")

    def job_started(self, job_id: str, subject_id: str, job_type: str, total: int) -> None:
        self.logger.info(
            f"Job started: {total} shot(s)",
            extra={"job_id": job_id, "subject_id": subject_id, "stage": "started", "job_type": job_type},
        )

    def shot_completed(self, job_id: str, shot_id: str, quality_score: float, attempts: int) -> None:
        self.logger.info(
            f"Shot completed: {shot_id} (quality {quality_score:g})",
            extra={"job_id": job_id, "shot_id": shot_id, "stage": "shot", "attempt": attempts},
        )

    def shot_failed(self, job_id: str, shot_id: str, error_type: str, error: str) -> None:
        self.logger.warning(
            f"Shot failed: {error}",
            extra={"job_id": job_id, "shot_id": shot_id, "stage": "shot", "error_type": error_type},
        )

    def retry_attempt(self, job_id: str, shot_id: str, attempt: int, reason: str) -> None:
        self.logger.warning(
            f"Retry attempt {attempt}: {reason}",
            extra={"job_id": job_id, "shot_id": shot_id, "attempt": attempt},
        )

    def job_completed(self, job_id: str, generated: int, failed: int, duration: float) -> None:
        self.logger.info(
            f"Job completed: {generated} generated, {failed} failed",
            extra={"job_id": job_id, "stage": "completed", "duration": round(duration, 2)},
        )

    def job_failed(self, job_id: str, error: str, error_type: Optional[str] = None, exc_info: bool = False) -> None:
        extra = {"job_id": job_id, "stage": "failed"}
        if error_type:
            extra["error_type"] = error_type
        self.logger.error(f"Job failed: {error}", extra=extra, exc_info=exc_info)

    def job_cancelled(self, job_id: str, completed_shots: int) -> None:
        self.logger.info(
            f"Job cancelled after {completed_shots} shot(s)",
            extra={"job_id": job_id, "stage": "cancelled"},
        )

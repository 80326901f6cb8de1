"""
Error taxonomy for reference set generation.

Per-shot errors (SynthesisFailure, QualityRejected) are recorded on the shot
and never fail the job. PreconditionFailure and NotFound fail the job.
"""

from typing import Optional


class CharacterLibraryError(Exception):
    """Base class for all domain errors."""


class InvalidShot(CharacterLibraryError, ValueError):
    """A shot definition failed range validation."""

    def __init__(self, shot_id: Optional[str], problems: list[str]):
        self.shot_id = shot_id
        self.problems = problems
        label = shot_id or "<unnamed shot>"
        super().__init__(f"Invalid shot {label}: {'; '.join(problems)}")


class PreconditionFailure(CharacterLibraryError):
    """The subject cannot be processed at all (e.g. no master reference image)."""

    def __init__(self, subject_id: str, reason: str):
        self.subject_id = subject_id
        self.reason = reason
        super().__init__(f"Subject {subject_id}: {reason}")


class SynthesisFailure(CharacterLibraryError):
    """The image synthesis provider (or the analyzer behind it) failed or timed out."""

    def __init__(self, shot_id: str, attempts: int, message: str):
        self.shot_id = shot_id
        self.attempts = attempts
        self.message = message
        super().__init__(f"Shot {shot_id} failed after {attempts} attempt(s): {message}")


class QualityRejected(CharacterLibraryError):
    """Every attempt for a shot scored below the quality threshold."""

    def __init__(self, shot_id: str, attempts: int, best_score: float, threshold: float):
        self.shot_id = shot_id
        self.attempts = attempts
        self.best_score = best_score
        self.threshold = threshold
        super().__init__(
            f"Shot {shot_id}: best of {attempts} attempt(s) scored "
            f"{best_score:g}, below threshold {threshold:g}"
        )


class NotFound(CharacterLibraryError, LookupError):
    """Unknown job, subject or shot template id."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")


class AlreadyTerminal(CharacterLibraryError):
    """Cancellation requested on a job that already finished."""

    def __init__(self, job_id: str, status: str):
        self.job_id = job_id
        self.status = status
        super().__init__(f"Job {job_id} is already {status}")

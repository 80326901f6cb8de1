"""
Per-shot retry state machine.

    ATTEMPTING --failure / low score, budget left--> RETRYING --> (next attempt)
    ATTEMPTING --score >= threshold--------------> ACCEPTED
    ATTEMPTING --budget spent, have a candidate--> ACCEPTED (best, with quality note)
    ATTEMPTING --budget spent, no candidate------> EXHAUSTED

In strict mode a spent budget without a passing score is always EXHAUSTED.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import QualityRejected, SynthesisFailure
from ..providers import AnalysisResult, SynthesisResult
from ..types import FailedAttempt


class AttemptState(str, Enum):
    """Lifecycle of one shot's attempts."""
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    ACCEPTED = "accepted"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Candidate:
    """One synthesized and scored image."""
    synthesis: SynthesisResult
    analysis: AnalysisResult
    prompt: str
    attempt: int
    seed: Optional[int] = None

    @property
    def quality_score(self) -> float:
        return self.analysis.quality_score


class ShotAttempt:
    """
    Tracks attempts for one shot and decides what happens after each one.

    The caller drives it: call begin_attempt() before every provider call, then
    exactly one of record_failure() or record_candidate(). Once the state is
    ACCEPTED or EXHAUSTED, read accepted / failed_attempt().
    """

    def __init__(
        self,
        shot_id: str,
        max_attempts: int = 3,
        quality_threshold: float = 75,
        strict_quality: bool = False,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.shot_id = shot_id
        self.max_attempts = max_attempts
        self.quality_threshold = quality_threshold
        self.strict_quality = strict_quality

        self.state = AttemptState.ATTEMPTING
        self.attempts = 0
        self.best: Optional[Candidate] = None
        self.accepted: Optional[Candidate] = None
        self.quality_note: Optional[str] = None
        self.errors: list[str] = []
        self._failure: Optional[FailedAttempt] = None

    @property
    def finished(self) -> bool:
        return self.state in (AttemptState.ACCEPTED, AttemptState.EXHAUSTED)

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempts

    @property
    def next_attempt(self) -> int:
        """1-based number of the attempt about to be made."""
        return self.attempts + 1

    def begin_attempt(self) -> int:
        """Move out of RETRYING into ATTEMPTING. Returns the attempt number."""
        self._check_open()
        self.state = AttemptState.ATTEMPTING
        return self.next_attempt

    def record_failure(self, message: str) -> AttemptState:
        """A provider or analyzer call failed (including timeouts)."""
        self._check_open()
        self.attempts += 1
        self.errors.append(message)

        if self.attempts_remaining > 0:
            self.state = AttemptState.RETRYING
        else:
            self._finish_exhausted_budget()
        return self.state

    def record_candidate(self, candidate: Candidate) -> AttemptState:
        """A synthesized image came back with scores."""
        self._check_open()
        self.attempts += 1

        if self.best is None or candidate.quality_score > self.best.quality_score:
            self.best = candidate

        if candidate.quality_score >= self.quality_threshold:
            self.accepted = candidate
            self.state = AttemptState.ACCEPTED
        elif self.attempts_remaining > 0:
            self.state = AttemptState.RETRYING
        else:
            self._finish_exhausted_budget()
        return self.state

    def failed_attempt(self) -> Optional[FailedAttempt]:
        """The failure record when EXHAUSTED, else None."""
        return self._failure

    def _finish_exhausted_budget(self) -> None:
        if self.best is not None:
            rejection = QualityRejected(
                self.shot_id, self.attempts, self.best.quality_score, self.quality_threshold
            )
            if self.strict_quality:
                self._exhaust("QualityRejected", str(rejection))
            else:
                self.accepted = self.best
                self.quality_note = str(rejection)
                self.state = AttemptState.ACCEPTED
            return

        last_error = self.errors[-1] if self.errors else "unknown error"
        failure = SynthesisFailure(self.shot_id, self.attempts, last_error)
        self._exhaust("SynthesisFailure", str(failure))

    def _exhaust(self, error_type: str, message: str) -> None:
        self._failure = FailedAttempt(
            shot_template_id=self.shot_id,
            error_type=error_type,
            error=message,
            attempts=self.attempts,
        )
        self.state = AttemptState.EXHAUSTED

    def _check_open(self) -> None:
        if self.finished:
            raise RuntimeError(f"Shot {self.shot_id} already {self.state.value}")

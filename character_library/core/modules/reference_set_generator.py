"""
Reference set generation pipeline.

For one subject, runs every requested shot in order: resolve parameters, render
the prompt, synthesize, score, and apply the retry/quality-gate policy from
ShotAttempt. One shot's failure never stops the run.

Shots are yielded one at a time from iter_shots() so the caller decides how to
publish progress and when to stop (cancellation is checked between shots).
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import AsyncIterator, Optional, Sequence

from ...config import GENERATION_CONSTANTS, retry_wait, wait_seconds
from ..cinematic_calculator import resolve_shot_parameters
from ..errors import PreconditionFailure
from ..prompt_builder import build_prompt, validate_prompt
from ..providers import ConsistencyAnalyzer, ImageSynthesizer
from ..types import (
    CalculatedParameters,
    FailedAttempt,
    GeneratedImage,
    GenerationResult,
    ShotTemplate,
    Subject,
)
from .shot_attempt import AttemptState, Candidate, ShotAttempt

logger = logging.getLogger(__name__)

MAX_SEED = 2**31 - 1


@dataclass
class GenerationOptions:
    """Per-run policy. Defaults come from GENERATION_CONSTANTS."""

    quality_threshold: float = GENERATION_CONSTANTS["quality_threshold"]
    max_retries: int = GENERATION_CONSTANTS["max_retries"]
    seed: Optional[int] = None
    strict_quality: bool = GENERATION_CONSTANTS["strict_quality"]
    use_prior_references: bool = True
    call_timeout: float = GENERATION_CONSTANTS["call_timeout"]
    backoff_base: float = GENERATION_CONSTANTS["backoff_base"]
    backoff_max: float = GENERATION_CONSTANTS["backoff_max"]
    max_reference_images: int = GENERATION_CONSTANTS["max_reference_images"]


@dataclass
class ShotOutcome:
    """Result of one shot: exactly one of image / failure is set."""

    shot: ShotTemplate
    index: int  # 1-based position in the run
    total: int
    attempts: int
    image: Optional[GeneratedImage] = None
    failure: Optional[FailedAttempt] = None

    @property
    def succeeded(self) -> bool:
        return self.image is not None


class ReferenceSetGenerator:
    """
    Generate and validate reference shots for a subject.

    Synthesis and analysis go through the injected providers; every call is
    bounded by options.call_timeout and a timeout counts as a failed attempt.
    """

    def __init__(
        self,
        synthesizer: ImageSynthesizer,
        analyzer: ConsistencyAnalyzer,
        options: Optional[GenerationOptions] = None,
    ):
        self.synthesizer = synthesizer
        self.analyzer = analyzer
        self.options = options or GenerationOptions()

    def check_preconditions(self, subject: Subject) -> None:
        """
        Raises:
            PreconditionFailure: If the subject has no master reference image
        """
        if not subject.has_master_reference:
            raise PreconditionFailure(
                subject.subject_id,
                "no master reference image; consistency cannot be scored",
            )

    async def iter_shots(
        self,
        subject: Subject,
        shots: Sequence[ShotTemplate],
        options: Optional[GenerationOptions] = None,
    ) -> AsyncIterator[ShotOutcome]:
        """
        Yield one ShotOutcome per shot, in order.

        The precondition check runs before the first synthesis call. Closing the
        iterator early stops before the next shot starts.
        """
        options = options or self.options
        self.check_preconditions(subject)

        references = [subject.master_reference]
        total = len(shots)

        for index, shot in enumerate(shots, start=1):
            outcome = await self.generate_shot(subject, shot, references, options, index, total)

            if outcome.image and options.use_prior_references and shot.is_core:
                if len(references) < options.max_reference_images:
                    references.append(outcome.image.asset_ref)

            yield outcome

    async def run(
        self,
        subject: Subject,
        shots: Sequence[ShotTemplate],
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """Generate every shot and aggregate the results."""
        start_time = time.monotonic()
        result = GenerationResult()

        async for outcome in self.iter_shots(subject, shots, options):
            add_outcome(result, outcome)

        result.elapsed_ms = int((time.monotonic() - start_time) * 1000)
        return result

    async def generate_shot(
        self,
        subject: Subject,
        shot: ShotTemplate,
        references: Sequence[str],
        options: Optional[GenerationOptions] = None,
        index: int = 1,
        total: int = 1,
    ) -> ShotOutcome:
        """Run one shot through the attempt state machine."""
        options = options or self.options
        try:
            params = resolve_shot_parameters(shot)
            prompt = build_prompt(shot, subject, params, reference_url=subject.master_reference)
            check = validate_prompt(prompt)
        except Exception as e:
            failure = FailedAttempt(
                shot_template_id=shot.id,
                error_type="SynthesisFailure",
                error=f"Shot preparation failed: {type(e).__name__}: {e}",
                attempts=0,
            )
            logger.warning(failure.error, extra={"shot_id": shot.id, "error_type": type(e).__name__})
            return ShotOutcome(shot=shot, index=index, total=total, attempts=0, failure=failure)

        for warning in check.warnings:
            logger.debug(f"Prompt for {shot.id}: {warning}", extra={"shot_id": shot.id})
        if not check.valid:
            logger.warning(
                f"Prompt for {shot.id} has problems: {'; '.join(check.errors)}",
                extra={"shot_id": shot.id},
            )

        attempt = ShotAttempt(
            shot.id,
            max_attempts=options.max_retries,
            quality_threshold=options.quality_threshold,
            strict_quality=options.strict_quality,
        )

        wait = retry_wait(options.backoff_base, options.backoff_max)
        while not attempt.finished:
            number = attempt.begin_attempt()
            seed = self._seed_for(options, number)

            try:
                synthesis = await asyncio.wait_for(
                    self.synthesizer.synthesize(prompt, list(references), seed=seed),
                    timeout=options.call_timeout,
                )
            except Exception as e:
                self._on_failure(attempt, shot, number, "Synthesis", e, options)
                if attempt.state == AttemptState.RETRYING:
                    await asyncio.sleep(wait_seconds(wait, attempt.attempts))
                continue

            try:
                analysis = await asyncio.wait_for(
                    self.analyzer.analyze(synthesis.asset_ref, subject.master_reference),
                    timeout=options.call_timeout,
                )
            except Exception as e:
                self._on_failure(attempt, shot, number, "Consistency analysis", e, options)
                if attempt.state == AttemptState.RETRYING:
                    await asyncio.sleep(wait_seconds(wait, attempt.attempts))
                continue

            state = attempt.record_candidate(
                Candidate(synthesis=synthesis, analysis=analysis, prompt=prompt, attempt=number, seed=seed)
            )
            if state == AttemptState.RETRYING:
                logger.info(
                    f"Shot {shot.id} attempt {number} scored {analysis.quality_score:g} "
                    f"(< {options.quality_threshold:g}), retrying with a fresh seed",
                    extra={"shot_id": shot.id, "attempt": number},
                )

        if attempt.state == AttemptState.ACCEPTED:
            image = self._to_generated_image(shot, params, attempt)
            if attempt.quality_note:
                logger.warning(attempt.quality_note, extra={"shot_id": shot.id, "attempt": attempt.attempts})
            return ShotOutcome(shot=shot, index=index, total=total, attempts=attempt.attempts, image=image)

        failure = attempt.failed_attempt()
        logger.warning(failure.error, extra={"shot_id": shot.id, "error_type": failure.error_type})
        return ShotOutcome(shot=shot, index=index, total=total, attempts=attempt.attempts, failure=failure)

    def _seed_for(self, options: GenerationOptions, attempt_number: int) -> int:
        """Request seed offset by attempt, or a fresh random seed per attempt."""
        if options.seed is not None:
            return (options.seed + attempt_number - 1) % MAX_SEED
        return random.randint(0, MAX_SEED)

    def _on_failure(
        self,
        attempt: ShotAttempt,
        shot: ShotTemplate,
        number: int,
        stage: str,
        error: Exception,
        options: GenerationOptions,
    ) -> None:
        if isinstance(error, asyncio.TimeoutError):
            message = f"{stage} timed out after {options.call_timeout:g}s"
        else:
            message = f"{stage} failed: {type(error).__name__}: {error}"
        attempt.record_failure(message)
        logger.warning(
            f"Shot {shot.id} attempt {number}/{options.max_retries}: {message}",
            extra={"shot_id": shot.id, "attempt": number, "error_type": type(error).__name__},
        )

    def _to_generated_image(
        self,
        shot: ShotTemplate,
        params: CalculatedParameters,
        attempt: ShotAttempt,
    ) -> GeneratedImage:
        candidate = attempt.accepted
        return GeneratedImage(
            shot_template_id=shot.id,
            asset_ref=candidate.synthesis.asset_ref,
            quality_score=candidate.analysis.quality_score,
            consistency_score=candidate.analysis.consistency_score,
            prompt_used=candidate.prompt,
            attempts_used=attempt.attempts,
            quality_note=attempt.quality_note,
            seed=candidate.seed,
            lens_mm=shot.lens_mm,
            angle=shot.angle.value,
            crop=shot.crop.value,
            expression=shot.expression,
            azimuth_deg=params.camera.azimuth_deg,
            elevation_deg=params.camera.elevation_deg,
            distance_m=params.camera.distance_m,
            gaze=params.subject.gaze.value,
            scene_types=tuple(s.value for s in shot.scene_types),
            priority=shot.priority,
        )


def add_outcome(result: GenerationResult, outcome: ShotOutcome) -> None:
    """Fold one shot outcome into an aggregate result."""
    result.total_attempts += outcome.attempts
    if outcome.image is not None:
        result.generated_images.append(outcome.image)
    elif outcome.failure is not None:
        result.failed_images.append(outcome.failure)

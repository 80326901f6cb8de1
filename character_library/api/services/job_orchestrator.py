"""
Job orchestration for reference set generation.

Owns the job lifecycle: creates pending records, dispatches them to the
background backend, runs the pipeline shot by shot, publishes progress after
every shot, honours cancellation between shots and writes exactly one terminal
state per job.
"""

import logging
import time
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from ...core.errors import AlreadyTerminal, CharacterLibraryError, InvalidShot, NotFound, PreconditionFailure
from ...core.modules.reference_set_generator import (
    GenerationOptions,
    ReferenceSetGenerator,
    ShotOutcome,
    add_outcome,
)
from ...core.providers import ImagePool, SubjectProvider
from ...core.shot_catalog import ShotTemplateCatalog, default_catalog
from ...core.types import FailedAttempt, GenerationResult, ShotTemplate, utc_now
from ..config import JOB_BACKEND, generation_logger
from ..models.enums import JobStatus, JobType
from .job_manager import JobManager
from .job_store import GenerationJob, JobPage, JobProgress, JobRequest, JobStore
from .progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)

NO_IMAGES_ERROR = "No images were successfully generated"


class JobOrchestrator:
    """
    Start, run, inspect and cancel generation jobs.

    Only the orchestrator writes job status, progress and results.
    """

    def __init__(
        self,
        store: JobStore,
        subjects: SubjectProvider,
        image_pool: ImagePool,
        generator: ReferenceSetGenerator,
        catalog: Optional[ShotTemplateCatalog] = None,
        job_manager: Optional[JobManager] = None,
        backend: str = JOB_BACKEND,
    ):
        self.store = store
        self.subjects = subjects
        self.image_pool = image_pool
        self.generator = generator
        self.catalog = catalog or default_catalog()
        self.job_manager = job_manager or JobManager()
        self.backend = backend

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def start_job(
        self,
        subject_id: str,
        job_type: JobType = JobType.CORE_SET,
        request_params: Optional[JobRequest] = None,
    ) -> str:
        """
        Create a pending job and dispatch it. Returns before any shot runs.

        Raises:
            NotFound: If a requested shot id is not in the catalog
            ValueError: If the request does not fit the job type
        """
        request_params = request_params or JobRequest()
        shots = self.plan_shots(job_type, request_params)

        job_id = str(uuid.uuid4())
        job = GenerationJob(
            job_id=job_id,
            subject_id=subject_id,
            job_type=job_type,
            progress=JobProgress(total=len(shots), current_task="Queued"),
            request_params=request_params,
        )
        await self.store.create(job)
        logger.info(
            f"Created {job_type.value} job with {len(shots)} shot(s)",
            extra={"job_id": job_id, "subject_id": subject_id},
        )

        await self.dispatch(job_id)
        return job_id

    async def get_status(self, job_id: str) -> GenerationJob:
        """Raises NotFound for unknown ids."""
        return await self.store.get(job_id)

    async def cancel_job(self, job_id: str) -> bool:
        """
        Request cancellation.

        A pending job is cancelled immediately. A processing job stops after
        the shot in progress has its result recorded.

        Returns:
            False if the job had already finished
        """
        try:
            job = await self.store.request_cancel(job_id)
        except AlreadyTerminal as e:
            logger.info(f"Cancel ignored: {e}", extra={"job_id": job_id})
            return False

        if job.status == JobStatus.CANCELLED:
            generation_logger.job_cancelled(job_id, completed_shots=0)
        else:
            logger.info("Cancellation requested", extra={"job_id": job_id})
        return True

    async def list_jobs(
        self,
        subject_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        job_type: Optional[JobType] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> JobPage:
        """Newest first. page_size is capped at 100."""
        return await self.store.list(
            subject_id=subject_id,
            status=status,
            job_type=job_type,
            page=page,
            page_size=page_size,
        )

    async def dispatch(self, job_id: str) -> bool:
        """Hand a pending job to the background backend."""
        if self.backend == "arq":
            from ..arq_pool import enqueue_generation_job

            accepted = await enqueue_generation_job(job_id)
        else:
            accepted = self.job_manager.submit(job_id, self.run_job, job_id)

        if not accepted:
            logger.warning(f"Job {job_id} is already dispatched", extra={"job_id": job_id})
        return accepted

    async def cleanup_stale_jobs(self, queued_ids: Iterable[str] = (), now: Optional[datetime] = None) -> int:
        """
        Fail jobs stuck pending or processing past their thresholds.

        Pending jobs still waiting for a slot, either in queued_ids or held by
        the local job manager, are not stale.
        """
        waiting = set(queued_ids) | set(self.job_manager.active_jobs)
        count = await self.store.cleanup_stale(now=now, queued_ids=waiting)
        if count:
            logger.info(f"Cleaned up {count} stale job(s)")
        return count

    def plan_shots(self, job_type: JobType, request_params: JobRequest) -> list[ShotTemplate]:
        """
        Resolve the ordered shot list for a job.

        Raises:
            NotFound: For unknown shot ids
            ValueError: For a single-image job naming more than one shot
        """
        if job_type == JobType.CORE_SET:
            return self.catalog.core_set()

        shot_ids = request_params.shot_ids or []
        if job_type == JobType.SINGLE_IMAGE:
            if len(shot_ids) > 1:
                raise ValueError("single-image jobs take exactly one shot id")
            if shot_ids:
                return [self.catalog.get_template(shot_ids[0])]
            return self.catalog.core_set()[:1]

        if shot_ids:
            return [self.catalog.get_template(shot_id) for shot_id in shot_ids]
        shots = self.catalog.list_templates()
        if request_params.shot_count is not None:
            shots = shots[:request_params.shot_count]
        return shots

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def run_job(self, job_id: str) -> None:
        """
        Execute a pending job to a terminal state.

        A job that is no longer pending (already running elsewhere, cancelled
        before start, or finished) is left alone.
        """
        job = await self.store.get(job_id)
        if job.status != JobStatus.PENDING:
            logger.warning(f"Job {job_id} is {job.status.value}, not running it", extra={"job_id": job_id})
            return

        start_time = time.monotonic()
        try:
            subject = await self.subjects.get_subject(job.subject_id)
            shots = self.plan_shots(job.job_type, job.request_params)
            self.generator.check_preconditions(subject)
        except (NotFound, PreconditionFailure, InvalidShot, ValueError) as e:
            await self._fail_before_start(job_id, e)
            return

        started = await self.store.transition(
            job_id,
            [JobStatus.PENDING],
            JobStatus.PROCESSING,
            started_at=utc_now(),
        )
        if started is None:
            logger.warning(f"Job {job_id} left pending before it could start", extra={"job_id": job_id})
            return

        generation_logger.job_started(job_id, job.subject_id, job.job_type.value, len(shots))
        tracker = ProgressTracker(self.store, job_id, total=len(shots))
        result = GenerationResult()
        cancelled = False

        try:
            await tracker.task(f"Generating {shots[0].name}" if shots else "No shots to generate")
            outcomes = self.generator.iter_shots(subject, shots, self._options_for(job.request_params))
            try:
                while True:
                    if await self.store.is_cancel_requested(job_id):
                        cancelled = True
                        break
                    try:
                        outcome = await anext(outcomes)
                    except StopAsyncIteration:
                        break

                    if outcome.image is not None:
                        outcome = await self._store_image(job_id, subject.subject_id, outcome)
                    add_outcome(result, outcome)
                    if outcome.image is not None:
                        generation_logger.shot_completed(
                            job_id, outcome.shot.id, outcome.image.quality_score, outcome.attempts
                        )
                    else:
                        generation_logger.shot_failed(
                            job_id, outcome.shot.id, outcome.failure.error_type, outcome.failure.error
                        )

                    await tracker.shot_finished(
                        outcome.index,
                        f"Finished {outcome.shot.name} ({outcome.index}/{outcome.total})",
                    )
            finally:
                await outcomes.aclose()

        except Exception as e:
            result.elapsed_ms = self._elapsed_ms(start_time)
            error = f"{type(e).__name__}: {e}"
            if result.shots_attempted < len(shots):
                shot = shots[result.shots_attempted]
                result.failed_images.append(FailedAttempt(shot.id, "SynthesisFailure", error, 0))

            if result.success:
                # Images already in the pool stay listed in the job result
                logger.error(f"Job {job_id} stopped early: {error}", extra={"job_id": job_id}, exc_info=True)
                await self._finish(job_id, JobStatus.COMPLETED, result)
                generation_logger.job_completed(
                    job_id,
                    generated=len(result.generated_images),
                    failed=len(result.failed_images),
                    duration=result.elapsed_ms / 1000,
                )
            else:
                generation_logger.job_failed(job_id, str(e), type(e).__name__, exc_info=True)
                await self._finish(job_id, JobStatus.FAILED, result, error=error)
            return

        result.elapsed_ms = self._elapsed_ms(start_time)

        if cancelled:
            await self._finish(job_id, JobStatus.CANCELLED, result)
            generation_logger.job_cancelled(job_id, completed_shots=result.shots_attempted)
        elif result.success:
            await self._finish(job_id, JobStatus.COMPLETED, result)
            generation_logger.job_completed(
                job_id,
                generated=len(result.generated_images),
                failed=len(result.failed_images),
                duration=result.elapsed_ms / 1000,
            )
        else:
            await self._finish(job_id, JobStatus.FAILED, result, error=NO_IMAGES_ERROR)
            generation_logger.job_failed(job_id, NO_IMAGES_ERROR)

    async def _store_image(self, job_id: str, subject_id: str, outcome: ShotOutcome) -> ShotOutcome:
        """Add an accepted image to the pool, or turn the outcome into a failure if the write fails."""
        try:
            await self.image_pool.add_image(subject_id, outcome.image)
            return outcome
        except Exception as e:
            logger.error(
                f"Could not store image for {outcome.shot.id}: {e}",
                extra={"job_id": job_id, "shot_id": outcome.shot.id, "error_type": type(e).__name__},
                exc_info=True,
            )
            failure = FailedAttempt(
                shot_template_id=outcome.shot.id,
                error_type="SynthesisFailure",
                error=f"Storing image failed: {type(e).__name__}: {e}",
                attempts=outcome.attempts,
            )
            return replace(outcome, image=None, failure=failure)

    def _options_for(self, request: JobRequest) -> GenerationOptions:
        base = self.generator.options
        return GenerationOptions(
            quality_threshold=request.quality_threshold,
            max_retries=request.max_retries,
            seed=request.seed,
            strict_quality=request.strict_quality,
            use_prior_references=request.use_prior_references,
            call_timeout=base.call_timeout,
            backoff_base=base.backoff_base,
            backoff_max=base.backoff_max,
            max_reference_images=base.max_reference_images,
        )

    async def _fail_before_start(self, job_id: str, error: Exception) -> None:
        message = str(error)
        failed = await self.store.transition(
            job_id,
            [JobStatus.PENDING],
            JobStatus.FAILED,
            error=message,
            completed_at=utc_now(),
        )
        if failed is not None:
            error_type = type(error).__name__ if isinstance(error, CharacterLibraryError) else "InvalidRequest"
            generation_logger.job_failed(job_id, message, error_type)

    async def _finish(
        self,
        job_id: str,
        status: JobStatus,
        result: GenerationResult,
        error: Optional[str] = None,
    ) -> None:
        finished = await self.store.transition(
            job_id,
            [JobStatus.PROCESSING],
            status,
            results=result,
            error=error,
            completed_at=utc_now(),
        )
        if finished is None:
            logger.error(f"Job {job_id} was no longer processing when it finished", extra={"job_id": job_id})

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)

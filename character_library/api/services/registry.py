"""Wiring of stores, providers and services for the API and the worker."""

from dataclasses import dataclass
from typing import Any, Optional

from ...core.modules.asset_store import FileAssetStore
from ...core.modules.consistency_judge import GeminiConsistencyJudge
from ...core.modules.gemini_synthesizer import GeminiImageSynthesizer
from ...core.modules.reference_selector import ReferenceSelector
from ...core.modules.reference_set_generator import ReferenceSetGenerator
from ...core.providers import ConsistencyAnalyzer, ImageSynthesizer
from ...core.shot_catalog import ShotTemplateCatalog, default_catalog
from ..config import ASSETS_DIR, JOB_BACKEND
from .character_repository import InMemoryCharacterRepository
from .job_manager import JobManager, job_manager as default_job_manager
from .job_orchestrator import JobOrchestrator
from .job_store import InMemoryJobStore, JobStore


@dataclass
class Services:
    store: JobStore
    characters: Any  # SubjectProvider + ImagePool
    catalog: ShotTemplateCatalog
    orchestrator: JobOrchestrator
    selector: ReferenceSelector
    asset_store: FileAssetStore


def build_services(
    pool=None,
    backend: str = JOB_BACKEND,
    job_manager: Optional[JobManager] = None,
    synthesizer: Optional[ImageSynthesizer] = None,
    analyzer: Optional[ConsistencyAnalyzer] = None,
    catalog: Optional[ShotTemplateCatalog] = None,
) -> Services:
    """
    Build the service graph.

    With an asyncpg pool, jobs and characters live in Postgres; without one
    they are kept in memory. Gemini adapters are used unless providers are
    passed in.
    """
    if pool is not None:
        from ..database.repository import PostgresCharacterRepository, PostgresJobStore

        store = PostgresJobStore(pool)
        characters = PostgresCharacterRepository(pool)
    else:
        store = InMemoryJobStore()
        characters = InMemoryCharacterRepository()

    asset_store = FileAssetStore(ASSETS_DIR)
    catalog = catalog or default_catalog()
    generator = ReferenceSetGenerator(
        synthesizer or GeminiImageSynthesizer(asset_store),
        analyzer or GeminiConsistencyJudge(asset_store),
    )
    orchestrator = JobOrchestrator(
        store=store,
        subjects=characters,
        image_pool=characters,
        generator=generator,
        catalog=catalog,
        job_manager=job_manager or default_job_manager,
        backend=backend,
    )
    return Services(
        store=store,
        characters=characters,
        catalog=catalog,
        orchestrator=orchestrator,
        selector=ReferenceSelector(),
        asset_store=asset_store,
    )

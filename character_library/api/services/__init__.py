"""Services for reference set jobs."""

from .job_store import GenerationJob, InMemoryJobStore, JobPage, JobProgress, JobRequest
from .job_manager import JobManager, job_manager
from .job_orchestrator import JobOrchestrator
from .character_repository import InMemoryCharacterRepository
from .registry import Services, build_services

__all__ = [
    "GenerationJob",
    "InMemoryJobStore",
    "JobPage",
    "JobProgress",
    "JobRequest",
    "JobManager",
    "job_manager",
    "JobOrchestrator",
    "InMemoryCharacterRepository",
    "Services",
    "build_services",
]

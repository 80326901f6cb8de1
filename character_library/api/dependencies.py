"""FastAPI dependency injection for services and repositories."""

from typing import Annotated, Any

from dotenv import find_dotenv, load_dotenv
from fastapi import Depends, Request

# Load .env from project root (find_dotenv searches parent directories)
load_dotenv(find_dotenv())

from ..core.modules.reference_selector import ReferenceSelector  # noqa: E402
from ..core.shot_catalog import ShotTemplateCatalog  # noqa: E402
from .services.job_orchestrator import JobOrchestrator  # noqa: E402
from .services.registry import Services  # noqa: E402


def get_services(request: Request) -> Services:
    """The service graph built during application startup."""
    return request.app.state.services


def get_orchestrator(services: Annotated[Services, Depends(get_services)]) -> JobOrchestrator:
    return services.orchestrator


def get_catalog(services: Annotated[Services, Depends(get_services)]) -> ShotTemplateCatalog:
    return services.catalog


def get_characters(services: Annotated[Services, Depends(get_services)]) -> Any:
    """SubjectProvider + ImagePool."""
    return services.characters


def get_selector(services: Annotated[Services, Depends(get_services)]) -> ReferenceSelector:
    return services.selector


# Type aliases for cleaner route signatures
Orchestrator = Annotated[JobOrchestrator, Depends(get_orchestrator)]
Catalog = Annotated[ShotTemplateCatalog, Depends(get_catalog)]
Characters = Annotated[Any, Depends(get_characters)]
Selector = Annotated[ReferenceSelector, Depends(get_selector)]

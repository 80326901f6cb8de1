"""Pytest fixtures for unit and API tests."""

import os
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

# Keep unit tests in memory and in-process regardless of the local .env
os.environ["DATABASE_URL"] = ""
os.environ["JOB_BACKEND"] = "local"
os.environ["LOG_JSON"] = "false"

from character_library.api.dependencies import (  # noqa: E402
    get_orchestrator,
    get_services,
)
from character_library.api.main import app  # noqa: E402
from character_library.api.services.character_repository import InMemoryCharacterRepository  # noqa: E402
from character_library.api.services.job_manager import JobManager  # noqa: E402
from character_library.api.services.job_orchestrator import JobOrchestrator  # noqa: E402
from character_library.api.services.job_store import InMemoryJobStore  # noqa: E402
from character_library.api.services.registry import Services  # noqa: E402
from character_library.core.modules.asset_store import FileAssetStore  # noqa: E402
from character_library.core.modules.reference_selector import ReferenceSelector  # noqa: E402
from character_library.core.modules.reference_set_generator import ReferenceSetGenerator  # noqa: E402
from character_library.core.shot_catalog import default_catalog  # noqa: E402
from character_library.core.types import Subject  # noqa: E402
from tests.unit.fakes import FakeAnalyzer, FakeSynthesizer, fast_options  # noqa: E402


@pytest.fixture
def subject():
    return Subject(
        subject_id="maya",
        name="Maya",
        traits="short curly black hair, round glasses, yellow raincoat",
        personality="curious and brave",
        master_reference="master.png",
    )


@pytest.fixture
def subject_without_master():
    return Subject(subject_id="sketch", name="Sketch")


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def generator(synthesizer, analyzer):
    return ReferenceSetGenerator(synthesizer, analyzer, fast_options())


@pytest.fixture
def job_store():
    return InMemoryJobStore()


@pytest.fixture
def characters(subject, subject_without_master):
    return InMemoryCharacterRepository([subject, subject_without_master])


@pytest.fixture
def job_manager():
    return JobManager(max_concurrent=2)


@pytest.fixture
def orchestrator(job_store, characters, generator, catalog, job_manager):
    return JobOrchestrator(
        store=job_store,
        subjects=characters,
        image_pool=characters,
        generator=generator,
        catalog=catalog,
        job_manager=job_manager,
        backend="local",
    )


@pytest.fixture
def services(job_store, characters, catalog, orchestrator, tmp_path):
    return Services(
        store=job_store,
        characters=characters,
        catalog=catalog,
        orchestrator=orchestrator,
        selector=ReferenceSelector(),
        asset_store=FileAssetStore(tmp_path / "assets"),
    )


@pytest.fixture
def mock_orchestrator():
    """Create a mock orchestrator for route tests."""
    return AsyncMock(spec=JobOrchestrator)


@pytest.fixture
def client_with_mocks(services, mock_orchestrator):
    """TestClient with a mocked orchestrator and in-memory catalog, characters and selector."""
    app.dependency_overrides[get_services] = lambda: services
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator

    with TestClient(app) as client:
        yield client, mock_orchestrator, services

    app.dependency_overrides.clear()


@pytest.fixture
def client(services):
    """TestClient with the real in-memory service graph and fake providers."""
    app.dependency_overrides[get_services] = lambda: services

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

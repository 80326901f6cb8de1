"""Tests for the /characters, /reference-shots and /health endpoints."""

import asyncio
from unittest.mock import AsyncMock

from character_library.api.models.enums import JobType
from character_library.api.services.job_store import JobRequest
from character_library.core.errors import NotFound
from tests.unit.fakes import make_image


class TestReferenceSetShortcut:
    """Tests for POST /characters/{subject_id}/reference-sets."""

    def test_starts_core_set_without_body(self, client_with_mocks):
        client, mock_orchestrator, _ = client_with_mocks
        mock_orchestrator.start_job = AsyncMock(return_value="job-9")

        response = client.post("/characters/maya/reference-sets")

        assert response.status_code == 202
        assert response.json()["jobId"] == "job-9"
        mock_orchestrator.start_job.assert_awaited_once_with("maya", JobType.CORE_SET, JobRequest())

    def test_passes_body_params(self, client_with_mocks):
        client, mock_orchestrator, _ = client_with_mocks
        mock_orchestrator.start_job = AsyncMock(return_value="job-9")

        client.post("/characters/maya/reference-sets", json={"qualityThreshold": 90, "strictQuality": True})

        request = mock_orchestrator.start_job.call_args.args[2]
        assert request.quality_threshold == 90
        assert request.strict_quality is True


class TestSceneSelection:
    """Tests for POST /characters/{subject_id}/scene-selection."""

    def test_selects_best_image(self, client, characters):
        asyncio.run(characters.add_image("maya", make_image("85_front_cu", lens_mm=85, distance_m=0.8)))
        asyncio.run(characters.add_image("maya", make_image(
            "35_front_full", lens_mm=35, crop="full", scene_types=("action", "establishing")
        )))

        response = client.post(
            "/characters/maya/scene-selection",
            json={"sceneDescription": "intimate dialogue, emotional revelation"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is True
        assert data["selected"]["image"]["shotTemplateId"] == "85_front_cu"
        assert data["sceneAnalysis"]["sceneType"] == "dialogue"
        assert data["totalEvaluated"] == 2
        assert len(data["alternatives"]) == 1

    def test_max_alternatives_zero(self, client, characters):
        asyncio.run(characters.add_image("maya", make_image("85_front_cu")))
        asyncio.run(characters.add_image("maya", make_image("50_front_cu")))

        data = client.post(
            "/characters/maya/scene-selection",
            json={"sceneDescription": "a quiet talk", "maxAlternatives": 0},
        ).json()

        assert data["alternatives"] == []

    def test_empty_pool_is_not_an_error(self, client):
        response = client.post("/characters/maya/scene-selection", json={"sceneDescription": "a quiet talk"})

        assert response.status_code == 200
        data = response.json()
        assert data["found"] is False
        assert data["selected"] is None
        assert data["reason"] == "Subject has no generated images"

    def test_unknown_subject_returns_404(self, client):
        response = client.post("/characters/ghost/scene-selection", json={"sceneDescription": "a quiet talk"})

        assert response.status_code == 404

    def test_short_description_rejected(self, client):
        response = client.post("/characters/maya/scene-selection", json={"sceneDescription": "hi"})

        assert response.status_code == 422


class TestReferenceShots:
    """Tests for GET /reference-shots."""

    def test_lists_whole_catalog(self, client, catalog):
        data = client.get("/reference-shots").json()

        assert data["total"] == len(catalog.list_templates())
        first = data["shots"][0]
        assert first["id"] == "35_3q_left_3q"
        assert "camera" in first["parameters"]
        assert "fStop" in first["parameters"]["technical"]

    def test_filters_by_lens_and_crop(self, client):
        data = client.get("/reference-shots?lensMm=85&crop=cu").json()

        assert data["total"] > 0
        assert all(s["lensMm"] == 85 and s["crop"] == "cu" for s in data["shots"])

    def test_get_single_shot(self, client):
        data = client.get("/reference-shots/50_front_cu").json()

        assert data["id"] == "50_front_cu"
        assert data["parameters"]["subject"]["gaze"] == "to_camera"

    def test_unknown_shot_returns_404(self, client):
        response = client.get("/reference-shots/nope")

        assert response.status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_not_found_message():
    assert str(NotFound("Subject", "ghost")) == "Subject not found: ghost"

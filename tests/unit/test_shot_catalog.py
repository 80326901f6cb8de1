"""Unit tests for shot templates and the shot catalog."""

import pytest

from character_library.core.errors import InvalidShot, NotFound
from character_library.core.shot_catalog import ShotTemplateCatalog
from character_library.core.shot_library import SHOT_DEFINITIONS
from character_library.core.types import Angle, Crop, SceneType, ShotFilter, ShotTemplate


def _definition(**overrides):
    data = {
        "id": "50_front_cu_test",
        "name": "50mm FRONT CU",
        "lens_mm": 50,
        "angle": "front",
        "crop": "cu",
        "priority": 2,
        "scene_types": ["dialogue"],
    }
    data.update(overrides)
    return data


class TestShotTemplateValidation:
    """Range checks on shot definitions."""

    def test_from_dict_coerces_enums(self):
        shot = ShotTemplate.from_dict(_definition())

        assert shot.angle == Angle.FRONT
        assert shot.crop == Crop.CLOSE_UP
        assert shot.scene_types == (SceneType.DIALOGUE,)

    def test_rejects_unsupported_lens(self):
        with pytest.raises(InvalidShot, match="lens_mm"):
            ShotTemplate.from_dict(_definition(lens_mm=24))

    def test_rejects_unknown_angle(self):
        with pytest.raises(InvalidShot, match="angle"):
            ShotTemplate.from_dict(_definition(angle="overhead"))

    def test_rejects_out_of_range_reference_weight(self):
        with pytest.raises(InvalidShot, match="reference_weight"):
            ShotTemplate.from_dict(_definition(reference_weight=0.5))

    def test_rejects_priority_outside_1_to_10(self):
        with pytest.raises(InvalidShot, match="priority"):
            ShotTemplate.from_dict(_definition(priority=11))

    def test_collects_every_problem(self):
        """All problems are reported together, not just the first."""
        with pytest.raises(InvalidShot) as exc_info:
            ShotTemplate.from_dict(_definition(lens_mm=24, azimuth_deg=200))

        assert len(exc_info.value.problems) == 2

    def test_unknown_field_is_invalid_shot(self):
        with pytest.raises(InvalidShot):
            ShotTemplate.from_dict(_definition(focal_length=50))

    def test_to_dict_uses_plain_strings(self):
        data = ShotTemplate.from_dict(_definition()).to_dict()

        assert data["angle"] == "front"
        assert data["crop"] == "cu"
        assert data["scene_types"] == ["dialogue"]


class TestShotTemplateCatalog:
    """Tests for catalog loading and lookup."""

    def test_default_catalog_core_set_has_nine_shots(self, catalog):
        core = catalog.core_set()

        assert len(core) == 9
        assert all(shot.priority == 1 for shot in core)
        assert {shot.lens_mm for shot in core} == {35, 50, 85}

    def test_core_set_covers_front_and_both_three_quarters_per_lens(self, catalog):
        pairs = {(shot.lens_mm, shot.angle) for shot in catalog.core_set()}

        for lens in (35, 50, 85):
            assert (lens, Angle.FRONT) in pairs
            assert (lens, Angle.THREE_QUARTER_LEFT) in pairs
            assert (lens, Angle.THREE_QUARTER_RIGHT) in pairs

    def test_list_templates_orders_by_priority_then_id(self, catalog):
        shots = catalog.list_templates()
        keys = [(s.priority, s.id) for s in shots]

        assert keys == sorted(keys)

    def test_get_template_unknown_id_raises_not_found(self, catalog):
        with pytest.raises(NotFound, match="does_not_exist"):
            catalog.get_template("does_not_exist")

    def test_filter_by_lens_and_crop(self, catalog):
        shots = catalog.list_templates(ShotFilter(lens_mm=85, crop=Crop.MEDIUM_CLOSE_UP))

        assert shots
        assert all(s.lens_mm == 85 and s.crop == Crop.MEDIUM_CLOSE_UP for s in shots)

    def test_filter_by_scene_type(self, catalog):
        shots = catalog.list_templates(ShotFilter(scene_type=SceneType.ACTION))

        assert shots
        assert all(SceneType.ACTION in s.scene_types for s in shots)

    def test_readding_identical_definition_is_noop(self):
        catalog = ShotTemplateCatalog([_definition()])

        catalog.add(_definition())

        assert len(catalog) == 1

    def test_reloading_full_library_is_idempotent(self):
        catalog = ShotTemplateCatalog(SHOT_DEFINITIONS)
        ids = [s.id for s in catalog]

        catalog.load(SHOT_DEFINITIONS)

        assert [s.id for s in catalog] == ids
        assert len(catalog) == len(SHOT_DEFINITIONS)

    def test_conflicting_definition_is_rejected(self):
        catalog = ShotTemplateCatalog([_definition()])

        with pytest.raises(InvalidShot, match="already loaded"):
            catalog.add(_definition(lens_mm=85))

    def test_bad_entry_leaves_catalog_unchanged(self):
        catalog = ShotTemplateCatalog([_definition()])

        with pytest.raises(InvalidShot):
            catalog.load([_definition(id="other_shot"), _definition(id="broken", lens_mm=24)])

        assert "other_shot" not in catalog
        assert len(catalog) == 1

"""Unit tests for the cinematic parameter calculator."""

import pytest

from character_library.config import GENERATION_CONSTANTS
from character_library.core.cinematic_calculator import (
    DEFAULT_DYNAMISM,
    DEFAULT_INTIMACY,
    calculate_parameters,
    depth_of_field_for,
    distance_for,
    elevation_for,
    eye_level_for,
    f_stop_for,
    gaze_for,
    resolve_shot_parameters,
    subject_yaw,
    thirds_for,
)
from character_library.core.errors import InvalidShot
from character_library.core.types import (
    Angle,
    Crop,
    DepthOfField,
    Gaze,
    Headroom,
    SceneType,
    ShotRequirements,
    ShotTemplate,
    Thirds,
)


class TestDistance:
    """Camera distance from lens, crop and intimacy."""

    @pytest.mark.parametrize(
        "lens_mm,crop,intimacy,expected",
        [
            (35, Crop.FULL, 5, 3.4),
            (50, Crop.CLOSE_UP, 5, 1.2),  # 2.1 * 0.55 = 1.155, rounds half up
            (85, Crop.CLOSE_UP, 5, 0.8),  # 1.5 * 0.55 = 0.825
            (85, Crop.MEDIUM_CLOSE_UP, 8, 0.7),
            (35, Crop.FULL, 2, 4.4),
        ],
    )
    def test_distance_table(self, lens_mm, crop, intimacy, expected):
        assert distance_for(lens_mm, crop, intimacy) == expected

    @pytest.mark.parametrize(
        "lens_mm,crop,expected",
        [
            (35, Crop.FULL, 3.4),
            (35, Crop.THREE_QUARTER, 2.7),
            (35, Crop.MEDIUM_CLOSE_UP, 2.2),
            (35, Crop.CLOSE_UP, 1.9),
            (35, Crop.HANDS, 1.4),
            (50, Crop.FULL, 2.1),
            (50, Crop.THREE_QUARTER, 1.7),
            (50, Crop.MEDIUM_CLOSE_UP, 1.4),  # 1.365
            (50, Crop.CLOSE_UP, 1.2),
            (50, Crop.HANDS, 0.8),
            (85, Crop.FULL, 1.5),
            (85, Crop.THREE_QUARTER, 1.2),
            (85, Crop.MEDIUM_CLOSE_UP, 1.0),  # 0.975
            (85, Crop.CLOSE_UP, 0.8),
            (85, Crop.HANDS, 0.6),
        ],
    )
    def test_every_lens_and_crop_at_neutral_intimacy(self, lens_mm, crop, expected):
        assert distance_for(lens_mm, crop, 5) == expected

    def test_default_intimacy_is_neutral(self):
        assert distance_for(50, Crop.CLOSE_UP) == distance_for(50, Crop.CLOSE_UP, 5)

    def test_higher_intimacy_moves_camera_closer(self):
        assert distance_for(50, Crop.THREE_QUARTER, 9) < distance_for(50, Crop.THREE_QUARTER, 2)

    def test_unsupported_lens_raises(self):
        with pytest.raises(ValueError, match="Unsupported lens"):
            distance_for(24, Crop.FULL)


class TestSubjectDirection:
    def test_yaw_compensates_against_azimuth(self):
        assert subject_yaw(-35) == 25  # 24.5 rounds away from zero
        assert subject_yaw(35) == -25

    def test_dialogue_uses_stronger_compensation(self):
        assert subject_yaw(-35, SceneType.DIALOGUE) == 28

    def test_gaze_to_camera_near_front(self):
        assert gaze_for(0) == Gaze.TO_CAMERA
        assert gaze_for(35) == Gaze.TO_CAMERA

    def test_gaze_away_in_profile(self):
        assert gaze_for(90) == Gaze.AWAY
        assert gaze_for(-75) == Gaze.AWAY

    def test_dialogue_keeps_eye_contact_in_profile(self):
        assert gaze_for(90, SceneType.DIALOGUE) == Gaze.TO_CAMERA


class TestComposition:
    def test_elevation_by_crop_and_scene(self):
        assert elevation_for(Crop.CLOSE_UP) == 2
        assert elevation_for(Crop.FULL, SceneType.ACTION) == -8
        assert elevation_for(Crop.CLOSE_UP, SceneType.EMOTIONAL) == 5

    def test_thirds_opposite_facing_direction(self):
        assert thirds_for(0) == Thirds.CENTERED
        assert thirds_for(-35) == Thirds.RIGHT_THIRD
        assert thirds_for(35) == Thirds.LEFT_THIRD

    def test_eye_level_is_clamped(self):
        assert eye_level_for(Crop.CLOSE_UP, 2) == 66
        assert eye_level_for(Crop.CLOSE_UP, 15) == 70


class TestTechnical:
    def test_f_stop_by_lens_and_crop(self):
        assert f_stop_for(85, Crop.CLOSE_UP) == 1.4
        assert f_stop_for(50, Crop.CLOSE_UP) == 1.6
        assert f_stop_for(35, Crop.FULL) == 3.6

    def test_f_stop_never_below_minimum(self):
        assert f_stop_for(85, Crop.CLOSE_UP, intimacy_level=9) == 1.4

    def test_depth_of_field_from_lens_to_aperture_ratio(self):
        assert depth_of_field_for(85, 1.4) == DepthOfField.VERY_SHALLOW
        assert depth_of_field_for(35, 3.6) == DepthOfField.DEEP


class TestCalculateParameters:
    def test_close_up_dialogue_parameters(self):
        params = calculate_parameters(
            ShotRequirements(lens_mm=85, crop=Crop.CLOSE_UP, angle=Angle.FRONT, scene_type=SceneType.DIALOGUE)
        )

        assert params.camera.azimuth_deg == 0
        assert params.camera.elevation_deg == 2
        assert params.camera.distance_m == 0.8
        assert params.subject.gaze == Gaze.TO_CAMERA
        assert params.composition.headroom == Headroom.TIGHT
        assert params.technical.f_stop == 1.4
        assert params.validation.valid

    def test_to_camera_gaze_at_extreme_angle_is_flagged(self):
        params = calculate_parameters(
            ShotRequirements(
                lens_mm=85,
                crop=Crop.MEDIUM_CLOSE_UP,
                angle=Angle.PROFILE_LEFT,
                scene_type=SceneType.DIALOGUE,
            )
        )

        assert params.subject.gaze == Gaze.TO_CAMERA
        assert any("away" in s for s in params.validation.suggestions)

    def test_template_values_override_derived_ones(self, catalog):
        shot = catalog.get_template("35_front_full")  # Defines f_stop 4.0

        params = resolve_shot_parameters(shot)

        assert params.technical.f_stop == 4.0
        assert params.camera.distance_m == 3.4

    def test_every_catalog_shot_resolves(self, catalog):
        for shot in catalog:
            params = resolve_shot_parameters(shot)
            assert params.camera.distance_m > 0
            assert 40 <= params.composition.eye_level_pct <= 70


class TestTechnicalDefaults:
    """ISO and shutter come from the scene and dynamism unless the template fixes them."""

    def _shot(self, **overrides):
        values = {
            "id": "test_shot",
            "name": "Test Shot",
            "lens_mm": 50,
            "angle": Angle.FRONT,
            "crop": Crop.THREE_QUARTER,
            "scene_types": (SceneType.ACTION,),
        }
        values.update(overrides)
        return ShotTemplate(**values)

    def test_iso_and_shutter_derived_when_unset(self):
        params = resolve_shot_parameters(self._shot())

        assert params.technical.iso == 400  # Action scenes need more light
        assert params.technical.shutter_speed == "1/250"

    def test_dynamism_drives_shutter(self):
        assert resolve_shot_parameters(self._shot(), dynamism_level=9).technical.shutter_speed == "1/500"
        assert resolve_shot_parameters(self._shot(), dynamism_level=1).technical.shutter_speed == "1/125"

    def test_template_values_win(self):
        params = resolve_shot_parameters(self._shot(iso=800, shutter_speed="1/60"), dynamism_level=9)

        assert params.technical.iso == 800
        assert params.technical.shutter_speed == "1/60"

    def test_emotional_scene_lowers_iso(self):
        params = resolve_shot_parameters(self._shot(scene_types=(SceneType.EMOTIONAL,)))

        assert params.technical.iso == 100

    def test_scene_dials_default_to_generation_constants(self):
        assert DEFAULT_INTIMACY == GENERATION_CONSTANTS["default_intimacy"]
        assert DEFAULT_DYNAMISM == GENERATION_CONSTANTS["default_dynamism"]

        shot = self._shot()
        assert resolve_shot_parameters(shot) == resolve_shot_parameters(
            shot, intimacy_level=DEFAULT_INTIMACY, dynamism_level=DEFAULT_DYNAMISM
        )

    def test_non_positive_iso_is_rejected(self):
        with pytest.raises(InvalidShot):
            self._shot(iso=0)

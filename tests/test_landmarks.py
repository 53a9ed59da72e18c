"""Tests for volume landmarks and status rules."""
from __future__ import annotations

from datetime import date

import pytest

from trainergpt.landmarks import (
    INTERMEDIATE_LANDMARKS,
    STATUS_ORDER,
    compare_volume,
    is_hard_set,
    landmarks_for_level,
    sets_remaining,
    volume_status,
    week_start,
)
from trainergpt.models import ExperienceLevel, VolumeLandmark, VolumeStatus


class TestVolumeStatus:
    """Status boundaries for chest at 8/14/22."""

    @pytest.mark.parametrize("sets,expected", [
        (0, VolumeStatus.BELOW_MEV),
        (7, VolumeStatus.BELOW_MEV),
        (8, VolumeStatus.AT_MEV),
        (13, VolumeStatus.AT_MEV),
        (14, VolumeStatus.IN_RANGE),
        (22, VolumeStatus.IN_RANGE),
        (23, VolumeStatus.ABOVE_MRV),
    ])
    def test_boundaries(self, sets, expected):
        assert volume_status(sets, VolumeLandmark(8, 14, 22)) == expected

    def test_missing_landmark(self):
        assert volume_status(5, None) == VolumeStatus.NO_LANDMARKS

    @pytest.mark.parametrize("landmark", [
        VolumeLandmark(0, 0, 0),
        VolumeLandmark(0, 8, 16),
        VolumeLandmark(5, 5, 5),
        VolumeLandmark(8, 14, 22),
        VolumeLandmark(4, 10, 10),
    ])
    def test_status_non_decreasing_and_remaining_non_increasing(self, landmark):
        previous_rank = -1
        previous_remaining = None
        for sets in range(0, 40):
            rank = STATUS_ORDER.index(volume_status(sets, landmark))
            remaining = sets_remaining(sets, landmark)
            assert rank >= previous_rank
            if previous_remaining is not None:
                assert remaining <= previous_remaining
            assert remaining == max(0, landmark.mrv - sets)
            previous_rank, previous_remaining = rank, remaining


class TestCompareVolume:

    def test_no_landmarks_shape(self):
        assert compare_volume(5, None) == {
            "sets": 5,
            "status": "no_landmarks",
            "setsRemaining": None,
        }

    def test_includes_landmark_values(self):
        result = compare_volume(10, VolumeLandmark(8, 14, 22))
        assert result == {
            "sets": 10,
            "status": "at_mev",
            "setsRemaining": 12,
            "mev": 8,
            "mav": 14,
            "mrv": 22,
        }

    def test_remaining_floors_at_zero(self):
        assert compare_volume(25, VolumeLandmark(8, 14, 22))["setsRemaining"] == 0


class TestLandmarksForLevel:

    def test_intermediate_is_reference_table(self):
        assert landmarks_for_level(ExperienceLevel.INTERMEDIATE) == INTERMEDIATE_LANDMARKS

    def test_beginner_scaled_down(self):
        chest = landmarks_for_level(ExperienceLevel.BEGINNER)["chest"]
        assert (chest.mev, chest.mav, chest.mrv) == (5, 9, 14)

    def test_advanced_scaled_up(self):
        chest = landmarks_for_level(ExperienceLevel.ADVANCED)["chest"]
        assert (chest.mev, chest.mav, chest.mrv) == (10, 18, 29)

    def test_rounds_half_up(self):
        # 10 * 0.65 = 6.5
        assert landmarks_for_level(ExperienceLevel.BEGINNER)["hamstrings"].mav == 7

    def test_accepts_plain_string(self):
        assert landmarks_for_level("advanced")["back"].mrv == 29

    def test_every_level_keeps_ordering(self):
        for level in ExperienceLevel:
            for lm in landmarks_for_level(level).values():
                assert 0 <= lm.mev <= lm.mav <= lm.mrv


class TestVolumeLandmark:

    def test_rejects_out_of_order(self):
        with pytest.raises(ValueError):
            VolumeLandmark(10, 8, 22)

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            VolumeLandmark(-1, 8, 22)


class TestHelpers:

    @pytest.mark.parametrize("rir,expected", [
        (None, False),
        (0, True),
        (4, True),
        (4.5, False),
        (6, False),
    ])
    def test_is_hard_set(self, rir, expected):
        assert is_hard_set(rir) is expected

    @pytest.mark.parametrize("day", [
        date(2026, 10, 19),
        date(2026, 10, 22),
        date(2026, 10, 25),
    ])
    def test_week_start_is_monday(self, day):
        assert week_start(day) == date(2026, 10, 19)

"""Volume landmark tables and weekly volume status rules."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Dict, Optional

from .models import ExperienceLevel, VolumeLandmark, VolumeStatus

# Sets at or below this RIR count as hard sets.
HARD_SET_MAX_RIR = 4

INTERMEDIATE_LANDMARKS: Dict[str, VolumeLandmark] = {
    "chest": VolumeLandmark(8, 14, 22),
    "back": VolumeLandmark(8, 14, 22),
    "quads": VolumeLandmark(6, 12, 20),
    "hamstrings": VolumeLandmark(4, 10, 16),
    "glutes": VolumeLandmark(0, 8, 16),
    "front_delts": VolumeLandmark(0, 8, 14),
    "side_delts": VolumeLandmark(8, 16, 26),
    "rear_delts": VolumeLandmark(6, 12, 22),
    "biceps": VolumeLandmark(6, 12, 20),
    "triceps": VolumeLandmark(4, 10, 18),
    "calves": VolumeLandmark(6, 12, 20),
    "abs": VolumeLandmark(0, 8, 16),
    "traps": VolumeLandmark(0, 8, 16),
    "forearms": VolumeLandmark(0, 6, 12),
}

LEVEL_MULTIPLIERS = {
    ExperienceLevel.BEGINNER: 0.65,
    ExperienceLevel.INTERMEDIATE: 1.0,
    ExperienceLevel.ADVANCED: 1.3,
}

STATUS_ORDER = (
    VolumeStatus.BELOW_MEV,
    VolumeStatus.AT_MEV,
    VolumeStatus.IN_RANGE,
    VolumeStatus.ABOVE_MRV,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def landmarks_for_level(level: ExperienceLevel) -> Dict[str, VolumeLandmark]:
    """Default landmarks for an experience level, scaled from the intermediate table."""
    factor = LEVEL_MULTIPLIERS[ExperienceLevel(level)]
    return {
        group: VolumeLandmark(
            mev=_round_half_up(lm.mev * factor),
            mav=_round_half_up(lm.mav * factor),
            mrv=_round_half_up(lm.mrv * factor),
        )
        for group, lm in INTERMEDIATE_LANDMARKS.items()
    }


def volume_status(sets: int, landmark: Optional[VolumeLandmark]) -> VolumeStatus:
    if landmark is None:
        return VolumeStatus.NO_LANDMARKS
    if sets < landmark.mev:
        return VolumeStatus.BELOW_MEV
    if sets < landmark.mav:
        return VolumeStatus.AT_MEV
    if sets <= landmark.mrv:
        return VolumeStatus.IN_RANGE
    return VolumeStatus.ABOVE_MRV


def sets_remaining(sets: int, landmark: Optional[VolumeLandmark]) -> Optional[int]:
    if landmark is None:
        return None
    return max(0, landmark.mrv - sets)


def compare_volume(sets: int, landmark: Optional[VolumeLandmark]) -> Dict[str, Any]:
    """Comparison entry for one muscle group as returned by getVolumeThisWeek."""
    comparison: Dict[str, Any] = {
        "sets": sets,
        "status": volume_status(sets, landmark).value,
        "setsRemaining": sets_remaining(sets, landmark),
    }
    if landmark is not None:
        comparison.update(landmark.to_dict())
    return comparison


def is_hard_set(rir: Optional[float]) -> bool:
    return rir is not None and rir <= HARD_SET_MAX_RIR


def week_start(today: date) -> date:
    """Monday of the week containing today."""
    return today - timedelta(days=today.weekday())

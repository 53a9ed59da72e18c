"""Weekly volume summary per user, built from the volume snapshot."""

from __future__ import annotations

from typing import Any, Dict

from ..landmarks import compare_volume
from ..models import VolumeLandmark, VolumeSnapshot, VolumeStatus


def build_weekly_summary(
    snapshot: VolumeSnapshot,
    landmarks: Dict[str, VolumeLandmark],
) -> Dict[str, Any]:
    groups: Dict[str, Dict[str, Any]] = {}
    for group in landmarks:
        groups[group] = compare_volume(snapshot.volume_by_group.get(group, 0), landmarks[group])
    for group, sets in snapshot.volume_by_group.items():
        groups.setdefault(group, compare_volume(sets, None))

    return {
        "weekStart": snapshot.week_start.isoformat(),
        "totalSets": snapshot.total_sets,
        "targetSets": snapshot.target_sets,
        "muscleGroups": groups,
        "belowMev": sorted(
            g for g, c in groups.items() if c["status"] == VolumeStatus.BELOW_MEV.value
        ),
        "aboveMrv": sorted(
            g for g, c in groups.items() if c["status"] == VolumeStatus.ABOVE_MRV.value
        ),
    }

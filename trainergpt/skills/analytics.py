"""
Training analytics - pure computations over domain models.

These functions know nothing about storage. The store-backed tools and the
evaluation fixtures both feed them WorkoutSession / Exercise objects, so the
tool output contracts are identical regardless of where the data came from.
"""

from __future__ import annotations

import math
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..landmarks import compare_volume, is_hard_set, week_start
from ..models import (
    DEFAULT_REP_RANGE,
    Exercise,
    ExerciseSet,
    SessionStatus,
    VolumeLandmark,
    VolumeSnapshot,
    WorkoutSession,
)


def _round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def _most_recent_first(sessions: Iterable[WorkoutSession]) -> List[WorkoutSession]:
    return sorted(sessions, key=lambda s: s.date, reverse=True)


def _matches_name(set_: ExerciseSet, fragment: str) -> bool:
    return fragment.lower() in set_.exercise.lower()


def _matches_group(set_: ExerciseSet, group: str) -> bool:
    # Sets without resolved muscle groups cannot be ruled out.
    if set_.muscle_groups is None:
        return True
    return set_.muscle_groups.includes(group)


def summarize_sets(exercise: str, sets: Sequence[ExerciseSet]) -> Dict[str, Any]:
    """Per-exercise aggregate: set count plus average weight, reps and RIR."""
    rirs = [s.rir for s in sets if s.rir is not None]
    avg_rir = _mean(rirs)
    return {
        "exercise": exercise,
        "sets": len(sets),
        "avgWeight": _round_int(_mean([s.weight for s in sets]) or 0),
        "avgReps": _round1(_mean([s.reps for s in sets]) or 0),
        "avgRir": _round1(avg_rir) if avg_rir is not None else None,
    }


def summarize_session(
    session: WorkoutSession,
    muscle_group: Optional[str] = None,
    exercise_name: Optional[str] = None,
) -> Dict[str, Any]:
    if exercise_name:
        matching = [s for s in session.sets if _matches_name(s, exercise_name)]
    elif muscle_group:
        matching = [s for s in session.sets if _matches_group(s, muscle_group)]
    else:
        matching = list(session.sets)

    by_exercise: "OrderedDict[str, List[ExerciseSet]]" = OrderedDict()
    for set_ in matching:
        by_exercise.setdefault(set_.exercise, []).append(set_)

    return {
        "id": session.id,
        "date": session.date.isoformat(),
        "sessionName": session.session_name,
        "preReadiness": session.pre_readiness.to_dict() if session.pre_readiness else None,
        "exerciseCount": len(by_exercise),
        "totalSets": len(matching),
        "exercises": [summarize_sets(name, sets) for name, sets in by_exercise.items()],
    }


def summarize_history(
    sessions: Iterable[WorkoutSession],
    muscle_group: Optional[str] = None,
    exercise_name: Optional[str] = None,
    last_n_sessions: int = 3,
) -> Dict[str, Any]:
    """getWorkoutHistory output: the most recent sessions, most recent first."""
    recent = _most_recent_first(sessions)[:last_n_sessions]
    summaries = [summarize_session(s, muscle_group, exercise_name) for s in recent]
    return {"sessions": summaries, "totalSessions": len(summaries)}


# ---------------------------------------------------------------------------
# Progression
# ---------------------------------------------------------------------------

def _trend_point(session: WorkoutSession, sets: Sequence[ExerciseSet]) -> Dict[str, Any]:
    summary = summarize_sets(sets[0].exercise, sets)
    return {
        "date": session.date.isoformat(),
        "setCount": summary["sets"],
        "avgWeight": summary["avgWeight"],
        "avgReps": summary["avgReps"],
        "avgRir": summary["avgRir"],
    }


def recommend_progression(
    trend: Sequence[Dict[str, Any]],
    rep_range: Tuple[int, int] = DEFAULT_REP_RANGE,
) -> Optional[str]:
    """Next-session recommendation from the latest trend point (most recent first)."""
    if not trend:
        return None
    latest = trend[0]
    reps, rir = latest["avgReps"], latest["avgRir"]
    low, high = rep_range

    if rir is not None:
        if reps >= high and rir <= 2:
            return (
                f"Hitting {reps} reps at {rir} RIR, the top of the {low}-{high} range. "
                "Increase weight 2.5-5% next session."
            )
        if rir >= 3:
            return (
                f"Average RIR is {rir}. Maintain the weight and push closer to "
                "failure (0-2 RIR) before adding load."
            )
        if reps < low and rir <= 0:
            return (
                f"Only {reps} reps at 0 RIR, below the {low}-{high} range. "
                "Reduce weight 5-10% to get back into range."
            )
    if len(trend) > 1 and latest["avgWeight"] > trend[1]["avgWeight"]:
        return (
            f"Weight up from {trend[1]['avgWeight']} to {latest['avgWeight']}. "
            "Progressive overload is on track."
        )
    return None


def progression_trend(
    sessions: Iterable[WorkoutSession],
    exercise_name: str,
    last_n_sessions: int = 4,
    rep_range: Tuple[int, int] = DEFAULT_REP_RANGE,
) -> Dict[str, Any]:
    """getProgressionTrend output for sets whose name contains exercise_name."""
    trend: List[Dict[str, Any]] = []
    logged_name = exercise_name
    for session in _most_recent_first(sessions):
        matching = [s for s in session.sets if _matches_name(s, exercise_name)]
        if not matching:
            continue
        if not trend:
            logged_name = matching[0].exercise
        trend.append(_trend_point(session, matching))
        if len(trend) >= last_n_sessions:
            break

    if not trend:
        return {
            "exercise": exercise_name,
            "repRangeOptimal": list(rep_range),
            "trend": [],
            "recommendation": f'No data found for "{exercise_name}".',
        }

    return {
        "exercise": logged_name,
        "repRangeOptimal": list(rep_range),
        "trend": trend,
        "recommendation": recommend_progression(trend, rep_range),
    }


# ---------------------------------------------------------------------------
# Exercise library
# ---------------------------------------------------------------------------

def find_exercise(exercises: Iterable[Exercise], name: str) -> Optional[Exercise]:
    """Fuzzy lookup: exact (case-insensitive) name first, then substring either way."""
    target = name.strip().lower()
    if not target:
        return None
    candidates = list(exercises)
    for exercise in candidates:
        if exercise.name.lower() == target:
            return exercise
    for exercise in candidates:
        if target in exercise.name.lower():
            return exercise
    for exercise in candidates:
        if exercise.name.lower() in target:
            return exercise
    return None


def filter_library(
    exercises: Iterable[Exercise],
    muscle_group: Optional[str] = None,
    search_term: Optional[str] = None,
    equipment: Optional[str] = None,
) -> Dict[str, Any]:
    """getExerciseLibrary output. Filters are combined with AND."""
    results = list(exercises)
    if muscle_group:
        group = muscle_group.lower()
        results = [
            e for e in results if group in (g.lower() for g in e.muscle_groups.primary)
        ]
    if search_term:
        term = search_term.lower()
        results = [e for e in results if term in e.name.lower()]
    if equipment:
        kind = equipment.lower()
        results = [e for e in results if e.equipment.lower() == kind]

    return {
        "exercises": [{"id": e.id, "name": e.name, "equipment": e.equipment} for e in results],
        "count": len(results),
    }


# ---------------------------------------------------------------------------
# Weekly volume
# ---------------------------------------------------------------------------

def weekly_volume(
    sessions: Iterable[WorkoutSession],
    landmarks: Dict[str, VolumeLandmark],
    today: date,
) -> VolumeSnapshot:
    """
    Hard sets per primary muscle group from completed sessions since Monday.

    A set with several primary groups counts once for each, and total_sets is
    the sum over groups.
    """
    start = week_start(today)
    volume: Dict[str, int] = {}
    for session in sessions:
        if session.status != SessionStatus.COMPLETED or session.date < start:
            continue
        for set_ in session.sets:
            if not is_hard_set(set_.rir) or set_.muscle_groups is None:
                continue
            for group in set_.muscle_groups.primary:
                key = group.lower()
                volume[key] = volume.get(key, 0) + 1

    return VolumeSnapshot(
        volume_by_group=volume,
        total_sets=sum(volume.values()),
        target_sets=sum(lm.mav for lm in landmarks.values()),
        week_start=start,
    )


def volume_report(
    snapshot: VolumeSnapshot,
    landmarks: Dict[str, VolumeLandmark],
    muscle_group: Optional[str] = None,
) -> Dict[str, Any]:
    """getVolumeThisWeek output comparing the snapshot against landmarks."""
    if muscle_group:
        groups = [muscle_group.lower()]
    else:
        groups = list(OrderedDict.fromkeys(list(snapshot.volume_by_group) + list(landmarks)))

    return {
        "weekStart": snapshot.week_start.isoformat(),
        "totalSets": snapshot.total_sets,
        "targetSets": snapshot.target_sets,
        "muscleGroups": {
            group: compare_volume(snapshot.volume_by_group.get(group, 0), landmarks.get(group))
            for group in groups
        },
    }

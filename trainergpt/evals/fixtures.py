"""
Fixture bundles for eval scenarios.

Each bundle is the complete world a scenario runs against: profile, history,
this week's volume, the exercise library, the active session and the deload
state. Dates are relative to the day the harness runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from ..models import (
    ActiveSessionHandle,
    DeloadRecommendation,
    Exercise,
    ExerciseSet,
    ExperienceLevel,
    Mesocycle,
    MuscleGroups,
    Readiness,
    SessionStatus,
    UserProfile,
    VolumeLandmark,
    VolumeSnapshot,
    WorkoutSession,
)

TODAY = date.today()


def _days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)


@dataclass
class FixtureBundle:
    profile: Optional[UserProfile]
    history: List[WorkoutSession] = field(default_factory=list)
    volume: Optional[VolumeSnapshot] = None
    exercises: List[Exercise] = field(default_factory=list)
    active_session: Optional[ActiveSessionHandle] = None
    deload: Optional[DeloadRecommendation] = None


def _landmarks(**groups: Tuple[int, int, int]):
    return {name: VolumeLandmark(*values) for name, values in groups.items()}


def _session(
    session_id: str,
    when: date,
    name: str,
    readiness: Tuple[int, int, int],
    sets: List[Tuple[str, int, float, int, Optional[float]]],
) -> WorkoutSession:
    return WorkoutSession(
        id=session_id,
        date=when,
        session_name=name,
        status=SessionStatus.COMPLETED,
        pre_readiness=Readiness(*readiness),
        sets=[
            ExerciseSet(exercise=ex, set_number=n, weight=w, reps=r, rir=rir)
            for ex, n, w, r, rir in sets
        ],
        started_at=datetime.combine(when, datetime.min.time()),
        duration_minutes=60,
    )


def _exercise(ex_id: str, name: str, primary, secondary, equipment: str, pattern: str) -> Exercise:
    return Exercise(
        id=ex_id,
        name=name,
        muscle_groups=MuscleGroups(primary=list(primary), secondary=list(secondary)),
        equipment=equipment,
        movement_pattern=pattern,
    )


# -- Profiles ---------------------------------------------------------------

INTERMEDIATE_USER = UserProfile(
    name="Alex",
    experience_level=ExperienceLevel.INTERMEDIATE,
    training_age_months=18,
    available_training_days=4,
    preferred_split="upper_lower",
    volume_landmarks=_landmarks(
        chest=(8, 14, 22),
        back=(10, 16, 26),
        quads=(8, 14, 22),
        hamstrings=(6, 12, 18),
        shoulders=(6, 12, 20),
        biceps=(6, 12, 20),
        triceps=(6, 10, 18),
    ),
    active_mesocycle=Mesocycle(
        id="1",
        name="Hypertrophy Block A",
        current_week=3,
        total_weeks=5,
        split_type="upper_lower",
    ),
)

NEW_USER: Optional[UserProfile] = None

ADVANCED_USER = UserProfile(
    name="Jordan",
    experience_level=ExperienceLevel.ADVANCED,
    training_age_months=48,
    available_training_days=5,
    preferred_split="push_pull_legs",
    volume_landmarks=_landmarks(
        chest=(10, 18, 24),
        back=(12, 20, 28),
        quads=(10, 18, 24),
        hamstrings=(8, 14, 20),
        shoulders=(8, 16, 24),
        biceps=(8, 16, 24),
        triceps=(6, 12, 20),
    ),
    active_mesocycle=Mesocycle(
        id="2",
        name="PPL Hypertrophy",
        current_week=5,
        total_weeks=5,
        split_type="push_pull_legs",
    ),
)

# -- History ----------------------------------------------------------------

RECENT_UPPER_SESSIONS = [
    _session("10", _days_ago(2), "Upper A", (7, 8, 3), [
        ("Barbell Bench Press", 1, 185, 8, 2),
        ("Barbell Bench Press", 2, 185, 8, 2),
        ("Barbell Bench Press", 3, 185, 7, 1),
        ("Barbell Row", 1, 155, 10, 2),
        ("Barbell Row", 2, 155, 9, 2),
        ("Barbell Row", 3, 155, 8, 1),
        ("Lateral Raise", 1, 20, 14, 2),
        ("Lateral Raise", 2, 20, 12, 1),
    ]),
    _session("8", _days_ago(5), "Upper B", (6, 7, 4), [
        ("Barbell Bench Press", 1, 180, 8, 2),
        ("Barbell Bench Press", 2, 180, 7, 2),
        ("Barbell Bench Press", 3, 180, 7, 1),
        ("Overhead Press", 1, 115, 7, 2),
        ("Overhead Press", 2, 115, 6, 1),
        ("Lat Pulldown", 1, 140, 10, 2),
        ("Lat Pulldown", 2, 140, 9, 1),
        ("Lat Pulldown", 3, 140, 8, 1),
    ]),
]

EMPTY_HISTORY: List[WorkoutSession] = []

CHEST_TODAY_SESSION = [
    _session("12", TODAY, "Push Day", (7, 7, 2), [
        ("Barbell Bench Press", 1, 185, 8, 2),
        ("Barbell Bench Press", 2, 185, 8, 2),
        ("Barbell Bench Press", 3, 185, 7, 1),
        ("Incline Dumbbell Press", 1, 65, 10, 2),
        ("Incline Dumbbell Press", 2, 65, 9, 2),
        ("Cable Fly", 1, 30, 14, 2),
        ("Cable Fly", 2, 30, 12, 1),
    ]),
]

# -- Weekly volume ----------------------------------------------------------

MODERATE_VOLUME = VolumeSnapshot(
    volume_by_group={
        "chest": 10, "back": 12, "shoulders": 8, "biceps": 6,
        "triceps": 6, "quads": 0, "hamstrings": 0,
    },
    total_sets=42,
    target_sets=90,
    week_start=_days_ago(3),
)

AT_MRV_CHEST = VolumeSnapshot(
    volume_by_group={
        "chest": 22, "back": 14, "shoulders": 10, "biceps": 8,
        "triceps": 8, "quads": 14, "hamstrings": 10,
    },
    total_sets=86,
    target_sets=90,
    week_start=_days_ago(5),
)

ZERO_VOLUME = VolumeSnapshot(volume_by_group={}, total_sets=0, target_sets=0, week_start=TODAY)

# -- Exercise library -------------------------------------------------------

CHEST_EXERCISES = [
    _exercise("1", "Barbell Bench Press", ["chest"], ["triceps", "front_delts"], "barbell", "horizontal_press"),
    _exercise("2", "Incline Dumbbell Press", ["chest"], ["triceps", "front_delts"], "dumbbell", "horizontal_press"),
    _exercise("3", "Cable Fly", ["chest"], [], "cable", "isolation"),
    _exercise("4", "Dumbbell Fly", ["chest"], [], "dumbbell", "isolation"),
    _exercise("5", "Machine Chest Press", ["chest"], ["triceps"], "machine", "horizontal_press"),
]

BACK_EXERCISES = [
    _exercise("10", "Barbell Row", ["back"], ["biceps"], "barbell", "horizontal_pull"),
    _exercise("11", "Lat Pulldown", ["back"], ["biceps"], "cable", "vertical_pull"),
    _exercise("12", "Seated Cable Row", ["back"], ["biceps"], "cable", "horizontal_pull"),
    _exercise("13", "Pull-Up", ["back"], ["biceps"], "bodyweight", "vertical_pull"),
]

ALL_EXERCISES = CHEST_EXERCISES + BACK_EXERCISES

# -- Deload -----------------------------------------------------------------

NO_DELOAD = DeloadRecommendation(
    should_deload=False,
    reason=None,
    current_week=3,
    total_weeks=5,
    mesocycle_name="Hypertrophy Block A",
)

DELOAD_RECOMMENDED = DeloadRecommendation(
    should_deload=True,
    reason="Performance declining for 2 consecutive sessions. Week 5 of 5 in mesocycle.",
    current_week=5,
    total_weeks=5,
    mesocycle_name="Hypertrophy Block A",
)

# -- Sessions ---------------------------------------------------------------

ACTIVE_SESSION = ActiveSessionHandle(id="15", date=TODAY, session_name="Upper A")

NO_ACTIVE_SESSION: Optional[ActiveSessionHandle] = None

# -- Composite bundles ------------------------------------------------------

STANDARD_INTERMEDIATE = FixtureBundle(
    profile=INTERMEDIATE_USER,
    history=RECENT_UPPER_SESSIONS,
    volume=MODERATE_VOLUME,
    exercises=ALL_EXERCISES,
    active_session=NO_ACTIVE_SESSION,
    deload=NO_DELOAD,
)

BRAND_NEW_USER = FixtureBundle(
    profile=NEW_USER,
    history=EMPTY_HISTORY,
    volume=ZERO_VOLUME,
    exercises=ALL_EXERCISES,
    active_session=NO_ACTIVE_SESSION,
    deload=None,
)

AT_MRV_SCENARIO = FixtureBundle(
    profile=INTERMEDIATE_USER,
    history=CHEST_TODAY_SESSION,
    volume=AT_MRV_CHEST,
    exercises=ALL_EXERCISES,
    active_session=NO_ACTIVE_SESSION,
    deload=NO_DELOAD,
)

DELOAD_DUE = FixtureBundle(
    profile=ADVANCED_USER,
    history=RECENT_UPPER_SESSIONS,
    volume=MODERATE_VOLUME,
    exercises=ALL_EXERCISES,
    active_session=NO_ACTIVE_SESSION,
    deload=DELOAD_RECOMMENDED,
)

MID_WORKOUT = replace(STANDARD_INTERMEDIATE, active_session=ACTIVE_SESSION)

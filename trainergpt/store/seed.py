"""Reference exercise library and a demo user for local runs."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from ..landmarks import landmarks_for_level
from ..models import (
    Exercise,
    ExerciseSet,
    ExperienceLevel,
    Mesocycle,
    MuscleGroups,
    SessionStatus,
    UserProfile,
    WorkoutSession,
)
from .memory import InMemoryStore

DEMO_USER_ID = "demo-user"

# (id, name, primary, secondary, equipment, movement pattern, rep range)
_LIBRARY = [
    ("ex-bench", "Barbell Bench Press", ["chest"], ["triceps", "front_delts"], "barbell", "horizontal_push", (6, 10)),
    ("ex-incline-db", "Incline Dumbbell Press", ["chest"], ["front_delts", "triceps"], "dumbbell", "horizontal_push", (8, 12)),
    ("ex-cable-fly", "Cable Fly", ["chest"], [], "cable", "isolation", (10, 15)),
    ("ex-machine-chest", "Machine Chest Press", ["chest"], ["triceps"], "machine", "horizontal_push", (8, 12)),
    ("ex-dips", "Weighted Dip", ["chest", "triceps"], ["front_delts"], "bodyweight", "vertical_push", (6, 12)),
    ("ex-row", "Barbell Row", ["back"], ["biceps", "rear_delts"], "barbell", "horizontal_pull", (6, 10)),
    ("ex-pulldown", "Lat Pulldown", ["back"], ["biceps"], "cable", "vertical_pull", (8, 12)),
    ("ex-cable-row", "Seated Cable Row", ["back"], ["biceps", "rear_delts"], "cable", "horizontal_pull", (8, 12)),
    ("ex-pullup", "Pull-Up", ["back"], ["biceps"], "bodyweight", "vertical_pull", (5, 10)),
    ("ex-ohp", "Overhead Press", ["front_delts"], ["triceps", "side_delts"], "barbell", "vertical_push", (6, 10)),
    ("ex-lateral", "Dumbbell Lateral Raise", ["side_delts"], [], "dumbbell", "isolation", (12, 20)),
    ("ex-face-pull", "Face Pull", ["rear_delts"], ["traps"], "cable", "isolation", (12, 20)),
    ("ex-curl", "Barbell Curl", ["biceps"], ["forearms"], "barbell", "isolation", (8, 12)),
    ("ex-hammer", "Hammer Curl", ["biceps"], ["forearms"], "dumbbell", "isolation", (10, 15)),
    ("ex-pushdown", "Cable Triceps Pushdown", ["triceps"], [], "cable", "isolation", (10, 15)),
    ("ex-skullcrusher", "EZ-Bar Skull Crusher", ["triceps"], [], "barbell", "isolation", (8, 12)),
    ("ex-squat", "Barbell Back Squat", ["quads"], ["glutes"], "barbell", "squat", (5, 10)),
    ("ex-leg-press", "Leg Press", ["quads"], ["glutes"], "machine", "squat", (8, 15)),
    ("ex-leg-ext", "Leg Extension", ["quads"], [], "machine", "isolation", (10, 15)),
    ("ex-rdl", "Romanian Deadlift", ["hamstrings"], ["glutes", "back"], "barbell", "hinge", (6, 10)),
    ("ex-leg-curl", "Seated Leg Curl", ["hamstrings"], [], "machine", "isolation", (10, 15)),
    ("ex-hip-thrust", "Barbell Hip Thrust", ["glutes"], ["hamstrings"], "barbell", "hinge", (8, 12)),
    ("ex-calf-raise", "Standing Calf Raise", ["calves"], [], "machine", "isolation", (10, 20)),
    ("ex-shrug", "Dumbbell Shrug", ["traps"], [], "dumbbell", "isolation", (10, 15)),
    ("ex-cable-crunch", "Cable Crunch", ["abs"], [], "cable", "isolation", (10, 20)),
]


def reference_exercises() -> List[Exercise]:
    return [
        Exercise(
            id=ex_id,
            name=name,
            muscle_groups=MuscleGroups(primary=list(primary), secondary=list(secondary)),
            equipment=equipment,
            movement_pattern=pattern,
            rep_range_optimal=rep_range,
        )
        for ex_id, name, primary, secondary, equipment, pattern, rep_range in _LIBRARY
    ]


def demo_profile() -> UserProfile:
    return UserProfile(
        name="Demo Lifter",
        experience_level=ExperienceLevel.INTERMEDIATE,
        training_age_months=18,
        available_training_days=4,
        preferred_split="upper_lower",
        equipment_access=["barbell", "dumbbell", "cable", "machine"],
        volume_landmarks=landmarks_for_level(ExperienceLevel.INTERMEDIATE),
        active_mesocycle=Mesocycle(
            id="meso-1",
            name="Hypertrophy Block A",
            current_week=2,
            total_weeks=5,
            split_type="upper_lower",
        ),
    )


def seeded_store(now: Optional[datetime] = None) -> InMemoryStore:
    """In-memory store with the reference library and one completed demo session."""
    now = now or datetime.now()
    library = reference_exercises()
    store = InMemoryStore(exercises=library)
    store.save_profile(DEMO_USER_ID, demo_profile())

    by_id = {e.id: e for e in library}
    sets = []
    for ex_id, weight, reps_rir in (
        ("ex-bench", 185, [(8, 2), (8, 2), (7, 1)]),
        ("ex-row", 155, [(10, 2), (9, 2), (8, 1)]),
    ):
        exercise = by_id[ex_id]
        for number, (reps, rir) in enumerate(reps_rir, start=1):
            sets.append(ExerciseSet(
                exercise=exercise.name,
                set_number=number,
                weight=weight,
                reps=reps,
                rir=rir,
                exercise_id=exercise.id,
                muscle_groups=exercise.muscle_groups,
            ))

    started = now - timedelta(days=2)
    store.add_session(DEMO_USER_ID, WorkoutSession(
        id="demo-upper-a",
        date=started.date(),
        session_name="Upper A",
        status=SessionStatus.COMPLETED,
        sets=sets,
        started_at=started,
        duration_minutes=62,
    ))
    return store

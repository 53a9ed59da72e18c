"""
Mesocycle programming - turning a generated plan into per-week numbers and
planned sessions.

Plans name exercises in free text. Materializing a week resolves each name
against the library; exercises the library does not know are dropped and a
session left with nothing to do is not created.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..models import (
    Exercise,
    Mesocycle,
    PlanWeek,
    PrescribedExercise,
    SessionStatus,
    WorkoutSession,
)
from .analytics import find_exercise

logger = logging.getLogger(__name__)


@dataclass
class PlanRequest:
    """What the user asked for; unset fields fall back to their profile."""
    split_type: str
    training_days: int
    focus_areas: List[str] = field(default_factory=list)
    total_weeks: Optional[int] = None


def volume_plan_key(week_number: int) -> str:
    return f"week_{week_number}"


def build_volume_plan(weeks: Iterable[PlanWeek]) -> Dict[str, Dict[str, int]]:
    """Planned sets per muscle group for each week, keyed ``week_<n>``."""
    plan: Dict[str, Dict[str, int]] = {}
    for week in weeks:
        groups: Dict[str, int] = {}
        for session in week.sessions:
            for exercise in session.exercises:
                group = exercise.muscle_group.lower()
                groups[group] = groups.get(group, 0) + exercise.sets
        plan[volume_plan_key(week.week_number)] = groups
    return plan


@dataclass
class MaterializedWeek:
    week_number: int
    is_deload: bool
    sessions: List[WorkoutSession] = field(default_factory=list)
    unmatched_exercises: List[str] = field(default_factory=list)


def materialize_week(
    mesocycle: Mesocycle,
    week_number: int,
    exercises: List[Exercise],
    today: date,
) -> MaterializedWeek:
    """
    Planned (unsaved) sessions for one week of a mesocycle.

    Sessions come back without ids, in day order and dated today; the date
    moves to the day the session is actually started.
    """
    week = mesocycle.week(week_number)
    if week is None:
        raise ValueError(f"Mesocycle {mesocycle.id} has no week {week_number}")

    result = MaterializedWeek(week_number=week_number, is_deload=week.is_deload)
    for planned in sorted(week.sessions, key=lambda s: s.day_number):
        prescribed: List[PrescribedExercise] = []
        for slot in planned.exercises:
            match = find_exercise(exercises, slot.exercise_name)
            if match is None:
                result.unmatched_exercises.append(slot.exercise_name)
                continue
            prescribed.append(PrescribedExercise(
                exercise_id=match.id,
                exercise_name=match.name,
                target_sets=slot.sets,
                rep_range_min=slot.rep_range_min,
                rep_range_max=slot.rep_range_max,
                rir_target=slot.rir_target,
                rest_seconds=slot.rest_seconds,
            ))
        if not prescribed:
            logger.warning(
                "Skipping %s (week %d): no exercises matched the library",
                planned.session_name, week_number,
            )
            continue
        result.sessions.append(WorkoutSession(
            id="",
            date=today,
            session_name=planned.session_name,
            status=SessionStatus.PLANNED,
            planned_exercises=prescribed,
            mesocycle_id=mesocycle.id,
            mesocycle_week=week_number,
            day_number=planned.day_number,
            is_deload=week.is_deload,
        ))
    return result

"""
Per-scenario harness context.

A HarnessContext owns a private copy of a fixture bundle plus the call log for
one scenario run. FixtureBackend serves the tool catalogue from that copy, so
scenarios running in parallel never share mutable state.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from datetime import date, datetime
from typing import List, Optional

from ..models import (
    DeloadRecommendation,
    Exercise,
    ExerciseSet,
    MuscleGroups,
    PrescribedExercise,
    SessionStatus,
    UserProfile,
    VolumeSnapshot,
    WorkoutSession,
)
from ..landmarks import week_start
from ..skills.analytics import find_exercise
from ..store.base import elapsed_minutes
from ..tools.backend import CoachBackend
from ..tools.catalogue import CORE_TOOLS, CallRecorder, ToolCatalogue
from .fixtures import FixtureBundle

logger = logging.getLogger(__name__)

EVAL_USER_ID = "eval-user"


class HarnessContext:
    def __init__(self, bundle: FixtureBundle, user_id: str = EVAL_USER_ID):
        self.bundle = copy.deepcopy(bundle)
        self.user_id = user_id
        self.recorder = CallRecorder()
        self.lock = threading.Lock()
        self.active: Optional[WorkoutSession] = None
        handle = self.bundle.active_session
        if handle is not None:
            self.active = WorkoutSession(
                id=handle.id,
                date=handle.date,
                session_name=handle.session_name,
                started_at=datetime.combine(handle.date, datetime.min.time()),
            )
        taken = {s.id for s in self.bundle.history}
        if self.active is not None:
            taken.add(self.active.id)
        self._ids = (str(n) for n in itertools.count(100) if str(n) not in taken)

    def next_session_id(self) -> str:
        return next(self._ids)

    def catalogue(self) -> ToolCatalogue:
        """Core tool catalogue over this context, recording into its call log."""
        return ToolCatalogue(FixtureBackend(self), CORE_TOOLS, recorder=self.recorder)


class FixtureBackend(CoachBackend):
    """
    Serves the tools from a HarnessContext.

    Unlike production, exercise names the library does not know are logged as
    reported; their sets carry no muscle groups.
    """

    def __init__(self, ctx: HarnessContext):
        self.ctx = ctx
        self.user_id = ctx.user_id

    def profile(self) -> Optional[UserProfile]:
        return self.ctx.bundle.profile

    def deload(self) -> Optional[DeloadRecommendation]:
        return self.ctx.bundle.deload

    def sessions(self, limit: Optional[int] = None) -> List[WorkoutSession]:
        with self.ctx.lock:
            ordered = sorted(self.ctx.bundle.history, key=lambda s: s.date, reverse=True)
            ordered = copy.deepcopy(ordered)
        return ordered[:limit] if limit is not None else ordered

    def volume(self) -> VolumeSnapshot:
        if self.ctx.bundle.volume is not None:
            return self.ctx.bundle.volume
        return VolumeSnapshot(
            volume_by_group={}, total_sets=0, target_sets=0, week_start=week_start(date.today())
        )

    def exercises(self) -> List[Exercise]:
        return self.ctx.bundle.exercises

    def resolve_exercise(self, name: str) -> Optional[Exercise]:
        found = find_exercise(self.exercises(), name)
        if found is not None:
            return found
        return Exercise(id="", name=name, muscle_groups=MuscleGroups(), equipment="")

    def active_session(self) -> Optional[WorkoutSession]:
        with self.ctx.lock:
            return self.ctx.active

    def create_session(
        self, session_name: str, planned: List[PrescribedExercise]
    ) -> WorkoutSession:
        today = date.today()
        with self.ctx.lock:
            session = WorkoutSession(
                id=self.ctx.next_session_id(),
                date=today,
                session_name=session_name,
                planned_exercises=list(planned),
                started_at=datetime.now(),
            )
            self.ctx.active = session
        return session

    def append_set(
        self,
        session: WorkoutSession,
        exercise: Exercise,
        weight: float,
        reps: int,
        rir: Optional[float],
    ) -> ExerciseSet:
        with self.ctx.lock:
            target = self.ctx.active
            if target is None or target.id != session.id:
                raise ValueError(f"Session {session.id} is no longer active")
            logged = ExerciseSet(
                exercise=exercise.name,
                set_number=target.next_set_number(exercise.name),
                weight=weight,
                reps=reps,
                rir=rir,
                exercise_id=exercise.id or None,
                muscle_groups=(
                    exercise.muscle_groups if exercise.muscle_groups.primary else None
                ),
            )
            target.sets.append(logged)
        return logged

    def finish_session(
        self,
        session: WorkoutSession,
        status: SessionStatus,
        post_notes: Optional[str],
    ) -> WorkoutSession:
        with self.ctx.lock:
            target = self.ctx.active
            if target is None or target.id != session.id:
                raise ValueError(f"Session {session.id} is no longer active")
            target.status = status
            target.post_notes = post_notes
            target.duration_minutes = elapsed_minutes(target.started_at, datetime.now())
            self.ctx.bundle.history.append(target)
            self.ctx.active = None
        return target

    def save_profile(self, profile: UserProfile) -> None:
        self.ctx.bundle.profile = profile

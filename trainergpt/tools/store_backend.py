"""Production CoachBackend: a WorkoutStore for one user behind the shared cache."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from ..analyzers.deload import evaluate_deload
from ..analyzers.mesocycle_planner import MesocyclePlanner
from ..cache import SET_DEPENDENT_KINDS, CacheKind, RedisCache
from ..landmarks import week_start
from ..models import (
    DeloadRecommendation,
    Exercise,
    ExerciseSet,
    Mesocycle,
    PrescribedExercise,
    SessionStatus,
    UserProfile,
    VolumeSnapshot,
    WorkoutSession,
)
from ..skills.analytics import find_exercise, weekly_volume
from ..skills import program
from ..skills.program import MaterializedWeek, PlanRequest
from ..store.base import WorkoutStore
from .backend import CoachBackend

logger = logging.getLogger(__name__)

# Sessions inspected by the deload check.
DELOAD_LOOKBACK_SESSIONS = 4


class StoreBackend(CoachBackend):
    def __init__(
        self,
        store: WorkoutStore,
        user_id: str,
        cache: RedisCache,
        today: Callable[[], date] = date.today,
        planner: Optional[MesocyclePlanner] = None,
    ):
        if not user_id:
            raise ValueError("user_id is required")
        self.store = store
        self.user_id = user_id
        self.cache = cache
        self._today = today
        self.planner = planner

    def profile(self) -> Optional[UserProfile]:
        return self.cache.get_or_compute(
            CacheKind.PROFILE, lambda: self.store.get_profile(self.user_id), self.user_id
        )

    def deload(self) -> Optional[DeloadRecommendation]:
        def compute():
            profile = self.profile()
            if profile is None or profile.active_mesocycle is None:
                return None
            recent = self.store.list_sessions(self.user_id, limit=DELOAD_LOOKBACK_SESSIONS)
            return evaluate_deload(profile.active_mesocycle, recent)

        return self.cache.get_or_compute(CacheKind.DELOAD, compute, self.user_id)

    def sessions(self, limit: Optional[int] = None) -> List[WorkoutSession]:
        return self.store.list_sessions(self.user_id, limit=limit)

    def volume(self) -> VolumeSnapshot:
        def compute():
            today = self._today()
            profile = self.profile()
            landmarks = profile.volume_landmarks if profile else {}
            sessions = self.store.list_sessions(self.user_id, since=week_start(today))
            return weekly_volume(sessions, landmarks, today)

        return self.cache.get_or_compute(CacheKind.VOLUME, compute, self.user_id)

    def weekly_summary(self) -> Dict[str, Any]:
        """Summary written by the scheduler, rebuilt on a miss."""
        return self.cache.get_or_compute(
            CacheKind.WEEKLY_SUMMARY, self.compute_weekly_summary, self.user_id
        )

    def compute_weekly_summary(self) -> Dict[str, Any]:
        return super().weekly_summary()

    def exercises(self) -> List[Exercise]:
        return self.cache.get_or_compute(CacheKind.EXERCISES, self.store.list_exercises)

    def resolve_exercise(self, name: str) -> Optional[Exercise]:
        return find_exercise(self.exercises(), name)

    def active_session(self) -> Optional[WorkoutSession]:
        return self.store.get_active_session(self.user_id)

    def create_session(
        self, session_name: str, planned: List[PrescribedExercise]
    ) -> WorkoutSession:
        return self.store.create_session(self.user_id, session_name, planned)

    def append_set(
        self,
        session: WorkoutSession,
        exercise: Exercise,
        weight: float,
        reps: int,
        rir: Optional[float],
    ) -> ExerciseSet:
        logged = self.store.append_set(self.user_id, session.id, exercise, weight, reps, rir)
        self.cache.invalidate(self.user_id, SET_DEPENDENT_KINDS)
        return logged

    def finish_session(
        self,
        session: WorkoutSession,
        status: SessionStatus,
        post_notes: Optional[str],
    ) -> WorkoutSession:
        finished = self.store.finish_session(self.user_id, session.id, status, post_notes)
        self.cache.invalidate(self.user_id, SET_DEPENDENT_KINDS + (CacheKind.DELOAD,))
        return finished

    def save_profile(self, profile: UserProfile) -> None:
        self.store.save_profile(self.user_id, profile)
        self.cache.invalidate(self.user_id, [CacheKind.PROFILE, CacheKind.DELOAD])

    def plan_mesocycle(self, profile: UserProfile, request: PlanRequest) -> Mesocycle:
        if self.planner is None:
            raise RuntimeError("Program generation is not configured")
        return self.planner.plan(profile, self.exercises(), request, self._today())

    def materialize_week(self, mesocycle: Mesocycle, week_number: int) -> MaterializedWeek:
        week = program.materialize_week(
            mesocycle, week_number, self.exercises(), self._today()
        )
        week.sessions = [
            self.store.add_planned_session(self.user_id, session) for session in week.sessions
        ]
        logger.info(
            "Materialized week %d of %s for %s: %d sessions, %d unmatched exercises",
            week_number, mesocycle.name, self.user_id,
            len(week.sessions), len(week.unmatched_exercises),
        )
        return week

    def planned_sessions(self, mesocycle_id: Optional[str] = None) -> List[WorkoutSession]:
        return self.store.list_planned_sessions(self.user_id, mesocycle_id)

    def start_planned_session(self, session_id: str) -> WorkoutSession:
        return self.store.start_planned_session(self.user_id, session_id)

"""Data access interface the coaching tools read and write through."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..analyzers.weekly_summary import build_weekly_summary
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
from ..skills.program import MaterializedWeek, PlanRequest


class CoachBackend(ABC):
    """
    Everything the tool catalogue needs for one user.

    StoreBackend serves production from a WorkoutStore; the evaluation harness
    serves the same calls from fixture bundles. The tools themselves never know
    which one they are talking to.
    """

    user_id: str

    @abstractmethod
    def profile(self) -> Optional[UserProfile]:
        ...

    @abstractmethod
    def deload(self) -> Optional[DeloadRecommendation]:
        ...

    @abstractmethod
    def sessions(self, limit: Optional[int] = None) -> List[WorkoutSession]:
        """Sessions most recent first."""

    @abstractmethod
    def volume(self) -> VolumeSnapshot:
        ...

    def weekly_summary(self) -> Dict[str, Any]:
        """This week's volume against the user's landmarks."""
        profile = self.profile()
        landmarks = profile.volume_landmarks if profile else {}
        return build_weekly_summary(self.volume(), landmarks)

    @abstractmethod
    def exercises(self) -> List[Exercise]:
        ...

    @abstractmethod
    def resolve_exercise(self, name: str) -> Optional[Exercise]:
        """Library entry for a user-supplied exercise name, or None."""

    @abstractmethod
    def active_session(self) -> Optional[WorkoutSession]:
        ...

    @abstractmethod
    def create_session(
        self, session_name: str, planned: List[PrescribedExercise]
    ) -> WorkoutSession:
        ...

    @abstractmethod
    def append_set(
        self,
        session: WorkoutSession,
        exercise: Exercise,
        weight: float,
        reps: int,
        rir: Optional[float],
    ) -> ExerciseSet:
        ...

    @abstractmethod
    def finish_session(
        self,
        session: WorkoutSession,
        status: SessionStatus,
        post_notes: Optional[str],
    ) -> WorkoutSession:
        ...

    @abstractmethod
    def save_profile(self, profile: UserProfile) -> None:
        ...

    # Mesocycle programming. Backends that cannot persist programs keep these
    # defaults and the program tools report the failure.

    def plan_mesocycle(self, profile: UserProfile, request: PlanRequest) -> Mesocycle:
        raise NotImplementedError(f"{type(self).__name__} cannot generate programs")

    def materialize_week(self, mesocycle: Mesocycle, week_number: int) -> MaterializedWeek:
        """Create one week's planned sessions and return them with their ids."""
        raise NotImplementedError(f"{type(self).__name__} cannot store planned sessions")

    def planned_sessions(self, mesocycle_id: Optional[str] = None) -> List[WorkoutSession]:
        raise NotImplementedError(f"{type(self).__name__} cannot store planned sessions")

    def start_planned_session(self, session_id: str) -> WorkoutSession:
        raise NotImplementedError(f"{type(self).__name__} cannot store planned sessions")

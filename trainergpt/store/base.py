"""Store interface shared by the in-memory and Firestore backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from ..models import (
    Exercise,
    ExerciseSet,
    PrescribedExercise,
    Readiness,
    SessionStatus,
    UserProfile,
    WorkoutSession,
)


class NotFoundError(KeyError):
    """Requested user, session or exercise does not exist."""


class SessionClosedError(ValueError):
    """Write attempted against a session that is no longer active."""


class ActiveSessionError(ValueError):
    """Another session is already in progress."""

    def __init__(self, session_name: str):
        super().__init__(
            f'You already have an active session: "{session_name}". Complete it first.'
        )
        self.session_name = session_name


class WorkoutStore(ABC):
    """
    Per-user training data plus the shared exercise library.

    Implementations must make append_set atomic per session: the set number is
    derived from the sets already logged for that exercise and concurrent
    appends must never hand out the same number twice.
    """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    def save_profile(self, user_id: str, profile: UserProfile) -> None:
        ...

    @abstractmethod
    def list_exercises(self) -> List[Exercise]:
        ...

    @abstractmethod
    def list_sessions(
        self,
        user_id: str,
        limit: Optional[int] = None,
        since: Optional[date] = None,
    ) -> List[WorkoutSession]:
        """
        Started sessions most recent first, optionally bounded by count and
        start date. Planned sessions are not included.
        """

    @abstractmethod
    def get_active_session(self, user_id: str) -> Optional[WorkoutSession]:
        """Most recent session without a completion, or None."""

    @abstractmethod
    def create_session(
        self,
        user_id: str,
        session_name: str,
        planned_exercises: List[PrescribedExercise],
        pre_readiness: Optional[Readiness] = None,
    ) -> WorkoutSession:
        ...

    @abstractmethod
    def append_set(
        self,
        user_id: str,
        session_id: str,
        exercise: Exercise,
        weight: float,
        reps: int,
        rir: Optional[float] = None,
    ) -> ExerciseSet:
        ...

    @abstractmethod
    def finish_session(
        self,
        user_id: str,
        session_id: str,
        status: SessionStatus,
        post_notes: Optional[str] = None,
    ) -> WorkoutSession:
        """Mark a session completed or abandoned and stamp its duration."""

    @abstractmethod
    def add_planned_session(self, user_id: str, session: WorkoutSession) -> WorkoutSession:
        """Save a planned session under a new id and return the stored copy."""

    @abstractmethod
    def list_planned_sessions(
        self, user_id: str, mesocycle_id: Optional[str] = None
    ) -> List[WorkoutSession]:
        """Planned sessions ordered by mesocycle week then day."""

    @abstractmethod
    def start_planned_session(self, user_id: str, session_id: str) -> WorkoutSession:
        """
        Turn a planned session into the active one, dated and timed from now.

        Raises ActiveSessionError while another session is active and
        NotFoundError when the session does not exist or is not planned.
        """

    @abstractmethod
    def list_user_ids(self) -> List[str]:
        ...


def elapsed_minutes(started_at, finished_at) -> int:
    """Whole minutes between start and finish, at least 1."""
    if started_at is None:
        return 1
    return max(1, int((finished_at - started_at).total_seconds() // 60))

"""Dict-backed store used for tests, local chat and seeded demos."""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..models import (
    Exercise,
    ExerciseSet,
    PrescribedExercise,
    Readiness,
    SessionStatus,
    UserProfile,
    WorkoutSession,
)
from .base import (
    ActiveSessionError,
    NotFoundError,
    SessionClosedError,
    WorkoutStore,
    elapsed_minutes,
)

logger = logging.getLogger(__name__)


class InMemoryStore(WorkoutStore):
    """
    Thread-safe in-process store.

    A store-wide lock guards the dict structure; each session additionally has
    its own lock so set numbering for one session never blocks another.
    Objects are copied on the way in and out so callers cannot mutate state.
    """

    def __init__(
        self,
        exercises: Optional[List[Exercise]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._clock = clock
        self._lock = threading.Lock()
        self._profiles: Dict[str, UserProfile] = {}
        self._sessions: Dict[str, Dict[str, WorkoutSession]] = {}
        self._session_locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._exercises: Dict[str, Exercise] = {e.id: e for e in (exercises or [])}
        self._ids = itertools.count(1)

    # -- seeding ------------------------------------------------------------

    def add_exercise(self, exercise: Exercise) -> None:
        with self._lock:
            self._exercises[exercise.id] = copy.deepcopy(exercise)

    def add_session(self, user_id: str, session: WorkoutSession) -> None:
        with self._lock:
            self._sessions.setdefault(user_id, {})[session.id] = copy.deepcopy(session)
            self._session_locks.setdefault((user_id, session.id), threading.Lock())

    # -- profile ------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._profiles.get(user_id)
            return copy.deepcopy(profile) if profile else None

    def save_profile(self, user_id: str, profile: UserProfile) -> None:
        with self._lock:
            self._profiles[user_id] = copy.deepcopy(profile)

    # -- library ------------------------------------------------------------

    def list_exercises(self) -> List[Exercise]:
        with self._lock:
            return [copy.deepcopy(e) for e in self._exercises.values()]

    # -- sessions -----------------------------------------------------------

    def _new_id(self, user_sessions: Dict[str, WorkoutSession]) -> str:
        session_id = str(next(self._ids))
        while session_id in user_sessions:
            session_id = str(next(self._ids))
        return session_id

    def list_sessions(
        self,
        user_id: str,
        limit: Optional[int] = None,
        since: Optional[date] = None,
    ) -> List[WorkoutSession]:
        with self._lock:
            sessions = [
                s for s in self._sessions.get(user_id, {}).values()
                if s.status != SessionStatus.PLANNED
            ]
            if since is not None:
                sessions = [s for s in sessions if s.date >= since]
            sessions.sort(key=lambda s: (s.date, s.started_at or datetime.min), reverse=True)
            if limit is not None:
                sessions = sessions[:limit]
            return [copy.deepcopy(s) for s in sessions]

    def get_active_session(self, user_id: str) -> Optional[WorkoutSession]:
        active = [s for s in self.list_sessions(user_id) if s.is_active]
        return active[0] if active else None

    def create_session(
        self,
        user_id: str,
        session_name: str,
        planned_exercises: List[PrescribedExercise],
        pre_readiness: Optional[Readiness] = None,
    ) -> WorkoutSession:
        now = self._clock()
        with self._lock:
            user_sessions = self._sessions.setdefault(user_id, {})
            session_id = self._new_id(user_sessions)
            session = WorkoutSession(
                id=session_id,
                date=now.date(),
                session_name=session_name,
                status=SessionStatus.ACTIVE,
                pre_readiness=pre_readiness,
                planned_exercises=list(planned_exercises),
                started_at=now,
            )
            user_sessions[session.id] = session
            self._session_locks[(user_id, session.id)] = threading.Lock()
            logger.info("Created session %s (%s) for user %s", session.id, session_name, user_id)
            return copy.deepcopy(session)

    def add_planned_session(self, user_id: str, session: WorkoutSession) -> WorkoutSession:
        with self._lock:
            user_sessions = self._sessions.setdefault(user_id, {})
            stored = copy.deepcopy(session)
            stored.id = self._new_id(user_sessions)
            stored.status = SessionStatus.PLANNED
            user_sessions[stored.id] = stored
            self._session_locks[(user_id, stored.id)] = threading.Lock()
            return copy.deepcopy(stored)

    def list_planned_sessions(
        self, user_id: str, mesocycle_id: Optional[str] = None
    ) -> List[WorkoutSession]:
        with self._lock:
            planned = [
                s for s in self._sessions.get(user_id, {}).values()
                if s.status == SessionStatus.PLANNED
                and (mesocycle_id is None or s.mesocycle_id == mesocycle_id)
            ]
            planned.sort(key=lambda s: (s.mesocycle_week or 0, s.day_number or 0))
            return [copy.deepcopy(s) for s in planned]

    def start_planned_session(self, user_id: str, session_id: str) -> WorkoutSession:
        now = self._clock()
        # The store lock spans the active check and the status flip.
        with self._lock:
            user_sessions = self._sessions.get(user_id, {})
            active = [s for s in user_sessions.values() if s.is_active]
            if active:
                raise ActiveSessionError(active[0].session_name)
            session = user_sessions.get(session_id)
            if session is None or session.status != SessionStatus.PLANNED:
                raise NotFoundError(f"Planned session {session_id} not found for user {user_id}")
            session.status = SessionStatus.ACTIVE
            session.date = now.date()
            session.started_at = now
            logger.info("Started planned session %s (%s) for user %s",
                        session_id, session.session_name, user_id)
            return copy.deepcopy(session)

    def _get_session(self, user_id: str, session_id: str) -> WorkoutSession:
        with self._lock:
            session = self._sessions.get(user_id, {}).get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found for user {user_id}")
            return session

    def append_set(
        self,
        user_id: str,
        session_id: str,
        exercise: Exercise,
        weight: float,
        reps: int,
        rir: Optional[float] = None,
    ) -> ExerciseSet:
        session = self._get_session(user_id, session_id)
        with self._session_locks[(user_id, session_id)]:
            if not session.is_active:
                raise SessionClosedError(f"Session {session_id} is no longer active")
            new_set = ExerciseSet(
                exercise=exercise.name,
                set_number=session.next_set_number(exercise.name),
                weight=weight,
                reps=reps,
                rir=rir,
                exercise_id=exercise.id,
                muscle_groups=copy.deepcopy(exercise.muscle_groups),
            )
            session.sets.append(new_set)
            return copy.deepcopy(new_set)

    def finish_session(
        self,
        user_id: str,
        session_id: str,
        status: SessionStatus,
        post_notes: Optional[str] = None,
    ) -> WorkoutSession:
        session = self._get_session(user_id, session_id)
        with self._session_locks[(user_id, session_id)]:
            if not session.is_active:
                raise SessionClosedError(f"Session {session_id} is already {session.status.value}")
            session.status = status
            session.duration_minutes = elapsed_minutes(session.started_at, self._clock())
            session.post_notes = post_notes
            return copy.deepcopy(session)

    def list_user_ids(self) -> List[str]:
        with self._lock:
            return sorted(set(self._profiles) | set(self._sessions))

"""
Firestore-backed store.

Collections:
- users/{uid}: UserProfile dict
- users/{uid}/sessions/{sessionId}: WorkoutSession dict with embedded sets
- exercises/{exerciseId}: shared Exercise reference data
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

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

USERS_COLLECTION = "users"
SESSIONS_SUBCOLLECTION = "sessions"
EXERCISES_COLLECTION = "exercises"

# list_sessions skips planned sessions.
STARTED_STATUSES = [
    SessionStatus.ACTIVE.value,
    SessionStatus.COMPLETED.value,
    SessionStatus.ABANDONED.value,
]

_db: Optional[firestore.Client] = None


def get_db(project: Optional[str] = None) -> firestore.Client:
    """Get or initialize the Firestore client."""
    global _db
    if _db is None:
        _db = firestore.Client(project=project) if project else firestore.Client()
    return _db


def _session_from_doc(doc) -> WorkoutSession:
    data = doc.to_dict()
    data["id"] = doc.id
    return WorkoutSession.from_dict(data)


class FirestoreStore(WorkoutStore):
    def __init__(
        self,
        db: Optional[firestore.Client] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._db = db or get_db()
        self._clock = clock

    def _user_ref(self, user_id: str):
        return self._db.collection(USERS_COLLECTION).document(user_id)

    def _sessions_ref(self, user_id: str):
        return self._user_ref(user_id).collection(SESSIONS_SUBCOLLECTION)

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        doc = self._user_ref(user_id).get()
        if not doc.exists:
            return None
        return UserProfile.from_dict(doc.to_dict())

    def save_profile(self, user_id: str, profile: UserProfile) -> None:
        self._user_ref(user_id).set(profile.to_dict(), merge=True)

    def list_exercises(self) -> List[Exercise]:
        exercises = []
        for doc in self._db.collection(EXERCISES_COLLECTION).stream():
            data = doc.to_dict()
            data.setdefault("id", doc.id)
            exercises.append(Exercise.from_dict(data))
        return exercises

    def list_sessions(
        self,
        user_id: str,
        limit: Optional[int] = None,
        since: Optional[date] = None,
    ) -> List[WorkoutSession]:
        query = self._sessions_ref(user_id).where(
            filter=FieldFilter("status", "in", STARTED_STATUSES)
        )
        if since is not None:
            query = query.where(
                filter=FieldFilter("date", ">=", since.isoformat())
            )
        query = query.order_by("date", direction=firestore.Query.DESCENDING)
        if limit is not None:
            query = query.limit(limit)
        return [_session_from_doc(doc) for doc in query.stream()]

    def get_active_session(self, user_id: str) -> Optional[WorkoutSession]:
        query = self._sessions_ref(user_id).where(
            filter=FieldFilter("status", "==", SessionStatus.ACTIVE.value)
        )
        active = [s for s in (_session_from_doc(d) for d in query.stream()) if s.is_active]
        if not active:
            return None
        active.sort(key=lambda s: (s.date, s.started_at or datetime.min), reverse=True)
        return active[0]

    def create_session(
        self,
        user_id: str,
        session_name: str,
        planned_exercises: List[PrescribedExercise],
        pre_readiness: Optional[Readiness] = None,
    ) -> WorkoutSession:
        now = self._clock()
        doc_ref = self._sessions_ref(user_id).document()
        session = WorkoutSession(
            id=doc_ref.id,
            date=now.date(),
            session_name=session_name,
            status=SessionStatus.ACTIVE,
            pre_readiness=pre_readiness,
            planned_exercises=list(planned_exercises),
            started_at=now,
        )
        doc_ref.set(session.to_dict())
        logger.info("Created session %s (%s) for user %s", doc_ref.id, session_name, user_id)
        return session

    def add_planned_session(self, user_id: str, session: WorkoutSession) -> WorkoutSession:
        doc_ref = self._sessions_ref(user_id).document()
        stored = replace(session, id=doc_ref.id, status=SessionStatus.PLANNED)
        doc_ref.set(stored.to_dict())
        return stored

    def list_planned_sessions(
        self, user_id: str, mesocycle_id: Optional[str] = None
    ) -> List[WorkoutSession]:
        query = self._sessions_ref(user_id).where(
            filter=FieldFilter("status", "==", SessionStatus.PLANNED.value)
        )
        if mesocycle_id is not None:
            query = query.where(filter=FieldFilter("mesocycle_id", "==", mesocycle_id))
        planned = [_session_from_doc(doc) for doc in query.stream()]
        planned.sort(key=lambda s: (s.mesocycle_week or 0, s.day_number or 0))
        return planned

    def start_planned_session(self, user_id: str, session_id: str) -> WorkoutSession:
        doc_ref = self._sessions_ref(user_id).document(session_id)
        active_query = self._sessions_ref(user_id).where(
            filter=FieldFilter("status", "==", SessionStatus.ACTIVE.value)
        )
        started_at = self._clock()

        @firestore.transactional
        def start_transaction(transaction, doc_ref):
            active = [
                s for s in (_session_from_doc(d) for d in transaction.get(active_query))
                if s.is_active
            ]
            if active:
                raise ActiveSessionError(active[0].session_name)
            doc = doc_ref.get(transaction=transaction)
            if not doc.exists:
                raise NotFoundError(f"Planned session {session_id} not found for user {user_id}")
            session = _session_from_doc(doc)
            if session.status != SessionStatus.PLANNED:
                raise NotFoundError(f"Planned session {session_id} not found for user {user_id}")
            session.status = SessionStatus.ACTIVE
            session.date = started_at.date()
            session.started_at = started_at
            transaction.update(doc_ref, {
                "status": session.status.value,
                "date": session.date.isoformat(),
                "started_at": started_at.isoformat(),
            })
            return session

        session = start_transaction(self._db.transaction(), doc_ref)
        logger.info("Started planned session %s (%s) for user %s",
                    session_id, session.session_name, user_id)
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
        doc_ref = self._sessions_ref(user_id).document(session_id)

        @firestore.transactional
        def append_transaction(transaction, doc_ref):
            doc = doc_ref.get(transaction=transaction)
            if not doc.exists:
                raise NotFoundError(f"Session {session_id} not found for user {user_id}")
            session = _session_from_doc(doc)
            if not session.is_active:
                raise SessionClosedError(f"Session {session_id} is no longer active")

            new_set = ExerciseSet(
                exercise=exercise.name,
                set_number=session.next_set_number(exercise.name),
                weight=weight,
                reps=reps,
                rir=rir,
                exercise_id=exercise.id,
                muscle_groups=exercise.muscle_groups,
            )
            transaction.update(doc_ref, {
                "sets": [s.to_dict() for s in session.sets] + [new_set.to_dict()],
            })
            return new_set

        return append_transaction(self._db.transaction(), doc_ref)

    def finish_session(
        self,
        user_id: str,
        session_id: str,
        status: SessionStatus,
        post_notes: Optional[str] = None,
    ) -> WorkoutSession:
        doc_ref = self._sessions_ref(user_id).document(session_id)
        finished_at = self._clock()

        @firestore.transactional
        def finish_transaction(transaction, doc_ref):
            doc = doc_ref.get(transaction=transaction)
            if not doc.exists:
                raise NotFoundError(f"Session {session_id} not found for user {user_id}")
            session = _session_from_doc(doc)
            if not session.is_active:
                raise SessionClosedError(
                    f"Session {session_id} is already {session.status.value}"
                )
            session.status = status
            session.duration_minutes = elapsed_minutes(session.started_at, finished_at)
            session.post_notes = post_notes
            transaction.update(doc_ref, {
                "status": session.status.value,
                "duration_minutes": session.duration_minutes,
                "post_notes": post_notes,
            })
            return session

        return finish_transaction(self._db.transaction(), doc_ref)

    def list_user_ids(self) -> List[str]:
        return [doc.id for doc in self._db.collection(USERS_COLLECTION).stream()]

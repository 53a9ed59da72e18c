"""Persistence for profiles, sessions and the exercise library."""

from .base import NotFoundError, SessionClosedError, WorkoutStore
from .memory import InMemoryStore

__all__ = ["build_store", "InMemoryStore", "NotFoundError", "SessionClosedError", "WorkoutStore"]


def build_store(config) -> WorkoutStore:
    """Store selected by config.store; the memory store comes pre-seeded."""
    if config.store == "firestore":
        from .firestore_store import FirestoreStore, get_db
        return FirestoreStore(db=get_db(config.project))
    from .seed import seeded_store
    return seeded_store()

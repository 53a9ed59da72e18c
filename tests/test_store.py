"""Tests for the in-memory workout store and demo seed."""
from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from trainergpt.models import SessionStatus
from trainergpt.store.base import NotFoundError, SessionClosedError, elapsed_minutes
from trainergpt.store.seed import DEMO_USER_ID, seeded_store

from conftest import TODAY, USER, make_session


def _exercise(store, exercise_id):
    return next(e for e in store.list_exercises() if e.id == exercise_id)


class TestSetNumbering:

    def test_sequential_numbers_per_exercise(self, store):
        session = store.create_session(USER, "Upper A", [])
        bench = _exercise(store, "ex-bench")
        row = _exercise(store, "ex-row")

        numbers = [store.append_set(USER, session.id, bench, 185, 8, 2).set_number for _ in range(3)]
        assert numbers == [1, 2, 3]
        assert store.append_set(USER, session.id, row, 155, 10, 2).set_number == 1
        assert store.append_set(USER, session.id, bench, 185, 7, 1).set_number == 4

    def test_concurrent_appends_never_duplicate(self, store):
        session = store.create_session(USER, "Upper A", [])
        bench = _exercise(store, "ex-bench")
        results = []
        lock = threading.Lock()

        def log_one():
            logged = store.append_set(USER, session.id, bench, 185, 8, 2)
            with lock:
                results.append(logged.set_number)

        threads = [threading.Thread(target=log_one) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == list(range(1, 21))

    def test_logged_set_carries_library_metadata(self, store):
        session = store.create_session(USER, "Upper A", [])
        logged = store.append_set(USER, session.id, _exercise(store, "ex-bench"), 185, 8, None)
        assert logged.exercise == "Barbell Bench Press"
        assert logged.exercise_id == "ex-bench"
        assert logged.muscle_groups.primary == ["chest"]
        assert logged.rir is None


class TestSessionLifecycle:

    def test_active_session_lookup(self, store):
        assert store.get_active_session(USER) is None
        session = store.create_session(USER, "Upper A", [])
        assert store.get_active_session(USER).id == session.id

    def test_finish_closes_session(self, store):
        session = store.create_session(USER, "Upper A", [])
        finished = store.finish_session(USER, session.id, SessionStatus.COMPLETED, "felt good")
        assert finished.status == SessionStatus.COMPLETED
        assert finished.duration_minutes >= 1
        assert finished.post_notes == "felt good"
        assert store.get_active_session(USER) is None

    def test_append_after_finish_rejected(self, store):
        session = store.create_session(USER, "Upper A", [])
        store.finish_session(USER, session.id, SessionStatus.ABANDONED)
        with pytest.raises(SessionClosedError):
            store.append_set(USER, session.id, _exercise(store, "ex-bench"), 185, 8, 2)
        with pytest.raises(SessionClosedError):
            store.finish_session(USER, session.id, SessionStatus.COMPLETED)

    def test_unknown_session(self, store):
        with pytest.raises(NotFoundError):
            store.append_set(USER, "missing", _exercise(store, "ex-bench"), 185, 8, 2)

    def test_session_ids_skip_seeded_ids(self, store):
        store.add_session(USER, make_session("1", TODAY, []))
        created = store.create_session(USER, "Upper B", [])
        assert created.id != "1"


class TestQueries:

    def test_list_sessions_order_limit_since(self, store):
        for i, days_ago in enumerate([10, 1, 5]):
            store.add_session(USER, make_session(f"s{i}", TODAY - timedelta(days=days_ago), []))
        assert [s.id for s in store.list_sessions(USER)] == ["s1", "s2", "s0"]
        assert [s.id for s in store.list_sessions(USER, limit=1)] == ["s1"]
        since = TODAY - timedelta(days=6)
        assert [s.id for s in store.list_sessions(USER, since=since)] == ["s1", "s2"]

    def test_returned_objects_are_copies(self, store):
        profile = store.get_profile(USER)
        profile.name = "Changed"
        assert store.get_profile(USER).name != "Changed"

    def test_unknown_user_has_no_profile(self, store):
        assert store.get_profile("nobody") is None
        assert store.list_sessions("nobody") == []

    def test_list_user_ids(self, store):
        store.add_session("user-2", make_session("x", TODAY, []))
        assert store.list_user_ids() == [USER, "user-2"]


class TestSeed:

    def test_demo_store(self):
        store = seeded_store(datetime(2026, 10, 21, 9, 0))
        profile = store.get_profile(DEMO_USER_ID)
        assert profile.active_mesocycle.current_week == 2
        sessions = store.list_sessions(DEMO_USER_ID)
        assert len(sessions) == 1
        assert sessions[0].status == SessionStatus.COMPLETED
        assert len(sessions[0].sets) == 6
        assert store.get_active_session(DEMO_USER_ID) is None
        assert len(store.list_exercises()) >= 20


def test_elapsed_minutes_floor_of_one():
    start = datetime(2026, 10, 21, 9, 0)
    assert elapsed_minutes(start, start) == 1
    assert elapsed_minutes(start, start + timedelta(minutes=62, seconds=30)) == 62
    assert elapsed_minutes(None, start) == 1

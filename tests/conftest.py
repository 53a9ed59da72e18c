"""Shared builders and fakes for the test suite."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from trainergpt.cache import RedisCache
from trainergpt.models import (
    ExerciseSet,
    MuscleGroups,
    Readiness,
    SessionStatus,
    WorkoutSession,
)
from trainergpt.shell.messages import ModelTurn, ToolCall, ToolResults
from trainergpt.shell.model_client import ModelClient
from trainergpt.store.memory import InMemoryStore
from trainergpt.store.seed import demo_profile, reference_exercises

USER = "user-1"

# Wednesday; its week starts Monday 2026-10-19.
TODAY = date(2026, 10, 21)

CHEST = MuscleGroups(primary=["chest"], secondary=["triceps"])
BACK = MuscleGroups(primary=["back"], secondary=["biceps"])


def make_session(
    session_id: str,
    when: date,
    sets: Sequence[Tuple[str, float, int, Optional[float]]],
    groups: Optional[MuscleGroups] = None,
    status: SessionStatus = SessionStatus.COMPLETED,
    readiness: Optional[Readiness] = None,
    name: str = "Upper A",
) -> WorkoutSession:
    """Session whose sets are (exercise, weight, reps, rir), numbered per exercise."""
    built: List[ExerciseSet] = []
    for exercise, weight, reps, rir in sets:
        number = len([s for s in built if s.exercise == exercise]) + 1
        built.append(ExerciseSet(
            exercise=exercise,
            set_number=number,
            weight=weight,
            reps=reps,
            rir=rir,
            muscle_groups=groups,
        ))
    return WorkoutSession(
        id=session_id,
        date=when,
        session_name=name,
        status=status,
        pre_readiness=readiness,
        sets=built,
        started_at=datetime.combine(when, datetime.min.time()),
        duration_minutes=60 if status != SessionStatus.ACTIVE else None,
    )


def call(name: str, **args) -> ToolCall:
    return ToolCall(name=name, args=args)


class ScriptedModel(ModelClient):
    """Returns pre-scripted turns in order, then a plain closing answer."""

    def __init__(self, turns: Sequence[ModelTurn] = (), final_text: str = "Done."):
        self.turns = list(turns)
        self.final_text = final_text
        self.requests: List[list] = []

    def generate(self, instruction, history, tools):
        self.requests.append(list(history))
        if self.turns:
            return self.turns.pop(0)
        return ModelTurn(text=self.final_text)

    def tool_results(self) -> List[ToolResults]:
        """Every ToolResults block the model was shown, in order."""
        if not self.requests:
            return []
        return [m for m in self.requests[-1] if isinstance(m, ToolResults)]


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """The slice of a redis client the cache uses, expiring keys against a clock."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.values: Dict[str, Tuple[float, str]] = {}

    def setex(self, key: str, ttl: int, value: str) -> bool:
        self.values[key] = (self.clock() + ttl, value)
        return True

    def get(self, key: str) -> Optional[str]:
        entry = self.values.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self.clock() >= expires_at:
            del self.values[key]
            return None
        return value

    def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.values.pop(key, None) is not None)


@pytest.fixture
def store() -> InMemoryStore:
    memory = InMemoryStore(
        exercises=reference_exercises(),
        clock=lambda: datetime.combine(TODAY, datetime.min.time()) + timedelta(hours=18),
    )
    memory.save_profile(USER, demo_profile())
    return memory


@pytest.fixture
def redis_client() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(redis_client) -> RedisCache:
    return RedisCache(redis_client)


@pytest.fixture
def library():
    return reference_exercises()

"""Tests for mesocycle planning, planned sessions and the program tools."""
from __future__ import annotations

import json

import pytest

from trainergpt.analyzers.mesocycle_planner import (
    MesocyclePlanner,
    PlanGenerationError,
    build_plan_prompt,
    parse_plan,
)
from trainergpt.models import (
    MesocycleStatus,
    PlanExercise,
    PlanSession,
    PlanWeek,
    SessionStatus,
)
from trainergpt.skills.program import PlanRequest, build_volume_plan, materialize_week
from trainergpt.store.base import ActiveSessionError, NotFoundError
from trainergpt.tools.catalogue import ToolCatalogue
from trainergpt.tools.program_tools import NO_MESOCYCLE_ERROR, PLANNED_NOT_FOUND_ERROR
from trainergpt.tools.store_backend import StoreBackend

from conftest import CHEST, TODAY, USER, make_session


def _slot(name, group, sets=3, rir=3):
    return {
        "exerciseName": name,
        "muscleGroup": group,
        "sets": sets,
        "repRangeMin": 6,
        "repRangeMax": 10,
        "rirTarget": rir,
        "restSeconds": 150,
    }


def _draft(total_weeks=3):
    weeks = []
    for n in range(1, total_weeks + 1):
        deload = n == total_weeks
        sets = 2 if deload else 3
        weeks.append({
            "weekNumber": n,
            "isDeload": deload,
            "sessions": [
                {"dayNumber": 1, "sessionName": "Upper A", "exercises": [
                    _slot("Barbell Bench Press", "Chest", sets),
                    _slot("Barbell Row", "back", sets),
                ]},
                {"dayNumber": 2, "sessionName": "Lower A", "exercises": [
                    _slot("Barbell Back Squat", "quads", sets),
                ]},
            ],
        })
    return {
        "name": "Upper Lower Block",
        "splitType": "upper_lower",
        "totalWeeks": total_weeks,
        "weeks": weeks,
    }


class FakeCompletion:
    def __init__(self, draft=None):
        self.answer = json.dumps(draft if draft is not None else _draft())
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        return self.answer


def _plan_week(week_number, *sessions, is_deload=False):
    return PlanWeek(
        week_number=week_number,
        is_deload=is_deload,
        sessions=[
            PlanSession(
                day_number=day,
                session_name=name,
                exercises=[PlanExercise(ex, group, sets, 8, 12, 2, 90) for ex, group, sets in slots],
            )
            for day, name, slots in sessions
        ],
    )


def _clear_mesocycle(store):
    profile = store.get_profile(USER)
    profile.active_mesocycle = None
    store.save_profile(USER, profile)


@pytest.fixture
def completion():
    return FakeCompletion()


@pytest.fixture
def planner(completion):
    return MesocyclePlanner(completion)


@pytest.fixture
def tools(store, cache, planner):
    backend = StoreBackend(store, USER, cache=cache, today=lambda: TODAY, planner=planner)
    return ToolCatalogue(backend)


class TestVolumePlan:

    def test_sums_sets_per_group_per_week(self):
        weeks = [
            _plan_week(
                1,
                (1, "Upper A", [("Bench", "Chest", 3), ("Row", "back", 3)]),
                (2, "Upper B", [("Incline", "chest", 2)]),
            ),
            _plan_week(2, (1, "Upper A", [("Bench", "chest", 2)]), is_deload=True),
        ]
        assert build_volume_plan(weeks) == {
            "week_1": {"chest": 5, "back": 3},
            "week_2": {"chest": 2},
        }


class TestMaterializeWeek:

    def test_resolves_names_and_drops_unknown_exercises(self, library):
        draft = parse_plan(json.dumps(_draft()))
        mesocycle = draft.to_mesocycle("meso-9", TODAY)
        mesocycle.weeks[0] = _plan_week(
            1,
            (2, "Lower A", [("Zercher Carry", "quads", 3)]),
            (1, "Upper A", [("bench press", "chest", 3), ("Zercher Carry", "quads", 2)]),
        )

        week = materialize_week(mesocycle, 1, library, TODAY)

        assert [s.session_name for s in week.sessions] == ["Upper A"]
        session = week.sessions[0]
        assert session.status == SessionStatus.PLANNED
        assert session.id == ""
        assert session.date == TODAY
        assert (session.mesocycle_id, session.mesocycle_week, session.day_number) == ("meso-9", 1, 1)
        assert [p.exercise_id for p in session.planned_exercises] == ["ex-bench"]
        assert session.planned_exercises[0].exercise_name == "Barbell Bench Press"
        assert week.unmatched_exercises == ["Zercher Carry", "Zercher Carry"]

    def test_deload_flag_carried(self, library):
        mesocycle = parse_plan(json.dumps(_draft())).to_mesocycle("meso-9", TODAY)
        week = materialize_week(mesocycle, 3, library, TODAY)
        assert week.is_deload is True
        assert all(s.is_deload for s in week.sessions)
        assert [p.target_sets for p in week.sessions[0].planned_exercises] == [2, 2]

    def test_missing_week(self, library):
        mesocycle = parse_plan(json.dumps(_draft())).to_mesocycle("meso-9", TODAY)
        with pytest.raises(ValueError):
            materialize_week(mesocycle, 4, library, TODAY)


class TestParsePlan:

    def test_valid_draft(self):
        mesocycle = parse_plan(json.dumps(_draft(4))).to_mesocycle("meso-9", TODAY)
        assert mesocycle.total_weeks == 4
        assert mesocycle.current_week == 1
        assert mesocycle.status == MesocycleStatus.ACTIVE
        assert mesocycle.start_date == TODAY
        assert mesocycle.volume_plan["week_1"] == {"chest": 3, "back": 3, "quads": 3}
        assert mesocycle.volume_plan["week_4"] == {"chest": 2, "back": 2, "quads": 2}

    def test_empty_response(self):
        with pytest.raises(PlanGenerationError):
            parse_plan("  ")

    def test_final_week_must_deload(self):
        draft = _draft()
        draft["weeks"][-1]["isDeload"] = False
        with pytest.raises(PlanGenerationError, match="deload"):
            parse_plan(json.dumps(draft))

    def test_weeks_numbered_in_order(self):
        draft = _draft()
        draft["weeks"][1]["weekNumber"] = 5
        with pytest.raises(PlanGenerationError):
            parse_plan(json.dumps(draft))

    def test_inverted_rep_range(self):
        draft = _draft()
        draft["weeks"][0]["sessions"][0]["exercises"][0]["repRangeMin"] = 12
        with pytest.raises(PlanGenerationError):
            parse_plan(json.dumps(draft))

    def test_not_json(self):
        with pytest.raises(PlanGenerationError):
            parse_plan("Here is your program: ...")


class TestMesocyclePlanner:

    def test_prompt_carries_request_and_library(self, library, store):
        prompt = build_plan_prompt(
            store.get_profile(USER),
            library,
            PlanRequest(
                split_type="upper_lower", training_days=4, focus_areas=["chest"], total_weeks=5,
            ),
        )
        assert "Training days per week: 4" in prompt
        assert "Focus areas: chest" in prompt
        assert "exactly 5 weeks" in prompt
        assert "- Barbell Bench Press (primary: chest;" in prompt

    def test_plan_builds_active_mesocycle(self, planner, completion, library, store):
        request = PlanRequest(split_type="upper_lower", training_days=2)
        mesocycle = planner.plan(store.get_profile(USER), library, request, TODAY)
        assert len(completion.prompts) == 1
        assert len(mesocycle.id) == 12
        assert mesocycle.name == "Upper Lower Block"
        assert mesocycle.split_type == "upper_lower"
        assert [w.week_number for w in mesocycle.weeks] == [1, 2, 3]

    def test_requested_length_enforced(self, planner, library, store):
        request = PlanRequest(split_type="upper_lower", training_days=2, total_weeks=5)
        with pytest.raises(PlanGenerationError, match="5 requested"):
            planner.plan(store.get_profile(USER), library, request, TODAY)


class TestPlannedSessionStore:

    def _planned(self, library):
        mesocycle = parse_plan(json.dumps(_draft())).to_mesocycle("meso-9", TODAY)
        return materialize_week(mesocycle, 1, library, TODAY).sessions

    def test_planned_sessions_kept_out_of_history(self, store, library):
        stored = [store.add_planned_session(USER, s) for s in self._planned(library)]
        assert all(s.id for s in stored)
        assert store.list_sessions(USER) == []
        assert store.get_active_session(USER) is None
        assert [s.day_number for s in store.list_planned_sessions(USER, "meso-9")] == [1, 2]
        assert store.list_planned_sessions(USER, "other-meso") == []

    def test_start_moves_session_to_active(self, store, library):
        first = store.add_planned_session(USER, self._planned(library)[0])
        started = store.start_planned_session(USER, first.id)
        assert started.status == SessionStatus.ACTIVE
        assert started.started_at is not None
        assert store.get_active_session(USER).id == first.id
        assert store.list_planned_sessions(USER) == []

    def test_start_rejected_while_another_is_active(self, store, library):
        planned = store.add_planned_session(USER, self._planned(library)[0])
        store.create_session(USER, "Arms", [])
        with pytest.raises(ActiveSessionError) as excinfo:
            store.start_planned_session(USER, planned.id)
        assert str(excinfo.value) == 'You already have an active session: "Arms". Complete it first.'
        assert [s.id for s in store.list_planned_sessions(USER)] == [planned.id]

    def test_start_unknown_or_already_started(self, store, library):
        planned = store.add_planned_session(USER, self._planned(library)[0])
        with pytest.raises(NotFoundError):
            store.start_planned_session(USER, "nope")
        store.start_planned_session(USER, planned.id)
        store.finish_session(USER, planned.id, SessionStatus.COMPLETED)
        with pytest.raises(NotFoundError):
            store.start_planned_session(USER, planned.id)


class TestCreateProgram:

    def test_creates_mesocycle_and_plans_week_one(self, tools, store):
        _clear_mesocycle(store)
        result = tools.execute("createProgram", {"trainingDays": 2, "focusAreas": ["chest"]})

        assert result["success"] is True
        assert result["totalWeeks"] == 3
        assert result["currentWeek"] == 1
        assert result["weekVolume"] == {"chest": 3, "back": 3, "quads": 3}
        assert [s["sessionName"] for s in result["sessions"]] == ["Upper A", "Lower A"]
        assert "unmatchedExercises" not in result

        profile = store.get_profile(USER)
        assert profile.active_mesocycle.id == result["mesocycleId"]
        assert profile.active_mesocycle.current_week == 1
        planned = store.list_planned_sessions(USER, result["mesocycleId"])
        assert [s.id for s in planned] == [s["sessionId"] for s in result["sessions"]]

    def test_request_defaults_from_profile(self, tools, store, completion):
        _clear_mesocycle(store)
        tools.execute("createProgram", {"focusAreas": ["chest"]})
        prompt = completion.prompts[-1]
        assert "Split: upper_lower" in prompt
        assert "Training days per week: 4" in prompt
        assert "Focus areas: chest" in prompt

    def test_rejected_while_mesocycle_active(self, tools, store, completion):
        result = tools.execute("createProgram", {})
        assert result["success"] is False
        assert result["activeMesocycleId"] == "meso-1"
        assert completion.prompts == []
        assert store.list_planned_sessions(USER) == []

    def test_without_planner(self, store, cache):
        _clear_mesocycle(store)
        tools = ToolCatalogue(StoreBackend(store, USER, cache=cache, today=lambda: TODAY))
        result = tools.execute("createProgram", {})
        assert result["success"] is False
        assert "not configured" in result["error"]
        assert store.get_profile(USER).active_mesocycle is None

    def test_invalid_plan_saves_nothing(self, store, cache):
        _clear_mesocycle(store)
        broken = _draft()
        broken["weeks"][-1]["isDeload"] = False
        planner = MesocyclePlanner(FakeCompletion(broken))
        tools = ToolCatalogue(
            StoreBackend(store, USER, cache=cache, today=lambda: TODAY, planner=planner)
        )
        result = tools.execute("createProgram", {})
        assert result["success"] is False
        assert store.get_profile(USER).active_mesocycle is None
        assert store.list_planned_sessions(USER) == []


class TestPlannedSessionTools:

    def test_list_and_start(self, tools, store):
        _clear_mesocycle(store)
        tools.execute("createProgram", {})
        listed = tools.execute("getPlannedSessions", {})
        assert listed["count"] == 2
        upper = listed["sessions"][0]
        assert upper["mesocycleWeek"] == 1
        assert upper["exercises"][0]["repRange"] == "6-10"

        started = tools.execute("startPlannedSession", {"sessionId": upper["sessionId"]})
        assert started["success"] is True
        assert started["exerciseCount"] == 2
        assert started["totalSets"] == 6
        assert store.get_active_session(USER).id == upper["sessionId"]

        logged = tools.execute(
            "logWorkoutSet", {"exerciseName": "Barbell Bench Press", "weight": 185, "reps": 8},
        )
        assert logged["success"] is True

    def test_second_start_rejected(self, tools, store):
        _clear_mesocycle(store)
        sessions = tools.execute("createProgram", {})["sessions"]
        tools.execute("startPlannedSession", {"sessionId": sessions[0]["sessionId"]})
        result = tools.execute("startPlannedSession", {"sessionId": sessions[1]["sessionId"]})
        assert result["success"] is False
        assert result["error"] == 'You already have an active session: "Upper A". Complete it first.'

    def test_unknown_session(self, tools):
        result = tools.execute("startPlannedSession", {"sessionId": 404})
        assert result == {"success": False, "error": PLANNED_NOT_FOUND_ERROR}


class TestAdvanceWeek:

    def test_blocked_until_week_is_done(self, tools, store):
        _clear_mesocycle(store)
        sessions = tools.execute("createProgram", {})["sessions"]

        blocked = tools.execute("advanceWeek", {})
        assert blocked["success"] is False
        assert len(blocked["unfinishedSessions"]) == 2

        tools.execute("startPlannedSession", {"sessionId": sessions[0]["sessionId"]})
        tools.execute("completeWorkoutSession", {})
        tools.execute("startPlannedSession", {"sessionId": sessions[1]["sessionId"]})
        assert tools.execute("advanceWeek", {})["success"] is False
        tools.execute("completeWorkoutSession", {"abandoned": True})

        result = tools.execute("advanceWeek", {})
        assert result["success"] is True
        assert result["mesocycleCompleted"] is False
        assert result["currentWeek"] == 2
        assert result["weekVolume"] == {"chest": 3, "back": 3, "quads": 3}
        assert len(result["sessions"]) == 2
        assert store.get_profile(USER).active_mesocycle.current_week == 2
        week_two = store.list_planned_sessions(USER)
        assert {s.mesocycle_week for s in week_two} == {2}

    def test_mesocycle_without_plan_advances(self, tools, store):
        result = tools.execute("advanceWeek", {})
        assert result["success"] is True
        assert result["currentWeek"] == 3
        assert result["sessions"] == []
        assert result["weekVolume"] == {}

    def test_skip_to_week_bounds(self, tools):
        behind = tools.execute("advanceWeek", {"skipToWeek": 2})
        assert behind["success"] is False
        beyond = tools.execute("advanceWeek", {"skipToWeek": 9})
        assert beyond["success"] is False
        assert "only has 5 weeks" in beyond["error"]
        assert tools.execute("advanceWeek", {"skipToWeek": 5})["currentWeek"] == 5

    def test_past_last_week_completes_mesocycle(self, tools, store):
        profile = store.get_profile(USER)
        profile.active_mesocycle.current_week = 5
        store.save_profile(USER, profile)
        done = make_session("s1", TODAY, [("Barbell Bench Press", 185, 8, 2)] * 3, groups=CHEST)
        done.mesocycle_id = "meso-1"
        store.add_session(USER, done)
        unrelated = make_session("s2", TODAY, [("Barbell Bench Press", 185, 8, 2)], groups=CHEST)
        store.add_session(USER, unrelated)

        result = tools.execute("advanceWeek", {})

        assert result["success"] is True
        assert result["mesocycleCompleted"] is True
        assert result["summary"] == {
            "name": "Hypertrophy Block A",
            "totalWeeks": 5,
            "sessionsCompleted": 1,
            "sessionsAbandoned": 0,
            "totalSets": 3,
        }
        assert store.get_profile(USER).active_mesocycle is None

    def test_no_active_mesocycle(self, tools, store):
        _clear_mesocycle(store)
        assert tools.execute("advanceWeek", {}) == {"success": False, "error": NO_MESOCYCLE_ERROR}

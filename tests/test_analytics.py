"""Tests for the pure analytics behind the read tools."""
from __future__ import annotations

from datetime import date, timedelta

from trainergpt.models import MuscleGroups, SessionStatus, VolumeLandmark
from trainergpt.skills.analytics import (
    filter_library,
    find_exercise,
    progression_trend,
    recommend_progression,
    summarize_history,
    volume_report,
    weekly_volume,
)

from conftest import BACK, CHEST, TODAY, make_session


def _bench_history():
    return [
        make_session("1", TODAY - timedelta(days=7), [
            ("Barbell Bench Press", 180, 8, 2),
            ("Barbell Bench Press", 180, 8, 2),
        ], groups=CHEST),
        make_session("2", TODAY - timedelta(days=3), [
            ("Barbell Bench Press", 185, 8, 2),
            ("Barbell Bench Press", 185, 8, 1),
            ("Barbell Bench Press", 180, 7, None),
            ("Barbell Row", 155, 10, 2),
        ], groups=CHEST),
        make_session("3", TODAY - timedelta(days=10), [
            ("Barbell Bench Press", 175, 9, 3),
        ], groups=CHEST),
    ]


class TestSummarizeHistory:

    def test_most_recent_first_and_limited(self):
        result = summarize_history(_bench_history(), last_n_sessions=2)
        assert [s["id"] for s in result["sessions"]] == ["2", "1"]
        assert result["totalSessions"] == 2

    def test_exercise_averages(self):
        latest = summarize_history(_bench_history(), last_n_sessions=1)["sessions"][0]
        bench = latest["exercises"][0]
        assert bench == {
            "exercise": "Barbell Bench Press",
            "sets": 3,
            "avgWeight": 183,
            "avgReps": 7.7,
            "avgRir": 1.5,
        }
        assert latest["exerciseCount"] == 2
        assert latest["totalSets"] == 4

    def test_exercise_filter_is_case_insensitive_substring(self):
        latest = summarize_history(
            _bench_history(), exercise_name="ROW", last_n_sessions=1
        )["sessions"][0]
        assert [e["exercise"] for e in latest["exercises"]] == ["Barbell Row"]
        assert latest["totalSets"] == 1

    def test_muscle_group_filter_keeps_unresolved_sets(self):
        sessions = [
            make_session("1", TODAY, [("Bench", 100, 8, 2)], groups=CHEST),
            make_session("2", TODAY - timedelta(days=1), [("Row", 100, 8, 2)], groups=BACK),
            make_session("3", TODAY - timedelta(days=2), [("Mystery Press", 50, 8, 2)]),
        ]
        result = summarize_history(sessions, muscle_group="chest", last_n_sessions=3)
        totals = {s["id"]: s["totalSets"] for s in result["sessions"]}
        assert totals == {"1": 1, "2": 0, "3": 1}

    def test_all_null_rir_reports_none(self):
        sessions = [make_session("1", TODAY, [("Curl", 40, 12, None)])]
        exercise = summarize_history(sessions)["sessions"][0]["exercises"][0]
        assert exercise["avgRir"] is None


class TestProgressionTrend:

    def test_no_data(self):
        result = progression_trend(_bench_history(), "Squat")
        assert result["trend"] == []
        assert result["recommendation"] == 'No data found for "Squat".'

    def test_trend_points_most_recent_first(self):
        result = progression_trend(_bench_history(), "bench", last_n_sessions=4)
        assert [p["date"] for p in result["trend"]] == [
            (TODAY - timedelta(days=3)).isoformat(),
            (TODAY - timedelta(days=7)).isoformat(),
            (TODAY - timedelta(days=10)).isoformat(),
        ]
        assert result["trend"][0]["setCount"] == 3
        assert result["exercise"] == "Barbell Bench Press"
        assert result["repRangeOptimal"] == [8, 12]

    def test_respects_last_n_sessions(self):
        result = progression_trend(_bench_history(), "bench", last_n_sessions=1)
        assert len(result["trend"]) == 1

    def test_custom_rep_range_reported(self):
        result = progression_trend(_bench_history(), "bench", rep_range=(6, 10))
        assert result["repRangeOptimal"] == [6, 10]


class TestRecommendProgression:

    def _point(self, weight=185, reps=8.0, rir=2.0):
        return {"date": "2026-10-20", "setCount": 3, "avgWeight": weight, "avgReps": reps, "avgRir": rir}

    def test_top_of_range_low_rir_increases(self):
        text = recommend_progression([self._point(reps=12, rir=1)], (8, 12))
        assert "Increase weight" in text

    def test_high_rir_maintains(self):
        text = recommend_progression([self._point(rir=3)], (8, 12))
        assert "Maintain the weight" in text

    def test_below_range_at_failure_reduces(self):
        text = recommend_progression([self._point(reps=6, rir=0)], (8, 12))
        assert "Reduce weight" in text

    def test_weight_increase_without_rir(self):
        trend = [self._point(weight=190, rir=None), self._point(weight=185, rir=None)]
        text = recommend_progression(trend, (8, 12))
        assert "Progressive overload" in text

    def test_no_rule_matches(self):
        assert recommend_progression([self._point(reps=9, rir=2)], (8, 12)) is None

    def test_empty_trend(self):
        assert recommend_progression([]) is None


class TestExerciseLibrary:

    def test_exact_name_wins(self, library):
        assert find_exercise(library, "cable fly").id == "ex-cable-fly"

    def test_substring_match(self, library):
        assert find_exercise(library, "bench").id == "ex-bench"

    def test_reverse_substring_match(self, library):
        assert find_exercise(library, "Barbell Bench Press paused").id == "ex-bench"

    def test_no_match(self, library):
        assert find_exercise(library, "Underwater Basket Weaving") is None
        assert find_exercise(library, "  ") is None

    def test_filters_combine(self, library):
        result = filter_library(library, muscle_group="Chest", equipment="barbell")
        assert result["exercises"] == [
            {"id": "ex-bench", "name": "Barbell Bench Press", "equipment": "barbell"}
        ]
        assert result["count"] == 1

    def test_primary_muscle_only(self, library):
        names = [e["name"] for e in filter_library(library, muscle_group="triceps")["exercises"]]
        assert "Barbell Bench Press" not in names
        assert "Cable Triceps Pushdown" in names

    def test_unfiltered_is_stable(self, library):
        first = filter_library(library)
        second = filter_library(library)
        assert first["count"] == len(library)
        assert first == second


class TestWeeklyVolume:

    def test_counts_hard_sets_of_completed_sessions_this_week(self):
        monday = date(2026, 10, 19)
        sessions = [
            make_session("1", monday, [
                ("Bench", 185, 8, 2),
                ("Bench", 185, 8, 5),
                ("Bench", 185, 8, None),
            ], groups=CHEST),
            make_session("2", monday + timedelta(days=1), [("Row", 155, 10, 2)], groups=BACK),
            make_session("3", monday - timedelta(days=1), [("Bench", 185, 8, 2)], groups=CHEST),
            make_session(
                "4", TODAY, [("Bench", 185, 8, 2)], groups=CHEST, status=SessionStatus.ACTIVE
            ),
            make_session("5", monday, [("Mystery", 50, 8, 2)]),
        ]
        landmarks = {"chest": VolumeLandmark(8, 14, 22), "back": VolumeLandmark(8, 14, 22)}
        snapshot = weekly_volume(sessions, landmarks, TODAY)

        assert snapshot.volume_by_group == {"chest": 1, "back": 1}
        assert snapshot.total_sets == 2
        assert snapshot.target_sets == 28
        assert snapshot.week_start == monday

    def test_multiple_primary_groups(self):
        dip_groups = MuscleGroups(primary=["chest", "triceps"])
        sessions = [make_session("1", TODAY, [("Dip", 0, 10, 2)], groups=dip_groups)]
        snapshot = weekly_volume(sessions, {}, TODAY)
        assert snapshot.volume_by_group == {"chest": 1, "triceps": 1}
        assert snapshot.total_sets == 2


class TestVolumeReport:

    def test_union_of_logged_and_landmarked_groups(self):
        sessions = [make_session("1", TODAY, [("Curl", 40, 10, 2)], groups=MuscleGroups(["biceps"]))]
        landmarks = {"chest": VolumeLandmark(8, 14, 22)}
        report = volume_report(weekly_volume(sessions, landmarks, TODAY), landmarks)
        assert report["muscleGroups"]["chest"]["status"] == "below_mev"
        assert report["muscleGroups"]["biceps"] == {
            "sets": 1, "status": "no_landmarks", "setsRemaining": None,
        }
        assert report["weekStart"] == "2026-10-19"

    def test_single_group_is_lowercased(self):
        landmarks = {"chest": VolumeLandmark(8, 14, 22)}
        report = volume_report(weekly_volume([], landmarks, TODAY), landmarks, "Chest")
        assert list(report["muscleGroups"]) == ["chest"]
        assert report["muscleGroups"]["chest"]["setsRemaining"] == 22

    def test_unknown_group_never_crashes(self):
        report = volume_report(weekly_volume([], {}, TODAY), {}, "neck")
        assert report["muscleGroups"]["neck"]["status"] == "no_landmarks"

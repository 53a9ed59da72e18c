"""Tests for the deload check and the background scheduler."""
from __future__ import annotations

from datetime import timedelta

from trainergpt.analyzers.deload import evaluate_deload
from trainergpt.analyzers.weekly_summary import build_weekly_summary
from trainergpt.cache import CacheKind, RedisCache
from trainergpt.models import Mesocycle, Readiness, VolumeLandmark, VolumeSnapshot
from trainergpt.tools.catalogue import ToolCatalogue
from trainergpt.tools.store_backend import StoreBackend
from trainergpt.workers.scheduler import run_deload_checks, run_scheduler, run_weekly_summaries

from conftest import CHEST, TODAY, USER, make_session


def _meso(week=2, total=5):
    return Mesocycle(
        id="m1", name="Hypertrophy Block A", current_week=week, total_weeks=total,
        split_type="upper_lower",
    )


class TestEvaluateDeload:

    def test_no_mesocycle(self):
        assert evaluate_deload(None, []) is None

    def test_late_mesocycle(self):
        result = evaluate_deload(_meso(week=5), [])
        assert result.should_deload is True
        assert result.reason == (
            "Week 5 of 5 - approaching end of mesocycle. Recommend scheduling deload."
        )
        assert result.to_dict()["mesocycleName"] == "Hypertrophy Block A"

    def test_performance_decline(self):
        sessions = [
            make_session("1", TODAY - timedelta(days=3), [("Bench", 185, 8, 2.5), ("Bench", 185, 8, 2)]),
            make_session("2", TODAY, [("Bench", 185, 6, 0), ("Bench", 185, 5, 1)]),
        ]
        result = evaluate_deload(_meso(), sessions)
        assert result.should_deload is True
        assert "Performance declining" in result.reason

    def test_small_drop_is_not_decline(self):
        sessions = [
            make_session("1", TODAY - timedelta(days=3), [("Bench", 185, 8, 1)]),
            make_session("2", TODAY, [("Bench", 185, 7, 0.5)]),
        ]
        assert evaluate_deload(_meso(), sessions).should_deload is False

    def test_low_readiness(self):
        sessions = [
            make_session("1", TODAY, [], readiness=Readiness(energy=3, motivation=2, soreness=8)),
        ]
        result = evaluate_deload(_meso(), sessions)
        assert result.should_deload is True
        assert "Recovery deficit" in result.reason

    def test_only_latest_readiness_counts(self):
        sessions = [
            make_session("1", TODAY - timedelta(days=2), [],
                         readiness=Readiness(energy=2, motivation=2, soreness=9)),
            make_session("2", TODAY, [], readiness=Readiness(energy=7, motivation=8, soreness=3)),
        ]
        assert evaluate_deload(_meso(), sessions).should_deload is False

    def test_no_signal(self):
        result = evaluate_deload(_meso(week=3), [])
        assert result.should_deload is False
        assert result.reason is None
        assert result.to_dict() == {
            "shouldDeload": False,
            "reason": None,
            "currentWeek": 3,
            "totalWeeks": 5,
            "mesocycleName": "Hypertrophy Block A",
        }


class TestWeeklySummary:

    def test_flags_groups_outside_range(self):
        snapshot = VolumeSnapshot(
            volume_by_group={"chest": 23, "back": 4},
            total_sets=27,
            target_sets=28,
            week_start=TODAY - timedelta(days=2),
        )
        landmarks = {"chest": VolumeLandmark(8, 14, 22), "back": VolumeLandmark(8, 14, 22)}
        summary = build_weekly_summary(snapshot, landmarks)
        assert summary["aboveMrv"] == ["chest"]
        assert summary["belowMev"] == ["back"]
        assert summary["muscleGroups"]["chest"]["setsRemaining"] == 0


class TestScheduler:

    def test_deload_job_writes_cache(self, store, cache):
        result = run_deload_checks(store, cache, [USER])
        assert result["deload_checked"] == 1
        assert cache.get(CacheKind.DELOAD, USER).should_deload is False

    def test_weekly_summary_job(self, store, cache):
        store.add_session(USER, make_session("1", TODAY, [("Barbell Bench Press", 185, 8, 2)], groups=CHEST))
        result = run_weekly_summaries(store, cache, [USER], today=TODAY)
        assert result["weekly_summaries_built"] == 1
        summary = cache.get(CacheKind.WEEKLY_SUMMARY, USER)
        assert summary["muscleGroups"]["chest"]["sets"] == 1

    def test_one_failing_user_does_not_stop_run(self, store, cache, monkeypatch):
        original = store.get_profile

        def flaky(user_id):
            if user_id == "broken":
                raise RuntimeError("boom")
            return original(user_id)

        monkeypatch.setattr(store, "get_profile", flaky)
        result = run_deload_checks(store, cache, ["broken", USER])
        assert result["deload_failed"] == 1
        assert result["deload_checked"] == 1

    def test_run_all(self, store, cache):
        result = run_scheduler(store, cache, "all", [USER])
        assert "deload_checked" in result
        assert "weekly_summaries_built" in result

    def test_chat_process_reads_job_output(self, store, redis_client, monkeypatch):
        store.add_session(USER, make_session(
            "1", TODAY, [("Barbell Bench Press", 185, 8, 2)] * 3, groups=CHEST,
        ))
        run_scheduler(store, RedisCache(redis_client), "all", [USER], today=TODAY)

        def no_recompute(*args, **kwargs):
            raise AssertionError("sessions re-read instead of the job's cached result")

        # A separate backend and cache over the same redis, as a chat process builds them.
        monkeypatch.setattr(store, "list_sessions", no_recompute)
        chat_cache = RedisCache(redis_client)
        tools = ToolCatalogue(StoreBackend(store, USER, cache=chat_cache, today=lambda: TODAY))

        profile = tools.execute("getUserProfile", {})
        assert profile["deloadRecommendation"] == (
            chat_cache.get(CacheKind.DELOAD, USER).to_dict()
        )
        assert profile["deloadRecommendation"]["currentWeek"] == 2

        summary = tools.execute("getWeeklySummary", {})
        assert summary["muscleGroups"]["chest"]["sets"] == 3
        assert summary["totalSets"] == 3

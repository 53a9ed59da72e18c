"""Tests for the redis-backed cache."""
from __future__ import annotations

from datetime import date

import pytest
import redis

from trainergpt.cache import (
    SET_DEPENDENT_KINDS,
    TTL_SECONDS,
    CacheKind,
    RedisCache,
    build_cache,
    cache_key,
)
from trainergpt.config import CoachConfig
from trainergpt.models import DeloadRecommendation, VolumeSnapshot
from trainergpt.store.seed import demo_profile, reference_exercises


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("connection refused")

    def delete(self, *keys):
        raise redis.ConnectionError("connection refused")


def _deload(should: bool = False) -> DeloadRecommendation:
    return DeloadRecommendation(
        should_deload=should,
        reason="Final week of the mesocycle" if should else None,
        current_week=4,
        total_weeks=4,
        mesocycle_name="Hypertrophy Block",
    )


class TestCacheKey:

    def test_user_scoped(self):
        assert cache_key(CacheKind.VOLUME, "u1") == "cache:volume:u1"
        assert cache_key(CacheKind.WEEKLY_SUMMARY, "u1") == "cache:weekly-summary:u1"

    def test_exercise_list_is_shared(self):
        assert cache_key(CacheKind.EXERCISES) == "cache:exercises"
        assert cache_key(CacheKind.EXERCISES, "u1") == "cache:exercises"

    def test_user_kind_requires_user(self):
        with pytest.raises(ValueError):
            cache_key(CacheKind.PROFILE)


class TestRedisCache:

    def test_values_round_trip_as_models(self, cache):
        profile = demo_profile()
        snapshot = VolumeSnapshot({"chest": 4}, 4, 40, date(2026, 10, 19))
        cache.put(CacheKind.PROFILE, profile, "u1")
        cache.put(CacheKind.VOLUME, snapshot, "u1")
        cache.put(CacheKind.DELOAD, _deload(True), "u1")
        cache.put(CacheKind.EXERCISES, reference_exercises())

        assert cache.get(CacheKind.PROFILE, "u1") == profile
        assert cache.get(CacheKind.VOLUME, "u1") == snapshot
        assert cache.get(CacheKind.DELOAD, "u1").should_deload is True
        assert cache.get(CacheKind.EXERCISES) == reference_exercises()

    def test_entries_written_with_kind_ttl(self, redis_client, cache):
        cache.put(CacheKind.WEEKLY_SUMMARY, {"totalSets": 3}, "u1")
        expires_at, raw = redis_client.values["cache:weekly-summary:u1"]
        assert expires_at == redis_client.clock() + TTL_SECONDS[CacheKind.WEEKLY_SUMMARY]
        assert '"totalSets": 3' in raw

    def test_expiry_per_kind(self, redis_client, cache):
        cache.put(CacheKind.WEEKLY_SUMMARY, {"totalSets": 1}, "u1")
        cache.put(CacheKind.DELOAD, _deload(), "u1")
        cache.put(CacheKind.VOLUME, VolumeSnapshot({}, 0, 0, date(2026, 10, 19)), "u1")

        redis_client.clock.advance(TTL_SECONDS[CacheKind.VOLUME])
        assert cache.get(CacheKind.VOLUME, "u1") is None
        assert cache.get(CacheKind.WEEKLY_SUMMARY, "u1") == {"totalSets": 1}

        redis_client.clock.advance(TTL_SECONDS[CacheKind.DELOAD])
        assert cache.get(CacheKind.DELOAD, "u1") is None
        assert "cache:deload:u1" not in redis_client.values

    def test_ttl_override(self, redis_client):
        cache = RedisCache(redis_client, ttls={CacheKind.WEEKLY_SUMMARY: 10})
        cache.put(CacheKind.WEEKLY_SUMMARY, {"totalSets": 1}, "u1")
        redis_client.clock.advance(10)
        assert cache.get(CacheKind.WEEKLY_SUMMARY, "u1") is None

    def test_get_or_compute_reads_through(self, cache):
        calls = []

        def compute():
            calls.append(1)
            return _deload()

        assert cache.get_or_compute(CacheKind.DELOAD, compute, "u1") == _deload()
        assert cache.get_or_compute(CacheKind.DELOAD, compute, "u1") == _deload()
        assert len(calls) == 1

    def test_none_is_not_cached(self, cache):
        calls = []

        def compute():
            calls.append(1)
            return None

        cache.get_or_compute(CacheKind.PROFILE, compute, "u1")
        cache.get_or_compute(CacheKind.PROFILE, compute, "u1")
        assert len(calls) == 2

    def test_invalidate_only_named_kinds_for_user(self, cache):
        week = date(2026, 10, 19)
        cache.put(CacheKind.VOLUME, VolumeSnapshot({}, 0, 0, week), "u1")
        cache.put(CacheKind.WEEKLY_SUMMARY, {"totalSets": 0}, "u1")
        cache.put(CacheKind.DELOAD, _deload(), "u1")
        cache.put(CacheKind.VOLUME, VolumeSnapshot({"back": 2}, 2, 0, week), "u2")

        cache.invalidate("u1", SET_DEPENDENT_KINDS)

        assert cache.get(CacheKind.VOLUME, "u1") is None
        assert cache.get(CacheKind.WEEKLY_SUMMARY, "u1") is None
        assert cache.get(CacheKind.DELOAD, "u1") == _deload()
        assert cache.get(CacheKind.VOLUME, "u2").total_sets == 2

    def test_separate_instances_share_entries(self, redis_client):
        RedisCache(redis_client).put(CacheKind.WEEKLY_SUMMARY, {"totalSets": 7}, "u1")
        assert RedisCache(redis_client).get(CacheKind.WEEKLY_SUMMARY, "u1") == {"totalSets": 7}

    def test_unreadable_entry_is_a_miss(self, redis_client, cache):
        redis_client.setex("cache:deload:u1", 60, '{"reason": null}')
        assert cache.get(CacheKind.DELOAD, "u1") is None
        assert "cache:deload:u1" not in redis_client.values

    def test_redis_outage_degrades_to_compute(self):
        cache = RedisCache(BrokenRedis())
        cache.put(CacheKind.DELOAD, _deload(), "u1")
        cache.invalidate("u1", [CacheKind.DELOAD])
        assert cache.get(CacheKind.DELOAD, "u1") is None
        assert cache.get_or_compute(CacheKind.DELOAD, _deload, "u1") == _deload()


class TestBuildCache:

    def test_client_from_config_url(self):
        cache = build_cache(CoachConfig(redis_url="redis://cache.internal:6380/3"))
        kwargs = cache._client.connection_pool.connection_kwargs
        assert kwargs["host"] == "cache.internal"
        assert kwargs["port"] == 6380
        assert kwargs["db"] == 3
        assert kwargs["decode_responses"] is True

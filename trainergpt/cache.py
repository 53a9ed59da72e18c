"""
Read-through cache in redis, keyed by user and data kind.

Keys look like ``cache:volume:<uid>``; the shared exercise library lives under
``cache:exercises``. Values are stored as JSON with a per-kind TTL applied by
redis itself, so the scheduler process and chat processes see the same entries.
The cache only saves latency: every value can be recomputed from the store, so
a miss, an expired entry or an unreachable redis simply recomputes.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

import redis

from .models import DeloadRecommendation, Exercise, UserProfile, VolumeSnapshot

logger = logging.getLogger(__name__)


class CacheKind(str, Enum):
    VOLUME = "volume"
    PROFILE = "profile"
    EXERCISES = "exercises"
    WEEKLY_SUMMARY = "weekly-summary"
    DELOAD = "deload"


TTL_SECONDS: Dict[CacheKind, int] = {
    CacheKind.VOLUME: 300,
    CacheKind.PROFILE: 3600,
    CacheKind.EXERCISES: 86400,
    CacheKind.WEEKLY_SUMMARY: 3600,
    CacheKind.DELOAD: 3600,
}

# Kinds whose values depend on logged sets.
SET_DEPENDENT_KINDS = (CacheKind.VOLUME, CacheKind.WEEKLY_SUMMARY)

# (encode, decode) between cached values and JSON-compatible data.
_CODECS: Dict[CacheKind, Tuple[Callable[[Any], Any], Callable[[Any], Any]]] = {
    CacheKind.VOLUME: (lambda v: v.to_dict(), VolumeSnapshot.from_dict),
    CacheKind.PROFILE: (lambda p: p.to_dict(), UserProfile.from_dict),
    CacheKind.EXERCISES: (
        lambda exercises: [e.to_dict() for e in exercises],
        lambda data: [Exercise.from_dict(e) for e in data],
    ),
    CacheKind.WEEKLY_SUMMARY: (dict, dict),
    CacheKind.DELOAD: (lambda d: d.to_dict(), DeloadRecommendation.from_dict),
}


def cache_key(kind: CacheKind, user_id: Optional[str] = None) -> str:
    kind = CacheKind(kind)
    if kind == CacheKind.EXERCISES:
        return "cache:exercises"
    if not user_id:
        raise ValueError(f"cache kind {kind.value} is scoped per user")
    return f"cache:{kind.value}:{user_id}"


class RedisCache:
    """
    Typed get/put/invalidate over a redis client.

    The client only needs ``get``, ``setex`` and ``delete`` and must be created
    with ``decode_responses=True``. Redis errors are logged and treated as
    misses so a cache outage never fails a tool call.
    """

    def __init__(self, client, ttls: Optional[Dict[CacheKind, int]] = None):
        self._client = client
        self._ttls = dict(TTL_SECONDS)
        if ttls:
            self._ttls.update(ttls)

    def get(self, kind: CacheKind, user_id: Optional[str] = None) -> Optional[Any]:
        kind = CacheKind(kind)
        key = cache_key(kind, user_id)
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return _CODECS[kind][1](json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            self._delete([key])
            return None

    def put(self, kind: CacheKind, value: Any, user_id: Optional[str] = None) -> None:
        kind = CacheKind(kind)
        key = cache_key(kind, user_id)
        payload = json.dumps(_CODECS[kind][0](value))
        try:
            self._client.setex(key, self._ttls[kind], payload)
        except redis.RedisError as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    def get_or_compute(
        self,
        kind: CacheKind,
        compute: Callable[[], Any],
        user_id: Optional[str] = None,
    ) -> Any:
        cached = self.get(kind, user_id)
        if cached is not None:
            return cached
        value = compute()
        # None results are not cached so a later write shows up immediately.
        if value is not None:
            self.put(kind, value, user_id)
        return value

    def invalidate(self, user_id: Optional[str], kinds: Iterable[CacheKind]) -> None:
        keys = [cache_key(kind, user_id) for kind in kinds]
        if keys:
            self._delete(keys)
            logger.debug("Invalidated %s", ", ".join(keys))

    def _delete(self, keys) -> None:
        try:
            self._client.delete(*keys)
        except redis.RedisError as e:
            logger.error("Cache invalidation failed for %s: %s", ", ".join(keys), e)


def build_cache(config) -> RedisCache:
    """Cache shared by every process pointed at config.redis_url."""
    return RedisCache(redis.from_url(config.redis_url, decode_responses=True))
